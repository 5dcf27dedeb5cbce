"""
TrialdeskClient - wires every workflow around one backend client and one
local store.
"""
from typing import Optional

import httpx

from .services.activity_logs import ActivityLogClient
from .services.auth_service import AuthService
from .services.backend_client import BackendClient
from .services.catalog import CatalogClient
from .services.change_submission import ChangeSubmissionClient
from .services.editors import DrugEditor, TrialOverviewEditor
from .services.local_store import DrugMappingStore, FallbackRecordStore, LocalStore
from .services.preferences import PreferencesService
from .services.reconciliation import FallbackReconciler
from .services.review_queue import ReviewQueueClient
from .session import UserSession


class TrialdeskClient:
    """
    Entry point for library users.

    Example:
        async with TrialdeskClient() as desk:
            session = await desk.auth.login(email, password)
            await desk.submissions.submit_update(session, "drug_overview", "42", {"name": "x"})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        store: Optional[LocalStore] = None,
        session: Optional[UserSession] = None,
        mutation_timeout_ms: Optional[int] = None,
    ):
        self.backend = BackendClient(base_url=base_url, client=http_client)
        self.store = store or LocalStore()
        self.fallbacks = FallbackRecordStore(self.store)
        self.drug_mappings = DrugMappingStore(self.store)

        self.auth = AuthService(self.backend)
        self.submissions = ChangeSubmissionClient(self.backend)
        self.review_queue = ReviewQueueClient(self.backend, session=session)
        self.activity_logs = ActivityLogClient(self.backend, session=session)
        self.catalog = CatalogClient(self.backend, session=session)
        self.preferences = PreferencesService(self.store, backend=self.backend)

        self.trial_editor = TrialOverviewEditor(self.backend, self.fallbacks, mutation_timeout_ms=mutation_timeout_ms)
        self.drug_editor = DrugEditor(
            self.backend, self.fallbacks, self.drug_mappings, mutation_timeout_ms=mutation_timeout_ms
        )
        self.reconciler = FallbackReconciler(
            self.fallbacks,
            {
                self.trial_editor.entity_type: self.trial_editor,
                self.drug_editor.entity_type: self.drug_editor,
            },
        )

    async def aclose(self) -> None:
        await self.backend.aclose()

    async def __aenter__(self) -> "TrialdeskClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
