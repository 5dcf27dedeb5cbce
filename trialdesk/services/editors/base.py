"""
Direct-Mutation Editor base

Save flow shared by the trial overview and drug editors:
1. Probe a known-good listing endpoint (client default timeout only)
2. If reachable, send the mutation under MUTATION_TIMEOUT_MS
3. On success, run the editor's success hook and report saved_remote
4. On any failure, write exactly one LocalFallbackRecord and report saved_local

The caller only sees an exception when the user is missing or when both the
backend and the local write failed.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ...config import MUTATION_TIMEOUT_MS
from ...errors import BackendError, FallbackWriteError, LocalStoreError
from ...schemas.fallback import (
    FallbackStatus,
    LocalFallbackRecord,
    MutationOperation,
    SaveOutcome,
    SaveStatus,
)
from ...session import UserSession
from ..backend_client import BackendClient
from ..local_store.records import FallbackRecordStore
from .config import CONTROL_FIELDS

logger = logging.getLogger(__name__)


class DirectMutationEditor:
    """
    Base class for editors that write straight to the backend.

    Subclasses set the class attributes and implement build_payload/send.
    """

    entity_type: str = ""
    target_table: str = ""
    operation: MutationOperation = MutationOperation.PATCH
    probe_path: str = ""

    def __init__(
        self,
        backend: BackendClient,
        fallback_store: FallbackRecordStore,
        mutation_timeout_ms: Optional[int] = None,
    ):
        self.backend = backend
        self.fallback_store = fallback_store
        self.mutation_timeout_ms = mutation_timeout_ms if mutation_timeout_ms is not None else MUTATION_TIMEOUT_MS

    @property
    def deadline_s(self) -> float:
        return self.mutation_timeout_ms / 1000.0

    def build_payload(
        self,
        user_id: str,
        record_id: str,
        changes: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        raise NotImplementedError

    async def send(self, record_id: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        raise NotImplementedError

    async def on_remote_success(self, record_id: str, payload: Dict[str, Any], response: Any) -> SaveOutcome:
        return SaveOutcome(
            status=SaveStatus.SAVED_REMOTE,
            record_id=record_id,
            message="Changes saved successfully",
            response=response if isinstance(response, dict) else None,
        )

    async def save(
        self,
        session: UserSession,
        record_id: str,
        changes: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> SaveOutcome:
        """
        Save changes for one record.

        Raises:
            PreconditionError: session has no user id
            FallbackWriteError: the backend path failed and the local write failed too
        """
        user_id = session.require_user_id()
        record_id = str(record_id)
        payload = self.build_payload(user_id, record_id, changes, snapshot)

        reachable = await self.backend.probe(self.probe_path)
        if reachable:
            try:
                response = await self.send(record_id, payload, session.auth_headers())
            except BackendError as e:
                logger.warning(f"{self.entity_type} {record_id} save failed, falling back to local store: {e.message}")
                return await self._save_locally(record_id, payload, snapshot, FallbackStatus.PENDING_API_UPDATE, e)
            return await self.on_remote_success(record_id, payload, response)

        error = BackendError(f"{self.probe_path} unreachable - backend server down")
        logger.warning(f"Backend unreachable, saving {self.entity_type} {record_id} locally")
        return await self._save_locally(record_id, payload, snapshot, FallbackStatus.BACKEND_UNAVAILABLE, error)

    async def push(self, record: LocalFallbackRecord, session: UserSession) -> SaveOutcome:
        """Re-send a held payload through the remote path only; errors propagate."""
        payload = {**record.payload, "user_id": session.require_user_id()}
        response = await self.send(record.record_id, payload, session.auth_headers())
        return await self.on_remote_success(record.record_id, payload, response)

    async def optimistic_view(self, record_id: str, server_entity: Dict[str, Any]) -> Dict[str, Any]:
        """Server entity with any held local payload overlaid."""
        record = await self.fallback_store.get(self.entity_type, str(record_id))
        if record is None:
            return dict(server_entity)
        overlay = {k: v for k, v in record.payload.items() if k not in CONTROL_FIELDS}
        return {**server_entity, **overlay}

    async def _save_locally(
        self,
        record_id: str,
        payload: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]],
        status: FallbackStatus,
        api_error: BackendError,
    ) -> SaveOutcome:
        record = LocalFallbackRecord(
            record_id=record_id,
            entity_type=self.entity_type,
            target_table=self.target_table,
            operation=self.operation,
            payload=payload,
            snapshot=snapshot,
            status=status,
            timestamp=datetime.now(timezone.utc),
            last_error=api_error.message,
        )
        try:
            await self.fallback_store.save(record)
        except LocalStoreError as e:
            logger.error(f"Local fallback write failed for {self.entity_type} {record_id}: {e.message}")
            raise FallbackWriteError(api_error, e) from e

        return SaveOutcome(
            status=SaveStatus.SAVED_LOCAL,
            record_id=record_id,
            message="Changes saved locally; they will be sent when the backend is available",
            fallback=record,
        )
