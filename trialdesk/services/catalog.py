"""
Catalog Client - trials and drugs with their nested sections.
"""
import logging
from typing import Optional

from ..schemas.catalog import CatalogListing
from ..session import UserSession
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

ALL_TRIALS_PATH = "/api/v1/therapeutic/all-trials-with-data"
ALL_DRUGS_PATH = "/api/v1/drugs/all-drugs-with-data"


class CatalogClient:
    def __init__(self, backend: BackendClient, session: Optional[UserSession] = None):
        self.backend = backend
        self.session = session

    async def _listing(self, path: str, total_key: str, items_key: str) -> CatalogListing:
        headers = self.session.auth_headers() if self.session else {}
        data = await self.backend.request("GET", path, headers=headers) or {}
        items = data.get(items_key) or []
        return CatalogListing(
            message=data.get("message"),
            total=int(data.get(total_key) or len(items)),
            items=items,
        )

    async def list_trials(self) -> CatalogListing:
        return await self._listing(ALL_TRIALS_PATH, "total_trials", "trials")

    async def list_drugs(self) -> CatalogListing:
        return await self._listing(ALL_DRUGS_PATH, "total_drugs", "drugs")

    async def probe(self, path: str = ALL_TRIALS_PATH) -> bool:
        return await self.backend.probe(path)
