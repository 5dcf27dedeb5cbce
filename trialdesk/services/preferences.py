"""
Preferences Service

Favorites, column settings, saved dashboard queries and the query execution
log. The local store is the primary copy. Saved queries are mirrored to the
backend when SAVED_QUERY_REMOTE_SYNC is on; a backend failure there is logged
and never fails the local save.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..config import SAVED_QUERY_REMOTE_SYNC
from ..errors import BackendError
from ..schemas.preferences import QueryExecutionLog, SavedQuery
from ..session import UserSession
from .backend_client import BackendClient
from .local_store.records import COLUMN_SETTINGS, FAVORITE_TRIAL, QUERY_LOG, SAVED_QUERY
from .local_store.store import LocalStore

logger = logging.getLogger(__name__)

SAVED_QUERIES_PATH = "/api/v1/queries/saved"
TRIAL_COLUMNS_KEY = "trials"


def _matches(search: Optional[str], *fields: Optional[str]) -> bool:
    if not search or not search.strip():
        return True
    needle = search.strip().lower()
    return any(needle in (value or "").lower() for value in fields)


class PreferencesService:
    def __init__(
        self,
        store: LocalStore,
        backend: Optional[BackendClient] = None,
        remote_sync: Optional[bool] = None,
    ):
        self.store = store
        self.backend = backend
        self.remote_sync = SAVED_QUERY_REMOTE_SYNC if remote_sync is None else remote_sync

    # Favorites

    async def toggle_favorite(self, trial_id: str) -> bool:
        """Flip a trial's favorite flag; returns True when it is now a favorite."""
        trial_id = str(trial_id)
        if await self.store.get(FAVORITE_TRIAL, trial_id) is not None:
            await self.store.delete(FAVORITE_TRIAL, trial_id)
            return False
        await self.store.put(FAVORITE_TRIAL, trial_id, {"trial_id": trial_id})
        return True

    async def favorites(self) -> List[str]:
        return sorted(key for key, _ in await self.store.items(FAVORITE_TRIAL))

    # Column settings

    async def save_column_settings(self, settings: Dict[str, Any]) -> None:
        await self.store.put(COLUMN_SETTINGS, TRIAL_COLUMNS_KEY, settings)

    async def column_settings(self) -> Optional[Dict[str, Any]]:
        return await self.store.get(COLUMN_SETTINGS, TRIAL_COLUMNS_KEY)

    # Saved queries

    async def save_query(
        self,
        session: UserSession,
        title: str,
        description: Optional[str] = None,
        query_data: Optional[Dict[str, Any]] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> SavedQuery:
        """
        Save a dashboard query locally, then mirror it to the backend.

        Raises:
            PreconditionError: session has no user id
            LocalStoreWriteError: the local (primary) write failed
        """
        user_id = session.require_user_id()
        query = SavedQuery(
            id=uuid.uuid4().hex,
            title=title.strip(),
            description=(description or "").strip() or None,
            query_data=dict(query_data or {}),
            filters=dict(filters or {}),
        )
        await self.store.put(SAVED_QUERY, query.id, query.model_dump(mode="json"))

        if self.remote_sync and self.backend is not None:
            body = {
                "title": query.title,
                "description": query.description,
                "query_type": query.query_type,
                "query_data": query.query_data,
                "filters": query.filters,
                "user_id": user_id,
            }
            try:
                await self.backend.request("POST", SAVED_QUERIES_PATH, json=body, headers=session.auth_headers())
            except BackendError as e:
                logger.warning(f"Backend save failed for query '{query.title}', kept locally: {e.message}")
            else:
                query = query.model_copy(update={"synced": True})
                await self.store.put(SAVED_QUERY, query.id, query.model_dump(mode="json"))
        return query

    async def saved_queries(self, search: Optional[str] = None) -> List[SavedQuery]:
        queries = [SavedQuery.model_validate(data) for _, data in await self.store.items(SAVED_QUERY)]
        queries = [q for q in queries if _matches(search, q.title, q.description)]
        queries.sort(key=lambda q: q.created_at.timestamp(), reverse=True)
        return queries

    async def delete_query(self, query_id: str, session: Optional[UserSession] = None) -> bool:
        removed = await self.store.delete(SAVED_QUERY, str(query_id))
        if self.remote_sync and self.backend is not None:
            headers = session.auth_headers() if session else {}
            try:
                await self.backend.request("DELETE", f"{SAVED_QUERIES_PATH}/{query_id}", headers=headers)
            except BackendError as e:
                logger.warning(f"Backend delete failed for query {query_id}: {e.message}")
        return removed

    # Query execution log

    async def log_query_execution(
        self,
        query_title: str,
        query_type: str = "filter",
        query_id: Optional[str] = None,
        query_description: Optional[str] = None,
        result_count: Optional[int] = None,
    ) -> QueryExecutionLog:
        entry = QueryExecutionLog(
            id=uuid.uuid4().hex,
            query_id=query_id,
            query_title=query_title,
            query_description=query_description,
            query_type=query_type,
            result_count=result_count,
            executed_at=datetime.now(timezone.utc),
        )
        await self.store.put(QUERY_LOG, entry.id, entry.model_dump(mode="json"))
        return entry

    async def query_logs(self, search: Optional[str] = None, query_type: Optional[str] = None) -> List[QueryExecutionLog]:
        """Newest first; `query_type` of None or 'all' matches every type."""
        logs = [QueryExecutionLog.model_validate(data) for _, data in await self.store.items(QUERY_LOG)]
        logs = [
            log for log in logs
            if _matches(search, log.query_title, log.query_description)
            and (not query_type or query_type == "all" or log.query_type == query_type)
        ]
        logs.sort(key=lambda log: log.executed_at.timestamp(), reverse=True)
        return logs

    async def delete_query_log(self, log_id: str) -> bool:
        return await self.store.delete(QUERY_LOG, str(log_id))

    async def clear_query_logs(self) -> int:
        return await self.store.clear(QUERY_LOG)
