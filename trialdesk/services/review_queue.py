"""
Review Queue Client

List/approve/reject against the backend approval endpoints. No local state
machine: each action is an independent request and the list is re-fetched
after it. Actions carry a client-generated idempotency key, and a second
action on a change that is still in flight is refused.
"""
import logging
import uuid
from typing import Any, Dict, Optional, Set

from ..errors import ActionInFlightError
from ..schemas.change_requests import ReviewPage
from ..session import UserSession
from ..utils.pagination import paginate
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

APPROVALS_PATH = "/api/v1/approvals"
IDEMPOTENCY_HEADER = "Idempotency-Key"


class ReviewQueueClient:
    """Thin read/act client for pending changes."""

    def __init__(self, backend: BackendClient, session: Optional[UserSession] = None):
        self.backend = backend
        self.session = session
        self._in_flight: Set[str] = set()
        self._last_query: Dict[str, Optional[int]] = {"page": None, "page_size": None}

    def _headers(self) -> Dict[str, str]:
        return self.session.auth_headers() if self.session else {}

    def is_in_flight(self, change_id: str) -> bool:
        return str(change_id) in self._in_flight

    async def list(self, page: Optional[int] = None, page_size: Optional[int] = None) -> ReviewPage:
        """
        Fetch one page of the queue.

        Paging is delegated to the server when parameters are given. A server
        that answers with a bare list is paged here as a stopgap.
        """
        params: Dict[str, Any] = {}
        if page:
            params["page"] = page
        if page_size:
            params["pageSize"] = page_size
        self._last_query = {"page": page, "page_size": page_size}

        data = await self.backend.request("GET", APPROVALS_PATH, params=params or None, headers=self._headers())

        if isinstance(data, list):
            logger.warning(
                "Approvals endpoint returned an unpaginated list; paging client-side. "
                "Server-side pagination is required for production volumes."
            )
            if page or page_size:
                items, total, page, page_size = paginate(data, page, page_size)
            else:
                items, total = data, len(data)
            return ReviewPage(items=items, total=total, page=page, page_size=page_size)

        data = data or {}
        items = data.get("items") or []
        return ReviewPage(
            items=items,
            total=int(data.get("total") or len(items)),
            page=data.get("page", page),
            page_size=data.get("pageSize", page_size),
        )

    async def get(self, change_id: str) -> Dict[str, Any]:
        return await self.backend.request("GET", f"{APPROVALS_PATH}/{change_id}", headers=self._headers())

    async def approve(self, change_id: str) -> ReviewPage:
        """Approve a change and return the re-fetched queue."""
        return await self._act(change_id, "approve", body=None)

    async def reject(self, change_id: str, reason: Optional[str] = None) -> ReviewPage:
        """Reject a change; `reason` is sent only when given."""
        body: Dict[str, Any] = {}
        if reason:
            body["reason"] = reason
        return await self._act(change_id, "reject", body=body)

    async def _act(self, change_id: str, action: str, body: Optional[Dict[str, Any]]) -> ReviewPage:
        key = str(change_id)
        if key in self._in_flight:
            raise ActionInFlightError(f"An action on change {key} is already in progress")

        self._in_flight.add(key)
        idempotency_key = uuid.uuid4().hex
        try:
            await self.backend.request(
                "POST",
                f"{APPROVALS_PATH}/{key}/{action}",
                json=body,
                headers={**self._headers(), IDEMPOTENCY_HEADER: idempotency_key},
            )
        finally:
            self._in_flight.discard(key)

        logger.info(f"Change {key} {action}d (idempotency key {idempotency_key}); refreshing queue")
        return await self.list(**self._last_query)
