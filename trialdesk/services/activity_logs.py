"""
Activity Log Client

Filters and paging are sent to the server. The legacy endpoint ignores them
and returns every entry as `{activity: [...]}`; in that case the same filters
are applied here so callers see one contract either way.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..schemas.catalog import ActivityLogItem, ActivityLogPage
from ..session import UserSession
from ..utils.pagination import DEFAULT_PAGE_SIZE, paginate
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

ACTIVITY_LOGS_PATH = "/api/v1/user-activity/listActivity"


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_activity(
    items: List[ActivityLogItem],
    user_id: Optional[str] = None,
    table_name: Optional[str] = None,
    action_type: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[ActivityLogItem]:
    """Substring match on user/table, exact action type, inclusive date range."""
    filtered = items
    if user_id:
        filtered = [i for i in filtered if user_id.lower() in i.user_id.lower()]
    if table_name:
        filtered = [i for i in filtered if table_name.lower() in i.table_name.lower()]
    if action_type:
        filtered = [i for i in filtered if i.action_type == action_type]

    lower = _parse_timestamp(date_from) if date_from else None
    upper = _parse_timestamp(date_to) if date_to else None
    if lower or upper:
        kept = []
        for item in filtered:
            created = _parse_timestamp(item.created_at)
            if created is None:
                continue
            if lower and created < lower:
                continue
            if upper and created > upper:
                continue
            kept.append(item)
        filtered = kept
    return filtered


class ActivityLogClient:
    def __init__(self, backend: BackendClient, session: Optional[UserSession] = None):
        self.backend = backend
        self.session = session

    async def list(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        user_id: Optional[str] = None,
        table_name: Optional[str] = None,
        action_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> ActivityLogPage:
        params: Dict[str, Any] = {"page": page, "pageSize": page_size}
        for name, value in (
            ("userId", user_id),
            ("tableName", table_name),
            ("actionType", action_type),
            ("from", date_from),
            ("to", date_to),
        ):
            if value:
                params[name] = value

        headers = self.session.auth_headers() if self.session else {}
        data = await self.backend.request("GET", ACTIVITY_LOGS_PATH, params=params, headers=headers) or {}

        if "items" in data:
            return ActivityLogPage(
                items=[ActivityLogItem.model_validate(i) for i in data.get("items") or []],
                total=int(data.get("total") or 0),
                page=int(data.get("page") or page),
                page_size=int(data.get("pageSize") or page_size),
                server_paginated=True,
            )

        logger.warning(
            "Activity log endpoint returned the full set; filtering and paging client-side. "
            "This does not scale and needs server-side pagination."
        )
        items = [ActivityLogItem.model_validate(i) for i in data.get("activity") or []]
        filtered = filter_activity(items, user_id, table_name, action_type, date_from, date_to)
        page_items, total, page, page_size = paginate(filtered, page, page_size)
        return ActivityLogPage(items=page_items, total=total, page=page, page_size=page_size)
