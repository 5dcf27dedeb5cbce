"""
Preference Schemas

Saved dashboard queries and their execution log, kept in the local store.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedQuery(BaseModel):
    id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    query_type: str = "dashboard"
    query_data: Dict[str, Any] = Field(default_factory=dict, description="searchTerm, filters, searchCriteria")
    filters: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    synced: bool = Field(False, description="True once the backend accepted the mirrored copy")


class QueryExecutionLog(BaseModel):
    id: str
    query_id: Optional[str] = None
    query_title: str
    query_description: Optional[str] = None
    query_type: str = Field("filter", description="advanced_search, filter, saved_query, ...")
    result_count: Optional[int] = None
    executed_at: datetime = Field(default_factory=_utcnow)
