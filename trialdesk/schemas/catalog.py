"""
Catalog and Activity Log Schemas
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class CatalogListing(BaseModel):
    """Trials or drugs with their nested sections"""
    message: Optional[str] = None
    total: int = 0
    items: List[Dict[str, Any]] = Field(default_factory=list)


class ActivityLogItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    user_id: str
    table_name: str
    record_id: Optional[str] = None
    action_type: str
    change_details: Optional[Dict[str, Any]] = None
    created_at: str


class ActivityLogPage(BaseModel):
    items: List[ActivityLogItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    server_paginated: bool = Field(False, description="False when the client had to filter and paginate the full set")
