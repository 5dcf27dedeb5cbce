"""
Fallback Schemas

Local stand-ins for mutations that could not be confirmed against the backend,
and the outcome reported to the caller of a direct-mutation editor.
"""

from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field
from enum import Enum


# Server-owned fields never copied from a snapshot into a new version
SERVER_OWNED_FIELDS = ("id", "created_at", "updated_at")


class FallbackStatus(str, Enum):
    """Why the mutation is held locally"""
    PENDING_API_UPDATE = "pending_api_update"      # backend reachable, mutation failed
    BACKEND_UNAVAILABLE = "backend_unavailable"    # reachability probe failed


class MutationOperation(str, Enum):
    PATCH = "patch"
    NEW_VERSION = "new_version"


class SaveStatus(str, Enum):
    SAVED_REMOTE = "saved_remote"
    SAVED_LOCAL = "saved_local"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalFallbackRecord(BaseModel):
    """Intended mutation held in the local store, keyed by record id"""
    record_id: str = Field(..., description="Id of the entity the mutation targets")
    entity_type: str = Field(..., description="Editor entity type (e.g., 'drug', 'therapeutic_trial')")
    target_table: str = Field(..., description="Backend table the mutation targets")
    operation: MutationOperation = Field(..., description="How the editor applies the mutation remotely")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Request body that would have been sent")
    snapshot: Optional[Dict[str, Any]] = Field(None, description="Entity as it was before the mutation")
    status: FallbackStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    last_error: Optional[str] = Field(None, description="Failure that routed the save to the fallback")
    attempts: int = Field(0, ge=0, description="Replay attempts made so far")


class SaveOutcome(BaseModel):
    """Result of a direct-mutation save; both statuses are success from the UI's view"""
    status: SaveStatus
    record_id: str
    new_record_id: Optional[str] = Field(None, description="Id of the new version when saved as a new record")
    message: str
    response: Optional[Dict[str, Any]] = None
    fallback: Optional[LocalFallbackRecord] = None

    @property
    def saved_locally(self) -> bool:
        return self.status == SaveStatus.SAVED_LOCAL


class ReplayReport(BaseModel):
    """Summary of one explicit reconciliation pass"""
    attempted: int = 0
    synced: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    skipped: List[str] = Field(default_factory=list, description="Records left untouched because the backend was unreachable")
