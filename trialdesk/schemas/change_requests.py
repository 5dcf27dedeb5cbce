"""
Change Request Schemas

Pydantic models for proposed create/update/delete changes submitted to the
review queue, and for the review queue listing.
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class ChangeType(str, Enum):
    """Kind of change proposed for a record"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeRequestStatus(str, Enum):
    """Review state, owned by the backend review queue"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ChangeRequest(BaseModel):
    """A proposed change, immutable once packaged"""
    model_config = ConfigDict(frozen=True)

    target_table: str = Field(..., min_length=1, description="Logical entity type (e.g., 'drug_overview')")
    target_record_id: str = Field(..., description="Identifier of the affected record")
    change_type: ChangeType = Field(..., description="CREATE, UPDATE or DELETE")
    proposed_data: Any = Field(..., description="Partial fields for UPDATE, reason for DELETE, full fields for CREATE")
    submitted_by: str = Field(..., min_length=1, description="Acting user id")

    def to_payload(self) -> Dict[str, Any]:
        """Request body for the submitChange endpoint."""
        return {
            "target_table": self.target_table,
            "target_record_id": self.target_record_id,
            "proposed_data": self.proposed_data,
            "change_type": self.change_type.value,
            "submitted_by": self.submitted_by,
        }


class SubmitAck(BaseModel):
    """Backend acknowledgement of a submitted change"""
    id: Optional[str] = Field(None, description="Id assigned by the review queue")
    message: Optional[str] = None
    record: Dict[str, Any] = Field(default_factory=dict, description="Created record as returned by the backend")

    @classmethod
    def from_response(cls, data: Any) -> "SubmitAck":
        if not isinstance(data, dict):
            return cls()
        record = data
        if "id" not in data:
            for key in ("change", "pendingChange", "pending_change", "data"):
                nested = data.get(key)
                if isinstance(nested, dict):
                    record = nested
                    break
        record_id = record.get("id")
        return cls(
            id=str(record_id) if record_id is not None else None,
            message=data.get("message"),
            record=record,
        )


class ReviewPage(BaseModel):
    """One page of the review queue"""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    page: Optional[int] = None
    page_size: Optional[int] = None

    def pending(self) -> List[Dict[str, Any]]:
        """Items the backend still reports as pending."""
        return [
            item for item in self.items
            if str(item.get("status", ChangeRequestStatus.PENDING.value)).lower() == ChangeRequestStatus.PENDING.value
        ]

    def find(self, change_id: str) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if str(item.get("id")) == str(change_id):
                return item
        return None
