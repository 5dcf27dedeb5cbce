from .change_requests import ChangeType, ChangeRequestStatus, ChangeRequest, SubmitAck, ReviewPage
from .fallback import (
    FallbackStatus,
    MutationOperation,
    SaveStatus,
    LocalFallbackRecord,
    SaveOutcome,
    ReplayReport,
)
from .catalog import CatalogListing, ActivityLogItem, ActivityLogPage
from .preferences import SavedQuery, QueryExecutionLog

__all__ = [
    "ChangeType",
    "ChangeRequestStatus",
    "ChangeRequest",
    "SubmitAck",
    "ReviewPage",
    "FallbackStatus",
    "MutationOperation",
    "SaveStatus",
    "LocalFallbackRecord",
    "SaveOutcome",
    "ReplayReport",
    "CatalogListing",
    "ActivityLogItem",
    "ActivityLogPage",
    "SavedQuery",
    "QueryExecutionLog",
]
