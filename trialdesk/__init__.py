"""
trialdesk - client for the clinical trial reference data backend

Change submission with admin review, direct-mutation editors with a local
fallback, and the review queue.
"""

from .client import TrialdeskClient
from .session import UserSession
from .errors import (
    TrialdeskError,
    PreconditionError,
    BackendError,
    BackendUnavailableError,
    BackendTimeoutError,
    BackendRejectedError,
    SubmitError,
    ActionInFlightError,
    LocalStoreError,
    LocalStoreWriteError,
    FallbackWriteError,
)

__version__ = "1.0.0"

__all__ = [
    "TrialdeskClient",
    "UserSession",
    "TrialdeskError",
    "PreconditionError",
    "BackendError",
    "BackendUnavailableError",
    "BackendTimeoutError",
    "BackendRejectedError",
    "SubmitError",
    "ActionInFlightError",
    "LocalStoreError",
    "LocalStoreWriteError",
    "FallbackWriteError",
]
