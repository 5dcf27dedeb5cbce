"""
Error taxonomy for the trialdesk client.

Precondition errors abort before any I/O. Backend errors are either routed
to the local fallback (direct editors) or surfaced as-is (review queue,
submissions). Only a failed fallback write after a failed backend call is
treated as unrecoverable.
"""
from typing import Any, Optional


class TrialdeskError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreconditionError(TrialdeskError):
    """Raised when a workflow is invoked without a known acting user."""
    pass


class BackendError(TrialdeskError):
    """A request to the backend did not produce a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class BackendUnavailableError(BackendError):
    """Transport failure: connection refused, DNS, reset."""
    pass


class BackendTimeoutError(BackendUnavailableError):
    """The client gave up waiting; the server may still complete the request."""
    pass


class BackendRejectedError(BackendError):
    """Non-2xx response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message, status_code=status_code, payload=payload)
        # Only set when the body carried an `error`/`message` field
        self.server_message = server_message


class SubmitError(TrialdeskError):
    """A change request could not be handed to the review queue."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ActionInFlightError(TrialdeskError):
    """An approve/reject for the same change is already pending."""
    pass


class LocalStoreError(TrialdeskError):
    """The local store could not be read or holds an unreadable envelope."""
    pass


class LocalStoreWriteError(LocalStoreError):
    """The local store refused a write (quota exceeded, OS error)."""
    pass


class FallbackWriteError(TrialdeskError):
    """Both the backend mutation and the local fallback write failed."""

    def __init__(self, api_error: Exception, store_error: Exception):
        super().__init__(
            f"API save failed ({api_error}) and local fallback failed ({store_error})"
        )
        self.api_error = api_error
        self.store_error = store_error
