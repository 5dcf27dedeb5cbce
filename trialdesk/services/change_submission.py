"""
Change Submission Client

Packages a user's create/update/delete intent into a ChangeRequest and hands
it to the backend review queue. One attempt, no retry; the fallback cache is
not involved on this path.
"""
import copy
import logging
from typing import Any, Dict, Union

from ..errors import BackendError, BackendRejectedError, SubmitError
from ..schemas.change_requests import ChangeRequest, ChangeType, SubmitAck
from ..session import UserSession
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

SUBMIT_CHANGE_PATH = "/api/v1/pending-changes/submitChange"


class ChangeSubmissionClient:
    """Submits proposed changes for review."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def submit_change(
        self,
        session: UserSession,
        target_table: str,
        target_record_id: str,
        change_type: Union[ChangeType, str],
        proposed_data: Any,
    ) -> SubmitAck:
        """
        Submit one change request.

        Raises:
            PreconditionError: session has no user id (raised before any I/O)
            SubmitError: the backend refused or could not be reached
        """
        submitted_by = session.require_user_id()
        change_type = ChangeType(change_type.upper() if isinstance(change_type, str) else change_type)

        # Packaged from a deep copy so later edits by the caller never reach the request
        request = ChangeRequest(
            target_table=target_table,
            target_record_id=str(target_record_id),
            change_type=change_type,
            proposed_data=copy.deepcopy(proposed_data),
            submitted_by=submitted_by,
        )

        try:
            data = await self.backend.request(
                "POST",
                SUBMIT_CHANGE_PATH,
                json=request.to_payload(),
                headers=session.auth_headers(),
            )
        except BackendRejectedError as e:
            message = e.server_message or f"Failed to submit {change_type.value.lower()} request"
            logger.error(f"Change submission rejected ({e.status_code}) for {target_table}/{target_record_id}: {e.message}")
            raise SubmitError(message, status_code=e.status_code) from e
        except BackendError as e:
            logger.error(f"Change submission failed for {target_table}/{target_record_id}: {e.message}")
            raise SubmitError(f"Failed to submit {change_type.value.lower()} request") from e

        ack = SubmitAck.from_response(data)
        logger.info(
            f"Submitted {change_type.value} for {target_table}/{target_record_id} "
            f"(change id: {ack.id}); waiting for admin approval"
        )
        return ack

    async def submit_update(self, session: UserSession, target_table: str, record_id: str, changes: Dict[str, Any]) -> SubmitAck:
        return await self.submit_change(session, target_table, record_id, ChangeType.UPDATE, changes)

    async def submit_delete(self, session: UserSession, target_table: str, record_id: str, reason: str) -> SubmitAck:
        return await self.submit_change(
            session, target_table, record_id, ChangeType.DELETE, {"deletion_reason": reason}
        )

    async def submit_create(self, session: UserSession, target_table: str, record_id: str, fields: Dict[str, Any]) -> SubmitAck:
        return await self.submit_change(session, target_table, record_id, ChangeType.CREATE, fields)
