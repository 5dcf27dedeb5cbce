"""
Auth Service - exchanges credentials for an explicit UserSession.
"""
import logging

from ..errors import PreconditionError
from ..session import UserSession
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/v1/users/loginUser"


class AuthService:
    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def login(self, email: str, password: str) -> UserSession:
        """
        Log in and build the session passed to every workflow call.

        Raises:
            BackendRejectedError: bad credentials
            PreconditionError: the backend answered without a user id
        """
        data = await self.backend.request("POST", LOGIN_PATH, json={"email": email, "password": password}) or {}
        session = UserSession.from_login_response(data)
        if not session.user_id:
            raise PreconditionError("Login response did not include a user id")
        logger.info(f"Logged in user {session.user_id} with roles {session.roles}")
        return session
