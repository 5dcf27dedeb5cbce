"""
User session context.

Every workflow takes the acting user explicitly instead of reading it from
ambient storage.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from .errors import PreconditionError


@dataclass(frozen=True)
class UserSession:
    """Identity of the user performing an action."""
    user_id: Optional[str]
    token: Optional[str] = None
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)

    def require_user_id(self) -> str:
        """Return the user id or raise PreconditionError when it is missing."""
        user_id = str(self.user_id or "").strip()
        if not user_id:
            raise PreconditionError("User ID not found. Please log in again.")
        return user_id

    def has_role(self, role_name: str) -> bool:
        wanted = role_name.strip().lower()
        return any(role.strip().lower() == wanted for role in self.roles)

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @classmethod
    def from_login_response(cls, data: Dict[str, Any]) -> "UserSession":
        """Build a session from the `/users/loginUser` payload."""
        user = data.get("user") or {}
        roles = [
            str(role.get("role_name"))
            for role in (data.get("roles") or [])
            if isinstance(role, dict) and role.get("role_name")
        ]
        return cls(
            user_id=str(user["id"]) if user.get("id") is not None else None,
            token=data.get("token"),
            email=user.get("email"),
            roles=roles,
        )
