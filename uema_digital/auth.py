"""Explicit user context for permission checks.

The identity is read once per request and passed to whatever needs it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from uema_digital.models import Sector


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"
    VIEWER = "viewer"


class PermissionDenied(Exception):
    """Raised when the current user may not perform an action."""


EDITOR_ROLES = {UserRole.ADMIN, UserRole.MANAGER, UserRole.OPERATOR}
DELETER_ROLES = {UserRole.ADMIN}


@dataclass(frozen=True)
class UserContext:
    id: str
    name: str
    email: str = ""
    role: UserRole = UserRole.VIEWER
    sector: Optional[Sector] = None

    @property
    def is_anonymous(self) -> bool:
        return self.id == "anonymous"

    def can_edit_documents(self) -> bool:
        return self.role in EDITOR_ROLES

    def can_delete_documents(self) -> bool:
        return self.role in DELETER_ROLES

    def require(self, allowed: bool, action: str) -> None:
        if not allowed:
            raise PermissionDenied(f"{self.role.value} may not {action}")

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "UserContext":
        """Build the context from X-User-* headers.

        Missing or unknown values yield an anonymous viewer.
        """
        user_id = headers.get("X-User-Id")
        if not user_id:
            return ANONYMOUS

        try:
            role = UserRole(headers.get("X-User-Role", "viewer").lower())
        except ValueError:
            role = UserRole.VIEWER

        try:
            sector = Sector(headers["X-User-Sector"].upper()) if headers.get("X-User-Sector") else None
        except ValueError:
            sector = None

        return cls(
            id=user_id,
            name=headers.get("X-User-Name", user_id),
            email=headers.get("X-User-Email", ""),
            role=role,
            sector=sector,
        )


ANONYMOUS = UserContext(id="anonymous", name="Anônimo")
