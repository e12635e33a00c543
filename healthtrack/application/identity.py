from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class UserRole(str, Enum):
    PATIENT = "patient"
    PROFESSIONAL = "professional"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> Optional["UserRole"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated user a request acts for, as carried by its bearer token."""

    id: str
    email: str
    role: UserRole

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> Optional["CallerIdentity"]:
        user_id = claims.get("id") or claims.get("sub")
        role = UserRole.parse(claims.get("role"))
        if not user_id or role is None:
            return None
        return cls(id=str(user_id), email=str(claims.get("email") or ""), role=role)


def is_patient(subject: Any) -> bool:
    return _role_of(subject) == UserRole.PATIENT


def is_professional_or_admin(subject: Any) -> bool:
    return _role_of(subject) in (UserRole.PROFESSIONAL, UserRole.ADMIN)


def _role_of(subject: Any) -> Optional[UserRole]:
    # Accepts callers, user records, or a bare role value
    if subject is None:
        return None
    role = getattr(subject, "role", subject)
    return UserRole.parse(role)
