from typing import Protocol, Optional, List, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime

from ...utils import utcnow


@dataclass
class UserDto:
    id: str
    email: str
    name: str
    surname: str
    role: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    # patient profile
    birth_date: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    professional_id: Optional[str] = None
    # professional profile
    specialty: Optional[str] = None
    license_number: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class NewUser:
    email: str
    password_hash: str
    name: str
    surname: str
    role: str
    phone: Optional[str] = None
    profile: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CredentialsDto:
    user: UserDto
    password_hash: str


PATIENT_PROFILE_FIELDS = ("birth_date", "address", "emergency_contact", "professional_id")
PROFESSIONAL_PROFILE_FIELDS = ("specialty", "license_number")
USER_FIELDS = ("email", "name", "surname", "phone", "profile_picture")


class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def get_credentials(self, email: str) -> Optional[CredentialsDto]:
        ...

    def list_by_role(self, role: str, professional_id: Optional[str] = None) -> List[UserDto]:
        ...

    def create_with_profile(self, user: NewUser, now: datetime) -> UserDto:
        """Insert the user and its role profile as a single transaction."""
        ...

    def update_with_profile(self, user_id: str, user_fields: Dict[str, Any], profile_fields: Dict[str, Any], now: datetime) -> Optional[UserDto]:
        ...

    def delete_cascade(self, user_id: str) -> bool:
        """Remove the user, its profile and its appointments as a single transaction."""
        ...
