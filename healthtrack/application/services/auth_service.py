import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from ..identity import UserRole, is_professional_or_admin
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import (
    NewUser,
    PATIENT_PROFILE_FIELDS,
    PROFESSIONAL_PROFILE_FIELDS,
    UserDto,
    UserRepository,
)
from ...exceptions import AuthError, ConflictError, ErrorKind, NotFoundError, ValidationError
from ...utils import create_jwt_token, hash_password, utcnow, verify_password

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = (UserRole.PATIENT, UserRole.PROFESSIONAL)
MIN_PASSWORD_LENGTH = 8


@dataclass
class AuthService:
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Tuple[str, UserDto]:
        if not email or not password:
            raise ValidationError("Email and password are required", ErrorKind.MISSING_FIELD, "email" if not email else "password")
        email = email.strip().lower()
        creds = self.user_repo.get_credentials(email)
        if not creds:
            self._audit("auth.login", None, email, success=False, reason="unknown_user")
            raise AuthError("Invalid credentials")
        if not verify_password(password, creds.password_hash):
            self._audit("auth.login", creds.user.id, email, success=False, reason="bad_password")
            raise AuthError("Invalid credentials")

        token = self.issue_token(creds.user)
        logger.info(f"User {creds.user.id} logged in")
        self._audit("auth.login", creds.user.id, email)
        return token, creds.user

    def issue_token(self, user: UserDto) -> str:
        return create_jwt_token({"sub": user.id, "id": user.id, "email": user.email, "role": user.role})

    def register(self, data: Mapping[str, Any]) -> UserDto:
        for name in ("email", "password", "name", "surname", "role"):
            if not data.get(name):
                raise ValidationError(
                    "Incomplete data. Email, password, name, surname and role are required",
                    ErrorKind.MISSING_FIELD,
                    name,
                )
        role = UserRole.parse(data["role"])
        if role not in SELF_REGISTER_ROLES:
            raise ValidationError("Role must be patient or professional", ErrorKind.VALIDATION_ERROR, "role")
        if len(data["password"]) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", ErrorKind.VALIDATION_ERROR, "password")

        email = str(data["email"]).strip().lower()
        if self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered", ErrorKind.DUPLICATE, "email")

        profile_fields = PATIENT_PROFILE_FIELDS if role == UserRole.PATIENT else PROFESSIONAL_PROFILE_FIELDS
        profile: Dict[str, Any] = {k: data.get(k) for k in profile_fields}
        if role == UserRole.PATIENT and profile.get("professional_id"):
            professional = self.user_repo.get_by_id(profile["professional_id"])
            if not professional or not is_professional_or_admin(professional):
                raise ValidationError("Assigned professional not found", ErrorKind.INVALID_PARTICIPANT, "professionalId")

        user = self.user_repo.create_with_profile(
            NewUser(
                email=email,
                password_hash=hash_password(data["password"]),
                name=data["name"],
                surname=data["surname"],
                role=role.value,
                phone=data.get("phone"),
                profile=profile,
            ),
            now=utcnow(),
        )
        logger.info(f"Registered {role.value} {user.id}")
        self._audit("auth.register", user.id, email)
        return user

    def get_profile(self, user_id: str) -> UserDto:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _audit(self, action: str, user_id: Optional[str], email: str, success: bool = True, reason: Optional[str] = None) -> None:
        if self.audit is None:
            return
        self.audit.log(action, actor_id=user_id, target_id=user_id, email=email, success=success, details={"reason": reason} if reason else None)
