import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..identity import CallerIdentity, UserRole, is_patient, is_professional_or_admin
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import (
    NewUser,
    PATIENT_PROFILE_FIELDS,
    USER_FIELDS,
    UserDto,
    UserRepository,
)
from .appointment_validator import validate_date
from ...exceptions import ConflictError, ErrorKind, ForbiddenError, NotFoundError, ValidationError
from ...utils import hash_password, unusable_password_hash, utcnow

logger = logging.getLogger(__name__)


@dataclass
class PatientsService:
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def get_all(self, caller: Optional[CallerIdentity] = None) -> List[UserDto]:
        self._require_staff(caller)
        return self.user_repo.list_by_role(UserRole.PATIENT.value)

    def get_by_professional(self, professional_id: str, caller: Optional[CallerIdentity] = None) -> List[UserDto]:
        self._require_staff(caller)
        return self.user_repo.list_by_role(UserRole.PATIENT.value, professional_id=professional_id)

    def get_by_id(self, patient_id: str, caller: Optional[CallerIdentity] = None) -> UserDto:
        if caller is not None and is_patient(caller) and caller.id != patient_id:
            raise ForbiddenError("Patients can only view their own record")
        return self._require(patient_id)

    def create(self, data: Mapping[str, Any], caller: Optional[CallerIdentity] = None) -> UserDto:
        self._require_staff(caller)
        for name, key in (("name", "name"), ("email", "email"), ("professionalId", "professional_id")):
            if not data.get(key):
                raise ValidationError(
                    "Incomplete data. Name, email and assigned professional are required",
                    ErrorKind.MISSING_FIELD,
                    name,
                )
        if data.get("birth_date"):
            validate_date(data["birth_date"])
        self._check_professional(data["professional_id"])

        email = str(data["email"]).strip().lower()
        if self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered", ErrorKind.DUPLICATE, "email")

        password = data.get("password")
        patient = self.user_repo.create_with_profile(
            NewUser(
                email=email,
                password_hash=hash_password(password) if password else unusable_password_hash(),
                name=data["name"],
                surname=data.get("surname") or "",
                role=UserRole.PATIENT.value,
                phone=data.get("phone"),
                profile={k: data.get(k) for k in PATIENT_PROFILE_FIELDS},
            ),
            now=utcnow(),
        )
        logger.info(f"Patient {patient.id} created, assigned to {patient.professional_id}")
        self._audit("patient.create", caller, patient.id, email)
        return patient

    def update(self, patient_id: str, data: Mapping[str, Any], caller: Optional[CallerIdentity] = None) -> UserDto:
        self._require_staff(caller)
        existing = self._require(patient_id)

        user_fields: Dict[str, Any] = {k: data[k] for k in USER_FIELDS if k in data}
        profile_fields: Dict[str, Any] = {k: data[k] for k in PATIENT_PROFILE_FIELDS if k in data}

        if "name" in user_fields:
            if not str(user_fields["name"] or "").strip():
                raise ValidationError("name cannot be empty", ErrorKind.MISSING_FIELD, "name")
        if "surname" in user_fields and user_fields["surname"] is None:
            user_fields["surname"] = ""
        if "email" in user_fields:
            email = str(user_fields["email"] or "").strip().lower()
            if not email:
                raise ValidationError("email cannot be empty", ErrorKind.MISSING_FIELD, "email")
            other = self.user_repo.get_by_email(email)
            if other and other.id != patient_id:
                raise ConflictError("Email already registered", ErrorKind.DUPLICATE, "email")
            user_fields["email"] = email
        if profile_fields.get("birth_date"):
            validate_date(profile_fields["birth_date"])
        if "professional_id" in profile_fields:
            if not profile_fields["professional_id"]:
                raise ValidationError("professionalId cannot be empty", ErrorKind.MISSING_FIELD, "professionalId")
            self._check_professional(profile_fields["professional_id"])

        if not user_fields and not profile_fields:
            return existing
        updated = self.user_repo.update_with_profile(patient_id, user_fields, profile_fields, now=utcnow())
        if updated is None:
            raise NotFoundError("Patient not found")
        self._audit("patient.update", caller, patient_id, updated.email)
        return updated

    def delete(self, patient_id: str, caller: Optional[CallerIdentity] = None) -> None:
        self._require_staff(caller)
        patient = self._require(patient_id)
        if not self.user_repo.delete_cascade(patient_id):
            raise NotFoundError("Patient not found")
        logger.info(f"Patient {patient_id} deleted")
        self._audit("patient.delete", caller, patient_id, patient.email)

    def _require(self, patient_id: str) -> UserDto:
        user = self.user_repo.get_by_id(patient_id)
        if not user or not is_patient(user):
            raise NotFoundError("Patient not found")
        return user

    def _check_professional(self, professional_id: str) -> None:
        professional = self.user_repo.get_by_id(professional_id)
        if not professional or not is_professional_or_admin(professional):
            raise ValidationError(f"User {professional_id} is not a professional", ErrorKind.INVALID_PARTICIPANT, "professionalId")

    @staticmethod
    def _require_staff(caller: Optional[CallerIdentity]) -> None:
        if caller is not None and not is_professional_or_admin(caller):
            raise ForbiddenError("Only professionals can manage patient records")

    def _audit(self, action: str, caller: Optional[CallerIdentity], target_id: str, email: Optional[str]) -> None:
        if self.audit is not None:
            self.audit.log(action, actor_id=caller.id if caller else None, target_id=target_id, email=email)
