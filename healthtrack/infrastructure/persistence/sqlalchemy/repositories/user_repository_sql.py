import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, or_

from .....db.models import Appointment, PatientProfile, ProfessionalProfile, User
from .....exceptions import InternalError
from .....application.identity import UserRole
from .....application.ports.user_repo import (
    CredentialsDto,
    NewUser,
    PATIENT_PROFILE_FIELDS,
    PROFESSIONAL_PROFILE_FIELDS,
    UserDto,
    UserRepository,
)

logger = logging.getLogger(__name__)


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _profile_for(self, user: User) -> Tuple[Optional[PatientProfile], Optional[ProfessionalProfile]]:
        if user.role == UserRole.PATIENT.value:
            return self.session.exec(select(PatientProfile).where(PatientProfile.user_id == user.id)).first(), None
        return None, self.session.exec(select(ProfessionalProfile).where(ProfessionalProfile.user_id == user.id)).first()

    def _to_dto(self, user: User) -> UserDto:
        patient, professional = self._profile_for(user)
        return UserDto(
            id=user.id,
            email=user.email,
            name=user.name,
            surname=user.surname,
            role=user.role,
            phone=user.phone,
            profile_picture=user.profile_picture,
            birth_date=getattr(patient, "birth_date", None),
            address=getattr(patient, "address", None),
            emergency_contact=getattr(patient, "emergency_contact", None),
            professional_id=getattr(patient, "professional_id", None),
            specialty=getattr(professional, "specialty", None),
            license_number=getattr(professional, "license_number", None),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _rollback(self, action: str, error: SQLAlchemyError) -> None:
        self.session.rollback()
        logger.error(f"Error {action}: {error}")
        raise InternalError(f"Failed {action}")

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        return self._to_dto(user) if user else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def get_credentials(self, email: str) -> Optional[CredentialsDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        if not user:
            return None
        return CredentialsDto(user=self._to_dto(user), password_hash=user.password_hash)

    def list_by_role(self, role: str, professional_id: Optional[str] = None) -> List[UserDto]:
        query = select(User).where(User.role == role)
        if professional_id is not None:
            query = query.join(PatientProfile, PatientProfile.user_id == User.id).where(PatientProfile.professional_id == professional_id)
        users = self.session.exec(query.order_by(User.surname, User.name)).all()
        return [self._to_dto(u) for u in users]

    def create_with_profile(self, user: NewUser, now: datetime) -> UserDto:
        row = User(
            email=user.email,
            password_hash=user.password_hash,
            name=user.name,
            surname=user.surname,
            role=user.role,
            phone=user.phone,
            created_at=now,
            updated_at=now,
        )
        if user.role == UserRole.PATIENT.value:
            profile = PatientProfile(user_id=row.id, **{k: user.profile.get(k) for k in PATIENT_PROFILE_FIELDS})
        else:
            profile = ProfessionalProfile(user_id=row.id, **{k: user.profile.get(k) for k in PROFESSIONAL_PROFILE_FIELDS})
        # User and profile share one transaction so a failure leaves no orphan user
        try:
            self.session.add(row)
            self.session.flush()
            self.session.add(profile)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback(f"creating {user.role} {user.email}", e)
        self.session.refresh(row)
        return self._to_dto(row)

    def update_with_profile(self, user_id: str, user_fields: Dict[str, Any], profile_fields: Dict[str, Any], now: datetime) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        if not user:
            return None
        for field, value in user_fields.items():
            setattr(user, field, value)
        user.updated_at = now
        self.session.add(user)

        if profile_fields:
            patient, professional = self._profile_for(user)
            profile = patient or professional
            if profile is None:
                profile = PatientProfile(user_id=user.id) if user.role == UserRole.PATIENT.value else ProfessionalProfile(user_id=user.id)
            for field, value in profile_fields.items():
                if hasattr(profile, field):
                    setattr(profile, field, value)
            self.session.add(profile)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback(f"updating user {user_id}", e)
        self.session.refresh(user)
        return self._to_dto(user)

    def delete_cascade(self, user_id: str) -> bool:
        user = self.session.get(User, user_id)
        if not user:
            return False
        try:
            removed = set()
            for appt in self.session.exec(
                select(Appointment).where(or_(Appointment.patient_id == user_id, Appointment.professional_id == user_id))
            ).all():
                removed.add(appt.id)
                self.session.delete(appt)
            for created in self.session.exec(select(Appointment).where(Appointment.created_by_id == user_id)).all():
                if created.id not in removed:
                    created.created_by_id = None
                    self.session.add(created)
            # Patients of a removed professional become unassigned
            for assigned in self.session.exec(select(PatientProfile).where(PatientProfile.professional_id == user_id)).all():
                assigned.professional_id = None
                self.session.add(assigned)
            for model in (PatientProfile, ProfessionalProfile):
                for profile in self.session.exec(select(model).where(model.user_id == user_id)).all():
                    self.session.delete(profile)
            # dependent rows go first, foreign keys may be enforced
            self.session.flush()
            self.session.delete(user)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback(f"deleting user {user_id}", e)
        return True
