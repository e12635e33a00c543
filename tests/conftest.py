import os

# Must be set before healthtrack.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from healthtrack.application.identity import CallerIdentity, UserRole
from healthtrack.application.ports.appointments_repo import ACTIVE_STATUSES, AppointmentDto, NewAppointment
from healthtrack.application.ports.user_repo import (
    CredentialsDto,
    NewUser,
    PATIENT_PROFILE_FIELDS,
    PROFESSIONAL_PROFILE_FIELDS,
    UserDto,
)
from healthtrack.application.services.appointments_service import AppointmentsService
from healthtrack.database import enable_sqlite_foreign_keys, get_session
from healthtrack.db.models import PatientProfile, ProfessionalProfile, User
from healthtrack.main import app
from healthtrack.utils import create_jwt_token, hash_password, utcnow


# ---------------------------------------------------------------------------
# In-memory fakes of the repository ports
# ---------------------------------------------------------------------------
class FakeApptRepo:
    def __init__(self):
        self._id = 1
        self.appts: Dict[str, AppointmentDto] = {}
        self.writes = 0

    def find_all(self) -> List[AppointmentDto]:
        return [replace(a) for a in self.appts.values()]

    def find_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self.appts.get(appointment_id)
        return replace(a) if a else None

    def find_by(self, **criteria: Any) -> List[AppointmentDto]:
        return [replace(a) for a in self.appts.values() if all(getattr(a, k) == v for k, v in criteria.items())]

    def find_overlapping(self, professional_id, date, start_time, end_time, exclude_id=None):
        return [
            replace(a) for a in self.appts.values()
            if a.professional_id == professional_id and a.date == date and a.status in ACTIVE_STATUSES
            and a.start_time < end_time and a.end_time > start_time and a.id != exclude_id
        ]

    def insert(self, appointment: NewAppointment, now: datetime) -> AppointmentDto:
        a = AppointmentDto(id=str(self._id), created_at=now, updated_at=now, **asdict(appointment))
        self.appts[a.id] = a
        self._id += 1
        self.writes += 1
        return replace(a)

    def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[AppointmentDto]:
        a = self.appts.get(appointment_id)
        if not a:
            return None
        self.appts[appointment_id] = replace(a, **changes)
        self.writes += 1
        return replace(self.appts[appointment_id])

    def delete(self, appointment_id: str) -> bool:
        if self.appts.pop(appointment_id, None) is None:
            return False
        self.writes += 1
        return True


class FakeUserRepo:
    def __init__(self):
        self.users: Dict[str, UserDto] = {}
        self.hashes: Dict[str, str] = {}
        self._id = 1

    def add(self, user_id: str, role: UserRole, password_hash: str = "", **fields: Any) -> UserDto:
        user = UserDto(id=user_id, email=f"{user_id}@example.com", name=user_id.upper(), surname="Test", role=role.value, **fields)
        self.users[user_id] = user
        self.hashes[user_id] = password_hash
        return user

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[UserDto]:
        return next((u for u in self.users.values() if u.email == email), None)

    def get_credentials(self, email: str) -> Optional[CredentialsDto]:
        user = self.get_by_email(email)
        return CredentialsDto(user=user, password_hash=self.hashes[user.id]) if user else None

    def list_by_role(self, role: str, professional_id: Optional[str] = None) -> List[UserDto]:
        return [
            u for u in self.users.values()
            if u.role == role and (professional_id is None or u.professional_id == professional_id)
        ]

    def create_with_profile(self, user: NewUser, now: datetime) -> UserDto:
        user_id = f"new-{self._id}"
        self._id += 1
        allowed = PATIENT_PROFILE_FIELDS if user.role == UserRole.PATIENT.value else PROFESSIONAL_PROFILE_FIELDS
        dto = UserDto(
            id=user_id, email=user.email, name=user.name, surname=user.surname, role=user.role, phone=user.phone,
            created_at=now, updated_at=now, **{k: v for k, v in user.profile.items() if k in allowed},
        )
        self.users[user_id] = dto
        self.hashes[user_id] = user.password_hash
        return dto

    def update_with_profile(self, user_id, user_fields, profile_fields, now):
        user = self.users.get(user_id)
        if not user:
            return None
        self.users[user_id] = replace(user, updated_at=now, **user_fields, **profile_fields)
        return self.users[user_id]

    def delete_cascade(self, user_id: str) -> bool:
        self.hashes.pop(user_id, None)
        return self.users.pop(user_id, None) is not None


@pytest.fixture
def appt_repo():
    return FakeApptRepo()


@pytest.fixture
def user_repo():
    repo = FakeUserRepo()
    repo.add("d1", UserRole.PROFESSIONAL, specialty="General Medicine")
    repo.add("d2", UserRole.PROFESSIONAL)
    repo.add("a1", UserRole.ADMIN)
    repo.add("p1", UserRole.PATIENT, professional_id="d1")
    repo.add("p2", UserRole.PATIENT, professional_id="d1")
    return repo


@pytest.fixture
def callers(user_repo):
    return {
        uid: CallerIdentity(id=uid, email=u.email, role=UserRole(u.role))
        for uid, u in user_repo.users.items()
    }


@pytest.fixture
def service(appt_repo, user_repo):
    return AppointmentsService(repo=appt_repo, user_repo=user_repo)


# ---------------------------------------------------------------------------
# HTTP fixtures: the real app over an in-memory SQLite database
# ---------------------------------------------------------------------------
_PASSWORD_HASH = None

TEST_PASSWORD = "password123"

SEED_USERS = (
    ("d1", UserRole.PROFESSIONAL, {"specialty": "General Medicine", "license_number": "MG12345"}),
    ("d2", UserRole.PROFESSIONAL, {}),
    ("a1", UserRole.ADMIN, {}),
    ("p1", UserRole.PATIENT, {"professional_id": "d1", "birth_date": "1985-05-12"}),
    ("p2", UserRole.PATIENT, {"professional_id": "d1"}),
)


def _password_hash() -> str:
    global _PASSWORD_HASH
    if _PASSWORD_HASH is None:
        _PASSWORD_HASH = hash_password(TEST_PASSWORD)
    return _PASSWORD_HASH


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    now = utcnow()
    with Session(engine) as session:
        for user_id, role, profile in SEED_USERS:
            session.add(User(
                id=user_id, email=f"{user_id}@example.com", password_hash=_password_hash(),
                name=user_id.upper(), surname="Test", role=role.value, created_at=now, updated_at=now,
            ))
        session.commit()
        for user_id, role, profile in SEED_USERS:
            if role == UserRole.PATIENT:
                session.add(PatientProfile(user_id=user_id, **profile))
            else:
                session.add(ProfessionalProfile(user_id=user_id, **profile))
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    roles = {user_id: role for user_id, role, _ in SEED_USERS}

    def make(user_id: str) -> Dict[str, str]:
        token = create_jwt_token({"sub": user_id, "id": user_id, "email": f"{user_id}@example.com", "role": roles[user_id].value})
        return {"Authorization": f"Bearer {token}"}

    return make
