# healthtrack/db/models/users/profiles.py
# One row per user at most; created with the user and removed with it.
from typing import Optional
from sqlmodel import SQLModel, Field
import uuid

class PatientProfile(SQLModel, table=True):
    __tablename__ = "patient_profiles"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    birth_date: Optional[str] = Field(max_length=10, default=None)  # YYYY-MM-DD
    address: Optional[str] = Field(max_length=255, default=None)
    emergency_contact: Optional[str] = Field(max_length=255, default=None)
    professional_id: Optional[str] = Field(foreign_key="users.id", default=None, index=True)


class ProfessionalProfile(SQLModel, table=True):
    __tablename__ = "professional_profiles"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    specialty: Optional[str] = Field(max_length=100, default=None)
    license_number: Optional[str] = Field(max_length=50, default=None)
