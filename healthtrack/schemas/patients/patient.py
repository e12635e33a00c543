# healthtrack/schemas/patients/patient.py
from typing import Optional
from datetime import datetime

from ..common.common import CamelModel

class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    surname: str
    role: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class PatientResponse(UserResponse):
    birth_date: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    professional_id: Optional[str] = None

class ProfessionalResponse(UserResponse):
    specialty: Optional[str] = None
    license_number: Optional[str] = None

class PatientCreate(CamelModel):
    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    birth_date: Optional[str] = None  # YYYY-MM-DD
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    professional_id: Optional[str] = None

class PatientUpdate(CamelModel):
    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    birth_date: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    professional_id: Optional[str] = None
