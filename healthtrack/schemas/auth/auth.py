# healthtrack/schemas/auth/auth.py
from pydantic import BaseModel
from typing import Optional

from ..common.common import CamelModel

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: dict

class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    surname: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    # patient profile
    birth_date: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    professional_id: Optional[str] = None
    # professional profile
    specialty: Optional[str] = None
    license_number: Optional[str] = None
