# healthtrack/schemas/appointments/appointment.py
from typing import Optional
from datetime import datetime

from ..common.common import CamelModel

# Request fields stay optional: required-field checks belong to the
# appointment validator so that they report 400 with a specific kind.
class AppointmentCreate(CamelModel):
    patient_id: Optional[str] = None
    professional_id: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
    start_time: Optional[str] = None  # HH:MM
    end_time: Optional[str] = None  # HH:MM
    reason: Optional[str] = None
    notes: Optional[str] = None

class AppointmentUpdate(AppointmentCreate):
    status: Optional[str] = None

class AppointmentStatusUpdate(CamelModel):
    status: Optional[str] = None

class AppointmentResponse(CamelModel):
    id: str
    patient_id: str
    professional_id: str
    created_by_id: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    status: str
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
