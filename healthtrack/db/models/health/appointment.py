# healthtrack/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime
from datetime import datetime
import uuid

from ....application.ports.appointments_repo import AppointmentStatus
from ....utils import utcnow

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    professional_id: str = Field(foreign_key="users.id", index=True)
    created_by_id: Optional[str] = Field(foreign_key="users.id", default=None)
    date: str = Field(max_length=10, index=True)  # YYYY-MM-DD
    start_time: str = Field(max_length=5)  # HH:MM
    end_time: str = Field(max_length=5)  # HH:MM
    status: str = Field(max_length=20, default=AppointmentStatus.SCHEDULED.value)
    reason: Optional[str] = Field(max_length=500, default=None)
    notes: Optional[str] = Field(default=None)
    # naive UTC, see utils.utcnow
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
