from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value)

# Fields find_by() may filter on
QUERYABLE_FIELDS = ("patient_id", "professional_id", "date", "status")


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    professional_id: str
    created_by_id: Optional[str]
    date: str
    start_time: str
    end_time: str
    status: str
    reason: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass
class NewAppointment:
    patient_id: str
    professional_id: str
    created_by_id: Optional[str]
    date: str
    start_time: str
    end_time: str
    status: str = AppointmentStatus.SCHEDULED.value
    reason: Optional[str] = None
    notes: Optional[str] = None


class AppointmentsRepository(Protocol):
    def find_all(self) -> List[AppointmentDto]:
        ...

    def find_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def find_by(self, **criteria: Any) -> List[AppointmentDto]:
        ...

    def find_overlapping(self, professional_id: str, date: str, start_time: str, end_time: str, exclude_id: Optional[str] = None) -> List[AppointmentDto]:
        ...

    def insert(self, appointment: NewAppointment, now: datetime) -> AppointmentDto:
        ...

    def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[AppointmentDto]:
        ...

    def delete(self, appointment_id: str) -> bool:
        ...
