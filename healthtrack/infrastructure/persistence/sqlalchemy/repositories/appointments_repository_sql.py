import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....db.models import Appointment
from .....exceptions import InternalError
from .....application.ports.appointments_repo import (
    ACTIVE_STATUSES,
    QUERYABLE_FIELDS,
    AppointmentDto,
    AppointmentsRepository,
    NewAppointment,
)

logger = logging.getLogger(__name__)


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            professional_id=a.professional_id,
            created_by_id=a.created_by_id,
            date=a.date,
            start_time=a.start_time,
            end_time=a.end_time,
            status=a.status,
            reason=a.reason,
            notes=a.notes,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _ordered(self, query):
        return query.order_by(Appointment.date, Appointment.start_time)

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise InternalError(f"Failed {action}")

    def find_all(self) -> List[AppointmentDto]:
        rows = self.session.exec(self._ordered(select(Appointment))).all()
        return [self._appt_to_dto(r) for r in rows]

    def find_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self.session.get(Appointment, appointment_id)
        return self._appt_to_dto(a) if a else None

    def find_by(self, **criteria: Any) -> List[AppointmentDto]:
        query = select(Appointment)
        for field, value in criteria.items():
            if field not in QUERYABLE_FIELDS:
                raise ValueError(f"Cannot filter appointments by {field}")
            query = query.where(getattr(Appointment, field) == value)
        rows = self.session.exec(self._ordered(query)).all()
        return [self._appt_to_dto(r) for r in rows]

    def find_overlapping(self, professional_id: str, date: str, start_time: str, end_time: str, exclude_id: Optional[str] = None) -> List[AppointmentDto]:
        query = (
            select(Appointment)
            .where(Appointment.professional_id == professional_id)
            .where(Appointment.date == date)
            .where(Appointment.status.in_(ACTIVE_STATUSES))
            .where(Appointment.start_time < end_time)
            .where(Appointment.end_time > start_time)
        )
        if exclude_id:
            query = query.where(Appointment.id != exclude_id)
        rows = self.session.exec(self._ordered(query)).all()
        return [self._appt_to_dto(r) for r in rows]

    def insert(self, appointment: NewAppointment, now: datetime) -> AppointmentDto:
        appt = Appointment(
            patient_id=appointment.patient_id,
            professional_id=appointment.professional_id,
            created_by_id=appointment.created_by_id,
            date=appointment.date,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=appointment.status,
            reason=appointment.reason,
            notes=appointment.notes,
            created_at=now,
            updated_at=now,
        )
        self.session.add(appt)
        self._commit("creating appointment")
        self.session.refresh(appt)
        return self._appt_to_dto(appt)

    def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[AppointmentDto]:
        a = self.session.get(Appointment, appointment_id)
        if not a:
            return None
        for field, value in changes.items():
            setattr(a, field, value)
        self.session.add(a)
        self._commit(f"updating appointment {appointment_id}")
        self.session.refresh(a)
        return self._appt_to_dto(a)

    def delete(self, appointment_id: str) -> bool:
        a = self.session.get(Appointment, appointment_id)
        if not a:
            return False
        self.session.delete(a)
        self._commit(f"deleting appointment {appointment_id}")
        return True
