import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..identity import CallerIdentity, is_patient, is_professional_or_admin
from ..ports.appointments_repo import (
    ACTIVE_STATUSES,
    AppointmentDto,
    AppointmentsRepository,
    AppointmentStatus,
    NewAppointment,
)
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import UserRepository
from .appointment_validator import validate_appointment, validate_date, validate_schedule
from .status_transitions import check_transition, parse_status
from ...exceptions import ConflictError, ErrorKind, ForbiddenError, NotFoundError, ValidationError
from ...utils import next_timestamp, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("patient_id", "professional_id", "date", "start_time", "end_time", "status", "reason", "notes")
SCHEDULE_FIELDS = ("professional_id", "date", "start_time", "end_time")


@dataclass
class AppointmentsService:
    """Scheduling queries, booking and status changes for appointments.

    Every method takes an optional ``caller``. Without one the service is
    unrestricted; with one, patient callers only ever see their own
    appointments, never see clinical notes, and may only cancel.
    """

    repo: AppointmentsRepository
    user_repo: Optional[UserRepository] = None
    audit: Optional[AuditLogger] = None
    strict_transitions: bool = True
    prevent_double_booking: bool = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_all(self, caller: Optional[CallerIdentity] = None) -> List[AppointmentDto]:
        if caller is not None and is_patient(caller):
            return self._visible(self.repo.find_by(patient_id=caller.id), caller)
        return self._visible(self.repo.find_all(), caller)

    def get_by_id(self, appointment_id: str, caller: Optional[CallerIdentity] = None) -> AppointmentDto:
        appt = self._require(appointment_id)
        if not self._can_see(appt, caller):
            raise NotFoundError("Appointment not found")
        return self._redact(appt, caller)

    def get_by_patient(self, patient_id: str, caller: Optional[CallerIdentity] = None) -> List[AppointmentDto]:
        if caller is not None and is_patient(caller) and caller.id != patient_id:
            raise ForbiddenError("Patients can only view their own appointments")
        return self._visible(self.repo.find_by(patient_id=patient_id), caller)

    def get_by_professional(self, professional_id: str, caller: Optional[CallerIdentity] = None) -> List[AppointmentDto]:
        return self._visible(self.repo.find_by(professional_id=professional_id), caller)

    def get_by_date(self, date: str, professional_id: Optional[str] = None, caller: Optional[CallerIdentity] = None) -> List[AppointmentDto]:
        validate_date(date)
        criteria: Dict[str, Any] = {"date": date}
        if professional_id:
            criteria["professional_id"] = professional_id
        return self._visible(self.repo.find_by(**criteria), caller)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, data: Mapping[str, Any], caller: Optional[CallerIdentity] = None) -> AppointmentDto:
        assigned_professional_id = None
        if caller is not None and is_patient(caller):
            requested = data.get("patient_id")
            if requested and requested != caller.id:
                raise ForbiddenError("Patients can only book appointments for themselves")
            if not data.get("professional_id") and self.user_repo is not None:
                me = self.user_repo.get_by_id(caller.id)
                assigned_professional_id = me.professional_id if me else None

        valid = validate_appointment(data, caller, assigned_professional_id)
        self._check_participants(valid.patient_id, valid.professional_id)
        if self.prevent_double_booking:
            self._check_conflict(valid.professional_id, valid.date, valid.start_time, valid.end_time)

        appt = self.repo.insert(
            NewAppointment(
                patient_id=valid.patient_id,
                professional_id=valid.professional_id,
                created_by_id=caller.id if caller is not None else None,
                date=valid.date,
                start_time=valid.start_time,
                end_time=valid.end_time,
                status=AppointmentStatus.SCHEDULED.value,
                reason=valid.reason,
                notes=valid.notes,
            ),
            now=utcnow(),
        )
        logger.info(f"Appointment {appt.id} created for patient {appt.patient_id} with {appt.professional_id} on {appt.date} {appt.start_time}")
        self._audit("appointment.create", caller, appt.id, {"date": appt.date, "start_time": appt.start_time})
        return self._redact(appt, caller)

    def update(self, appointment_id: str, changes: Mapping[str, Any], caller: Optional[CallerIdentity] = None) -> AppointmentDto:
        self._require_staff(caller, "Only professionals can modify appointments")
        existing = self._require(appointment_id)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if not updates:
            return self._redact(existing, caller)
        merged = {f: updates.get(f, getattr(existing, f)) for f in UPDATABLE_FIELDS}

        for name, key in (("patientId", "patient_id"), ("professionalId", "professional_id")):
            if not merged[key]:
                raise ValidationError(f"{name} cannot be empty", ErrorKind.MISSING_FIELD, name)
        validate_schedule(merged["date"], merged["start_time"], merged["end_time"])

        if "status" in updates:
            check_transition(existing.status, updates["status"], strict=self.strict_transitions)
            updates["status"] = parse_status(updates["status"]).value

        if "patient_id" in updates or "professional_id" in updates:
            self._check_participants(merged["patient_id"], merged["professional_id"])

        schedule_changed = any(merged[f] != getattr(existing, f) for f in SCHEDULE_FIELDS)
        if self.prevent_double_booking and schedule_changed and parse_status(merged["status"]).value in ACTIVE_STATUSES:
            self._check_conflict(merged["professional_id"], merged["date"], merged["start_time"], merged["end_time"], exclude_id=appointment_id)

        updates["updated_at"] = next_timestamp(existing.updated_at)
        appt = self.repo.update(appointment_id, updates)
        if appt is None:
            raise NotFoundError("Appointment not found")
        logger.info(f"Appointment {appointment_id} updated: {sorted(k for k in updates if k != 'updated_at')}")
        self._audit("appointment.update", caller, appointment_id, {"fields": sorted(updates)})
        return self._redact(appt, caller)

    def update_status(self, appointment_id: str, status: Any, caller: Optional[CallerIdentity] = None) -> AppointmentDto:
        target = parse_status(status)
        existing = self._require(appointment_id)

        if caller is not None and is_patient(caller):
            if existing.patient_id != caller.id:
                raise NotFoundError("Appointment not found")
            if target != AppointmentStatus.CANCELLED:
                raise ForbiddenError("Patients can only cancel their appointments")

        if not check_transition(existing.status, target, strict=self.strict_transitions):
            return self._redact(existing, caller)

        appt = self.repo.update(
            appointment_id,
            {"status": target.value, "updated_at": next_timestamp(existing.updated_at)},
        )
        if appt is None:
            raise NotFoundError("Appointment not found")
        logger.info(f"Appointment {appointment_id} status {existing.status} -> {target.value}")
        self._audit("appointment.status", caller, appointment_id, {"from": existing.status, "to": target.value})
        return self._redact(appt, caller)

    def delete(self, appointment_id: str, caller: Optional[CallerIdentity] = None) -> None:
        self._require_staff(caller, "Only professionals can delete appointments")
        if not self.repo.delete(appointment_id):
            raise NotFoundError("Appointment not found")
        logger.info(f"Appointment {appointment_id} deleted")
        self._audit("appointment.delete", caller, appointment_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.find_by_id(appointment_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    @staticmethod
    def _require_staff(caller: Optional[CallerIdentity], message: str) -> None:
        if caller is not None and not is_professional_or_admin(caller):
            raise ForbiddenError(message)

    @staticmethod
    def _can_see(appt: AppointmentDto, caller: Optional[CallerIdentity]) -> bool:
        if caller is None or is_professional_or_admin(caller):
            return True
        return is_patient(caller) and appt.patient_id == caller.id

    @staticmethod
    def _redact(appt: AppointmentDto, caller: Optional[CallerIdentity]) -> AppointmentDto:
        if caller is not None and not is_professional_or_admin(caller):
            return replace(appt, notes=None)
        return appt

    def _visible(self, appts: Iterable[AppointmentDto], caller: Optional[CallerIdentity]) -> List[AppointmentDto]:
        visible = [self._redact(a, caller) for a in appts if self._can_see(a, caller)]
        return sorted(visible, key=lambda a: (a.date, a.start_time))

    def _check_participants(self, patient_id: str, professional_id: str) -> None:
        if self.user_repo is None:
            return
        patient = self.user_repo.get_by_id(patient_id)
        if not patient or not is_patient(patient):
            raise ValidationError(f"User {patient_id} is not a patient", ErrorKind.INVALID_PARTICIPANT, "patientId")
        professional = self.user_repo.get_by_id(professional_id)
        if not professional or not is_professional_or_admin(professional):
            raise ValidationError(f"User {professional_id} is not a professional", ErrorKind.INVALID_PARTICIPANT, "professionalId")

    def _check_conflict(self, professional_id: str, date: str, start_time: str, end_time: str, exclude_id: Optional[str] = None) -> None:
        if self.repo.find_overlapping(professional_id, date, start_time, end_time, exclude_id=exclude_id):
            raise ConflictError("This time slot is already booked", ErrorKind.SCHEDULING_CONFLICT, "startTime")

    def _audit(self, action: str, caller: Optional[CallerIdentity], target_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        if self.audit is None:
            return
        self.audit.log(
            action,
            actor_id=caller.id if caller is not None else None,
            target_id=target_id,
            email=caller.email if caller is not None else None,
            details=details,
        )
