"""Field rules for appointment records.

Checks run in a fixed order and stop at the first failure: required fields,
then the date, then the two times, then their ordering. Every failure is a
``ValidationError`` whose ``kind`` tells the caller which rule tripped.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..identity import CallerIdentity, is_patient, is_professional_or_admin
from ...exceptions import ErrorKind, ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

REQUIRED_FIELDS_MESSAGE = "Incomplete data. Patient, professional, date, start time and end time are required"


@dataclass
class ValidAppointment:
    patient_id: str
    professional_id: str
    date: str
    start_time: str
    end_time: str
    reason: Optional[str] = None
    notes: Optional[str] = None


def validate_date(value: Any) -> str:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", ErrorKind.INVALID_FORMAT, "date")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid calendar date: {value}", ErrorKind.INVALID_FORMAT, "date")
    return value


def validate_time(value: Any) -> str:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError("Invalid time format. Use HH:MM (24h)", ErrorKind.INVALID_FORMAT, "time")
    return value


def validate_schedule(date: Any, start_time: Any, end_time: Any) -> None:
    validate_date(date)
    validate_time(start_time)
    validate_time(end_time)
    # zero-padded HH:MM compares correctly as text
    if not start_time < end_time:
        raise ValidationError("Start time must be earlier than end time", ErrorKind.INVALID_RANGE, "endTime")


def validate_appointment(
    data: Mapping[str, Any],
    caller: Optional[CallerIdentity] = None,
    assigned_professional_id: Optional[str] = None,
) -> ValidAppointment:
    patient_id = data.get("patient_id")
    if not patient_id and caller is not None and is_patient(caller):
        patient_id = caller.id

    professional_id = data.get("professional_id")
    if not professional_id and caller is not None:
        if is_professional_or_admin(caller):
            professional_id = caller.id
        elif is_patient(caller):
            professional_id = assigned_professional_id

    required = (
        ("patientId", patient_id),
        ("professionalId", professional_id),
        ("date", data.get("date")),
        ("startTime", data.get("start_time")),
        ("endTime", data.get("end_time")),
    )
    for name, value in required:
        if not value:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE, ErrorKind.MISSING_FIELD, name)

    validate_schedule(data["date"], data["start_time"], data["end_time"])

    return ValidAppointment(
        patient_id=str(patient_id),
        professional_id=str(professional_id),
        date=data["date"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        reason=data.get("reason"),
        notes=data.get("notes"),
    )
