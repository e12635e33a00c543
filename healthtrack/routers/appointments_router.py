from dataclasses import asdict
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
import logging

from ..application.identity import CallerIdentity
from ..application.ports.appointments_repo import AppointmentDto
from ..application.services.appointments_service import AppointmentsService
from ..dependencies import get_appointments_service, get_current_user
from ..exceptions import DomainError, InternalError, create_success_response
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from ..schemas.common.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _to_response(appt: AppointmentDto) -> AppointmentResponse:
    return AppointmentResponse(**asdict(appt))


@router.get("", response_model=List[AppointmentResponse])
def get_all_appointments(
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.get_all(caller=current_user)]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting appointments: {str(e)}")
        raise InternalError("Failed to retrieve appointments")


@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def get_appointments_by_patient(
    patient_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.get_by_patient(patient_id, caller=current_user)]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting appointments of patient {patient_id}: {str(e)}")
        raise InternalError("Failed to retrieve patient appointments")


@router.get("/professional/{professional_id}", response_model=List[AppointmentResponse])
def get_appointments_by_professional(
    professional_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.get_by_professional(professional_id, caller=current_user)]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting appointments of professional {professional_id}: {str(e)}")
        raise InternalError("Failed to retrieve professional appointments")


@router.get("/date/{date}", response_model=List[AppointmentResponse])
def get_appointments_by_date(
    date: str,
    professional_id: Optional[str] = Query(None, alias="professionalId"),
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appts = appt_service.get_by_date(date, professional_id=professional_id, caller=current_user)
        return [_to_response(a) for a in appts]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting appointments for {date}: {str(e)}")
        raise InternalError("Failed to retrieve appointments by date")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _to_response(appt_service.get_by_id(appointment_id, caller=current_user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting appointment {appointment_id}: {str(e)}")
        raise InternalError("Failed to retrieve appointment")


@router.post("", response_model=AppointmentResponse, status_code=201)
def create_appointment(
    appointment_data: AppointmentCreate,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.create(appointment_data.model_dump(), caller=current_user)
        return _to_response(appt)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error creating appointment: {str(e)}")
        raise InternalError("Failed to create appointment")


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    appointment_data: AppointmentUpdate,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        changes = appointment_data.model_dump(exclude_unset=True)
        return _to_response(appt_service.update(appointment_id, changes, caller=current_user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id}: {str(e)}")
        raise InternalError("Failed to update appointment")


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.update_status(appointment_id, payload.status, caller=current_user)
        return _to_response(appt)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id} status: {str(e)}")
        raise InternalError("Failed to update appointment status")


@router.delete("/{appointment_id}", response_model=MessageResponse)
def delete_appointment(
    appointment_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt_service.delete(appointment_id, caller=current_user)
        return create_success_response("Appointment successfully deleted", {"id": appointment_id})
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error deleting appointment {appointment_id}: {str(e)}")
        raise InternalError("Failed to delete appointment")
