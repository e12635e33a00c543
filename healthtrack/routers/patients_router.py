from dataclasses import asdict
from typing import List
from fastapi import APIRouter, Depends
import logging

from ..application.identity import CallerIdentity
from ..application.ports.user_repo import UserDto
from ..application.services.patients_service import PatientsService
from ..dependencies import get_current_user, get_patients_service
from ..exceptions import DomainError, InternalError, create_success_response
from ..schemas.common.common import MessageResponse
from ..schemas.patients.patient import PatientCreate, PatientResponse, PatientUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def _to_response(patient: UserDto) -> PatientResponse:
    return PatientResponse(**{k: v for k, v in asdict(patient).items() if k in PatientResponse.model_fields})


@router.get("", response_model=List[PatientResponse])
def get_all_patients(
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return [_to_response(p) for p in patients.get_all(caller=current_user)]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting patients: {str(e)}")
        raise InternalError("Failed to retrieve patients")


@router.get("/professional/{professional_id}", response_model=List[PatientResponse])
def get_patients_by_professional(
    professional_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return [_to_response(p) for p in patients.get_by_professional(professional_id, caller=current_user)]
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting patients of professional {professional_id}: {str(e)}")
        raise InternalError("Failed to retrieve professional patients")


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return _to_response(patients.get_by_id(patient_id, caller=current_user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error getting patient {patient_id}: {str(e)}")
        raise InternalError("Failed to retrieve patient")


@router.post("", response_model=PatientResponse, status_code=201)
def create_patient(
    patient_data: PatientCreate,
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return _to_response(patients.create(patient_data.model_dump(), caller=current_user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error creating patient: {str(e)}")
        raise InternalError("Failed to create patient")


@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: str,
    patient_data: PatientUpdate,
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        changes = patient_data.model_dump(exclude_unset=True)
        return _to_response(patients.update(patient_id, changes, caller=current_user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error updating patient {patient_id}: {str(e)}")
        raise InternalError("Failed to update patient")


@router.delete("/{patient_id}", response_model=MessageResponse)
def delete_patient(
    patient_id: str,
    current_user: CallerIdentity = Depends(get_current_user),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        patients.delete(patient_id, caller=current_user)
        return create_success_response("Patient successfully deleted", {"id": patient_id})
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error deleting patient {patient_id}: {str(e)}")
        raise InternalError("Failed to delete patient")
