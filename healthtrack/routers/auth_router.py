from dataclasses import asdict
from fastapi import APIRouter, Depends
import logging

from ..application.identity import CallerIdentity, UserRole
from ..application.ports.user_repo import UserDto
from ..application.services.auth_service import AuthService
from ..dependencies import get_auth_service, get_current_user
from ..exceptions import DomainError, InternalError, create_success_response
from ..schemas.auth.auth import LoginRequest, LoginResponse, RegisterRequest
from ..schemas.common.common import MessageResponse
from ..schemas.patients.patient import PatientResponse, ProfessionalResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def serialize_user(user: UserDto) -> dict:
    """Public view of a user, with the fields of its role profile."""
    model = PatientResponse if UserRole.parse(user.role) == UserRole.PATIENT else ProfessionalResponse
    data = {k: v for k, v in asdict(user).items() if k in model.model_fields}
    return model(**data).model_dump(by_alias=True, mode="json")


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    try:
        token, user = auth_service.authenticate(payload.email, payload.password)
        return LoginResponse(token=token, user=serialize_user(user))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error in login: {str(e)}")
        raise InternalError("Login failed")


@router.post("/logout", response_model=MessageResponse)
def logout():
    # Tokens are stateless; clients drop theirs
    return create_success_response("Logged out successfully")


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    try:
        user = auth_service.register(payload.model_dump())
        return serialize_user(user)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error in register: {str(e)}")
        raise InternalError("Registration failed")


@router.get("/profile")
def get_profile(
    current_user: CallerIdentity = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        return serialize_user(auth_service.get_profile(current_user.id))
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"Error in get_profile: {str(e)}")
        raise InternalError("Failed to load profile")
