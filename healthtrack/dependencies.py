import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import settings
from .database import get_session
from .exceptions import AuthError, ErrorKind
from .utils import decode_jwt_token
from .application.identity import CallerIdentity
from .application.ports.audit_logger import AuditLogger
from .application.services.appointments_service import AppointmentsService
from .application.services.auth_service import AuthService
from .application.services.patients_service import PatientsService
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

logger = logging.getLogger(__name__)

# auto_error off: a missing header is reported by get_current_user as 401
oauth2_scheme = HTTPBearer(auto_error=False)

_audit_logger = StdAuditLogger()


def get_current_user(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)) -> CallerIdentity:
    if not credentials or not credentials.credentials:
        raise AuthError("Access denied. Token not provided", ErrorKind.UNAUTHORIZED)
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        logger.warning(f"Rejected token on {request.method} {request.url.path}")
        raise AuthError("Invalid or expired token", ErrorKind.FORBIDDEN, status_code=403)
    caller = CallerIdentity.from_claims(payload)
    if caller is None:
        logger.warning("Token is missing id or role claims")
        raise AuthError("Invalid token claims", ErrorKind.FORBIDDEN, status_code=403)
    return caller


def get_audit_logger() -> AuditLogger:
    return _audit_logger


def get_appointments_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        user_repo=SqlUserRepository(session),
        audit=audit,
        strict_transitions=settings.STRICT_STATUS_TRANSITIONS,
        prevent_double_booking=settings.PREVENT_DOUBLE_BOOKING,
    )


def get_patients_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> PatientsService:
    return PatientsService(user_repo=SqlUserRepository(session), audit=audit)


def get_auth_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    return AuthService(user_repo=SqlUserRepository(session), audit=audit)
