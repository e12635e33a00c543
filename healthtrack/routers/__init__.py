# Routers package
from . import auth_router
from . import appointments_router
from . import patients_router

__all__ = [
    "auth_router",
    "appointments_router",
    "patients_router",
]
