# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.profiles import PatientProfile, ProfessionalProfile
from .health.appointment import Appointment

__all__ = [
    "User",
    "PatientProfile",
    "ProfessionalProfile",
    "Appointment",
]
