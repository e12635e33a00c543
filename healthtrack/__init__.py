"""HealthTrack scheduling and patient-record API."""

__version__ = "1.0.0"
