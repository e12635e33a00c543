#!/usr/bin/env python3
"""
Seed the database with demo accounts and one appointment.

Creates an admin, a professional and a patient assigned to that
professional. Existing data is wiped first unless --keep is given, in
which case accounts and the appointment that already exist are left alone.
"""
import argparse
import logging

from sqlmodel import Session, select

from healthtrack.application.identity import UserRole
from healthtrack.application.ports.appointments_repo import NewAppointment
from healthtrack.application.ports.user_repo import NewUser, UserDto
from healthtrack.database import engine, create_db_and_tables
from healthtrack.db.models import Appointment, PatientProfile, ProfessionalProfile, User
from healthtrack.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from healthtrack.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from healthtrack.utils import hash_password, utcnow

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("seed")


def wipe(session: Session) -> None:
    # children before parents, foreign keys may be enforced
    for model in (Appointment, PatientProfile, ProfessionalProfile, User):
        for row in session.exec(select(model)).all():
            session.delete(row)
        session.flush()
    session.commit()


def ensure_user(users: SqlUserRepository, email: str, password: str, now, **fields) -> UserDto:
    existing = users.get_by_email(email)
    if existing:
        logger.info(f"{email} already exists, skipping")
        return existing
    return users.create_with_profile(NewUser(email=email, password_hash=hash_password(password), **fields), now=now)


def seed(session: Session) -> None:
    users = SqlUserRepository(session)
    appointments = SqlAppointmentsRepository(session)
    now = utcnow()

    admin = ensure_user(users, "admin@healthtrack.com", "admin123", now,
                        name="Admin", surname="User", role=UserRole.ADMIN.value)
    doctor = ensure_user(users, "doctor@example.com", "doctor123", now,
                         name="Juan", surname="Médico", role=UserRole.PROFESSIONAL.value,
                         profile={"specialty": "Medicina General", "license_number": "MG12345"})
    patient = ensure_user(users, "patient@example.com", "patient123", now,
                          name="María", surname="Paciente", role=UserRole.PATIENT.value,
                          profile={
                              "birth_date": "1985-05-12",
                              "address": "Calle Principal 123, Barcelona",
                              "emergency_contact": "Juan García - 678912345",
                              "professional_id": doctor.id,
                          })

    booked = appointments.find_by(patient_id=patient.id, professional_id=doctor.id, date="2025-03-20")
    appt = next((a for a in booked if a.start_time == "10:00"), None)
    if appt is None:
        appt = appointments.insert(
            NewAppointment(
                patient_id=patient.id,
                professional_id=doctor.id,
                created_by_id=doctor.id,
                date="2025-03-20",
                start_time="10:00",
                end_time="10:30",
                reason="Consulta de rutina",
            ),
            now=now,
        )
    logger.info(f"Seeded admin={admin.id} professional={doctor.id} patient={patient.id} appointment={appt.id}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--keep", action="store_true", help="do not wipe existing rows first")
    args = parser.parse_args()

    create_db_and_tables()
    with Session(engine) as session:
        if not args.keep:
            logger.info("Wiping existing data...")
            wipe(session)
        seed(session)


if __name__ == "__main__":
    main()
