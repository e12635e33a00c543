from sqlmodel import Session, select

from healthtrack.db.models import Appointment, User
from seed_database import seed


def test_seed_twice_keeps_one_copy(engine):
    with Session(engine) as session:
        seed(session)
    with Session(engine) as session:
        seed(session)
    with Session(engine) as session:
        emails = [u.email for u in session.exec(select(User)).all()]
        assert emails.count("doctor@example.com") == 1
        assert emails.count("patient@example.com") == 1
        seeded = session.exec(select(Appointment).where(Appointment.reason == "Consulta de rutina")).all()
        assert len(seeded) == 1
