import pytest

from healthtrack.application.identity import UserRole
from healthtrack.application.services.patients_service import PatientsService
from healthtrack.exceptions import ConflictError, ErrorKind, ForbiddenError, NotFoundError, ValidationError


@pytest.fixture
def patients(user_repo):
    return PatientsService(user_repo=user_repo)


def test_lists_only_patients(patients):
    assert sorted(p.id for p in patients.get_all()) == ["p1", "p2"]


def test_lists_by_professional(patients, user_repo):
    user_repo.add("p3", UserRole.PATIENT, professional_id="d2")
    assert [p.id for p in patients.get_by_professional("d2")] == ["p3"]
    assert sorted(p.id for p in patients.get_by_professional("d1")) == ["p1", "p2"]


def test_create_patient(patients, callers, user_repo):
    created = patients.create(
        {"name": "Ana", "surname": "Lopez", "email": "Ana@Example.com", "professional_id": "d1", "birth_date": "1990-02-01"},
        caller=callers["d1"],
    )
    assert created.email == "ana@example.com"
    assert created.role == "patient"
    assert created.professional_id == "d1"
    assert created.birth_date == "1990-02-01"
    assert user_repo.hashes[created.id]


@pytest.mark.parametrize("missing,field", [("name", "name"), ("email", "email"), ("professional_id", "professionalId")])
def test_create_requires_fields(patients, missing, field):
    data = {"name": "Ana", "email": "ana@example.com", "professional_id": "d1"}
    data[missing] = None
    with pytest.raises(ValidationError) as exc:
        patients.create(data)
    assert exc.value.kind == ErrorKind.MISSING_FIELD
    assert exc.value.field == field


def test_create_duplicate_email(patients):
    with pytest.raises(ConflictError):
        patients.create({"name": "Ana", "email": "p1@example.com", "professional_id": "d1"})


def test_create_with_non_professional(patients):
    with pytest.raises(ValidationError) as exc:
        patients.create({"name": "Ana", "email": "ana@example.com", "professional_id": "p2"})
    assert exc.value.kind == ErrorKind.INVALID_PARTICIPANT


def test_create_bad_birth_date(patients):
    with pytest.raises(ValidationError) as exc:
        patients.create({"name": "Ana", "email": "ana@example.com", "professional_id": "d1", "birth_date": "01/02/1990"})
    assert exc.value.kind == ErrorKind.INVALID_FORMAT


def test_patient_reads_only_own_record(patients, callers):
    assert patients.get_by_id("p1", caller=callers["p1"]).id == "p1"
    with pytest.raises(ForbiddenError):
        patients.get_by_id("p2", caller=callers["p1"])
    with pytest.raises(ForbiddenError):
        patients.get_all(caller=callers["p1"])


def test_non_patient_ids_are_not_found(patients):
    with pytest.raises(NotFoundError):
        patients.get_by_id("d1")


def test_update_patient(patients, callers):
    updated = patients.update("p1", {"address": "Calle Mayor 1", "professional_id": "d2", "role": "admin"}, caller=callers["a1"])
    assert updated.address == "Calle Mayor 1"
    assert updated.professional_id == "d2"
    assert updated.role == "patient"


def test_update_email_conflict(patients):
    with pytest.raises(ConflictError):
        patients.update("p1", {"email": "p2@example.com"})


def test_update_cannot_unassign_professional(patients):
    with pytest.raises(ValidationError):
        patients.update("p1", {"professional_id": None})


def test_delete_patient(patients, callers, user_repo):
    with pytest.raises(ForbiddenError):
        patients.delete("p2", caller=callers["p1"])
    patients.delete("p2", caller=callers["d1"])
    assert "p2" not in user_repo.users
    with pytest.raises(NotFoundError):
        patients.delete("p2")


def test_update_requires_a_name(patients):
    with pytest.raises(ValidationError) as exc:
        patients.update("p1", {"name": "  "})
    assert exc.value.field == "name"


def test_update_null_surname_becomes_empty(patients):
    assert patients.update("p1", {"surname": None}).surname == ""
