def test_list_patients(client, auth_headers):
    res = client.get("/api/patients", headers=auth_headers("d1"))
    assert res.status_code == 200
    assert sorted(p["id"] for p in res.json()) == ["p1", "p2"]
    p1 = next(p for p in res.json() if p["id"] == "p1")
    assert p1["birthDate"] == "1985-05-12"
    assert p1["professionalId"] == "d1"
    assert "passwordHash" not in p1


def test_patient_cannot_list_patients(client, auth_headers):
    assert client.get("/api/patients", headers=auth_headers("p1")).status_code == 403
    assert client.get("/api/patients/p1", headers=auth_headers("p1")).status_code == 200
    assert client.get("/api/patients/p2", headers=auth_headers("p1")).status_code == 403


def test_create_update_delete_patient(client, auth_headers):
    doctor = auth_headers("d1")
    res = client.post(
        "/api/patients",
        json={"name": "Ana", "surname": "Lopez", "email": "ana@example.com", "professionalId": "d1"},
        headers=doctor,
    )
    assert res.status_code == 201
    patient_id = res.json()["id"]

    res = client.post("/api/patients", json={"name": "Ana", "email": "ana@example.com", "professionalId": "d1"}, headers=doctor)
    assert res.status_code == 409

    res = client.put(f"/api/patients/{patient_id}", json={"address": "Calle Mayor 1"}, headers=doctor)
    assert res.status_code == 200
    assert res.json()["address"] == "Calle Mayor 1"

    assert len(client.get("/api/patients/professional/d1", headers=doctor).json()) == 3
    assert client.delete(f"/api/patients/{patient_id}", headers=doctor).status_code == 200
    assert client.get(f"/api/patients/{patient_id}", headers=doctor).status_code == 404


def test_deleting_patient_removes_their_appointments(client, auth_headers):
    doctor = auth_headers("d1")
    appt = client.post(
        "/api/appointments",
        json={"patientId": "p2", "professionalId": "d1", "date": "2025-03-20", "startTime": "10:00", "endTime": "10:30"},
        headers=doctor,
    ).json()
    assert client.delete("/api/patients/p2", headers=doctor).status_code == 200
    assert client.get(f"/api/appointments/{appt['id']}", headers=doctor).status_code == 404


def test_create_patient_missing_professional(client, auth_headers):
    res = client.post("/api/patients", json={"name": "Ana", "email": "ana@example.com"}, headers=auth_headers("a1"))
    assert res.status_code == 400
    assert res.json()["field"] == "professionalId"


def test_update_rejects_null_name(client, auth_headers):
    res = client.put("/api/patients/p1", json={"name": None}, headers=auth_headers("d1"))
    assert res.status_code == 400
    assert res.json()["kind"] == "MISSING_FIELD"
    assert res.json()["field"] == "name"
    assert client.get("/api/patients/p1", headers=auth_headers("d1")).json()["name"] == "P1"


def test_update_null_surname_clears_it(client, auth_headers):
    res = client.put("/api/patients/p1", json={"surname": None}, headers=auth_headers("d1"))
    assert res.status_code == 200
    assert res.json()["surname"] == ""
