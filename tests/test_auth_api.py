TEST_PASSWORD = "password123"


def test_login_and_profile(client):
    res = client.post("/api/auth/login", json={"email": "p1@example.com", "password": TEST_PASSWORD})
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["id"] == "p1"
    assert body["user"]["role"] == "patient"

    res = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {body['token']}"})
    assert res.status_code == 200
    assert res.json()["email"] == "p1@example.com"
    assert res.json()["professionalId"] == "d1"


def test_login_failures(client):
    res = client.post("/api/auth/login", json={"email": "p1@example.com", "password": "wrong"})
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid credentials"
    res = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "wrong"})
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid credentials"
    res = client.post("/api/auth/login", json={"email": "p1@example.com"})
    assert res.status_code == 400


def test_register_then_login(client):
    res = client.post(
        "/api/auth/register",
        json={"email": "doc@example.com", "password": "longenough", "name": "Doc", "surname": "Who", "role": "professional", "specialty": "Cardiology"},
    )
    assert res.status_code == 201
    assert res.json()["specialty"] == "Cardiology"
    res = client.post("/api/auth/login", json={"email": "doc@example.com", "password": "longenough"})
    assert res.status_code == 200


def test_logout(client):
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
    assert res.json()["success"] is True


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["scheduling"]["strict_status_transitions"] is True
