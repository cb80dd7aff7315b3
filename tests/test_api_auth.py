def test_health_is_public(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_login_with_correct_password(client):
    response = client.post("/auth/login", json={"password": "letmein"})
    assert response.status_code == 200
    token = response.json()["token"]

    session = client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert session.json() == {"authenticated": True}


def test_wrong_password_is_rejected(client):
    response = client.post("/auth/login", json={"password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect password"


def test_repeated_failures_are_rate_limited(client):
    for _ in range(3):
        assert client.post("/auth/login", json={"password": "nope"}).status_code == 401

    response = client.post("/auth/login", json={"password": "letmein"})
    assert response.status_code == 429
    assert "Retry-After" in response.headers


def test_protected_routes_need_a_session(client):
    assert client.post("/drafts").status_code == 401
    assert client.post("/drafts", headers={"Authorization": "Bearer forged"}).status_code == 401
    assert client.get("/auth/session").json() == {"authenticated": False}


def test_successful_logins_do_not_use_up_attempts(client):
    for _ in range(5):
        assert client.post("/auth/login", json={"password": "letmein"}).status_code == 200

    for _ in range(3):
        assert client.post("/auth/login", json={"password": "nope"}).status_code == 401
    assert client.post("/auth/login", json={"password": "nope"}).status_code == 429
