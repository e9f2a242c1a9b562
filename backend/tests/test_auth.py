from auth import create_access_token, decode_access_token


def test_register_user(client):
    response = client.post(
        "/register",
        json={"email": "new@example.com", "password": "password123", "full_name": "New User"},
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"


def test_register_duplicate_email(client, test_user):
    response = client.post(
        "/register",
        json={"email": "test@example.com", "password": "password123", "full_name": "Again"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_login_user(client, test_user):
    response = client.post(
        "/token",
        data={"username": "test@example.com", "password": "password123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"


def test_login_wrong_password(client, test_user):
    response = client.post(
        "/token",
        data={"username": "test@example.com", "password": "wrong"},
    )
    assert response.status_code == 401


def test_read_current_user(client, auth_headers, test_user):
    response = client.get("/users/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "test@example.com"
    assert response.json()["id"] == test_user.id


def test_invalid_token_is_rejected(client):
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

    response = client.get("/partnerships")
    assert response.status_code == 401


def test_refresh_and_logout(client, test_user):
    tokens = client.post(
        "/token",
        data={"username": "test@example.com", "password": "password123"},
    ).json()

    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    new_token = response.json()["access_token"]
    assert client.get("/users/me", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200

    response = client.post("/auth/logout", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200

    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401


def test_access_token_round_trip():
    token = create_access_token(data={"sub": "someone@example.com"})
    assert decode_access_token(token) == "someone@example.com"
    assert decode_access_token("garbage") is None
