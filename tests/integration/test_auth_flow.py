from __future__ import annotations

from sqlalchemy.orm import Session


def test_signup_login_and_me(client, db_session: Session) -> None:
    signup = client.post(
        "/api/auth/signup",
        json={"email": "New.Voter@example.com", "password": "secret1", "state": "Goa", "gender": "female"},
    )
    assert signup.status_code == 201
    body = signup.json()
    assert body["user"]["email"] == "new.voter@example.com"
    assert body["user"]["name"] == "New.voter"
    assert body["user"]["role"] == "USER"
    assert body["tokens"]["token_type"] == "bearer"

    login = client.post("/api/auth/login", json={"email": "new.voter@example.com", "password": "secret1"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["state"] == "Goa"


def test_signup_rejects_duplicates_and_bad_email(client, citizen) -> None:
    duplicate = client.post("/api/auth/signup", json={"email": "CITIZEN@example.com", "password": "secret1"})
    assert duplicate.status_code == 409

    malformed = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "secret1"})
    assert malformed.status_code == 422


def test_login_with_wrong_password(client, citizen) -> None:
    response = client.post("/api/auth/login", json={"email": "citizen@example.com", "password": "nope"})

    assert response.status_code == 401


def test_profile_round_trip(client, user_headers) -> None:
    updated = client.patch("/api/profile", json={"age": 33, "panchayat": " "}, headers=user_headers)
    assert updated.status_code == 200
    assert updated.json()["age"] == 33
    assert updated.json()["panchayat"] is None

    profile = client.get("/api/profile", headers=user_headers)
    assert profile.json()["name"] == "Citizen A"


def test_profile_requires_token(client, db_session: Session) -> None:
    response = client.get("/api/profile")

    assert response.status_code in {401, 403}
