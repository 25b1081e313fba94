# Tests for registration, login, profile and the bearer-token gate

from datetime import timedelta

from flask_jwt_extended import create_access_token
from sqlalchemy import delete

from conftest import auth_header, register
from database import get_context
from models import User


# Test 1: Register returns identity plus token
def test_register_returns_token(client):
    """Test: Does a new account come back with a token and no password?"""
    body = register(client)

    assert body["username"] == "alice"
    assert body["email"] == "a@x.com"
    assert body["role"] == "user"
    assert body["token"]
    assert "password" not in body


def test_register_duplicate_email_rejected(client):
    register(client)
    response = client.post("/api/users/register", json={
        "username": "other", "email": "A@X.com", "password": "secret123",
    })
    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists"


def test_register_missing_fields(client):
    response = client.post("/api/users/register", json={"email": "a@x.com"})
    assert response.status_code == 400
    fields = {e["field"] for e in response.get_json()["errors"]}
    assert {"username", "password"} <= fields


def test_register_rejects_unknown_fields(client):
    response = client.post("/api/users/register", json={
        "username": "alice", "email": "a@x.com", "password": "secret123", "isAdmin": True,
    })
    assert response.status_code == 400


def test_register_cannot_claim_admin(client):
    response = client.post("/api/users/register", json={
        "username": "alice", "email": "a@x.com", "password": "secret123", "role": "admin",
    })
    assert response.status_code == 400


def test_password_is_hashed(client, store):
    register(client)
    user = store.find_user_by_email("a@x.com")
    assert user.password != "secret123"
    assert user.password.count("$") >= 2


# Test 2: Login
def test_login_success(client):
    """Test: Can a user log in with the right password?"""
    register(client)
    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.get_json()
    assert body["email"] == "a@x.com"
    assert body["token"]


def test_login_wrong_password(client):
    register(client)
    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "nope"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid email or password"


def test_login_unknown_email(client):
    response = client.post("/api/users/login", json={"email": "ghost@x.com", "password": "whatever"})
    assert response.status_code == 401


def test_login_missing_fields(client):
    response = client.post("/api/users/login", json={"email": "a@x.com"})
    assert response.status_code == 400


# Test 3: Profile behind the auth gate
def test_profile_with_token(client, alice):
    response = client.get("/api/users/profile", headers=alice["headers"])
    assert response.status_code == 200
    assert response.get_json() == {
        "_id": alice["_id"], "username": "alice", "email": "a@x.com", "role": "user",
    }


def test_profile_without_header(client):
    response = client.get("/api/users/profile")
    assert response.status_code == 401
    assert response.get_json()["message"] == "Please login to continue."


def test_profile_with_malformed_header(client, alice):
    response = client.get("/api/users/profile", headers={"Authorization": alice["token"]})
    assert response.status_code == 401


def test_profile_with_garbage_token(client):
    response = client.get("/api/users/profile", headers=auth_header("not-a-jwt"))
    assert response.status_code == 401
    assert response.get_json()["message"] == "Not authorized. Invalid or expired token."


def test_profile_with_expired_token(app, client, alice):
    with app.app_context():
        token = create_access_token(identity=str(alice["_id"]), expires_delta=timedelta(seconds=-1))
    response = client.get("/api/users/profile", headers=auth_header(token))
    assert response.status_code == 401


def test_token_for_deleted_user(app, client, alice):
    """Test: A valid token for a user that is gone answers 404"""
    with app.app_context():
        with get_context().db.session() as session:
            session.execute(delete(User).where(User.id == alice["_id"]))

    response = client.get("/api/users/profile", headers=alice["headers"])
    assert response.status_code == 404
    assert response.get_json()["message"] == "User not found."
