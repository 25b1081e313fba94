# Shared fixtures for the expense tracker API tests

import pytest

from app import create_app
from config import TestingConfig
from database import EXTENSION_KEY, get_context


@pytest.fixture
def app(tmp_path):
    """A fresh app with its own SQLite file and upload folder"""
    app = create_app(
        TestingConfig,
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_FOLDER=str(tmp_path / "uploads"),
    )
    yield app
    with app.app_context():
        get_context().db.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def store(app):
    # No app context is pushed, so test-client requests can run alongside
    return app.extensions[EXTENSION_KEY].store


@pytest.fixture
def upload_folder(app):
    return app.config["UPLOAD_FOLDER"]


def register(client, username="alice", email="a@x.com", password="secret123"):
    response = client.post("/api/users/register", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    """Registered user A with a ready-made Authorization header"""
    body = register(client)
    body["headers"] = auth_header(body["token"])
    return body


@pytest.fixture
def bob(client):
    """A second, unrelated user"""
    body = register(client, username="bob", email="b@y.com")
    body["headers"] = auth_header(body["token"])
    return body


LUNCH = {
    "amount": 50,
    "description": "lunch",
    "category": "food",
    "paymentMethod": "cash",
    "date": "2024-01-05",
}


def add_expense(client, headers, **fields):
    payload = dict(LUNCH, **fields)
    response = client.post("/api/expenses", json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["expense"]
