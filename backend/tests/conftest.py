from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import database
from core.limiter import limiter
from core.security import create_access_token
from fakes import FakeDatabase


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDatabase()
    monkeypatch.setattr(database, "_db_instance", fake)
    return fake


@pytest.fixture
def client(fake_db):
    from main import app
    limiter.enabled = False
    # Pas de `with` : le lifespan (connexion Mongo réelle) n'est pas déclenché
    yield TestClient(app)
    limiter.enabled = True


def _insert_user(fake_db, user_id: str, role: str, email: str) -> dict:
    now = datetime.now(timezone.utc)
    user = {
        "user_id":    user_id,
        "email":      email,
        "first_name": role.title(),
        "last_name":  "Test",
        "role":       role,
        "is_active":  True,
        "created_at": now,
        "updated_at": now,
    }
    fake_db.users.docs.append(dict(user))
    return user


def _auth_header(user: dict) -> dict:
    token = create_access_token(user["user_id"], user["role"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(fake_db):
    return _auth_header(_insert_user(fake_db, "usr_admin", "admin", "admin@example.com"))


@pytest.fixture
def customer_headers(fake_db):
    return _auth_header(_insert_user(fake_db, "usr_customer", "customer", "jane@example.com"))


@pytest.fixture
def driver(fake_db):
    user = _insert_user(fake_db, "usr_driver", "driver", "driver@example.com")
    return user, _auth_header(user)
