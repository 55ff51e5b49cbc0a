"""Pytest configuration and fixtures."""

import os

# Must be set before nivasa.config is imported.
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nivasa.app import app
from nivasa.db import Base, get_db
from nivasa.services import membership

PASSWORD = "secret123"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------- service-level helpers ----------

@pytest.fixture
def apartment(db):
    return membership.register_apartment(db, "Oak Towers")


@pytest.fixture
def admin(db, apartment):
    return membership.signup(
        db, "admin", "Asha", "9000000001", "A-1", PASSWORD, apartment.apartment_code
    )


@pytest.fixture
def resident(db, apartment):
    return membership.signup(
        db, "resident", "Ravi", "9000000002", "101", PASSWORD, apartment.apartment_code
    )


# ---------- HTTP helpers ----------

@pytest.fixture
def api(client):
    """Small wrapper for the register / signup / login dance."""

    class Api:
        def register(self, name="Oak Towers"):
            r = client.post("/api/auth/register-apartment", json={"name": name})
            assert r.status_code == 201, r.text
            return r.json()["apartmentCode"]

        def signup(self, role, code, phone, flat, username="user", password=PASSWORD):
            return client.post(
                f"/api/auth/signup-{role}",
                json={
                    "username": username,
                    "phoneNumber": phone,
                    "flatNumber": flat,
                    "password": password,
                    "apartmentCode": code,
                },
            )

        def login(self, phone, password=PASSWORD, code=None):
            body = {"phoneNumber": phone, "password": password}
            if code:
                body["apartmentCode"] = code
            return client.post("/api/auth/login", json=body)

        def headers(self, phone, password=PASSWORD, code=None):
            r = self.login(phone, password, code)
            assert r.status_code == 200, r.text
            return {"Authorization": f"Bearer {r.json()['accessToken']}"}

    return Api()
