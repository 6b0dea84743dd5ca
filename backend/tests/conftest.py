import itertools
import os
import sys
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from vaultbank.database import Base  # noqa: E402
from vaultbank import models  # noqa: E402,F401
from vaultbank.models.user import User  # noqa: E402

_ssn_numbers = itertools.count(1)


def make_engine(url: str = "sqlite://"):
    engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory():
    engine = make_engine()
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def make_user(db, username: str = "tester01", **overrides) -> User:
    """Insert a user row directly, bypassing signup validation."""
    fields = dict(
        username=username,
        email=f"{username}@example.com",
        password_hash="hashed",
        first_name="Test",
        last_name="User",
        date_of_birth=date(1990, 1, 1).isoformat(),
        phone="(555) 123-4567",
        ssn=f"900-00-{next(_ssn_numbers):04d}",
        street1="1 Main Street",
        city="Springfield",
        state="IL",
        zip_code="62701",
        employment_status="employed",
        employer="Acme",
        occupation="Engineer",
        annual_income="50k-75k",
        source_of_funds="employment",
    )
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    db.flush()
    return user


def set_balance(db, account, amount) -> None:
    account.balance = Decimal(str(amount))
    db.commit()
    db.refresh(account)


def signup_payload(username: str = "janedoe1", **overrides) -> dict:
    payload = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": f"{username}@example.com",
        "date_of_birth": "1990-05-17",
        "phone": "(555) 123-4567",
        "ssn": "123-45-6789",
        "address1": "742 Evergreen Terrace",
        "address2": None,
        "city": "Springfield",
        "state": "IL",
        "zip": "62701",
        "employment_status": "employed",
        "employer": "Acme Corp",
        "occupation": "Engineer",
        "annual_income": "50k-75k",
        "source_of_funds": "employment",
        "username": username,
        "password": "TestPass123",
        "confirm_password": "TestPass123",
        "terms_agreement": True,
        "electronic_consent": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client(session_factory):
    """TestClient over a fresh in-memory database, rate limiting off."""
    from fastapi.testclient import TestClient

    from vaultbank.api import deps
    from vaultbank.config import Settings
    from vaultbank.main import create_app

    app = create_app(Settings(rate_limit_enabled=False))

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    return TestClient(app)


def admin_headers(client, session_factory) -> dict:
    from vaultbank.services.admin import create_admin

    db = session_factory()
    try:
        create_admin(db, "opsadmin", "ops@example.com", "AdminPass123")
    finally:
        db.close()

    response = client.post("/api/admin/login", json={"username": "opsadmin", "password": "AdminPass123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
