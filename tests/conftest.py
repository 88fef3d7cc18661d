"""Pytest bootstrap for project imports and shared ledger fixtures."""

from pathlib import Path
import sys

# Ensure project root is on sys.path so `import guidant` works
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guidant.config import settings
from guidant.database import Base
from guidant import models  # noqa: F401 - register every table
from guidant.crud import user as user_crud


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role: str = "student", name: str = None, price: float = 0.0, db=None):
        counter["n"] += 1
        n = counter["n"]
        return user_crud.create_user(
            db or db_session,
            name=name or f"{role.title()} {n}",
            email=f"{role}{n}@test.edu",
            password_hash="hash",
            role=role,
            price_per_session=price,
        )

    return _make_user


@pytest.fixture
def student(make_user):
    return make_user("student", name="Sam Student")


@pytest.fixture
def mentor(make_user):
    return make_user("mentor", name="Maya Mentor", price=500.0)


@pytest.fixture(autouse=True)
def gateway_keys_unset(monkeypatch):
    # A developer .env must not switch on signature checks mid-suite
    for name in ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "PAYMENT_WEBHOOK_SECRET"):
        monkeypatch.setattr(settings, name, None)
