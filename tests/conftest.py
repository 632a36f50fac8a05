# tests/conftest.py
import os

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PUBLIC_BASE_URL", "https://bill.example.com/#")

from datetime import date
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorbill.core.config import settings
from tutorbill.core.db import get_db
from tutorbill.core.security import create_access_token
from tutorbill.main import app
from tutorbill.models.base import Base
from tutorbill.models.student import Student
from tutorbill.schemas.business import BusinessProfile, BankAccount
from tutorbill.services.attendance import AttendanceKey, save_record
from tutorbill.services.business_settings import save_business_profile


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    token = create_access_token(str(settings.ADMIN_EMAIL))
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


# -------- seed helpers --------

@pytest.fixture
def make_student(db):
    def _make(name: str = "Aarav Shah", course: str = "Beginner", **fields) -> Student:
        student = Student(
            name=name,
            course=course,
            parent_name=fields.pop("parent_name", "Meera Shah"),
            phone=fields.pop("phone", "98765 43210"),
            **fields,
        )
        db.add(student)
        db.commit()
        return student
    return _make


@pytest.fixture
def record_classes(db):
    """Write an attendance row with one session per given date"""
    def _record(student: Student, month: int, year: int, dates: List[date], **session_fields):
        sessions = [
            {"date": d.isoformat(), "location": "MAKER WORKS", "topic": "Robotics", **session_fields}
            for d in dates
        ]
        return save_record(db, AttendanceKey(student.id, month, year), sessions)
    return _record


@pytest.fixture
def business_profile(db):
    def _save(pricing: Optional[dict] = None, banks: Optional[List[BankAccount]] = None, **fields):
        profile = BusinessProfile(
            business_name=fields.pop("business_name", "Makerworks Lab"),
            pricing=pricing if pricing is not None else {"Beginner": 999, "Intermediate": 1499, "Advanced": 1499},
            bank_accounts=banks or [],
            **fields,
        )
        return save_business_profile(db, profile)
    return _save


@pytest.fixture
def hdfc_account() -> BankAccount:
    return BankAccount(
        id="hdfc01",
        bank_name="HDFC Bank",
        account_name="Makerworks Lab",
        account_number="50100012345678",
        ifsc="HDFC0001234",
        account_type="Current",
        upi_id="makerworks@hdfcbank",
    )
