# tests/conftest.py
"""Shared fixtures: in-memory database, fast test settings, recording notifier."""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Configure before the application modules are imported. The URL is never
# connected to; each test gets its own in-memory database below.
os.environ["DATABASE_URL"] = "sqlite:///./vehicle_portal_test_unused.db"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="vehicle-portal-uploads-")
os.environ["SMTP_HOST"] = ""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vehicle_portal.config import Settings
from vehicle_portal.database import Base
from vehicle_portal.models import Account, AccountRole
from vehicle_portal.services.notification_service import Notifier
from vehicle_portal.utils.security import hash_password

TEST_PASSWORD = "s3cret-pass"


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def notify(self, recipient, subject, message):
        self.sent.append((recipient, subject, message))


@pytest.fixture()
def config(tmp_path):
    return Settings(
        JWT_SECRET="test-signing-key",
        ADMIN_SECRET="letmein",
        ARGON2_TIME_COST=1,
        ARGON2_MEMORY_COST=1024,
        ARGON2_PARALLELISM=1,
        SMTP_HOST=None,
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def make_account(db_session, config):
    counter = {"n": 0}

    def _make(role=AccountRole.USER.value, email=None, name=None, password=TEST_PASSWORD):
        counter["n"] += 1
        n = counter["n"]
        account = Account(
            name=name or f"Account {n}",
            email=email or f"account{n}@example.com",
            password_hash=hash_password(password, config),
            role=role,
            created_at=datetime.utcnow(),
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _make


def vehicle_fields(**overrides):
    fields = {
        "vehicle_type": "Car",
        "make": "Toyota",
        "model": "Corolla",
        "year": 2020,
        "vin": "1HGCM82633A004352",
        "license_plate": "ABC-1234",
        "owner_name": "Jane Doe",
        "owner_contact": "+1 555 0100",
        "expiry_date": datetime.utcnow() + timedelta(days=180),
    }
    fields.update(overrides)
    return fields
