"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.exceptions import Unauthorized  # noqa: E402
from app.main import app  # noqa: E402
from app.models.interface_run import InterfaceRun, utcnow  # noqa: E402
from app.services.auth import Principal, get_token_verifier  # noqa: E402

VALID_TOKEN = "valid-token"


class StubVerifier:
    """Accepts only VALID_TOKEN."""

    def verify(self, token: str) -> Principal:
        if token != VALID_TOKEN:
            raise Unauthorized("Invalid token")
        return Principal(user_id="user-1", role="admin")


@pytest.fixture(scope="function")
def test_db():
    """Create a test database for each test."""
    # Use in-memory SQLite shared across the TestClient's threads
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    yield db

    db.close()
    engine.dispose()


@pytest.fixture(scope="function")
def client(test_db):
    """Authenticated API client bound to the test database."""
    app.dependency_overrides[get_db] = lambda: test_db
    app.dependency_overrides[get_token_verifier] = StubVerifier

    yield TestClient(app, headers={"Authorization": f"Bearer {VALID_TOKEN}"})

    app.dependency_overrides.clear()


@pytest.fixture
def make_run(test_db):
    """Insert an interface run with sensible defaults."""

    def _make_run(
        status: str = "SUCCESS",
        interface_name: str = "Employee Sync",
        created_at: Optional[datetime] = None,
        **fields,
    ) -> InterfaceRun:
        values = {
            "interface_name": interface_name,
            "integration_key": "INT-0001",
            "status": status,
            "message": "Records synchronized successfully",
            "severity": "LOW",
            "execution_time": 1000,
            "records_processed": 100,
            "source_system": "Workday",
            "target_system": "SAP ECP",
            "created_at": created_at or utcnow(),
        }
        values.update(fields)
        run = InterfaceRun(**values)
        test_db.add(run)
        test_db.commit()
        test_db.refresh(run)
        return run

    return _make_run
