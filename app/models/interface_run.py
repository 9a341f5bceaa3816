"""InterfaceRun model."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, Uuid

from app.database import Base


class RunStatus(str, enum.Enum):
    """Execution status of an interface run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"
    RUNNING = "RUNNING"


class Severity(str, enum.Enum):
    """Severity attached to an interface run."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InterfaceRun(Base):
    """One logged execution of an HR data-integration job."""

    __tablename__ = "interface_runs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    interface_name = Column(String(200), nullable=False)
    integration_key = Column(String(100), nullable=False)
    status = Column(String(16), nullable=False)  # RunStatus value
    message = Column(Text, nullable=False, default="")
    severity = Column(String(16), nullable=False, default=Severity.LOW.value)
    execution_time = Column(Integer, nullable=False, default=0)  # milliseconds
    records_processed = Column(Integer, nullable=False, default=0)
    source_system = Column(String(200), nullable=False)
    target_system = Column(String(200), nullable=False)
    error_details = Column(Text)
    retry_count = Column(Integer, nullable=False, default=0)
    next_retry_time = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_interface_runs_created_at", "created_at"),
        Index("idx_interface_runs_status_created_at", "status", "created_at"),
        Index("idx_interface_runs_name_created_at", "interface_name", "created_at"),
        Index("idx_interface_runs_key_created_at", "integration_key", "created_at"),
    )
