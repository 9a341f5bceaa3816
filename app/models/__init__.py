"""SQLAlchemy ORM models."""

from app.models.interface_run import InterfaceRun, RunStatus, Severity

__all__ = [
    "InterfaceRun",
    "RunStatus",
    "Severity",
]
