"""Typed log query parameters."""

from typing import Optional

from pydantic import BaseModel

from app.models.interface_run import RunStatus, Severity


class LogFilters(BaseModel):
    """Conjunction of log predicates; unset fields are inactive.

    Dates stay raw strings until the query layer parses them, so a malformed
    value is reported as an invalid filter rather than a request error.
    """

    status: Optional[RunStatus] = None
    severity: Optional[Severity] = None
    interface_name: Optional[str] = None
    integration_key: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    global_search: Optional[str] = None


class SortSpec(BaseModel):
    """Single-field sort; unknown fields fall back to createdAt."""

    sort_by: str = "createdAt"
    sort_order: str = "desc"
