"""Interface log and metrics routes."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.interface_run import RunStatus, Severity
from app.schemas.interface_run import (
    InterfaceRunCreate,
    InterfaceRunResponse,
    InterfaceRunUpdate,
    LogListResponse,
    MessageResponse,
)
from app.schemas.metrics import MetricsResponse
from app.schemas.query import LogFilters, SortSpec
from app.services import metrics, query
from app.services.auth import require_user

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/interfaces",
    tags=["interfaces"],
    dependencies=[Depends(require_user)],
)


def log_filters(
    status: Optional[RunStatus] = None,
    severity: Optional[Severity] = None,
    interface_name: Optional[str] = Query(None, alias="interfaceName"),
    integration_key: Optional[str] = Query(None, alias="integrationKey"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    global_search: Optional[str] = Query(None, alias="globalSearch"),
) -> LogFilters:
    """Collect log filter query parameters."""
    return LogFilters(
        status=status,
        severity=severity,
        interface_name=interface_name,
        integration_key=integration_key,
        start_date=start_date,
        end_date=end_date,
        global_search=global_search,
    )


def sort_spec(
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
) -> SortSpec:
    """Collect sort query parameters."""
    return SortSpec(sort_by=sort_by, sort_order=sort_order)


@router.get("/logs", response_model=LogListResponse)
def list_interface_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    filters: LogFilters = Depends(log_filters),
    sort: SortSpec = Depends(sort_spec),
    db: Session = Depends(get_db),
):
    """List interface logs with pagination, filtering and sorting."""
    result = query.list_runs(db, filters, sort, page, limit, timeout_ms=settings.QUERY_TIMEOUT_MS)
    return LogListResponse(
        interfaces=[InterfaceRunResponse.model_validate(r) for r in result.records],
        pagination=result.pagination,
    )


@router.get("/logs/export")
def export_interface_logs(
    filters: LogFilters = Depends(log_filters),
    sort: SortSpec = Depends(sort_spec),
    db: Session = Depends(get_db),
):
    """Export filtered interface logs as CSV."""
    content = query.export_runs(
        db, filters, sort, settings.EXPORT_MAX_ROWS, timeout_ms=settings.QUERY_TIMEOUT_MS
    )
    filename = f"interface-logs-{datetime.now(timezone.utc).strftime('%Y-%m-%d-%H-%M')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/logs", response_model=InterfaceRunResponse, status_code=201)
def create_interface_log(
    data: InterfaceRunCreate,
    db: Session = Depends(get_db),
):
    """Log a new interface run."""
    return query.create_run(db, data, timeout_ms=settings.QUERY_TIMEOUT_MS)


@router.get("/logs/{run_id}", response_model=InterfaceRunResponse)
def get_interface_log(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    """Get a single interface log."""
    return query.get_run(db, run_id, timeout_ms=settings.QUERY_TIMEOUT_MS)


@router.put("/logs/{run_id}", response_model=InterfaceRunResponse)
def update_interface_log(
    run_id: uuid.UUID,
    data: InterfaceRunUpdate,
    db: Session = Depends(get_db),
):
    """Partially update an interface log."""
    return query.update_run(db, run_id, data, timeout_ms=settings.QUERY_TIMEOUT_MS)


@router.delete("/logs/{run_id}", response_model=MessageResponse)
def delete_interface_log(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    """Delete an interface log."""
    query.delete_run(db, run_id, timeout_ms=settings.QUERY_TIMEOUT_MS)
    return MessageResponse(message="Interface log deleted successfully")


@router.get("/metrics", response_model=MetricsResponse)
def get_metrics(
    time_range: Optional[str] = Query(None, alias="timeRange"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """Summary metrics, per-interface breakdown and trend for a time window."""
    window = metrics.resolve_window(time_range, start_date, end_date)
    result = metrics.summary_metrics(
        db,
        window,
        top_interfaces=settings.TOP_INTERFACES_LIMIT,
        timeout_ms=settings.QUERY_TIMEOUT_MS,
    )
    return MetricsResponse(
        summary=result["summary"],
        status_by_interface=result["status_by_interface"],
        hourly_trends=result["trend"],
        time_range=window.label,
        start_date=window.start,
        end_date=window.end,
    )
