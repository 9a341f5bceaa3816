"""Interface log queries and pass-through writes."""

import csv
import io
import logging
import uuid
from typing import List, NamedTuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.database import apply_statement_timeout, store_errors
from app.exceptions import InvalidFilter, NotFound
from app.models.interface_run import InterfaceRun, RunStatus, Severity
from app.schemas.interface_run import InterfaceRunCreate, InterfaceRunUpdate, Pagination
from app.schemas.query import LogFilters, SortSpec
from app.services.dates import parse_datetime

logger = logging.getLogger(__name__)

# API sort field -> column
SORT_FIELDS = {
    "createdAt": InterfaceRun.created_at,
    "updatedAt": InterfaceRun.updated_at,
    "interfaceName": InterfaceRun.interface_name,
    "integrationKey": InterfaceRun.integration_key,
    "status": InterfaceRun.status,
    "severity": InterfaceRun.severity,
    "executionTime": InterfaceRun.execution_time,
    "recordsProcessed": InterfaceRun.records_processed,
    "sourceSystem": InterfaceRun.source_system,
    "targetSystem": InterfaceRun.target_system,
    "retryCount": InterfaceRun.retry_count,
}
DEFAULT_SORT_FIELD = "createdAt"

GLOBAL_SEARCH_COLUMNS = (
    InterfaceRun.interface_name,
    InterfaceRun.integration_key,
    InterfaceRun.message,
    InterfaceRun.source_system,
    InterfaceRun.target_system,
)

EXPORT_COLUMNS = [
    ("Interface Name", "interface_name"),
    ("Integration Key", "integration_key"),
    ("Status", "status"),
    ("Severity", "severity"),
    ("Message", "message"),
    ("Execution Time (ms)", "execution_time"),
    ("Records Processed", "records_processed"),
    ("Source System", "source_system"),
    ("Target System", "target_system"),
    ("Created At", "created_at"),
]


class LogPage(NamedTuple):
    """One page of interface runs plus its metadata."""

    records: List[InterfaceRun]
    pagination: Pagination


def build_filter_clauses(filters: LogFilters) -> list:
    """
    Turn filters into SQLAlchemy clauses to be ANDed together.

    Args:
        filters: Active log predicates

    Returns:
        List of boolean clauses, empty when no predicate is active

    Raises:
        InvalidFilter: Malformed date or startDate after endDate
    """
    clauses = []

    if filters.status:
        clauses.append(InterfaceRun.status == filters.status.value)
    if filters.severity:
        clauses.append(InterfaceRun.severity == filters.severity.value)
    if filters.interface_name:
        clauses.append(InterfaceRun.interface_name.icontains(filters.interface_name, autoescape=True))
    if filters.integration_key:
        clauses.append(InterfaceRun.integration_key.icontains(filters.integration_key, autoescape=True))

    start = parse_datetime(filters.start_date, "startDate", InvalidFilter)
    end = parse_datetime(filters.end_date, "endDate", InvalidFilter)
    if start and end and start > end:
        raise InvalidFilter("startDate must not be after endDate")
    if start:
        clauses.append(InterfaceRun.created_at >= start)
    if end:
        clauses.append(InterfaceRun.created_at <= end)

    if filters.global_search:
        clauses.append(
            or_(*(column.icontains(filters.global_search, autoescape=True) for column in GLOBAL_SEARCH_COLUMNS))
        )

    return clauses


def resolve_sort(sort: SortSpec) -> list:
    """Order-by clauses for a sort spec, with id as a stable tiebreaker."""
    column = SORT_FIELDS.get(sort.sort_by)
    if column is None:
        logger.warning(f"Unknown sort field '{sort.sort_by}', using {DEFAULT_SORT_FIELD}")
        column = SORT_FIELDS[DEFAULT_SORT_FIELD]

    order = sort.sort_order.lower()
    if order not in ("asc", "desc"):
        logger.warning(f"Unknown sort order '{sort.sort_order}', using desc")
        order = "desc"

    if order == "asc":
        return [column.asc(), InterfaceRun.id.asc()]
    return [column.desc(), InterfaceRun.id.desc()]


def _filtered_query(db: Session, filters: LogFilters) -> Query:
    return db.query(InterfaceRun).filter(*build_filter_clauses(filters))


def list_runs(
    db: Session,
    filters: LogFilters,
    sort: SortSpec,
    page: int,
    page_size: int,
    timeout_ms: int = 0,
) -> LogPage:
    """
    Fetch one page of interface runs matching the filters.

    Pages past the end return no records but keep the metadata consistent
    with the total.

    Args:
        db: Database session
        filters: Active log predicates
        sort: Sort field and direction
        page: 1-based page number
        page_size: Records per page
        timeout_ms: Statement timeout, 0 for none

    Returns:
        LogPage with records and pagination
    """
    query = _filtered_query(db, filters)

    with store_errors("List interface runs"):
        apply_statement_timeout(db, timeout_ms)
        total = query.count()
        records = (
            query.order_by(*resolve_sort(sort))
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    total_pages = (total + page_size - 1) // page_size
    pagination = Pagination(
        current_page=page,
        total_pages=total_pages,
        total_records=total,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
    return LogPage(records=records, pagination=pagination)


def export_runs(
    db: Session,
    filters: LogFilters,
    sort: SortSpec,
    max_rows: int,
    timeout_ms: int = 0,
) -> str:
    """Render the filtered, sorted log as CSV, capped at ``max_rows`` rows."""
    query = _filtered_query(db, filters)

    with store_errors("Export interface runs"):
        apply_statement_timeout(db, timeout_ms)
        records = query.order_by(*resolve_sort(sort)).limit(max_rows).all()

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for record in records:
        row = []
        for _, attr in EXPORT_COLUMNS:
            value = getattr(record, attr)
            if attr == "created_at":
                value = value.strftime("%Y-%m-%d %H:%M:%S")
            row.append(value)
        writer.writerow(row)

    logger.info(f"Exported {len(records)} interface runs")
    return buffer.getvalue()


def _warn_on_inconsistent_severity(run: InterfaceRun) -> None:
    # Accepted as-is; only generated data is guaranteed consistent
    if run.status == RunStatus.SUCCESS.value and run.severity == Severity.CRITICAL.value:
        logger.warning(f"Interface run {run.id} is SUCCESS with CRITICAL severity")


def get_run(db: Session, run_id: uuid.UUID, timeout_ms: int = 0) -> InterfaceRun:
    """Fetch a single interface run or raise NotFound."""
    with store_errors("Get interface run"):
        apply_statement_timeout(db, timeout_ms)
        run = db.query(InterfaceRun).filter(InterfaceRun.id == run_id).first()
    if not run:
        raise NotFound("Interface log not found")
    return run


def create_run(db: Session, data: InterfaceRunCreate, timeout_ms: int = 0) -> InterfaceRun:
    """Insert a new interface run."""
    values = data.model_dump(exclude_none=True)
    run = InterfaceRun(**values)

    with store_errors("Create interface run"):
        apply_statement_timeout(db, timeout_ms)
        db.add(run)
        db.commit()
        db.refresh(run)

    _warn_on_inconsistent_severity(run)
    logger.info(f"Created interface run {run.id} ({run.interface_name}, {run.status})")
    return run


def update_run(
    db: Session,
    run_id: uuid.UUID,
    data: InterfaceRunUpdate,
    timeout_ms: int = 0,
) -> InterfaceRun:
    """Apply a partial update to an interface run."""
    run = get_run(db, run_id, timeout_ms)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        return run

    for name, value in changes.items():
        setattr(run, name, value)

    with store_errors("Update interface run"):
        db.commit()
        db.refresh(run)

    _warn_on_inconsistent_severity(run)
    logger.info(f"Updated interface run {run_id}: {', '.join(sorted(changes))}")
    return run


def delete_run(db: Session, run_id: uuid.UUID, timeout_ms: int = 0) -> None:
    """Delete an interface run."""
    run = get_run(db, run_id, timeout_ms)

    with store_errors("Delete interface run"):
        db.delete(run)
        db.commit()

    logger.info(f"Deleted interface run {run_id}")
