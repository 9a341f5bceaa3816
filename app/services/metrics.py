"""Dashboard metrics: summary counts, per-interface breakdown and gap-filled trend."""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, extract, func
from sqlalchemy.orm import Session

from app.database import apply_statement_timeout, store_errors
from app.exceptions import InvalidWindow
from app.models.interface_run import InterfaceRun, RunStatus, utcnow
from app.services.dates import parse_datetime

logger = logging.getLogger(__name__)

# Named range -> length in hours
PRESET_HOURS = {"1h": 1, "24h": 24, "7d": 7 * 24, "30d": 30 * 24}
DEFAULT_TIME_RANGE = "24h"

HOURLY_RANGES = ("1h", "24h")
HOURS_PER_DAY = 24
DAILY_BUCKETS = {"7d": 7, "30d": 30}

STATUS_ORDER = [s.value for s in RunStatus]


@dataclass(frozen=True)
class Window:
    """Time range a metrics request aggregates over.

    ``time_range`` is the preset that drives bucketing; for explicit windows
    it is the preset nearest in length.
    """

    start: datetime
    end: datetime
    time_range: str
    custom: bool = False

    @property
    def label(self) -> str:
        return "custom" if self.custom else self.time_range

    @property
    def hourly(self) -> bool:
        return self.time_range in HOURLY_RANGES

    @property
    def bucket_count(self) -> int:
        if self.hourly:
            return HOURS_PER_DAY
        return DAILY_BUCKETS[self.time_range]


def nearest_preset(start: datetime, end: datetime) -> str:
    """Preset whose length is closest to the elapsed hours, shorter on ties."""
    elapsed_hours = math.ceil((end - start).total_seconds() / 3600)
    return min(PRESET_HOURS, key=lambda name: (abs(PRESET_HOURS[name] - elapsed_hours), PRESET_HOURS[name]))


def resolve_window(
    time_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Window:
    """
    Build the aggregation window from request parameters.

    An explicit start/end pair wins over the named range. A lone start or end
    date is ignored, but must still be well-formed.

    Args:
        time_range: One of 1h, 24h, 7d, 30d (default 24h); unchecked when
            both dates are given
        start_date: ISO 8601 window start
        end_date: ISO 8601 window end
        now: Reference time for named ranges, defaults to current UTC time

    Returns:
        Resolved Window

    Raises:
        InvalidWindow: Unknown range, malformed date, or start after end
    """
    start = parse_datetime(start_date, "startDate", InvalidWindow)
    end = parse_datetime(end_date, "endDate", InvalidWindow)

    # timeRange is ignored here, the dashboard sends "custom" alongside the pair
    if start and end:
        if start > end:
            raise InvalidWindow("startDate must not be after endDate")
        return Window(start=start, end=end, time_range=nearest_preset(start, end), custom=True)

    time_range = time_range or DEFAULT_TIME_RANGE
    if time_range not in PRESET_HOURS:
        raise InvalidWindow(f"Invalid timeRange '{time_range}', expected one of {', '.join(PRESET_HOURS)}")

    now = now or utcnow()
    return Window(
        start=now - timedelta(hours=PRESET_HOURS[time_range]),
        end=now,
        time_range=time_range,
    )


def _status_count(status: RunStatus):
    return func.coalesce(func.sum(case((InterfaceRun.status == status.value, 1), else_=0)), 0)


def _in_window(window: Window) -> list:
    return [InterfaceRun.created_at >= window.start, InterfaceRun.created_at <= window.end]


def compute_summary(db: Session, window: Window) -> Dict[str, Any]:
    """Aggregate counts over the window; every field is 0 when it is empty."""
    row = (
        db.query(
            func.count(InterfaceRun.id),
            _status_count(RunStatus.SUCCESS),
            _status_count(RunStatus.FAILED),
            _status_count(RunStatus.PENDING),
            _status_count(RunStatus.RUNNING),
            func.coalesce(func.avg(InterfaceRun.execution_time), 0),
            func.coalesce(func.sum(InterfaceRun.records_processed), 0),
        )
        .filter(*_in_window(window))
        .one()
    )
    total, success, failed, pending, running, avg_time, records = row
    return {
        "total_executions": int(total),
        "success_count": int(success),
        "failed_count": int(failed),
        "pending_count": int(pending),
        "running_count": int(running),
        "avg_execution_time": float(avg_time),
        "total_records_processed": int(records),
    }


def compute_status_by_interface(db: Session, window: Window, limit: int) -> List[Dict[str, Any]]:
    """Per-interface status counts, busiest first, top ``limit`` interfaces."""
    total = func.count(InterfaceRun.id).label("total")
    rows = (
        db.query(
            InterfaceRun.interface_name,
            total,
            _status_count(RunStatus.SUCCESS),
            _status_count(RunStatus.FAILED),
            _status_count(RunStatus.PENDING),
            _status_count(RunStatus.RUNNING),
        )
        .filter(*_in_window(window))
        .group_by(InterfaceRun.interface_name)
        .order_by(total.desc(), InterfaceRun.interface_name.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "interface_name": name,
            "total": int(count),
            "success": int(success),
            "failed": int(failed),
            "pending": int(pending),
            "running": int(running),
        }
        for name, count, success, failed, pending, running in rows
    ]


def _bucket_counts(db: Session, window: Window) -> Dict[int, Dict[str, int]]:
    """Status counts keyed by bucket ordinal, only for buckets with data.

    Hourly buckets group on hour-of-day, so runs from different days at the
    same hour share a bucket. Daily buckets group on calendar day and are
    keyed by the offset from the window's start day. The trailing partial day
    of a named range lands in the last bucket; custom windows spanning more
    days than buckets spread days evenly, several days per bucket.
    """
    counts: Dict[int, Dict[str, int]] = {}

    if window.hourly:
        hour = extract("hour", InterfaceRun.created_at)
        rows = (
            db.query(hour, InterfaceRun.status, func.count(InterfaceRun.id))
            .filter(*_in_window(window))
            .group_by(hour, InterfaceRun.status)
            .all()
        )
        for bucket, status, count in rows:
            slot = counts.setdefault(int(bucket), {})
            slot[status] = slot.get(status, 0) + int(count)
        return counts

    year = extract("year", InterfaceRun.created_at)
    day_of_year = extract("doy", InterfaceRun.created_at)
    rows = (
        db.query(year, day_of_year, InterfaceRun.status, func.count(InterfaceRun.id))
        .filter(*_in_window(window))
        .group_by(year, day_of_year, InterfaceRun.status)
        .all()
    )
    first_day = window.start.date()
    last_bucket = window.bucket_count - 1
    span_days = (window.end.date() - first_day).days + 1
    spread = window.custom and span_days > window.bucket_count + 1
    for run_year, run_doy, status, count in rows:
        day = date(int(run_year), 1, 1) + timedelta(days=int(run_doy) - 1)
        offset = max((day - first_day).days, 0)
        if spread:
            bucket = min(offset * window.bucket_count // span_days, last_bucket)
        else:
            bucket = min(offset, last_bucket)
        slot = counts.setdefault(bucket, {})
        slot[status] = slot.get(status, 0) + int(count)
    return counts


def compute_trend(db: Session, window: Window) -> List[Dict[str, Any]]:
    """
    Gap-filled trend over the window.

    Every ordinal in ``[0, bucket_count)`` appears exactly once in ascending
    order, and every bucket reports a count for each status.
    """
    counts = _bucket_counts(db, window)
    trend = []
    for bucket in range(window.bucket_count):
        slot = counts.get(bucket, {})
        trend.append(
            {
                "bucket": bucket,
                "statuses": [{"status": s, "count": slot.get(s, 0)} for s in STATUS_ORDER],
            }
        )
    return trend


def summary_metrics(
    db: Session,
    window: Window,
    top_interfaces: int = 10,
    timeout_ms: int = 0,
) -> Dict[str, Any]:
    """
    Compute dashboard metrics for a window.

    Args:
        db: Database session
        window: Resolved aggregation window
        top_interfaces: Number of interfaces kept in the breakdown
        timeout_ms: Statement timeout, 0 for none

    Returns:
        Dict with summary, status_by_interface and trend
    """
    if window.start > window.end:
        raise InvalidWindow("startDate must not be after endDate")

    with store_errors("Compute metrics"):
        apply_statement_timeout(db, timeout_ms)
        summary = compute_summary(db, window)
        status_by_interface = compute_status_by_interface(db, window, top_interfaces)
        trend = compute_trend(db, window)

    logger.info(
        f"Metrics for {window.label} window {window.start.isoformat()} - {window.end.isoformat()}: "
        f"{summary['total_executions']} executions"
    )
    return {
        "summary": summary,
        "status_by_interface": status_by_interface,
        "trend": trend,
    }
