"""Dashboard metrics Pydantic schemas."""

from typing import List

from app.schemas.interface_run import CamelModel, UtcDatetime


class MetricsSummary(CamelModel):
    """Aggregate counts over every run in the window."""

    total_executions: int = 0
    success_count: int = 0
    failed_count: int = 0
    pending_count: int = 0
    running_count: int = 0
    avg_execution_time: float = 0.0
    total_records_processed: int = 0


class InterfaceStatusCounts(CamelModel):
    """Status breakdown for one interface."""

    interface_name: str
    total: int
    success: int
    failed: int
    pending: int
    running: int


class StatusCount(CamelModel):
    status: str
    count: int


class TrendBucket(CamelModel):
    """One ordinal slot of the trend; hour-of-day or day offset."""

    bucket: int
    statuses: List[StatusCount]


class MetricsResponse(CamelModel):
    """Dashboard metrics for a time window."""

    summary: MetricsSummary
    status_by_interface: List[InterfaceStatusCounts]
    hourly_trends: List[TrendBucket]
    time_range: str
    start_date: UtcDatetime
    end_date: UtcDatetime
