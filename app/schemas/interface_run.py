"""Interface run Pydantic schemas."""

from datetime import datetime, timezone
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.interface_run import RunStatus, Severity
from app.services.dates import to_utc_naive


def _mark_utc(value: datetime) -> datetime:
    # Stored naive, always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_mark_utc)]


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON with snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class InterfaceRunCreate(CamelModel):
    """Schema for logging a new interface run."""

    interface_name: str = Field(min_length=1, max_length=200)
    integration_key: str = Field(min_length=1, max_length=100)
    status: RunStatus
    message: str = Field(default="", max_length=2000)
    severity: Severity = Severity.LOW.value
    execution_time: int = Field(default=0, ge=0)  # milliseconds
    records_processed: int = Field(default=0, ge=0)
    source_system: str = Field(min_length=1, max_length=200)
    target_system: str = Field(min_length=1, max_length=200)
    error_details: Optional[str] = Field(default=None, max_length=5000)
    retry_count: int = Field(default=0, ge=0)
    next_retry_time: Optional[datetime] = None
    created_at: Optional[datetime] = None  # Producers may backdate events

    @field_validator("next_retry_time", "created_at")
    @classmethod
    def _normalize_datetime(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(value) if value else value


# Columns that may not be cleared by a partial update
NON_NULLABLE_UPDATE_FIELDS = (
    "interface_name",
    "integration_key",
    "status",
    "message",
    "severity",
    "execution_time",
    "records_processed",
    "source_system",
    "target_system",
    "retry_count",
)


class InterfaceRunUpdate(CamelModel):
    """Partial update; only fields present in the body are applied."""

    interface_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    integration_key: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[RunStatus] = None
    message: Optional[str] = Field(default=None, max_length=2000)
    severity: Optional[Severity] = None
    execution_time: Optional[int] = Field(default=None, ge=0)
    records_processed: Optional[int] = Field(default=None, ge=0)
    source_system: Optional[str] = Field(default=None, min_length=1, max_length=200)
    target_system: Optional[str] = Field(default=None, min_length=1, max_length=200)
    error_details: Optional[str] = Field(default=None, max_length=5000)
    retry_count: Optional[int] = Field(default=None, ge=0)
    next_retry_time: Optional[datetime] = None

    @field_validator("next_retry_time")
    @classmethod
    def _normalize_datetime(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(value) if value else value

    @model_validator(mode="after")
    def _reject_cleared_required_fields(self):
        cleared = [
            name
            for name in NON_NULLABLE_UPDATE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(to_camel(c) for c in cleared)}")
        return self


class InterfaceRunResponse(CamelModel):
    """Interface run as returned by the API."""

    id: UUID
    interface_name: str
    integration_key: str
    status: RunStatus
    message: str
    severity: Severity
    execution_time: int
    records_processed: int
    source_system: str
    target_system: str
    error_details: Optional[str] = None
    retry_count: int
    next_retry_time: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class Pagination(CamelModel):
    """Page metadata for log listings."""

    current_page: int
    total_pages: int
    total_records: int
    has_next_page: bool
    has_prev_page: bool


class LogListResponse(CamelModel):
    """Paginated interface log listing."""

    interfaces: List[InterfaceRunResponse]
    pagination: Pagination


class MessageResponse(BaseModel):
    """Plain confirmation or error body."""

    message: str
