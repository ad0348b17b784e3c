"""
Query models: the caller's search request, the resolved query context and
the wire request sent to the Coralogix API.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class Timeframe(str, Enum):
    """Named search windows accepted by the query_logs tool."""

    LAST_15_MINUTES = "15m"
    LAST_HOUR = "1h"
    LAST_6_HOURS = "6h"
    LAST_24_HOURS = "24h"
    CUSTOM = "custom"


class QuerySyntax(str, Enum):
    """Supported query dialects."""

    LUCENE = "lucene"
    DATAPRIME = "dataprime"

    @property
    def wire_name(self) -> str:
        """Syntax tag expected by the Coralogix API."""
        return f"QUERY_SYNTAX_{self.name}"


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SearchRequest(BaseModel):
    """
    Caller input for a log search.

    Only structural validation happens here; bounds, defaults and time range
    resolution belong to the query context builder.
    """

    query: str = Field(
        ...,
        description="Search query in Lucene or DataPrime syntax",
        examples=["severity:ERROR", "source logs | filter severity == \"ERROR\""]
    )

    timeframe: Timeframe | None = Field(
        None,
        description="Named time window; 'custom' requires start_date and end_date"
    )

    start_date: str | None = Field(
        None,
        description="Start of a custom range (ISO 8601)",
        examples=["2024-01-15T10:00:00Z"]
    )

    end_date: str | None = Field(
        None,
        description="End of a custom range (ISO 8601)",
        examples=["2024-01-15T11:00:00Z"]
    )

    limit: int | None = Field(
        None,
        description="Results per page; clamped to the configured bounds"
    )

    page: int | None = Field(
        None,
        description="Page number, starting at 1"
    )


class TimeRange(BaseModel):
    """Absolute search window."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self) -> "TimeRange":
        """Validate that end time is after start time."""
        if self.end <= self.start:
            raise ValueError("End time must be after start time")
        return self

    @computed_field
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


class QueryContext(BaseModel):
    """
    Fully resolved, bounds-checked search parameters for one tool call.

    Built once by build_query_context and only read afterwards.
    """

    model_config = ConfigDict(frozen=True)

    original_query: str
    detected_syntax: QuerySyntax
    time_range: TimeRange
    limit: int = Field(..., ge=1)
    page: int = Field(1, ge=1)
    offset: int = Field(0, ge=0)
    include_archive: bool = False


class QueryMetadata(BaseModel):
    """Metadata block of a Coralogix query request."""

    model_config = ConfigDict(populate_by_name=True)

    syntax: str
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    limit: int = Field(..., ge=1)
    include_archive: bool = Field(False, alias="includeArchive")


class RemoteQueryRequest(BaseModel):
    """Request body for POST /api/v1/dataprime/query."""

    query: str
    metadata: QueryMetadata

    @classmethod
    def build(
        cls,
        query: str,
        syntax: QuerySyntax,
        start: datetime,
        end: datetime,
        limit: int,
        include_archive: bool = False,
    ) -> "RemoteQueryRequest":
        return cls(
            query=query,
            metadata=QueryMetadata(
                syntax=syntax.wire_name,
                start_date=format_timestamp(start),
                end_date=format_timestamp(end),
                limit=limit,
                include_archive=include_archive,
            ),
        )

    def to_payload(self) -> dict[str, object]:
        """JSON body in the shape the API expects."""
        return self.model_dump(by_alias=True)
