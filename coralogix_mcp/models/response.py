"""
Response models for the Coralogix API and for MCP tool outputs.

Tool outputs are serialized with camelCase aliases and without unset
optional fields, which keeps the JSON handed to the caller compact.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .log_entry import NormalizedLogRecord, RawLogRecord
from .query import QuerySyntax


class ResponseStatus(str, Enum):
    """Response status for MCP operations."""

    SUCCESS = "success"
    ERROR = "error"


class RemoteQueryResponse(BaseModel):
    """Parsed result of one Coralogix query call."""

    logs: list[RawLogRecord] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    has_more: bool = False
    query_id: str | None = None


class TimeWindow(BaseModel):
    """ISO-8601 rendering of a resolved time range."""

    start: str
    end: str


class QuerySummary(BaseModel):
    """Summary block of a query_logs result."""

    model_config = ConfigDict(populate_by_name=True)

    total_results: int = Field(..., ge=0, alias="totalResults")
    results_shown: int = Field(..., ge=0, alias="resultsShown")
    time_range: TimeWindow = Field(..., alias="timeRange")
    page: int = Field(..., ge=1)
    has_next_page: bool = Field(..., alias="hasNextPage")
    query_type: QuerySyntax = Field(..., alias="queryType")
    query_id: str | None = Field(None, alias="queryId")


class PaginationInfo(BaseModel):
    """Pagination block of a query_logs result."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(..., ge=1, alias="currentPage")
    total_pages: int | None = Field(None, alias="totalPages")
    next_page_available: bool = Field(..., alias="nextPageAvailable")


class QueryResult(BaseModel):
    """
    Complete query_logs output: summary, normalized logs and pagination.
    """

    summary: QuerySummary
    logs: list[NormalizedLogRecord] = Field(default_factory=list)
    pagination: PaginationInfo

    def to_output(self) -> dict[str, Any]:
        """Serialize for the MCP caller."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LogSummaryTimeRange(BaseModel):
    """First and last timestamps of a record sequence, in input order."""

    earliest: str | None = None
    latest: str | None = None


class LogSummary(BaseModel):
    """Aggregate statistics over a set of normalized records."""

    model_config = ConfigDict(populate_by_name=True)

    total_logs: int = Field(..., ge=0, alias="totalLogs")
    severity_breakdown: dict[str, int] = Field(default_factory=dict, alias="severityBreakdown")
    top_applications: dict[str, int] = Field(default_factory=dict, alias="topApplications")
    time_range: LogSummaryTimeRange | None = Field(None, alias="timeRange")
