"""
Data models for the Coralogix MCP server.

This module contains Pydantic models for search requests, resolved query
contexts, raw and normalized log records, and tool responses.
"""

from .log_entry import STANDARD_FIELDS, NormalizedLogRecord, RawLogRecord
from .query import (
    QueryContext,
    QueryMetadata,
    QuerySyntax,
    RemoteQueryRequest,
    SearchRequest,
    Timeframe,
    TimeRange,
    format_timestamp,
)
from .response import (
    LogSummary,
    LogSummaryTimeRange,
    PaginationInfo,
    QueryResult,
    QuerySummary,
    RemoteQueryResponse,
    ResponseStatus,
    TimeWindow,
)

__all__ = [
    # Log record models
    "STANDARD_FIELDS",
    "RawLogRecord",
    "NormalizedLogRecord",
    # Query models
    "Timeframe",
    "QuerySyntax",
    "SearchRequest",
    "TimeRange",
    "QueryContext",
    "QueryMetadata",
    "RemoteQueryRequest",
    "format_timestamp",
    # Response models
    "ResponseStatus",
    "RemoteQueryResponse",
    "TimeWindow",
    "QuerySummary",
    "PaginationInfo",
    "QueryResult",
    "LogSummary",
    "LogSummaryTimeRange",
]
