"""
Query limits, timeframe presets and regional API endpoints.

The limits are sized for LLM context windows: small pages, truncated messages
and a bounded search window keep every tool response compact.
"""

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field


class QueryLimits(BaseModel):
    """Bounds applied while building queries and shaping responses."""

    model_config = ConfigDict(frozen=True)

    # Results per page
    default_limit: int = Field(20, ge=1)
    min_limit: int = Field(1, ge=1)
    max_limit: int = Field(50, ge=1)

    # Response processing
    max_message_length: int = Field(1000, ge=20)
    max_stack_trace_lines: int = Field(5, ge=0)
    max_field_length: int = Field(300, ge=1)

    # Time windows
    default_timeframe_minutes: int = Field(60, ge=1)
    max_time_window_hours: int = Field(24, ge=1)
    archive_threshold_hours: int = Field(24, ge=1)

    # Pagination
    max_pages: int = Field(100, ge=1)

    # Excerpt size for error messages built from response bodies
    max_error_excerpt: int = Field(500, ge=1)

    @property
    def max_time_window(self) -> timedelta:
        return timedelta(hours=self.max_time_window_hours)

    @property
    def archive_threshold(self) -> timedelta:
        return timedelta(hours=self.archive_threshold_hours)


DEFAULT_LIMITS = QueryLimits()

TIMEFRAME_DURATIONS: dict[str, timedelta] = {
    "15m": timedelta(minutes=15),
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
}

CORALOGIX_DOMAINS: dict[str, str] = {
    "US1": "https://ng-api-http.coralogix.us",
    "US2": "https://ng-api-http.cx498.coralogix.com",
    "EU1": "https://ng-api-http.coralogix.com",
    "EU2": "https://ng-api-http.eu2.coralogix.com",
    "AP1": "https://ng-api-http.app.coralogix.in",
    "AP2": "https://ng-api-http.coralogixsg.com",
    "AP3": "https://ng-api-http.ap3.coralogix.com",
}

QUERY_ENDPOINT = "/api/v1/dataprime/query"
