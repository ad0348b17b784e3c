"""
Tests for query and log record models.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from coralogix_mcp.models.log_entry import NormalizedLogRecord, RawLogRecord
from coralogix_mcp.models.query import (
    QuerySyntax,
    RemoteQueryRequest,
    SearchRequest,
    Timeframe,
    TimeRange,
    format_timestamp,
)


class TestQueryModels:

    def test_wire_names(self):
        assert QuerySyntax.LUCENE.wire_name == "QUERY_SYNTAX_LUCENE"
        assert QuerySyntax.DATAPRIME.wire_name == "QUERY_SYNTAX_DATAPRIME"

    @pytest.mark.parametrize("value,expected", [
        (datetime(2024, 1, 15, 12, 0, tzinfo=UTC), "2024-01-15T12:00:00.000Z"),
        (datetime(2024, 1, 15, 12, 0, 0, 123456, tzinfo=UTC), "2024-01-15T12:00:00.123Z"),
        (datetime(2024, 1, 15, 14, 0, tzinfo=timezone(timedelta(hours=2))), "2024-01-15T12:00:00.000Z"),
        (datetime(2024, 1, 15, 12, 0), "2024-01-15T12:00:00.000Z"),
    ])
    def test_format_timestamp(self, value, expected):
        assert format_timestamp(value) == expected

    def test_time_range_order(self):
        start = datetime(2024, 1, 15, 11, 0, tzinfo=UTC)

        with pytest.raises(ValidationError, match="End time must be after start time"):
            TimeRange(start=start, end=start)

        window = TimeRange(start=start, end=start + timedelta(minutes=30))
        assert window.duration_seconds == 1800.0

    def test_search_request_timeframe(self):
        assert SearchRequest(query="x", timeframe="6h").timeframe is Timeframe.LAST_6_HOURS

        with pytest.raises(ValidationError):
            SearchRequest(query="x", timeframe="2h")

    def test_remote_request_payload(self):
        request = RemoteQueryRequest.build(
            "severity:ERROR",
            QuerySyntax.LUCENE,
            datetime(2024, 1, 15, 11, 0, tzinfo=UTC),
            datetime(2024, 1, 15, 12, 0, tzinfo=UTC),
            limit=20,
        )

        assert request.to_payload() == {
            "query": "severity:ERROR",
            "metadata": {
                "syntax": "QUERY_SYNTAX_LUCENE",
                "startDate": "2024-01-15T11:00:00.000Z",
                "endDate": "2024-01-15T12:00:00.000Z",
                "limit": 20,
                "includeArchive": False,
            },
        }


class TestLogRecordModels:

    def test_known_fields_are_coerced_to_text(self):
        record = RawLogRecord.model_validate({
            "threadId": 42,
            "severity": 5,
            "text": {"event": "login", "ok": True},
            "category": ["a", "b"],
        })

        assert record.thread_id == "42"
        assert record.severity == "5"
        assert record.text == '{"event": "login", "ok": true}'
        assert record.category == '["a", "b"]'

    def test_unknown_fields_are_kept(self):
        record = RawLogRecord.model_validate({"text": "x", "traceId": "t-1", "labels": {"env": "prod"}})

        assert record.extra_fields == {"traceId": "t-1", "labels": {"env": "prod"}}

    def test_normalized_defaults(self):
        record = NormalizedLogRecord()

        assert record.severity == "UNKNOWN"
        assert record.message == ""
        assert record.model_dump(by_alias=True, exclude_none=True) == {
            "severity": "UNKNOWN",
            "message": "",
        }
