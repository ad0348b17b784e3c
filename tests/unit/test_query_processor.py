"""
Tests for dialect detection, query context building and query optimization.
"""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from coralogix_mcp.config.limits import DEFAULT_LIMITS, QueryLimits
from coralogix_mcp.exceptions import InvalidInputError, PageOutOfRangeError, RangeTooWideError
from coralogix_mcp.models.query import QuerySyntax, SearchRequest, Timeframe
from coralogix_mcp.services.query_processor import (
    build_query_context,
    build_remote_request,
    calculate_offset,
    clamp_limit,
    detect_query_syntax,
    optimize_dataprime_query,
    optimize_lucene_query,
    optimize_query,
    parse_timestamp,
    resolve_time_range,
    should_include_archive,
    validate_pagination,
)

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


class TestDetectQuerySyntax:
    """Tests for the Lucene / DataPrime classifier."""

    @pytest.mark.parametrize("query", [
        "severity:ERROR",
        "exception timeout",
        "applicationName:payments AND status:500",
        "*",
        "",
        "text:containsfoo",
    ])
    def test_lucene_queries(self, query):
        assert detect_query_syntax(query) is QuerySyntax.LUCENE

    @pytest.mark.parametrize("query", [
        'source logs | filter severity == "ERROR"',
        "SOURCE logs | LIMIT 10",
        "logs | sort timestamp desc",
        "logs | groupby applicationName",
        "logs | summarize count()",
        "logs |choose text",
        "logs | extract text into $d.fields",
        'text contains "timeout"',
        'applicationName startswith "pay"',
        'applicationName endswith "service"',
    ])
    def test_dataprime_queries(self, query):
        assert detect_query_syntax(query) is QuerySyntax.DATAPRIME

    def test_detection_is_case_insensitive(self):
        assert detect_query_syntax("source LOGS | Filter x == 1") is QuerySyntax.DATAPRIME

    @given(st.text())
    def test_every_string_has_exactly_one_dialect(self, query):
        assert detect_query_syntax(query) in (QuerySyntax.LUCENE, QuerySyntax.DATAPRIME)


class TestParseTimestamp:

    def test_zulu_suffix(self):
        parsed = parse_timestamp("2024-01-15T10:00:00Z", "startDate")
        assert parsed == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)

    def test_naive_value_is_utc(self):
        parsed = parse_timestamp("2024-01-15T10:00:00", "startDate")
        assert parsed.tzinfo is UTC

    def test_invalid_value(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_timestamp("yesterday", "startDate")

        assert exc_info.value.context["field"] == "startDate"
        assert exc_info.value.context["invalid_value"] == "yesterday"


class TestResolveTimeRange:
    """Tests for timeframe resolution and bounds checks."""

    @pytest.mark.parametrize("timeframe,duration", [
        (Timeframe.LAST_15_MINUTES, timedelta(minutes=15)),
        (Timeframe.LAST_HOUR, timedelta(hours=1)),
        (Timeframe.LAST_6_HOURS, timedelta(hours=6)),
        (Timeframe.LAST_24_HOURS, timedelta(hours=24)),
    ])
    def test_presets_end_now(self, timeframe, duration):
        time_range = resolve_time_range(SearchRequest(query="x", timeframe=timeframe), NOW)

        assert time_range.end == NOW
        assert time_range.start == NOW - duration

    def test_default_is_last_hour(self):
        time_range = resolve_time_range(SearchRequest(query="x"), NOW)

        assert time_range.end == NOW
        assert time_range.start == NOW - timedelta(hours=1)

    def test_custom_range(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-15T10:00:00Z",
            end_date="2024-01-15T11:00:00Z",
        )
        time_range = resolve_time_range(request, NOW)

        assert time_range.start == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
        assert time_range.end == datetime(2024, 1, 15, 11, 0, tzinfo=UTC)
        assert time_range.duration_seconds == 3600

    def test_dates_without_timeframe_are_custom(self):
        request = SearchRequest(
            query="x",
            start_date="2024-01-15T10:00:00Z",
            end_date="2024-01-15T10:30:00Z",
        )
        time_range = resolve_time_range(request, NOW)

        assert time_range.start == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)

    def test_preset_ignores_dates(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.LAST_15_MINUTES,
            start_date="2020-01-01T00:00:00Z",
            end_date="2020-01-02T00:00:00Z",
        )
        time_range = resolve_time_range(request, NOW)

        assert time_range.end == NOW

    def test_custom_requires_both_dates(self):
        request = SearchRequest(query="x", timeframe=Timeframe.CUSTOM, start_date="2024-01-15T10:00:00Z")

        with pytest.raises(InvalidInputError) as exc_info:
            resolve_time_range(request, NOW)

        assert exc_info.value.context["field"] == "endDate"

    def test_single_date_without_timeframe(self):
        request = SearchRequest(query="x", end_date="2024-01-15T10:00:00Z")

        with pytest.raises(InvalidInputError):
            resolve_time_range(request, NOW)

    def test_end_before_start(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-15T11:00:00Z",
            end_date="2024-01-15T10:00:00Z",
        )

        with pytest.raises(InvalidInputError, match="endDate must be after startDate"):
            resolve_time_range(request, NOW)

    def test_equal_start_and_end(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-15T10:00:00Z",
            end_date="2024-01-15T10:00:00Z",
        )

        with pytest.raises(InvalidInputError):
            resolve_time_range(request, NOW)

    def test_exactly_24_hours_is_allowed(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-14T10:00:00Z",
            end_date="2024-01-15T10:00:00Z",
        )

        assert resolve_time_range(request, NOW).duration_seconds == 24 * 3600

    def test_range_too_wide(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-14T10:00:00Z",
            end_date="2024-01-15T11:00:00Z",
        )

        with pytest.raises(RangeTooWideError) as exc_info:
            resolve_time_range(request, NOW)

        error = exc_info.value
        assert isinstance(error, InvalidInputError)
        assert error.context["max_hours"] == 24
        assert error.context["requested_hours"] == 25

    def test_invalid_date_string(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="not a date",
            end_date="2024-01-15T11:00:00Z",
        )

        with pytest.raises(InvalidInputError, match="startDate"):
            resolve_time_range(request, NOW)

    def test_custom_limits(self):
        limits = QueryLimits(max_time_window_hours=2)
        request = SearchRequest(query="x", timeframe=Timeframe.LAST_6_HOURS)

        with pytest.raises(RangeTooWideError):
            resolve_time_range(request, NOW, limits)


class TestPagination:
    """Tests for limit clamping and page validation."""

    @pytest.mark.parametrize("requested,expected", [
        (None, 20),
        (0, 1),
        (-5, 1),
        (1, 1),
        (30, 30),
        (50, 50),
        (75, 50),
    ])
    def test_clamp_limit(self, requested, expected):
        assert clamp_limit(requested) == expected

    @given(st.one_of(st.none(), st.integers()))
    def test_clamped_limit_always_in_bounds(self, requested):
        assert DEFAULT_LIMITS.min_limit <= clamp_limit(requested) <= DEFAULT_LIMITS.max_limit

    def test_defaults(self):
        assert validate_pagination() == (1, 20)

    def test_page_below_one_becomes_one(self):
        assert validate_pagination(page=0, limit=10) == (1, 10)
        assert validate_pagination(page=-3, limit=10) == (1, 10)

    def test_last_allowed_page(self):
        assert validate_pagination(page=100) == (100, 20)

    def test_page_out_of_range(self):
        with pytest.raises(PageOutOfRangeError) as exc_info:
            validate_pagination(page=101)

        assert exc_info.value.context["max_pages"] == 100
        assert exc_info.value.context["field"] == "page"

    @pytest.mark.parametrize("page,limit,offset", [
        (1, 20, 0),
        (2, 20, 20),
        (3, 10, 20),
        (0, 10, 0),
    ])
    def test_calculate_offset(self, page, limit, offset):
        assert calculate_offset(page, limit) == offset


class TestArchive:

    def test_recent_range_skips_archive(self):
        assert should_include_archive(NOW - timedelta(hours=24), NOW) is False

    def test_old_range_includes_archive(self):
        assert should_include_archive(NOW - timedelta(hours=25), NOW) is True


class TestBuildQueryContext:
    """Tests for the complete context builder."""

    def test_defaults(self):
        context = build_query_context(SearchRequest(query="severity:ERROR"), now=NOW)

        assert context.original_query == "severity:ERROR"
        assert context.detected_syntax is QuerySyntax.LUCENE
        assert context.limit == 20
        assert context.page == 1
        assert context.offset == 0
        assert context.include_archive is False
        assert context.time_range.end == NOW

    def test_dataprime_with_paging(self):
        request = SearchRequest(
            query='source logs | filter severity == "ERROR"',
            timeframe=Timeframe.LAST_6_HOURS,
            limit=10,
            page=3,
        )
        context = build_query_context(request, now=NOW)

        assert context.detected_syntax is QuerySyntax.DATAPRIME
        assert context.offset == 20

    def test_old_custom_range_includes_archive(self):
        request = SearchRequest(
            query="x",
            timeframe=Timeframe.CUSTOM,
            start_date="2024-01-13T10:00:00Z",
            end_date="2024-01-13T12:00:00Z",
        )

        assert build_query_context(request, now=NOW).include_archive is True

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_empty_query(self, query):
        with pytest.raises(InvalidInputError, match="query must be a non-empty string"):
            build_query_context(SearchRequest(query=query), now=NOW)

    def test_context_is_immutable(self):
        context = build_query_context(SearchRequest(query="x"), now=NOW)

        with pytest.raises(Exception):
            context.limit = 5  # type: ignore[misc]

    def test_naive_now_is_utc(self):
        context = build_query_context(SearchRequest(query="x"), now=datetime(2024, 1, 15, 12, 0))

        assert context.time_range.end == NOW


class TestOptimizeQuery:
    """Tests for dialect-specific query rewriting."""

    @pytest.mark.parametrize("query,expected", [
        ("timeout", '"timeout"'),
        ("  connection refused  ", '"connection refused"'),
        ("severity:ERROR", "severity:ERROR"),
        ("(a OR b)", "(a OR b)"),
        ('"already quoted"', '"already quoted"'),
        ("*", "*"),
        ("", ""),
    ])
    def test_lucene(self, query, expected):
        assert optimize_lucene_query(query) == expected

    def test_dataprime_appends_limit(self):
        assert optimize_dataprime_query("source logs") == "source logs | limit 50"

    def test_dataprime_keeps_existing_limit(self):
        query = "source logs | LIMIT 5"
        assert optimize_dataprime_query(query) == query

    @given(st.text(), st.sampled_from(list(QuerySyntax)))
    def test_optimization_is_idempotent(self, query, syntax):
        once = optimize_query(query, syntax)
        assert optimize_query(once, syntax) == once


class TestBuildRemoteRequest:

    def test_payload_shape(self):
        request = SearchRequest(query="timeout", timeframe=Timeframe.LAST_HOUR, limit=10, page=2)
        context = build_query_context(request, now=NOW)

        payload = build_remote_request(context).to_payload()

        assert payload == {
            "query": '"timeout"',
            "metadata": {
                "syntax": "QUERY_SYNTAX_LUCENE",
                "startDate": "2024-01-15T11:00:00.000Z",
                "endDate": "2024-01-15T12:00:00.000Z",
                "limit": 20,
                "includeArchive": False,
            },
        }

    def test_dataprime_syntax_tag(self):
        context = build_query_context(SearchRequest(query="source logs | limit 5"), now=NOW)

        remote = build_remote_request(context)

        assert remote.metadata.syntax == "QUERY_SYNTAX_DATAPRIME"
        assert remote.query == "source logs | limit 5"
