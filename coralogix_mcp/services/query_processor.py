"""
Query processing: dialect detection, query context building and query
optimization.

Turns a caller's SearchRequest into an immutable QueryContext (absolute time
range, clamped limit, page/offset, archive flag, detected dialect) and then
into the RemoteQueryRequest sent to Coralogix.
"""

import re
from datetime import UTC, datetime, timedelta

from ..config.limits import DEFAULT_LIMITS, TIMEFRAME_DURATIONS, QueryLimits
from ..exceptions import InvalidInputError, PageOutOfRangeError, RangeTooWideError
from ..models.query import (
    QueryContext,
    QuerySyntax,
    RemoteQueryRequest,
    SearchRequest,
    Timeframe,
    TimeRange,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Signatures of the DataPrime pipe syntax; anything else is treated as Lucene.
DATAPRIME_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bsource\s+\w+\s*\|",
        r"\|\s*filter\b",
        r"\|\s*limit\b",
        r"\|\s*sort\b",
        r"\|\s*choose\b",
        r"\|\s*extract\b",
        r"\|\s*groupby\b",
        r"\|\s*summarize\b",
        r"\s+contains\s+",
        r"\s+startswith\s+",
        r"\s+endswith\s+",
    )
)

_DATAPRIME_LIMIT_STAGE = "| limit"


def detect_query_syntax(query: str) -> QuerySyntax:
    """
    Classify a query as DataPrime or Lucene.

    Purely syntactic and case-insensitive; every string maps to exactly one
    dialect, Lucene by default.
    """
    if any(pattern.search(query) for pattern in DATAPRIME_PATTERNS):
        return QuerySyntax.DATAPRIME
    return QuerySyntax.LUCENE


def parse_timestamp(value: str, field: str) -> datetime:
    """
    Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        InvalidInputError: If the value is not a valid ISO-8601 timestamp
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidInputError(
            f"{field} must be a valid ISO 8601 date string",
            field=field,
            value=value,
            original_error=e,
        ) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def resolve_time_range(
    request: SearchRequest,
    now: datetime,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> TimeRange:
    """
    Resolve the request's timeframe into an absolute, bounds-checked range.

    Raises:
        InvalidInputError: If custom dates are missing, unparsable or out of order
        RangeTooWideError: If the range exceeds the maximum search window
    """
    timeframe = request.timeframe
    has_start = bool(request.start_date)
    has_end = bool(request.end_date)

    if timeframe is None and has_start and has_end:
        timeframe = Timeframe.CUSTOM
    elif timeframe is None and (has_start or has_end):
        raise InvalidInputError(
            "startDate and endDate must be provided together",
            field="startDate" if has_start else "endDate",
        )

    if timeframe is Timeframe.CUSTOM:
        if not (has_start and has_end):
            raise InvalidInputError(
                'startDate and endDate are required when timeframe is "custom"',
                field="startDate" if not has_start else "endDate",
            )
        start = parse_timestamp(request.start_date or "", "startDate")
        end = parse_timestamp(request.end_date or "", "endDate")
    else:
        if timeframe is None:
            duration = timedelta(minutes=limits.default_timeframe_minutes)
        else:
            duration = TIMEFRAME_DURATIONS[timeframe.value]
        end = now
        start = now - duration

    if end <= start:
        raise InvalidInputError(
            "endDate must be after startDate",
            field="endDate",
            value=request.end_date,
        )

    if end - start > limits.max_time_window:
        raise RangeTooWideError(
            f"Time range cannot exceed {limits.max_time_window_hours} hours",
            max_hours=limits.max_time_window_hours,
            requested_hours=(end - start).total_seconds() / 3600,
        )

    return TimeRange(start=start, end=end)


def clamp_limit(limit: int | None, limits: QueryLimits = DEFAULT_LIMITS) -> int:
    """Resolve the per-page limit into [min_limit, max_limit]."""
    requested = limits.default_limit if limit is None else limit
    return min(max(requested, limits.min_limit), limits.max_limit)


def validate_pagination(
    page: int | None = None,
    limit: int | None = None,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> tuple[int, int]:
    """
    Resolve page and limit.

    Returns:
        Tuple of (page, limit)

    Raises:
        PageOutOfRangeError: If the page exceeds the pagination ceiling
    """
    validated_page = max(1, 1 if page is None else page)
    validated_limit = clamp_limit(limit, limits)

    if validated_page > limits.max_pages:
        raise PageOutOfRangeError(
            f"Page number cannot exceed {limits.max_pages}",
            page=validated_page,
            max_pages=limits.max_pages,
        )

    return validated_page, validated_limit


def calculate_offset(page: int, limit: int) -> int:
    return max(0, (page - 1) * limit)


def should_include_archive(
    start: datetime,
    now: datetime,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> bool:
    """Archive (cold storage) is searched only when the range reaches far enough back."""
    return start < now - limits.archive_threshold


def build_query_context(
    request: SearchRequest,
    now: datetime | None = None,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> QueryContext:
    """
    Build a fully resolved query context from a search request.

    Args:
        request: Caller's search request
        now: Reference time (defaults to the current UTC time)
        limits: Query limits to apply

    Returns:
        Immutable QueryContext

    Raises:
        InvalidInputError: If the query or dates are missing or malformed
        RangeTooWideError: If the time range exceeds the maximum window
        PageOutOfRangeError: If the page exceeds the pagination ceiling
    """
    if not isinstance(request.query, str) or not request.query.strip():
        raise InvalidInputError(
            "Invalid input: query must be a non-empty string",
            field="query",
            value=request.query,
        )

    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    time_range = resolve_time_range(request, now, limits)
    page, limit = validate_pagination(request.page, request.limit, limits)
    syntax = detect_query_syntax(request.query)

    context = QueryContext(
        original_query=request.query,
        detected_syntax=syntax,
        time_range=time_range,
        limit=limit,
        page=page,
        offset=calculate_offset(page, limit),
        include_archive=should_include_archive(time_range.start, now, limits),
    )

    logger.debug(
        "Built query context",
        extra={
            "syntax": syntax.value,
            "start": time_range.start.isoformat(),
            "end": time_range.end.isoformat(),
            "limit": context.limit,
            "page": context.page,
            "include_archive": context.include_archive,
        },
    )

    return context


def optimize_lucene_query(query: str) -> str:
    """Wrap plain-text Lucene queries in quotes for exact phrase matching."""
    optimized = query.strip()

    # Wildcard and empty queries are left for the user to be explicit about
    if optimized in ("*", ""):
        return optimized

    if ":" not in optimized and "(" not in optimized and '"' not in optimized:
        optimized = f'"{optimized}"'

    return optimized


def optimize_dataprime_query(query: str, limits: QueryLimits = DEFAULT_LIMITS) -> str:
    """Append a limit stage unless the query already has one."""
    optimized = query.strip()

    if _DATAPRIME_LIMIT_STAGE not in optimized.lower():
        optimized = f"{optimized} {_DATAPRIME_LIMIT_STAGE} {limits.max_limit}".lstrip()

    return optimized


def optimize_query(
    query: str,
    syntax: QuerySyntax,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> str:
    """
    Rewrite a query for the detected dialect.

    Idempotent: optimizing an already optimized query returns it unchanged.
    """
    if syntax is QuerySyntax.LUCENE:
        return optimize_lucene_query(query)
    return optimize_dataprime_query(query, limits)


def build_remote_request(
    context: QueryContext,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> RemoteQueryRequest:
    """
    Build the Coralogix API request for a query context.

    The row limit is inflated by the pagination offset so that the requested
    page can be sliced out of the returned rows.
    """
    return RemoteQueryRequest.build(
        query=optimize_query(context.original_query, context.detected_syntax, limits),
        syntax=context.detected_syntax,
        start=context.time_range.start,
        end=context.time_range.end,
        limit=context.limit + context.offset,
        include_archive=context.include_archive,
    )
