"""
Response processing: turns raw Coralogix rows into compact, AI-friendly records.

Severity labels are normalized, long messages are truncated (keeping the head
of stack traces, or the head and tail of other text), non-standard fields are
bounded, and summary and pagination metadata are assembled.
"""

import re
from collections import Counter
from collections.abc import Sequence
from typing import Any

from ..config.limits import DEFAULT_LIMITS, QueryLimits
from ..models.log_entry import STANDARD_FIELDS, NormalizedLogRecord, RawLogRecord
from ..models.query import QueryContext, format_timestamp
from ..models.response import (
    LogSummary,
    LogSummaryTimeRange,
    PaginationInfo,
    QueryResult,
    QuerySummary,
    TimeWindow,
)

SEVERITY_SYNONYMS = {
    "TRACE": "TRACE",
    "DEBUG": "DEBUG",
    "VERBOSE": "VERBOSE",
    "INFO": "INFO",
    "INFORMATION": "INFO",
    "WARN": "WARN",
    "WARNING": "WARN",
    "ERROR": "ERROR",
    "ERR": "ERROR",
    "FATAL": "FATAL",
    "CRITICAL": "FATAL",
    "CRIT": "FATAL",
}

# Coralogix numeric severity codes
NUMERIC_SEVERITIES = {
    "1": "DEBUG",
    "2": "VERBOSE",
    "3": "INFO",
    "4": "WARN",
    "5": "ERROR",
    "6": "FATAL",
}

STACK_TRACE_PATTERNS = (
    re.compile(r"at\s+[\w$.<>]+\([^)]*\)"),          # Java frame
    re.compile(r"^\s*at\s+", re.MULTILINE),           # "at ..." line
    re.compile(r'File\s+"[^"]+",\s+line\s+\d+', re.IGNORECASE),  # Python frame
    re.compile(r"^\s*\w+Error:", re.MULTILINE),       # SomeError: message
    re.compile(r"^\s*Caused by:", re.MULTILINE),
    re.compile(r"^\s*\.\.\.\s+\d+\s+more", re.MULTILINE),
)

TRUNCATION_SEPARATOR = " ... "
HEAD_SHARE = 0.7

# Frames are dropped rather than squeezed into less room than this
MIN_FRAME_ROOM = 40


def normalize_severity(severity: str | None) -> str:
    """Map a raw severity onto the canonical label set."""
    normalized = (severity or "").strip().upper()
    if not normalized:
        return "UNKNOWN"
    if normalized in NUMERIC_SEVERITIES:
        return NUMERIC_SEVERITIES[normalized]
    return SEVERITY_SYNONYMS.get(normalized, normalized)


def is_stack_trace(text: str) -> bool:
    return any(pattern.search(text) for pattern in STACK_TRACE_PATTERNS)


def truncate_middle(text: str, max_length: int) -> str:
    """
    Keep roughly the first 70% and the last 30% of the length limit so
    both the start and the conclusion of a long message stay visible.
    """
    if len(text) <= max_length:
        return text

    preserve_start = int(max_length * HEAD_SHARE)
    # 10 characters are reserved for the separator
    preserve_end = max(0, max_length - preserve_start - 10)
    tail = text[len(text) - preserve_end:] if preserve_end else ""
    return f"{text[:preserve_start]}{TRUNCATION_SEPARATOR}{tail}"


def truncate_stack_trace(text: str, limits: QueryLimits = DEFAULT_LIMITS) -> str:
    """
    Keep the first line, then up to max_stack_trace_lines frames, then a
    marker counting the omitted lines.

    The first line is only shortened when it alone exceeds the length limit;
    frames get whatever room it leaves and are dropped when there is too
    little to show anything useful.
    """
    lines = text.split("\n")
    first, frames = lines[0], lines[1:1 + limits.max_stack_trace_lines]

    if len(first) > limits.max_message_length:
        first = truncate_middle(first, limits.max_message_length)
        frames = []

    room = limits.max_message_length - len(first) - 1
    frame_block = "\n".join(frames)
    if frames and len(frame_block) > room:
        if room < MIN_FRAME_ROOM:
            frames = []
        else:
            frame_block = truncate_middle(frame_block, room)

    body = f"{first}\n{frame_block}" if frames else first
    remaining = len(lines) - 1 - len(frames)

    if remaining > 0:
        return f"{body}\n... and {remaining} more lines"
    return body


def process_message(text: str | None, limits: QueryLimits = DEFAULT_LIMITS) -> str:
    """Return the message unchanged when within the length limit, otherwise truncate it."""
    if not text:
        return ""

    if len(text) <= limits.max_message_length:
        return text

    if is_stack_trace(text):
        return truncate_stack_trace(text, limits)
    return truncate_middle(text, limits.max_message_length)


def extract_additional_fields(
    record: RawLogRecord,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> dict[str, Any] | None:
    """
    Collect non-standard keys with non-null values, truncating long strings.

    Returns:
        Mapping of extra fields, or None when the record has none
    """
    additional: dict[str, Any] = {}

    for key, value in record.extra_fields.items():
        if key in STANDARD_FIELDS or value is None:
            continue
        if isinstance(value, str) and len(value) > limits.max_field_length:
            value = f"{value[:limits.max_field_length]}..."
        additional[key] = value

    return additional or None


def process_log_entry(record: RawLogRecord, limits: QueryLimits = DEFAULT_LIMITS) -> NormalizedLogRecord:
    return NormalizedLogRecord(
        timestamp=record.timestamp,
        severity=normalize_severity(record.severity),
        message=process_message(record.text, limits),
        application=record.application_name,
        subsystem=record.subsystem_name,
        host=record.computer_name,
        thread=record.thread_id,
        class_name=record.class_name,
        method_name=record.method_name,
        category=record.category,
        additional_fields=extract_additional_fields(record, limits),
    )


def process_logs(
    logs: Sequence[RawLogRecord],
    context: QueryContext,
    page: int,
    total_results: int | None = None,
    query_id: str | None = None,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> QueryResult:
    """
    Build the query_logs result for one page of raw records.

    Args:
        logs: Raw records for the requested page
        context: Query context the records were fetched for
        page: Requested page number
        total_results: Server-reported total, if any
        query_id: Remote query identifier, if any
        limits: Query limits to apply

    Returns:
        QueryResult with summary, normalized logs and pagination
    """
    processed = [process_log_entry(record, limits) for record in logs]

    # A full page is taken as a sign that more rows may exist
    has_next_page = len(logs) == context.limit

    summary = QuerySummary(
        total_results=total_results if total_results is not None else len(logs),
        results_shown=len(processed),
        time_range=TimeWindow(
            start=format_timestamp(context.time_range.start),
            end=format_timestamp(context.time_range.end),
        ),
        page=page,
        has_next_page=has_next_page,
        query_type=context.detected_syntax,
        query_id=query_id,
    )

    return QueryResult(
        summary=summary,
        logs=processed,
        pagination=PaginationInfo(
            current_page=page,
            next_page_available=has_next_page,
        ),
    )


def generate_log_summary(logs: Sequence[NormalizedLogRecord], top_n: int = 5) -> LogSummary:
    """
    Aggregate severity and application counts over a set of records.

    The time range reports the first and last timestamps in input order; the
    records are assumed to be time-ordered already.
    """
    severity_counts = Counter(log.severity for log in logs)
    application_counts = Counter(log.application for log in logs if log.application)

    time_range = None
    if logs:
        time_range = LogSummaryTimeRange(
            earliest=logs[0].timestamp,
            latest=logs[-1].timestamp,
        )

    return LogSummary(
        total_logs=len(logs),
        severity_breakdown=dict(severity_counts),
        top_applications=dict(application_counts.most_common(top_n)),
        time_range=time_range,
    )
