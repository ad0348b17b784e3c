"""
Error classification helpers for the Coralogix MCP server.

Transforms transport-level exceptions (aiohttp, asyncio) and HTTP status codes
into the structured CoralogixMCPError hierarchy, and builds consistent error
context for logging.
"""

import asyncio
from datetime import UTC, datetime
from typing import Any

import aiohttp

from ..config.limits import DEFAULT_LIMITS
from ..exceptions import (
    CoralogixMCPError,
    InvalidInputError,
    TerminalRemoteError,
    TransientRemoteError,
)
from ..models.response import ResponseStatus

DEFAULT_EXCERPT_LENGTH = DEFAULT_LIMITS.max_error_excerpt


def truncate_excerpt(text: str | None, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Bound a response body before it is put into an error message."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


def is_retryable_status(status_code: int) -> bool:
    """Rate limiting and server-side failures are worth retrying."""
    return status_code == 429 or status_code >= 500


class ErrorClassifier:
    """
    Classifies exceptions and HTTP responses into structured MCP errors.
    """

    @staticmethod
    def classify_status(
        status_code: int,
        body: str | None = None,
        reason: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> CoralogixMCPError:
        """
        Classify a non-success HTTP status.

        Args:
            status_code: HTTP status returned by the API
            body: Response body text
            reason: HTTP reason phrase
            context: Additional context information

        Returns:
            TransientRemoteError for 429/5xx, TerminalRemoteError otherwise
        """
        excerpt = truncate_excerpt(body)
        status_text = f"{status_code} {reason}".strip() if reason else str(status_code)

        if is_retryable_status(status_code):
            return TransientRemoteError(
                f"Coralogix API error: {status_text}",
                status_code=status_code,
                context=dict(context or {}),
            )

        return TerminalRemoteError(
            f"Coralogix API error: {status_text}. Response: {excerpt}",
            status_code=status_code,
            body_excerpt=excerpt or None,
        )

    @staticmethod
    def classify_transport_error(
        error: Exception,
        context: dict[str, Any] | None = None,
    ) -> CoralogixMCPError:
        """
        Classify an exception raised while talking to the API.

        Args:
            error: The original exception
            context: Additional context information

        Returns:
            Appropriate CoralogixMCPError subclass
        """
        context = dict(context or {})

        if isinstance(error, CoralogixMCPError):
            return error

        # aiohttp's timeout errors subclass asyncio.TimeoutError
        if isinstance(error, asyncio.TimeoutError):
            timeout = context.get("timeout_seconds")
            suffix = f" after {timeout}s" if timeout else ""
            return TransientRemoteError(
                f"Request timed out{suffix}",
                original_error=error,
                context=context,
            )

        if isinstance(error, aiohttp.ClientResponseError):
            return ErrorClassifier.classify_status(
                error.status, reason=error.message, context=context
            )

        if isinstance(error, aiohttp.ClientError | ConnectionError):
            return TransientRemoteError(
                f"Connection failed: {error}",
                original_error=error,
                context=context,
            )

        if isinstance(error, ValueError | TypeError):
            return InvalidInputError(
                f"Validation error: {error}",
                original_error=error,
                field=context.get("field"),
                value=context.get("value"),
            )

        return CoralogixMCPError(
            f"Unexpected error: {error}",
            original_error=error,
            context=context,
        )


def create_error_context(
    operation: str,
    url: str | None = None,
    query: str | None = None,
    **additional_context: Any
) -> dict[str, Any]:
    """
    Create standardized error context for consistent logging.

    Args:
        operation: The operation being performed
        url: Endpoint being called
        query: Query text being executed
        **additional_context: Additional context fields

    Returns:
        Standardized context dictionary
    """
    context: dict[str, Any] = {
        "operation": operation,
        "timestamp": datetime.now(UTC).isoformat(),
    }

    if url:
        context["url"] = url
    if query:
        context["query"] = query

    context.update(additional_context)
    return context


def format_error_response(error: CoralogixMCPError, prefix: str) -> dict[str, Any]:
    """
    Build the error payload returned from an MCP tool.

    Args:
        error: Structured error
        prefix: Human-readable lead-in, e.g. "Failed to query logs"

    Returns:
        Dictionary with status, error type, message and structured details
    """
    return {
        "status": ResponseStatus.ERROR.value,
        "error_type": error.category.value,
        "error_message": f"{prefix}: {error.message}",
        "error_details": error.to_dict(),
    }
