"""
Custom exceptions for the Coralogix MCP server.

Every failure a tool call can hit is expressed as a CoralogixMCPError subclass
carrying a severity, a category, structured context and a recovery hint so it
can be logged and returned to the caller in one consistent shape.
"""

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for classification and handling priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification and recovery strategies."""

    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    QUERY = "query"
    RESPONSE = "response"
    CONFIGURATION = "configuration"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class CoralogixMCPError(Exception):
    """
    Base exception for all Coralogix MCP server errors.

    Provides structured error information with severity, category,
    context, and recovery hints.
    """

    def __init__(
        self,
        message: str,
        *,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: dict[str, Any] | None = None,
        recoverable: bool = False,
        recovery_hint: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.context = context or {}
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
            "context": self.context,
            "original_error": str(self.original_error) if self.original_error else None,
        }


class ConfigurationError(CoralogixMCPError):
    """Raised at startup when the API key or domain is missing or invalid."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        original_error: Exception | None = None,
        **kwargs: Any
    ) -> None:
        context = {"setting": setting} if setting else {}
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            recoverable=False,
            recovery_hint="Set CORALOGIX_API_KEY and a valid CORALOGIX_DOMAIN",
            original_error=original_error,
            context=context,
            **kwargs
        )


class InvalidInputError(CoralogixMCPError):
    """Raised when the caller's search request is missing or malformed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        original_error: Exception | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["invalid_value"] = str(value)

        super().__init__(
            message,
            severity=kwargs.pop("severity", ErrorSeverity.LOW),
            category=ErrorCategory.VALIDATION,
            recoverable=False,
            recovery_hint=kwargs.pop("recovery_hint", "Correct the input parameters"),
            original_error=original_error,
            context=context,
            **kwargs
        )


class RangeTooWideError(InvalidInputError):
    """Raised when the resolved time range exceeds the maximum window."""

    def __init__(
        self,
        message: str,
        max_hours: float | None = None,
        requested_hours: float | None = None,
        **kwargs: Any
    ) -> None:
        context: dict[str, Any] = {}
        if max_hours is not None:
            context["max_hours"] = max_hours
        if requested_hours is not None:
            context["requested_hours"] = round(requested_hours, 3)

        super().__init__(
            message,
            field="timeRange",
            context=context,
            recovery_hint=f"Narrow the time range to at most {max_hours} hours" if max_hours else "Narrow the time range",
            **kwargs
        )


class PageOutOfRangeError(InvalidInputError):
    """Raised when the requested page exceeds the pagination ceiling."""

    def __init__(
        self,
        message: str,
        page: int | None = None,
        max_pages: int | None = None,
        **kwargs: Any
    ) -> None:
        context: dict[str, Any] = {}
        if max_pages is not None:
            context["max_pages"] = max_pages

        super().__init__(
            message,
            field="page",
            value=page,
            context=context,
            recovery_hint="Refine the query or time range instead of paging further",
            **kwargs
        )


class TransientRemoteError(CoralogixMCPError):
    """Raised for rate limiting, server errors and network failures that may be retried."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
        attempts: int | None = None,
        max_attempts: int | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if status_code is not None:
            context["status_code"] = status_code
        if attempts is not None:
            context["attempts"] = attempts
        if max_attempts is not None:
            context["max_attempts"] = max_attempts

        if status_code == 429:
            category = ErrorCategory.RATE_LIMIT
        elif status_code is None and isinstance(original_error, TimeoutError):
            category = ErrorCategory.TIMEOUT
        else:
            category = ErrorCategory.CONNECTION

        recovery_hint = "Operation will be retried automatically"
        if attempts and max_attempts:
            recovery_hint = f"Gave up after {attempts}/{max_attempts} attempts; retry later"

        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=category,
            recoverable=True,
            recovery_hint=recovery_hint,
            original_error=original_error,
            context=context,
            **kwargs
        )
        self.status_code = status_code


class TerminalRemoteError(CoralogixMCPError):
    """Raised for non-retryable HTTP responses (4xx other than 429)."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body_excerpt: str | None = None,
        **kwargs: Any
    ) -> None:
        context: dict[str, Any] = {"status_code": status_code}
        if body_excerpt:
            context["body_excerpt"] = body_excerpt

        if status_code in (401, 403):
            category = ErrorCategory.AUTHENTICATION
            recovery_hint = "Verify the Coralogix API key and its permissions"
        else:
            category = ErrorCategory.QUERY
            recovery_hint = "Review query syntax and parameters"

        super().__init__(
            message,
            severity=ErrorSeverity.HIGH if category is ErrorCategory.AUTHENTICATION else ErrorSeverity.MEDIUM,
            category=category,
            recoverable=False,
            recovery_hint=recovery_hint,
            context=context,
            **kwargs
        )
        self.status_code = status_code
        self.body_excerpt = body_excerpt


class MalformedResponseError(CoralogixMCPError):
    """Raised when the remote response cannot be parsed as JSON or NDJSON."""

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        line_count: int | None = None,
        excerpt: str | None = None,
        original_error: Exception | None = None,
        **kwargs: Any
    ) -> None:
        context: dict[str, Any] = {
            "content_type": content_type,
            "line_count": line_count,
            "excerpt": excerpt,
        }
        context = {k: v for k, v in context.items() if v is not None}

        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.RESPONSE,
            recoverable=False,
            recovery_hint="Check the API domain and endpoint; the server returned an unexpected payload",
            original_error=original_error,
            context=context,
            **kwargs
        )
        self.content_type = content_type
        self.line_count = line_count
        self.excerpt = excerpt
