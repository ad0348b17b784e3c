"""
Coralogix query API client.

This module provides an async HTTP client for the Direct Lucene & DataPrime
Query API with retry/backoff for transient failures and tolerant parsing of
both response shapes the API uses (a single JSON object or an NDJSON stream).
"""

import asyncio
import json
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar, cast

import aiohttp

from ..config.settings import CoralogixSettings
from ..exceptions import CoralogixMCPError, MalformedResponseError, TransientRemoteError
from ..models.log_entry import RawLogRecord
from ..models.query import QuerySyntax, RemoteQueryRequest
from ..models.response import RemoteQueryResponse
from ..utils.error_handling import (
    ErrorClassifier,
    create_error_context,
    truncate_excerpt,
)
from ..utils.logging import get_logger, log_coralogix_error, log_coralogix_query

T = TypeVar("T")

logger = get_logger(__name__)


class RetryManager:
    """Manages retry logic with exponential backoff."""

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier

    def _calculate_delay(self, attempt: int) -> float:
        """Exponential backoff: delay = initial_delay * (backoff_multiplier ^ attempt)."""
        return self.initial_delay * (self.backoff_multiplier ** attempt)

    def _is_retryable_error(self, error: Exception) -> bool:
        # 429, 5xx, timeouts and connection failures are classified as transient
        return isinstance(error, TransientRemoteError)

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[T]],
        operation_name: str = "coralogix_operation",
        logger: Any = None,
    ) -> T:
        """
        Execute function with retry logic.

        Raises:
            TransientRemoteError: When every attempt failed with a transient error
            CoralogixMCPError: Any non-retryable error, on first occurrence
        """
        last_error: TransientRemoteError | None = None
        total_attempts = self.max_retries + 1

        for attempt in range(total_attempts):
            try:
                result = await func()

                if attempt > 0 and logger:
                    logger.info(
                        f"Operation succeeded after {attempt} retries",
                        extra={
                            "operation": operation_name,
                            "attempt": attempt + 1,
                        }
                    )

                return result

            except Exception as e:
                if not self._is_retryable_error(e):
                    if logger:
                        logger.warning(
                            f"Non-retryable error in {operation_name}",
                            extra={
                                "operation": operation_name,
                                "error": str(e),
                                "error_type": type(e).__name__,
                                "attempt": attempt + 1,
                            }
                        )
                    raise

                last_error = cast(TransientRemoteError, e)

                if attempt >= self.max_retries:
                    break

                delay = self._calculate_delay(attempt)

                if logger:
                    logger.warning(
                        f"Operation failed, retrying in {delay:.2f}s",
                        extra={
                            "operation": operation_name,
                            "error": str(e),
                            "status_code": last_error.status_code,
                            "attempt": attempt + 1,
                            "max_attempts": total_attempts,
                            "retry_delay": delay,
                        }
                    )

                await asyncio.sleep(delay)

        if logger:
            logger.error(
                f"Operation failed after {total_attempts} attempts",
                extra={
                    "operation": operation_name,
                    "final_error": str(last_error),
                    "total_attempts": total_attempts,
                }
            )

        raise TransientRemoteError(
            f"Operation '{operation_name}' failed after {total_attempts} attempts: {last_error}",
            status_code=last_error.status_code if last_error else None,
            original_error=last_error.original_error if last_error else None,
            attempts=total_attempts,
            max_attempts=total_attempts,
        ) from last_error


def decode_body(raw: bytes, charset: str | None, content_type: str | None) -> str:
    """
    Decode a response body using the declared charset (UTF-8 by default).

    Raises:
        MalformedResponseError: If the body is not valid in that encoding
    """
    try:
        return raw.decode(charset or "utf-8")
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(
            "Response body could not be decoded",
            extra={"charset": charset, "content_type": content_type, "response_length": len(raw)},
        )
        raise MalformedResponseError(
            f"Failed to decode Coralogix response as {charset or 'utf-8'}: {e}",
            content_type=content_type,
            line_count=len(raw.splitlines()),
            excerpt=truncate_excerpt(raw.decode("utf-8", errors="replace")),
            original_error=e,
        ) from e


def _load_json_objects(text: str, content_type: str | None) -> list[Any]:
    """
    Parse a response body as one JSON document, falling back to NDJSON.

    Raises:
        MalformedResponseError: If any non-empty line is not valid JSON
    """
    stripped = text.strip()
    if not stripped:
        return []

    try:
        whole = json.loads(stripped)
    except json.JSONDecodeError:
        pass
    else:
        return whole if isinstance(whole, list) else [whole]

    lines = [line for line in stripped.split("\n") if line.strip()]
    objects = []
    for line in lines:
        try:
            objects.append(json.loads(line))
        except json.JSONDecodeError as e:
            logger.warning(
                "NDJSON parse error",
                extra={
                    "parse_error": str(e),
                    "response_length": len(text),
                    "content_type": content_type,
                    "lines": len(lines),
                }
            )
            raise MalformedResponseError(
                f"Failed to parse Coralogix NDJSON response. Content-Type: {content_type}, "
                f"Lines: {len(lines)}, Error: {e}",
                content_type=content_type,
                line_count=len(lines),
                excerpt=truncate_excerpt(text),
                original_error=e,
            ) from e
    return objects


def _extract_query_id(first: dict[str, Any]) -> str | None:
    query_id = first.get("queryId")
    if isinstance(query_id, dict):
        query_id = query_id.get("queryId")
    return str(query_id) if query_id else None


def _to_records(rows: Any) -> list[RawLogRecord]:
    if not isinstance(rows, list):
        return []

    records = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping non-object log row", extra={"row_type": type(row).__name__})
            continue
        records.append(RawLogRecord.model_validate(row))
    return records


def parse_query_response(text: str, content_type: str | None = None) -> RemoteQueryResponse:
    """
    Parse a Coralogix query response body.

    Accepts a single JSON object with a `logs` array or an NDJSON stream in
    which one line carries `{"result": {"results": [...]}}`. A body with no
    result object parses to an empty response rather than an error.

    Args:
        text: Response body
        content_type: Declared Content-Type, used only for diagnostics

    Returns:
        RemoteQueryResponse

    Raises:
        MalformedResponseError: If the body is neither JSON nor NDJSON
    """
    objects = [obj for obj in _load_json_objects(text, content_type) if isinstance(obj, dict)]
    query_id = _extract_query_id(objects[0]) if objects else None

    result_object = next((obj for obj in objects if "result" in obj), None)
    if result_object is not None:
        result = result_object.get("result")
        rows = result.get("results") if isinstance(result, dict) else None
        logs = _to_records(rows or [])
        return RemoteQueryResponse(
            logs=logs,
            total=len(logs),
            has_more=False,
            query_id=query_id,
        )

    logs_object = next((obj for obj in objects if "logs" in obj), None)
    if logs_object is not None:
        logs = _to_records(logs_object.get("logs") or [])
        total = logs_object.get("total")
        return RemoteQueryResponse(
            logs=logs,
            total=total if isinstance(total, int) and total >= 0 else len(logs),
            has_more=bool(logs_object.get("hasMore", False)),
            query_id=query_id,
        )

    logger.warning(
        "No result object found in response",
        extra={
            "object_count": len(objects),
            "object_keys": [sorted(obj.keys()) for obj in objects],
        }
    )
    return RemoteQueryResponse(logs=[], total=0, has_more=False, query_id=query_id)


class CoralogixClient:
    """
    Async client for the Coralogix query API.

    Use as an async context manager, or pass in an existing aiohttp session.
    Configuration is injected; nothing is read from the environment here.
    """

    def __init__(
        self,
        settings: CoralogixSettings,
        session: aiohttp.ClientSession | None = None,
    ):
        self.settings = settings
        self.logger = get_logger(__name__)
        self._session = session
        self._owns_session = session is None
        self._retry_manager = RetryManager(
            max_retries=settings.max_retries,
            initial_delay=settings.retry_initial_delay,
        )

    async def __aenter__(self) -> "CoralogixClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.closed

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }

    async def _post_query(self, payload: dict[str, Any]) -> tuple[int, str, str | None, str | None]:
        """
        Send one POST request.

        Returns:
            Tuple of (status, body text, content type, reason phrase)
        """
        if self._session is None:
            raise CoralogixMCPError("Coralogix client session not initialized")

        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
        async with self._session.post(
            self.settings.query_url,
            json=payload,
            headers=self._headers(),
            timeout=timeout,
        ) as response:
            content_type = response.headers.get("Content-Type")
            raw = await response.read()
            body = decode_body(raw, response.charset, content_type)
            return response.status, body, content_type, response.reason

    async def _attempt(self, payload: dict[str, Any]) -> tuple[str, str | None]:
        """One request attempt; raises a classified error on failure."""
        try:
            status, body, content_type, reason = await self._post_query(payload)
        except CoralogixMCPError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError) as e:
            context = create_error_context(
                "query_logs",
                url=self.settings.query_url,
                timeout_seconds=self.settings.request_timeout,
            )
            raise ErrorClassifier.classify_transport_error(e, context) from e

        if 200 <= status < 300:
            return body, content_type

        self.logger.warning(
            f"Coralogix API response ({status})",
            extra={
                "status": status,
                "reason": reason,
                "content_length": len(body),
                "content_preview": truncate_excerpt(body, 200),
            }
        )
        raise ErrorClassifier.classify_status(status, body, reason)

    async def query_logs(self, request: RemoteQueryRequest) -> RemoteQueryResponse:
        """
        Execute a query against the Coralogix API.

        Args:
            request: Wire request built from a query context

        Returns:
            Parsed RemoteQueryResponse

        Raises:
            TransientRemoteError: If retries are exhausted on 429/5xx/network errors
            TerminalRemoteError: On any other non-success status
            MalformedResponseError: If the body cannot be parsed
        """
        payload = request.to_payload()
        start_time = time.monotonic()

        try:
            body, content_type = await self._retry_manager.execute_with_retry(
                lambda: self._attempt(payload),
                "query_logs",
                self.logger,
            )
            response = parse_query_response(body, content_type)
        except CoralogixMCPError as e:
            log_coralogix_error(
                e.message,
                query=request.query,
                status_code=e.context.get("status_code"),
            )
            raise

        log_coralogix_query(
            request.query,
            request.metadata.syntax,
            request.metadata.limit,
            took_ms=round((time.monotonic() - start_time) * 1000),
            result_count=len(response.logs),
        )
        return response

    async def test_connection(self) -> bool:
        """
        Probe the API with a minimal query.

        Returns:
            True if the query succeeded, False on any failure
        """
        now = datetime.now(UTC)
        probe = RemoteQueryRequest.build(
            query="*",
            syntax=QuerySyntax.LUCENE,
            start=now - timedelta(minutes=1),
            end=now,
            limit=1,
            include_archive=False,
        )

        try:
            await self.query_logs(probe)
        except Exception as e:
            self.logger.warning("Coralogix connection test failed", extra={"error": str(e)})
            return False

        self.logger.info("Coralogix connection test successful")
        return True

    def __repr__(self) -> str:
        status = "connected" if self.is_connected else "disconnected"
        return f"CoralogixClient(domain={self.settings.domain}, status={status})"


@asynccontextmanager
async def create_coralogix_client(
    settings: CoralogixSettings,
) -> AsyncGenerator[CoralogixClient, None]:
    """
    Create a Coralogix client as an async context manager.

    Args:
        settings: Connection settings

    Yields:
        CoralogixClient with an open HTTP session
    """
    async with CoralogixClient(settings) as client:
        yield client
