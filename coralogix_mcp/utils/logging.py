"""
Structured logging configuration for the Coralogix MCP server.

Standard-library loggers everywhere, rendered to JSON through structlog's
ProcessorFormatter, with a per-task correlation ID. Console output goes to
stderr because stdout carries the MCP stdio transport.
"""

import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any
from uuid import uuid4

import structlog

DEFAULT_LOG_FILE = "/tmp/coralogix-mcp.log"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class RestartingFileHandler(RotatingFileHandler):
    """Size-capped file handler that starts the file over instead of keeping backups."""

    def __init__(self, filename: str, *, max_bytes: int = DEFAULT_MAX_FILE_SIZE, encoding: str | None = None) -> None:
        super().__init__(filename, mode="a", maxBytes=max_bytes, backupCount=0, encoding=encoding)

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
        self.stream = open(self.baseFilename, "w", encoding=self.encoding, errors=self.errors)
        self.stream.write(f"=== Log file restarted at {datetime.now(UTC).isoformat()} ===\n")


class CorrelationIDProcessor:
    """
    structlog processor stamping events with the current correlation ID.

    The ID lives in a ContextVar so each asyncio task (one per tool call)
    sees its own value.
    """

    def __init__(self) -> None:
        self._correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        correlation_id = self._correlation_id.get()
        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        return event_dict

    @property
    def correlation_id(self) -> str | None:
        return self._correlation_id.get()

    def set_correlation_id(self, correlation_id: str | None = None) -> str:
        correlation_id = correlation_id or str(uuid4())
        self._correlation_id.set(correlation_id)
        return correlation_id

    def clear_correlation_id(self) -> None:
        self._correlation_id.set(None)


correlation_processor = CorrelationIDProcessor()


def _add_record_fields(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    record: logging.LogRecord = event_dict["_record"]
    event_dict.update(
        timestamp=datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
        level=record.levelname,
        logger=record.name,
        module=record.module,
        function=record.funcName,
        line=record.lineno,
    )
    return event_dict


class JSONFormatter(structlog.stdlib.ProcessorFormatter):
    """One JSON object per record, including any fields passed through `extra=`."""

    def __init__(self) -> None:
        super().__init__(
            foreign_pre_chain=[structlog.stdlib.ExtraAdder()],
            processors=[
                _add_record_fields,
                correlation_processor,
                structlog.processors.EventRenamer("message"),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(default=str),
            ],
        )


def configure_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    enable_console: bool = True,
    enable_file: bool = True,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    enable_json_logging: bool = True,
) -> None:
    """
    Configure root logging for the server.

    Args:
        log_level: Level name; defaults to $LOG_LEVEL or INFO
        log_file: Defaults to $CORALOGIX_MCP_LOG_FILE or /tmp/coralogix-mcp.log
        enable_console: Log to stderr
        enable_file: Log to the restarting file
        max_file_size: Size at which the log file starts over
        enable_json_logging: JSON output instead of plain text
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    log_file = log_file or os.getenv("CORALOGIX_MCP_LOG_FILE", DEFAULT_LOG_FILE)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(numeric_level)

    formatter: logging.Formatter = (
        JSONFormatter() if enable_json_logging
        else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    handlers: list[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if enable_file:
        handlers.append(RestartingFileHandler(log_file, max_bytes=max_file_size))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current task, generating a UUID4 if none is given."""
    return correlation_processor.set_correlation_id(correlation_id)


def clear_correlation_id() -> None:
    correlation_processor.clear_correlation_id()


def log_mcp_request(tool_name: str, arguments: dict[str, Any]) -> None:
    get_logger("coralogix_mcp.mcp").info(
        "MCP tool request",
        extra={"tool_name": tool_name, "arguments": arguments, "event_type": "mcp_request"},
    )


def log_mcp_response(
    tool_name: str, success: bool, response_data: dict[str, Any] | None = None, error: str | None = None
) -> None:
    """Log the outcome of a tool call; failures are logged at ERROR."""
    extra: dict[str, Any] = {"tool_name": tool_name, "success": success, "event_type": "mcp_response"}
    if response_data:
        extra["response_data"] = response_data
    if error:
        extra["error"] = error

    logger = get_logger("coralogix_mcp.mcp")
    if success:
        logger.info("MCP tool response", extra=extra)
    else:
        logger.error("MCP tool error", extra=extra)


def log_coralogix_query(
    query: str,
    syntax: str,
    limit: int,
    took_ms: int | None = None,
    result_count: int | None = None,
) -> None:
    """Log a completed call to the query API with its wire syntax, row limit and timing."""
    extra: dict[str, Any] = {"query": query, "syntax": syntax, "limit": limit, "event_type": "coralogix_query"}
    if took_ms is not None:
        extra["took_ms"] = took_ms
    if result_count is not None:
        extra["result_count"] = result_count

    get_logger("coralogix_mcp.coralogix").info("Coralogix query", extra=extra)


def log_coralogix_error(error: str, query: str | None = None, status_code: int | None = None) -> None:
    extra: dict[str, Any] = {"error": error, "event_type": "coralogix_error"}
    if query:
        extra["query"] = query
    if status_code is not None:
        extra["status_code"] = status_code

    get_logger("coralogix_mcp.coralogix").error("Coralogix error", extra=extra)
