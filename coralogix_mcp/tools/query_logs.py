"""
Log query tool for searching Coralogix with AI-optimized responses.

Runs the full pipeline for one request: query context, remote request,
retried API call, page slicing and response normalization.
"""

from datetime import datetime
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from ..config.limits import DEFAULT_LIMITS, QueryLimits
from ..config.settings import CoralogixSettings, load_settings
from ..exceptions import CoralogixMCPError, InvalidInputError
from ..models.query import SearchRequest, Timeframe
from ..models.response import QueryResult
from ..services.coralogix_client import CoralogixClient
from ..services.query_processor import build_query_context, build_remote_request
from ..services.response_processor import process_logs
from ..utils.error_handling import ErrorClassifier, format_error_response
from ..utils.logging import (
    clear_correlation_id,
    get_logger,
    log_mcp_request,
    log_mcp_response,
    set_correlation_id,
)

logger = get_logger(__name__)

ERROR_PREFIX = "Failed to query logs"


async def execute_query_logs(
    request: SearchRequest,
    client: CoralogixClient,
    now: datetime | None = None,
    limits: QueryLimits = DEFAULT_LIMITS,
) -> QueryResult:
    """
    Execute one log query.

    Args:
        request: Caller's search request
        client: Open Coralogix client
        now: Reference time for relative timeframes
        limits: Query limits to apply

    Returns:
        QueryResult for the requested page

    Raises:
        CoralogixMCPError: Any validation, remote or parsing failure
    """
    context = build_query_context(request, now=now, limits=limits)
    remote_request = build_remote_request(context, limits)

    response = await client.query_logs(remote_request)

    # The remote limit covers every page up to this one
    page_logs = response.logs[context.offset:context.offset + context.limit]

    return process_logs(
        page_logs,
        context,
        context.page,
        total_results=response.total,
        query_id=response.query_id,
        limits=limits,
    )


def register_query_tools(mcp: FastMCP, settings: CoralogixSettings | None = None) -> None:
    """Register the query_logs MCP tool."""

    @mcp.tool()
    async def query_logs(
        query: str,
        timeframe: Timeframe | None = None,
        startDate: str | None = None,
        endDate: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        """
        Query Coralogix logs with AI-optimized responses and pagination support.

        Automatically detects query syntax (Lucene vs DataPrime) and trims
        responses to fit an LLM context window.

        Args:
            query: Search query. Examples: "severity:ERROR", "exception timeout",
                "applicationName:payments AND status:500",
                'source logs | filter severity == "ERROR"'
            timeframe: Time window to search - "15m", "1h", "6h", "24h" or "custom"
                (default "1h"). Use "custom" with startDate/endDate.
            startDate: Start of a custom range in ISO 8601, e.g. "2024-01-15T10:00:00Z"
            endDate: End of a custom range in ISO 8601, e.g. "2024-01-15T11:00:00Z"
            limit: Results per page (1-50, default 20)
            page: Page number starting at 1 (at most 100)

        Returns:
            Dictionary containing:
            - summary: totals, time range, page, hasNextPage, queryType, queryId
            - logs: normalized log entries
            - pagination: currentPage and nextPageAvailable
            On failure: status "error" with error_type, error_message and error_details
        """
        request_args = {
            "query": query,
            "timeframe": timeframe.value if timeframe else None,
            "startDate": startDate,
            "endDate": endDate,
            "limit": limit,
            "page": page,
        }
        set_correlation_id()
        log_mcp_request("query_logs", request_args)

        try:
            try:
                request = SearchRequest(
                    query=query,
                    timeframe=timeframe,
                    start_date=startDate,
                    end_date=endDate,
                    limit=limit,
                    page=page,
                )
            except ValidationError as e:
                raise InvalidInputError(f"Invalid input: {e}", original_error=e) from e

            active_settings = settings or load_settings()

            async with CoralogixClient(active_settings) as client:
                result = await execute_query_logs(request, client)

            log_mcp_response("query_logs", True, {
                "total_results": result.summary.total_results,
                "results_shown": result.summary.results_shown,
                "query_type": result.summary.query_type.value,
                "page": result.summary.page,
            })
            return result.to_output()

        except CoralogixMCPError as e:
            log_mcp_response("query_logs", False, error=f"{ERROR_PREFIX}: {e.message}")
            return format_error_response(e, ERROR_PREFIX)

        except Exception as e:
            logger.error("Unexpected error in query_logs", extra={
                "error": str(e),
                "error_type": type(e).__name__,
                "parameters": request_args,
            }, exc_info=True)
            error = ErrorClassifier.classify_transport_error(e)
            log_mcp_response("query_logs", False, error=f"{ERROR_PREFIX}: {error.message}")
            return format_error_response(error, ERROR_PREFIX)

        finally:
            clear_correlation_id()
