"""
Service layer for the Coralogix MCP server.

This module contains query processing, the Coralogix API client and
response normalization.
"""

from .coralogix_client import CoralogixClient, RetryManager, create_coralogix_client, parse_query_response
from .query_processor import build_query_context, build_remote_request, detect_query_syntax, optimize_query
from .response_processor import generate_log_summary, process_log_entry, process_logs

__all__ = [
    "CoralogixClient",
    "RetryManager",
    "create_coralogix_client",
    "parse_query_response",
    "build_query_context",
    "build_remote_request",
    "detect_query_syntax",
    "optimize_query",
    "generate_log_summary",
    "process_log_entry",
    "process_logs",
]
