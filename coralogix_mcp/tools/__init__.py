"""
MCP tools for the Coralogix MCP server.

This module contains the MCP tool implementations for querying logs and
discovering the log field schema.
"""

from .logs_schema import register_schema_tools
from .query_logs import register_query_tools

__all__ = ["register_query_tools", "register_schema_tools"]
