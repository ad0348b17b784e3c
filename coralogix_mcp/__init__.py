"""
Coralogix MCP Server - A Model Context Protocol server for searching Coralogix logs.

This package provides MCP tools that run Lucene and DataPrime queries against
the Coralogix query API and return compact, AI-friendly results.
"""

__version__ = "0.1.0"

from .server import create_server

__all__ = ["create_server", "__version__"]
