"""
Main FastMCP server setup and configuration.

This module creates and configures the FastMCP server with all tools.
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config.settings import CoralogixSettings, load_settings
from .exceptions import ConfigurationError
from .services.coralogix_client import CoralogixClient
from .tools import register_query_tools, register_schema_tools
from .utils.logging import configure_logging, get_logger


def create_server(settings: CoralogixSettings | None = None) -> FastMCP:
    """
    Create and configure the FastMCP server.

    Without settings, query_logs loads them from the environment on each call
    and reports a configuration error if they are missing.
    """
    mcp = FastMCP("Coralogix-MCP")

    # Register query tools
    register_query_tools(mcp, settings)

    # Register schema discovery tools
    register_schema_tools(mcp)

    return mcp


async def check_connection(settings: CoralogixSettings) -> bool:
    """Run the startup connectivity probe; a failure is only a warning."""
    logger = get_logger(__name__)

    logger.info("Testing Coralogix connection", extra={"domain": settings.domain})
    async with CoralogixClient(settings) as client:
        connected = await client.test_connection()

    if not connected:
        logger.warning(
            "Failed to connect to Coralogix API. Please verify your API key and domain.",
            extra={"domain": settings.domain},
        )
    return connected


async def run_http_server(
    settings: CoralogixSettings,
    host: str = "localhost",
    port: int = 8000,
) -> None:
    """Run the MCP server with HTTP transport."""
    logger = get_logger(__name__)

    try:
        mcp = create_server(settings)
        logger.info(f"Starting Coralogix MCP Server on http://{host}:{port}")

        await mcp.run_http_async(host=host, port=port)
    except Exception as e:
        logger.error(f"Failed to start HTTP server: {e}")
        raise


def run_stdio_server(settings: CoralogixSettings) -> None:
    """Run the MCP server with stdio transport (default)."""
    logger = get_logger(__name__)

    try:
        mcp = create_server(settings)
        logger.info("Starting Coralogix MCP Server with stdio transport")

        mcp.run()
    except Exception as e:
        logger.error(f"Failed to start stdio server: {e}")
        raise


def main(host: str | None = None, port: int | None = None) -> None:
    """Main entry point for the MCP server."""
    # Configure structured logging
    configure_logging()

    # Load environment variables from .env file
    load_dotenv()

    logger = get_logger(__name__)

    parser = argparse.ArgumentParser(description="Coralogix MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport type to use (default: stdio)"
    )
    parser.add_argument(
        "--host",
        default="localhost",
        help="Host to bind to for HTTP transport (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)"
    )
    parser.add_argument(
        "--skip-connection-test",
        action="store_true",
        help="Do not probe the Coralogix API at startup"
    )

    args = parser.parse_args()

    final_host = host or args.host
    final_port = port or args.port
    transport = args.transport

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(
            "Coralogix configuration is invalid",
            extra={"error": e.message, "recovery_hint": e.recovery_hint},
        )
        sys.exit(1)

    if not args.skip_connection_test:
        asyncio.run(check_connection(settings))

    logger.info(f"Coralogix MCP Server starting with {transport} transport")

    if transport == "http":
        asyncio.run(run_http_server(settings, final_host, final_port))
    else:
        # stdio is what MCP clients launch by default
        run_stdio_server(settings)


if __name__ == "__main__":
    main()
