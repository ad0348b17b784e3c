"""
Entry point for running the coralogix-mcp server as a module.

This allows running the server with: python -m coralogix_mcp
"""

from .server import main

if __name__ == "__main__":
    main()
