"""
Configuration for the Coralogix MCP server: limits and connection settings.
"""

from .limits import CORALOGIX_DOMAINS, DEFAULT_LIMITS, TIMEFRAME_DURATIONS, QueryLimits
from .settings import CoralogixSettings, load_settings

__all__ = [
    "CORALOGIX_DOMAINS",
    "DEFAULT_LIMITS",
    "TIMEFRAME_DURATIONS",
    "QueryLimits",
    "CoralogixSettings",
    "load_settings",
]
