"""Semrush MCP Server.

Ask your AI about search — domain and keyword analytics, backlinks, and
traffic data from the Semrush API, cached and rate limited per process.
"""

__version__ = "0.1.0"

from .core.client import SemrushClient
from .core.errors import ConfigurationError, SemrushApiError
from .core.models import ApiResponse

__all__ = ["ApiResponse", "ConfigurationError", "SemrushApiError", "SemrushClient", "__version__"]
