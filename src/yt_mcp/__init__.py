"""Read-only YouTube Data API tools served over the Model Context Protocol."""

from yt_mcp.errors import (
    AuthError,
    ConfigError,
    InvalidArgumentError,
    NotFoundError,
    UpstreamError,
    YtMcpError,
)

__version__ = "1.0.0"

__all__ = [
    "AuthError",
    "ConfigError",
    "InvalidArgumentError",
    "NotFoundError",
    "UpstreamError",
    "YtMcpError",
    "__version__",
]
