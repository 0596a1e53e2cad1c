"""Error taxonomy for the YouTube MCP server.

Startup errors (:class:`ConfigError`, :class:`AuthError`) stop the process.
Per-call errors (:class:`InvalidArgumentError`, :class:`UpstreamError`,
:class:`NotFoundError`) become failed tool results.
"""

from __future__ import annotations

from googleapiclient.errors import HttpError


class YtMcpError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(YtMcpError):
    """Missing or malformed configuration / client-secrets file."""


class AuthError(YtMcpError):
    """The OAuth2 exchange failed or the cached token could not be used."""


class InvalidArgumentError(YtMcpError):
    """Tool arguments failed schema validation."""

    def __init__(self, tool: str, message: str) -> None:
        super().__init__(f"invalid arguments for {tool}: {message}")
        self.tool = tool


class UpstreamError(YtMcpError):
    """A YouTube Data API call failed (transport, quota, auth rejection, ...)."""

    def __init__(self, operation: str, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.cause = cause

    @property
    def status(self) -> int | None:
        """HTTP status of the upstream failure, when there was one."""
        if isinstance(self.cause, HttpError):
            return getattr(self.cause.resp, "status", None)
        return None


class NotFoundError(YtMcpError):
    """A singular lookup (video, channel) returned zero results."""

    def __init__(self, operation: str, kind: str, resource_id: str) -> None:
        target = f" {resource_id!r}" if resource_id else ""
        super().__init__(f"{operation}: {kind}{target} not found")
        self.operation = operation
        self.kind = kind
        self.resource_id = resource_id
