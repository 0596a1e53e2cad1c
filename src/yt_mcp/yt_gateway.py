"""
Typed facade over the five read operations the server exposes.

The gateway holds only the :class:`~yt_mcp.yt_auth.YouTubeContext` it was
built with. Each call builds one request, executes it on a fresh transport,
and returns the raw ``items`` list (or a single resource). Failures are
raised as :class:`UpstreamError` / :class:`NotFoundError` carrying the
operation that failed; nothing is retried.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from googleapiclient.errors import HttpError

from yt_mcp.errors import NotFoundError, UpstreamError
from yt_mcp.utils.log_utils import get_logger, log_tree
from yt_mcp.yt_auth import YouTubeContext

logger = get_logger(__name__)

OP_SEARCH_VIDEOS = "error searching videos"
OP_CHANNEL_INFO = "error getting channel info"
OP_VIDEO_DETAILS = "error getting video details"
OP_PLAYLIST_ITEMS = "error getting playlist items"
OP_SEARCH_CHANNELS = "error searching channels"

SEARCH_ORDER = "relevance"
_DETAIL_PARTS = "snippet,statistics,contentDetails"

_KEY_PARAM_RE = re.compile(r"([?&]key=)[^&]+")


def _redact_uri(uri: str) -> str:
    return _KEY_PARAM_RE.sub(r"\1<redacted>", uri or "")


def _http_error_message(exc: HttpError) -> str:
    status = getattr(exc.resp, "status", "?")
    reason = getattr(exc, "reason", "") or _redact_uri(str(exc))
    return f"HTTP {status}: {reason}"


class YouTubeGateway:
    """Stateless request/response mapping over a YouTube discovery client."""

    def __init__(self, ctx: YouTubeContext) -> None:
        self._ctx = ctx

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, req, *, operation: str, label: str) -> dict[str, Any]:
        """Execute a googleapiclient request, mapping failures to UpstreamError."""
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "[YT %s] %s %s",
                label,
                getattr(req, "method", ""),
                _redact_uri(getattr(req, "uri", "")),
            )
        try:
            resp = req.execute(http=self._ctx.new_http())
        except HttpError as exc:
            logger.warning("⚠️ %s failed: %s", label, _http_error_message(exc))
            raise UpstreamError(operation, _http_error_message(exc), cause=exc) from exc
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # httplib2 / socket / google-auth refresh failures
            logger.warning("⚠️ %s failed with %s", label, exc)
            raise UpstreamError(operation, f"{type(exc).__name__}: {exc}", cause=exc) from exc

        log_tree(logger, logging.DEBUG, f"[YT {label}] response", resp)
        return resp if isinstance(resp, dict) else {}

    @staticmethod
    def _items(resp: dict[str, Any]) -> list[dict[str, Any]]:
        items = resp.get("items")
        return [it for it in items if isinstance(it, dict)] if isinstance(items, list) else []

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def search_videos(self, query: str, max_results: int, channel_id: str | None = None) -> list[dict[str, Any]]:
        """search.list restricted to videos, ordered by relevance."""
        params: dict[str, Any] = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
            "order": SEARCH_ORDER,
        }
        if channel_id:
            params["channelId"] = channel_id

        req = self._ctx.service.search().list(**params)  # pylint: disable=no-member
        return self._items(self._execute(req, operation=OP_SEARCH_VIDEOS, label="search.list video"))

    def get_channel_info(self, channel_id: str | None = None) -> dict[str, Any]:
        """channels.list by id, or for the authenticated user when no id is given.

        Raises:
            UpstreamError: no id was given and the handle has no user identity
                (API-key mode), or the upstream call failed.
            NotFoundError: the lookup returned no channel.
        """
        if not channel_id and not self._ctx.has_user_identity:
            raise UpstreamError(
                OP_CHANNEL_INFO,
                "channel_id is required when authenticated with an API key "
                "(no authenticated user channel to resolve)",
            )

        channels = self._ctx.service.channels()  # pylint: disable=no-member
        if channel_id:
            req = channels.list(part=_DETAIL_PARTS, id=channel_id)
        else:
            req = channels.list(part=_DETAIL_PARTS, mine=True)

        items = self._items(self._execute(req, operation=OP_CHANNEL_INFO, label="channels.list"))
        if not items:
            raise NotFoundError(OP_CHANNEL_INFO, "channel", channel_id or "")
        return items[0]

    def get_video_details(self, video_id: str) -> dict[str, Any]:
        """videos.list for one id.

        Raises:
            NotFoundError: the lookup returned no video.
        """
        req = self._ctx.service.videos().list(part=_DETAIL_PARTS, id=video_id)  # pylint: disable=no-member
        items = self._items(self._execute(req, operation=OP_VIDEO_DETAILS, label="videos.list"))
        if not items:
            raise NotFoundError(OP_VIDEO_DETAILS, "video", video_id)
        return items[0]

    def get_playlist_items(self, playlist_id: str, max_results: int) -> list[dict[str, Any]]:
        """playlistItems.list; an unknown playlist yields an empty list.

        The API answers an unknown ``playlistId`` with HTTP 404
        (``playlistNotFound``); that one status is read as "no items".
        """
        req = self._ctx.service.playlistItems().list(  # pylint: disable=no-member
            part="snippet,contentDetails",
            playlistId=playlist_id,
            maxResults=max_results,
        )
        try:
            resp = self._execute(req, operation=OP_PLAYLIST_ITEMS, label="playlistItems.list")
        except UpstreamError as exc:
            if exc.status == 404:
                logger.info("Playlist %s not found; returning no items", playlist_id)
                return []
            raise
        return self._items(resp)

    def search_channels(self, query: str, max_results: int) -> list[dict[str, Any]]:
        """search.list restricted to channels, ordered by relevance."""
        req = self._ctx.service.search().list(  # pylint: disable=no-member
            part="snippet",
            q=query,
            type="channel",
            maxResults=max_results,
            order=SEARCH_ORDER,
        )
        return self._items(self._execute(req, operation=OP_SEARCH_CHANNELS, label="search.list channel"))
