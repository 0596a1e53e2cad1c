"""
Tool dispatch table: name -> request model, gateway call, projection.

Each tool's arguments are a pydantic model tagged by a ``tool`` literal; the
union of those models is the only shape :func:`parse_request` produces, so a
request is either fully validated (defaults filled, ids normalized) or
rejected with :class:`InvalidArgumentError` before the gateway is touched.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from yt_mcp.errors import InvalidArgumentError, YtMcpError
from yt_mcp.utils.log_utils import bind, get_logger
from yt_mcp.yt_gateway import YouTubeGateway
from yt_mcp.yt_ids import normalize_playlist_id, normalize_video_id
from yt_mcp.yt_shapers import (
    shape_channel_info,
    shape_channel_search_item,
    shape_many,
    shape_playlist_item,
    shape_video_details,
    shape_video_search_item,
)

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 10
MAX_RESULTS_LIMIT = 50

MAX_RESULTS_HELP = f"Maximum number of results to return (default: {DEFAULT_MAX_RESULTS}, max: {MAX_RESULTS_LIMIT})."


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class _ToolRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)


class _PagedRequest(_ToolRequest):
    max_results: int | None = Field(
        default=None,
        ge=0,
        le=MAX_RESULTS_LIMIT,
        validate_default=True,
        description=MAX_RESULTS_HELP,
    )

    @field_validator("max_results")
    @classmethod
    def _default_max_results(cls, v: int | None) -> int:
        # 0 and "absent" both mean "use the default".
        return v or DEFAULT_MAX_RESULTS


class SearchVideosRequest(_PagedRequest):
    tool: Literal["search_videos"] = "search_videos"
    query: str = Field(min_length=1, description="Search query for videos")
    channel_id: str = Field(default="", description="Optional channel ID to search within")


class GetChannelInfoRequest(_ToolRequest):
    tool: Literal["get_channel_info"] = "get_channel_info"
    channel_id: str = Field(
        default="",
        description="Channel ID to get info for (if empty, uses the authenticated user's channel)",
    )


class GetVideoDetailsRequest(_ToolRequest):
    tool: Literal["get_video_details"] = "get_video_details"
    video_id: str = Field(min_length=1, description="YouTube video ID or video URL")

    @field_validator("video_id")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_video_id(v)


class GetPlaylistItemsRequest(_PagedRequest):
    tool: Literal["get_playlist_items"] = "get_playlist_items"
    playlist_id: str = Field(min_length=1, description="YouTube playlist ID or playlist URL")

    @field_validator("playlist_id")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_playlist_id(v)


class SearchChannelsRequest(_PagedRequest):
    tool: Literal["search_channels"] = "search_channels"
    query: str = Field(min_length=1, description="Search query for channels")


ToolRequest = Annotated[
    Union[
        SearchVideosRequest,
        GetChannelInfoRequest,
        GetVideoDetailsRequest,
        GetPlaylistItemsRequest,
        SearchChannelsRequest,
    ],
    Field(discriminator="tool"),
]

_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(ToolRequest)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _search_videos(gateway: YouTubeGateway, req: SearchVideosRequest) -> list[dict[str, Any]]:
    items = gateway.search_videos(req.query, req.max_results, req.channel_id or None)
    return shape_many(shape_video_search_item, items)


def _get_channel_info(gateway: YouTubeGateway, req: GetChannelInfoRequest) -> dict[str, Any]:
    return dict(shape_channel_info(gateway.get_channel_info(req.channel_id or None)))


def _get_video_details(gateway: YouTubeGateway, req: GetVideoDetailsRequest) -> dict[str, Any]:
    return dict(shape_video_details(gateway.get_video_details(req.video_id)))


def _get_playlist_items(gateway: YouTubeGateway, req: GetPlaylistItemsRequest) -> list[dict[str, Any]]:
    items = gateway.get_playlist_items(req.playlist_id, req.max_results)
    return shape_many(shape_playlist_item, items)


def _search_channels(gateway: YouTubeGateway, req: SearchChannelsRequest) -> list[dict[str, Any]]:
    return shape_many(shape_channel_search_item, gateway.search_channels(req.query, req.max_results))


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """One row of the dispatch table."""

    name: str
    description: str
    request_model: type[_ToolRequest]
    handler: Callable[[YouTubeGateway, Any], Any]
    failure_label: str


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="search_videos",
            description=(
                "Search for YouTube videos based on a query. Accepts query string, optional "
                "max_results (default 10), and optional channel_id to limit search to specific channel."
            ),
            request_model=SearchVideosRequest,
            handler=_search_videos,
            failure_label="failed to search videos",
        ),
        ToolSpec(
            name="get_channel_info",
            description=(
                "Get information about a YouTube channel. Without channel_id, returns the "
                "authenticated user's channel (requires OAuth2)."
            ),
            request_model=GetChannelInfoRequest,
            handler=_get_channel_info,
            failure_label="failed to get channel info",
        ),
        ToolSpec(
            name="get_video_details",
            description="Get detailed information about a YouTube video",
            request_model=GetVideoDetailsRequest,
            handler=_get_video_details,
            failure_label="failed to get video details",
        ),
        ToolSpec(
            name="get_playlist_items",
            description="Get items from a YouTube playlist",
            request_model=GetPlaylistItemsRequest,
            handler=_get_playlist_items,
            failure_label="failed to get playlist items",
        ),
        ToolSpec(
            name="search_channels",
            description="Search for YouTube channels based on a query",
            request_model=SearchChannelsRequest,
            handler=_search_channels,
            failure_label="failed to search channels",
        ),
    )
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolResult:
    """All-or-nothing outcome of one tool call."""

    tool: str
    payload: Any = None
    message: str = ""
    cause: YtMcpError | None = None

    @property
    def ok(self) -> bool:
        return self.cause is None

    def to_text(self) -> str:
        """The JSON text handed back to the protocol client."""
        if not self.ok:
            return self.message
        return json.dumps(self.payload, indent=2, ensure_ascii=False)


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in TOOLS)
        parts.append(f"{loc or 'arguments'}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_request(name: str, arguments: Mapping[str, Any] | None = None):
    """Validate raw arguments for ``name`` into its request model.

    Raises:
        InvalidArgumentError: unknown tool, missing/extra fields, wrong types.
    """
    if name not in TOOLS:
        raise InvalidArgumentError(name, f"unknown tool (known: {', '.join(TOOLS)})")
    if arguments is not None and not isinstance(arguments, Mapping):
        raise InvalidArgumentError(name, "arguments must be an object")

    raw = {k: v for k, v in (arguments or {}).items() if v is not None}
    raw["tool"] = name
    try:
        return _REQUEST_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise InvalidArgumentError(name, _validation_summary(exc)) from exc


def dispatch(gateway: YouTubeGateway, name: str, arguments: Mapping[str, Any] | None = None) -> Any:
    """Validate, call the gateway, and project; errors propagate unchanged."""
    request = parse_request(name, arguments)
    spec = TOOLS[request.tool]
    return spec.handler(gateway, request)


def run_tool(gateway: YouTubeGateway, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
    """Like :func:`dispatch`, but every package error becomes a failed ToolResult."""
    log = bind(logger, tool=name)
    label = TOOLS[name].failure_label if name in TOOLS else f"failed to call {name}"
    try:
        payload = dispatch(gateway, name, arguments)
    except YtMcpError as exc:
        log.warning("⚠️ %s: %s", label, exc)
        return ToolResult(tool=name, message=f"{label}: {exc}", cause=exc)

    count = len(payload) if isinstance(payload, list) else 1
    log.info("✅ %s returned %d record(s)", name, count)
    return ToolResult(tool=name, payload=payload)
