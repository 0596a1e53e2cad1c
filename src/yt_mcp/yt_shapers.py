"""
Projections from YouTube Data API resources to the records tools return.

Every shaper is total: missing nested fields become "" / 0 / [] and never
raise. Field names are snake_case and stable regardless of which parts the
upstream response actually carried.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypedDict


class VideoSearchRecord(TypedDict):
    video_id: str
    title: str
    description: str
    channel_id: str
    channel_title: str
    published_at: str
    thumbnail_url: str


class ChannelInfoRecord(TypedDict):
    channel_id: str
    title: str
    description: str
    custom_url: str
    published_at: str
    country: str
    thumbnail_url: str
    subscriber_count: int
    video_count: int
    view_count: int


class VideoDetailsRecord(TypedDict):
    video_id: str
    title: str
    description: str
    channel_id: str
    channel_title: str
    published_at: str
    duration: str
    thumbnail_url: str
    view_count: int
    like_count: int
    comment_count: int
    tags: list[str]
    category_id: str


class PlaylistItemRecord(TypedDict):
    video_id: str
    title: str
    description: str
    channel_id: str
    channel_title: str
    published_at: str
    position: int
    thumbnail_url: str


class ChannelSearchRecord(TypedDict):
    channel_id: str
    title: str
    description: str
    published_at: str
    thumbnail_url: str


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _as_int(v: Any) -> int:
    # Statistics arrive as decimal strings ("1234").
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


def _as_str(v: Any) -> str:
    return v if isinstance(v, str) else ""


def _part(resource: Mapping[str, Any] | None, name: str) -> Mapping[str, Any]:
    value = (resource or {}).get(name)
    return value if isinstance(value, Mapping) else {}


def _thumbnail_url(snippet: Mapping[str, Any], size: str = "medium") -> str:
    return _as_str(_part(_part(snippet, "thumbnails"), size).get("url"))


def _tags(snippet: Mapping[str, Any]) -> list[str]:
    tags = snippet.get("tags")
    if not isinstance(tags, list):
        return []
    return [t for t in tags if isinstance(t, str)]


# ---------------------------------------------------------------------------
# Shapers
# ---------------------------------------------------------------------------

def shape_video_search_item(item: Mapping[str, Any] | None) -> VideoSearchRecord:
    snippet = _part(item, "snippet")
    return {
        "video_id": _as_str(_part(item, "id").get("videoId")),
        "title": _as_str(snippet.get("title")),
        "description": _as_str(snippet.get("description")),
        "channel_id": _as_str(snippet.get("channelId")),
        "channel_title": _as_str(snippet.get("channelTitle")),
        "published_at": _as_str(snippet.get("publishedAt")),
        "thumbnail_url": _thumbnail_url(snippet),
    }


def shape_channel_info(channel: Mapping[str, Any] | None) -> ChannelInfoRecord:
    snippet = _part(channel, "snippet")
    stats = _part(channel, "statistics")
    return {
        "channel_id": _as_str((channel or {}).get("id")),
        "title": _as_str(snippet.get("title")),
        "description": _as_str(snippet.get("description")),
        "custom_url": _as_str(snippet.get("customUrl")),
        "published_at": _as_str(snippet.get("publishedAt")),
        "country": _as_str(snippet.get("country")),
        "thumbnail_url": _thumbnail_url(snippet),
        "subscriber_count": _as_int(stats.get("subscriberCount")),
        "video_count": _as_int(stats.get("videoCount")),
        "view_count": _as_int(stats.get("viewCount")),
    }


def shape_video_details(video: Mapping[str, Any] | None) -> VideoDetailsRecord:
    snippet = _part(video, "snippet")
    content = _part(video, "contentDetails")
    stats = _part(video, "statistics")
    return {
        "video_id": _as_str((video or {}).get("id")),
        "title": _as_str(snippet.get("title")),
        "description": _as_str(snippet.get("description")),
        "channel_id": _as_str(snippet.get("channelId")),
        "channel_title": _as_str(snippet.get("channelTitle")),
        "published_at": _as_str(snippet.get("publishedAt")),
        "duration": _as_str(content.get("duration")),
        "thumbnail_url": _thumbnail_url(snippet),
        "view_count": _as_int(stats.get("viewCount")),
        "like_count": _as_int(stats.get("likeCount")),
        "comment_count": _as_int(stats.get("commentCount")),
        "tags": _tags(snippet),
        "category_id": _as_str(snippet.get("categoryId")),
    }


def shape_playlist_item(item: Mapping[str, Any] | None) -> PlaylistItemRecord:
    snippet = _part(item, "snippet")
    content = _part(item, "contentDetails")
    # contentDetails is absent when only the snippet part was requested.
    video_id = content.get("videoId") or _part(snippet, "resourceId").get("videoId")
    return {
        "video_id": _as_str(video_id),
        "title": _as_str(snippet.get("title")),
        "description": _as_str(snippet.get("description")),
        "channel_id": _as_str(snippet.get("channelId")),
        "channel_title": _as_str(snippet.get("channelTitle")),
        "published_at": _as_str(snippet.get("publishedAt")),
        "position": _as_int(snippet.get("position")),
        "thumbnail_url": _thumbnail_url(snippet),
    }


def shape_channel_search_item(item: Mapping[str, Any] | None) -> ChannelSearchRecord:
    snippet = _part(item, "snippet")
    return {
        "channel_id": _as_str(_part(item, "id").get("channelId")),
        "title": _as_str(snippet.get("title")),
        "description": _as_str(snippet.get("description")),
        "published_at": _as_str(snippet.get("publishedAt")),
        "thumbnail_url": _thumbnail_url(snippet),
    }


def shape_many(shaper, items: Iterable[Mapping[str, Any]] | None) -> list[Any]:
    """Apply ``shaper`` element-wise, preserving upstream order."""
    return [shaper(it) for it in (items or [])]
