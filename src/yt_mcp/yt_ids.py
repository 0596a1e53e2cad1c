"""Recognize YouTube ids inside URLs so tools accept either form."""

from __future__ import annotations

import re
from typing import Final
from urllib.parse import parse_qs, urlparse

_VIDEO_ID_RE: Final = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PLAYLIST_ID_RE: Final = re.compile(r"^(PL|UU|LL|FL|OL|RD|WL)[A-Za-z0-9_-]{10,200}$")


def is_video_id(value: str) -> bool:
    return _VIDEO_ID_RE.fullmatch(value) is not None


def is_playlist_id(value: str) -> bool:
    return _PLAYLIST_ID_RE.fullmatch(value) is not None


def extract_video_id(text: str) -> str | None:
    """Extract a video id from a URL or return the input if it is already a video id."""
    if is_video_id(text):
        return text

    parsed = urlparse(text)
    host = (parsed.netloc or "").lower()
    path = parsed.path or ""

    # youtu.be/<id>
    if host.endswith("youtu.be"):
        vid = path.lstrip("/").split("/", 1)[0]
        return vid if is_video_id(vid) else None

    # youtube.com/watch?v=<id>
    if path == "/watch":
        vid = (parse_qs(parsed.query).get("v") or [None])[0]
        return vid if isinstance(vid, str) and is_video_id(vid) else None

    # youtube.com/shorts/<id>, youtube.com/embed/<id>, youtube.com/live/<id>
    for prefix in ("/shorts/", "/embed/", "/live/"):
        if path.startswith(prefix):
            vid = path.removeprefix(prefix).split("/", 1)[0]
            return vid if is_video_id(vid) else None

    return None


def extract_playlist_id(text: str) -> str | None:
    """Extract a playlist id from a URL or return the input if it is already a playlist id."""
    if is_playlist_id(text):
        return text

    parsed = urlparse(text)
    pid = (parse_qs(parsed.query).get("list") or [None])[0]
    return pid if isinstance(pid, str) and is_playlist_id(pid) else None


def normalize_video_id(raw: str) -> str:
    """Video id from an id or URL; unrecognized input is returned trimmed."""
    text = raw.strip()
    return extract_video_id(text) or text


def normalize_playlist_id(raw: str) -> str:
    """Playlist id from an id or URL; unrecognized input is returned trimmed."""
    text = raw.strip()
    return extract_playlist_id(text) or text
