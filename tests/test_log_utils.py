from __future__ import annotations

import logging

from yt_mcp.utils.log_utils import bind, format_tree, get_logger, log_tree


def test_loggers_share_project_root():
    assert get_logger("yt_mcp.yt_gateway").name == "yt_mcp.yt_gateway"
    assert get_logger("other.module").name == "yt_mcp.other.module"
    assert get_logger("__main__").name == "yt_mcp"


def test_bind_adds_context(caplog):
    log = bind(get_logger("yt_mcp.test"), tool="search_videos")
    with caplog.at_level(logging.INFO, logger="yt_mcp.test"):
        log.info("hello")
    assert caplog.records[0].tool == "search_videos"


def test_format_tree_summarizes_resources_and_redacts():
    payload = {
        "kind": "youtube#video",
        "id": "dQw4w9WgXcQ",
        "snippet": {"title": "Song", "thumbnails": {"medium": {"url": "u"}}},
        "access_token": "secret",
    }
    rendered = format_tree(payload, collapse_keys={"thumbnails"}, redact_keys={"access_token"})

    assert rendered.splitlines()[0] == "youtube#video dQw4w9WgXcQ title=Song"
    assert "access_token: <redacted>" in rendered
    assert "thumbnails: <collapsed dict keys=1>" in rendered
    assert "secret" not in rendered


def test_log_tree_always_redacts_secret_keys(caplog):
    log = get_logger("yt_mcp.tree")
    with caplog.at_level(logging.DEBUG, logger="yt_mcp.tree"):
        log_tree(log, logging.DEBUG, "token", {"refresh_token": "r-123", "expiry": "2030"})
    assert "r-123" not in caplog.text
    assert "expiry: 2030" in caplog.text
