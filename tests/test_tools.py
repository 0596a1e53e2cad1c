"""Dispatch table tests: validation, default filling, projection, failure results."""

from __future__ import annotations

import json
import typing
from unittest.mock import Mock

import pytest

from yt_mcp.errors import InvalidArgumentError, NotFoundError, UpstreamError
from yt_mcp.yt_tools import (
    DEFAULT_MAX_RESULTS,
    TOOLS,
    GetVideoDetailsRequest,
    ToolRequest,
    dispatch,
    parse_request,
    run_tool,
)


@pytest.fixture
def gateway():
    gw = Mock(name="gateway")
    gw.search_videos.return_value = []
    gw.search_channels.return_value = []
    gw.get_playlist_items.return_value = []
    return gw


def test_dispatch_table_covers_every_request_variant():
    union = typing.get_args(ToolRequest)[0]
    tags = {typing.get_args(model.model_fields["tool"].annotation)[0] for model in typing.get_args(union)}
    assert tags == set(TOOLS)
    for name, spec in TOOLS.items():
        assert spec.request_model.model_fields["tool"].default == name


@pytest.mark.parametrize("tool,extra", [
    ("search_videos", {"query": "q"}),
    ("get_playlist_items", {"playlist_id": "PLabcdefghijkl"}),
    ("search_channels", {"query": "q"}),
])
@pytest.mark.parametrize("max_results", [None, 0, "absent"])
def test_max_results_defaults_to_ten(tool, extra, max_results):
    args = dict(extra)
    if max_results != "absent":
        args["max_results"] = max_results

    assert parse_request(tool, args).max_results == DEFAULT_MAX_RESULTS == 10


def test_default_reaches_gateway(gateway):
    dispatch(gateway, "search_channels", {"query": "programming"})
    gateway.search_channels.assert_called_once_with("programming", 10)

    dispatch(gateway, "get_playlist_items", {"playlist_id": "PLabcdefghijkl", "max_results": 0})
    gateway.get_playlist_items.assert_called_once_with("PLabcdefghijkl", 10)


def test_search_videos_scenario(gateway, sample_video_search_response):
    gateway.search_videos.return_value = sample_video_search_response["items"]

    result = run_tool(gateway, "search_videos", {"query": "golang tutorial", "max_results": 5})

    gateway.search_videos.assert_called_once_with("golang tutorial", 5, None)
    assert result.ok
    records = json.loads(result.to_text())
    assert isinstance(records, list) and len(records) <= 5
    for rec in records:
        assert {"video_id", "title", "channel_id", "published_at", "thumbnail_url"} <= rec.keys()


def test_channel_id_passed_when_present(gateway):
    dispatch(gateway, "search_videos", {"query": "go", "channel_id": "UCaaaaaaaaaaaaaaaaaaaaaa"})
    gateway.search_videos.assert_called_once_with("go", 10, "UCaaaaaaaaaaaaaaaaaaaaaa")


@pytest.mark.parametrize("tool,args", [
    ("search_videos", {}),
    ("search_videos", {"query": "   "}),
    ("search_videos", {"query": "q", "max_results": 51}),
    ("search_videos", {"query": "q", "max_results": -1}),
    ("search_videos", {"query": "q", "max_results": "many"}),
    ("get_video_details", {}),
    ("get_video_details", {"video_id": 123}),
    ("get_playlist_items", {"max_results": 5}),
    ("search_channels", {"query": "q", "unexpected": True}),
])
def test_invalid_arguments_never_reach_gateway(gateway, tool, args):
    with pytest.raises(InvalidArgumentError) as excinfo:
        dispatch(gateway, tool, args)

    assert excinfo.value.tool == tool
    assert not gateway.method_calls


def test_unknown_tool_is_invalid(gateway):
    with pytest.raises(InvalidArgumentError):
        dispatch(gateway, "delete_video", {"video_id": "x"})


def test_video_url_is_normalized_to_id():
    req = parse_request("get_video_details", {"video_id": "https://youtu.be/dQw4w9WgXcQ?t=42"})
    assert isinstance(req, GetVideoDetailsRequest)
    assert req.video_id == "dQw4w9WgXcQ"


def test_playlist_url_is_normalized_to_id():
    req = parse_request(
        "get_playlist_items",
        {"playlist_id": "https://www.youtube.com/playlist?list=PLrAXtmRdnEQy4jrMVwm9wRbWqz4_0dmSh"},
    )
    assert req.playlist_id == "PLrAXtmRdnEQy4jrMVwm9wRbWqz4_0dmSh"


def test_get_channel_info_without_id_asks_for_mine(gateway, sample_channel_resource):
    gateway.get_channel_info.return_value = sample_channel_resource

    record = dispatch(gateway, "get_channel_info", {})

    gateway.get_channel_info.assert_called_once_with(None)
    assert record["subscriber_count"] == 1200


def test_video_details_is_single_object(gateway, sample_video_resource):
    gateway.get_video_details.return_value = sample_video_resource

    text = run_tool(gateway, "get_video_details", {"video_id": "dQw4w9WgXcQ"}).to_text()

    assert json.loads(text)["title"] == "Never Gonna Give You Up"


def test_not_found_becomes_failed_result(gateway):
    gateway.get_video_details.side_effect = NotFoundError("error getting video details", "video", "xxxxxxxxxxx")

    result = run_tool(gateway, "get_video_details", {"video_id": "xxxxxxxxxxx"})

    assert not result.ok
    assert isinstance(result.cause, NotFoundError)
    assert result.payload is None
    assert result.message.startswith("failed to get video details: error getting video details")


def test_upstream_error_becomes_failed_result(gateway):
    gateway.search_channels.side_effect = UpstreamError("error searching channels", "HTTP 403: quota")

    result = run_tool(gateway, "search_channels", {"query": "x"})

    assert not result.ok
    assert result.message == "failed to search channels: error searching channels: HTTP 403: quota"


def test_invalid_arguments_become_failed_result(gateway):
    result = run_tool(gateway, "search_videos", {"max_results": 3})

    assert isinstance(result.cause, InvalidArgumentError)
    assert "query" in result.message


def test_empty_playlist_is_success(gateway):
    result = run_tool(gateway, "get_playlist_items", {"playlist_id": "PLunknownunknown"})
    assert result.ok
    assert result.to_text() == "[]"
