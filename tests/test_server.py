"""Protocol binding and process bootstrap."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import Mock

import pytest
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from yt_mcp import yt_server
from yt_mcp.config import ServerConfig
from yt_mcp.errors import AuthError
from yt_mcp.yt_auth import AuthMode, YouTubeContext
from yt_mcp.yt_gateway import YouTubeGateway
from yt_mcp.yt_server import EXIT_OK, EXIT_SETUP_ERROR, build_server, main
from yt_mcp.yt_tools import TOOLS


def _text(result) -> str:
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


@pytest.fixture
def server(mock_service):
    gateway = YouTubeGateway(YouTubeContext(service=mock_service, mode=AuthMode.api_key))
    return build_server(gateway, ServerConfig(server_name="yt-test"))


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for var in ("YOUTUBE_API_KEY", "OAUTH2_CREDENTIALS_FILE", "TOKEN_FILE"):
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_all_tools_registered_read_only(server):
    tools = asyncio.run(server.list_tools())

    assert {t.name for t in tools} == set(TOOLS)
    for tool in tools:
        assert tool.annotations.readOnlyHint is True
    search = next(t for t in tools if t.name == "search_videos")
    assert search.inputSchema["required"] == ["query"]


def test_initialize_advertises_configured_name_and_version(mock_service):
    gateway = YouTubeGateway(YouTubeContext(service=mock_service, mode=AuthMode.api_key))
    server = build_server(gateway, ServerConfig(server_name="yt-test", server_version="2.3.4"))

    options = server._mcp_server.create_initialization_options()

    assert options.server_name == "yt-test"
    assert options.server_version == "2.3.4"


def test_call_returns_json_text(server, mock_service, sample_video_search_response):
    mock_service.search.return_value.list.return_value.execute.return_value = sample_video_search_response

    result = asyncio.run(server.call_tool("search_videos", {"query": "golang tutorial", "max_results": 5}))

    records = json.loads(_text(result))
    assert [r["video_id"] for r in records] == ["vid00000001", "vid00000002"]
    assert mock_service.search.return_value.list.call_args.kwargs["maxResults"] == 5


def test_call_defaults_max_results(server, mock_service):
    mock_service.search.return_value.list.return_value.execute.return_value = {"items": []}

    asyncio.run(server.call_tool("search_channels", {"query": "programming"}))

    assert mock_service.search.return_value.list.call_args.kwargs["maxResults"] == 10


def test_failed_call_is_tool_error(server, mock_service):
    mock_service.videos.return_value.list.return_value.execute.return_value = {"items": []}

    with pytest.raises(ToolError, match="failed to get video details"):
        asyncio.run(server.call_tool("get_video_details", {"video_id": "dQw4w9WgXcQ"}))


def test_examples_flag(capsys):
    assert main(["--examples"]) == EXIT_OK
    out = capsys.readouterr().out
    for name in TOOLS:
        assert name in out


def test_missing_credentials_exits_nonzero(clean_env):
    assert main([]) == EXIT_SETUP_ERROR


def test_missing_credentials_json_mode_writes_sample(clean_env):
    config_path = clean_env / "config.json"

    assert main(["--json-config", "--config", str(config_path)]) == EXIT_SETUP_ERROR
    assert json.loads(config_path.read_text())["token_file"] == "token.json"


def test_malformed_json_config_exits_nonzero(clean_env):
    config_path = clean_env / "config.json"
    config_path.write_text("{oops")

    assert main(["--json-config", "--config", str(config_path)]) == EXIT_SETUP_ERROR


def test_auth_failure_exits_nonzero(clean_env, monkeypatch):
    monkeypatch.setenv("YOUTUBE_API_KEY", "AIza")

    def failing_acquire(config):
        raise AuthError("unable to retrieve token from web")

    monkeypatch.setattr(yt_server, "acquire", failing_acquire)

    assert main(["--json-config", "--config", str(clean_env / "none.json")]) == EXIT_SETUP_ERROR


def test_successful_start_runs_server(clean_env, monkeypatch):
    monkeypatch.setenv("YOUTUBE_API_KEY", "AIza")
    ctx = YouTubeContext(service=Mock(), mode=AuthMode.api_key)
    monkeypatch.setattr(yt_server, "acquire", lambda config: ctx)
    run = Mock()
    monkeypatch.setattr(FastMCP, "run", run)

    assert main(["--json-config", "--config", str(clean_env / "none.json")]) == EXIT_OK
    run.assert_called_once_with(transport="stdio")
