"""
MCP entrypoint: configuration -> credential broker -> gateway -> FastMCP.

Credential acquisition (including the interactive OAuth2 prompt) finishes
before the server starts accepting tool calls. Startup failures exit with
status 1; per-call failures are returned to the client as tool errors.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
import sys
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field

from yt_mcp.config import ServerConfig, load_config, load_config_from_json
from yt_mcp.errors import AuthError, ConfigError
from yt_mcp.utils.log_utils import configure_logging, get_logger
from yt_mcp.yt_auth import acquire
from yt_mcp.yt_gateway import YouTubeGateway
from yt_mcp.yt_tools import MAX_RESULTS_HELP, MAX_RESULTS_LIMIT, TOOLS, run_tool

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_SETUP_ERROR = 1

_READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=True)

USAGE_EXAMPLES = (
    ("Search for videos", "search_videos", '{"query": "golang tutorial", "max_results": 5}'),
    ("Get channel information", "get_channel_info", '{"channel_id": "UCBUKHRdFNRo2gPXRXCKnN7w"}'),
    ("Get video details", "get_video_details", '{"video_id": "dQw4w9WgXcQ"}'),
    ("Get playlist items", "get_playlist_items",
     '{"playlist_id": "PLrAXtmRdnEQy4jrMVwm9wRbWqz4_0dmSh", "max_results": 10}'),
    ("Search for channels", "search_channels", '{"query": "programming", "max_results": 5}'),
)


def build_server(gateway: YouTubeGateway, config: ServerConfig) -> FastMCP:
    """Register the five read-only tools against ``gateway``."""
    server = FastMCP(config.server_name, instructions=config.server_description)
    # FastMCP takes no version argument; the initialize handshake reads it
    # from the low-level server.
    server._mcp_server.version = config.server_version  # pylint: disable=protected-access

    def _call(name: str, **arguments: object) -> str:
        result = run_tool(gateway, name, arguments)
        if not result.ok:
            raise ToolError(result.message) from result.cause
        return result.to_text()

    def _register(name: str):
        return server.tool(name=name, description=TOOLS[name].description, annotations=_READ_ONLY)

    @_register("search_videos")
    def search_videos(
        query: Annotated[str, Field(description="Search query for videos")],
        max_results: Annotated[int, Field(description=MAX_RESULTS_HELP, ge=0, le=MAX_RESULTS_LIMIT)] = 0,
        channel_id: Annotated[str, Field(description="Optional channel ID to search within")] = "",
    ) -> str:
        return _call("search_videos", query=query, max_results=max_results, channel_id=channel_id)

    @_register("get_channel_info")
    def get_channel_info(
        channel_id: Annotated[
            str,
            Field(description="Channel ID to get info for (if empty, uses the authenticated user's channel)"),
        ] = "",
    ) -> str:
        return _call("get_channel_info", channel_id=channel_id)

    @_register("get_video_details")
    def get_video_details(
        video_id: Annotated[str, Field(description="YouTube video ID or video URL")],
    ) -> str:
        return _call("get_video_details", video_id=video_id)

    @_register("get_playlist_items")
    def get_playlist_items(
        playlist_id: Annotated[str, Field(description="YouTube playlist ID or playlist URL")],
        max_results: Annotated[int, Field(description=MAX_RESULTS_HELP, ge=0, le=MAX_RESULTS_LIMIT)] = 0,
    ) -> str:
        return _call("get_playlist_items", playlist_id=playlist_id, max_results=max_results)

    @_register("search_channels")
    def search_channels(
        query: Annotated[str, Field(description="Search query for channels")],
        max_results: Annotated[int, Field(description=MAX_RESULTS_HELP, ge=0, le=MAX_RESULTS_LIMIT)] = 0,
    ) -> str:
        return _call("search_channels", query=query, max_results=max_results)

    return server


def print_usage_examples() -> None:
    print("YouTube MCP Server Usage Examples:\n")
    for i, (title, tool, arguments) in enumerate(USAGE_EXAMPLES, start=1):
        print(f"{i}. {title}:")
        print(f'   {{"method": "tools/call", "params": {{"name": "{tool}", "arguments": {arguments}}}}}\n')


def _explain_missing_credentials(config: ServerConfig, *, json_mode: bool, config_file: str) -> None:
    logger.error("No YouTube API key provided and no OAuth2 credentials file found")
    if json_mode:
        logger.error(
            "Please set youtube_api_key in %s or provide %s", config_file, config.oauth2_credentials_file
        )
        if not Path(config_file).exists():
            try:
                config.save(config_file)
            except OSError as exc:
                logger.warning("⚠️ Failed to create sample config file: %s", exc)
            else:
                logger.info("Created sample configuration file: %s", config_file)
    else:
        logger.error(
            "Please create a .env file with YOUTUBE_API_KEY or provide %s", config.oauth2_credentials_file
        )
        logger.error("Example .env file:\nYOUTUBE_API_KEY=your_api_key_here")
    logger.error("You can create API credentials at: https://console.cloud.google.com/")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yt-mcp-server",
        description="YouTube Data API v3 MCP server (read-only tools).",
    )
    parser.add_argument(
        "--json-config",
        action="store_true",
        help="Use a JSON config file instead of .env / environment variables.",
    )
    parser.add_argument(
        "--config",
        default="config.json",
        help="Configuration file path (only used with --json-config).",
    )
    parser.add_argument(
        "--transport",
        choices=("stdio", "sse", "streamable-http"),
        default="stdio",
        help="MCP transport to serve on (default: stdio).",
    )
    parser.add_argument(
        "--examples",
        action="store_true",
        help="Print example tool calls and exit.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging()

    if args.examples:
        print_usage_examples()
        return EXIT_OK

    try:
        config = load_config_from_json(args.config) if args.json_config else load_config()
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return EXIT_SETUP_ERROR

    if not config.has_credentials():
        _explain_missing_credentials(config, json_mode=args.json_config, config_file=args.config)
        return EXIT_SETUP_ERROR

    try:
        ctx = acquire(config)
    except (ConfigError, AuthError) as exc:
        logger.error("Failed to create YouTube client: %s", exc)
        return EXIT_SETUP_ERROR

    server = build_server(YouTubeGateway(ctx), config)

    logger.info("Starting %s v%s (%s auth)", config.server_name, config.server_version, ctx.mode.value)
    logger.info("Server description: %s", config.server_description)
    server.run(transport=args.transport)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
