"""Server configuration: defaults, optional .env / JSON file, environment overrides."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
import json
import os
from pathlib import Path

import dotenv

from yt_mcp.errors import ConfigError
from yt_mcp.utils.log_utils import get_logger

logger = get_logger(__name__)

DEFAULT_CREDENTIALS_FILE = "client_secret.json"
DEFAULT_TOKEN_FILE = "token.json"

#: Environment variable -> ServerConfig field.
ENV_OVERRIDES: dict[str, str] = {
    "YOUTUBE_API_KEY": "youtube_api_key",
    "OAUTH2_CREDENTIALS_FILE": "oauth2_credentials_file",
    "TOKEN_FILE": "token_file",
    "SERVER_NAME": "server_name",
    "SERVER_VERSION": "server_version",
    "SERVER_DESCRIPTION": "server_description",
}


@dataclass(slots=True)
class ServerConfig:
    """Everything the server needs to start."""

    youtube_api_key: str = ""
    oauth2_credentials_file: str = DEFAULT_CREDENTIALS_FILE
    token_file: str = DEFAULT_TOKEN_FILE
    server_name: str = "youtube-mcp-server"
    server_version: str = "1.0.0"
    server_description: str = (
        "YouTube Data API v3 MCP Server for video search, channel info, and more"
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ServerConfig:
        """Build a config from a JSON-style mapping; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            if not isinstance(value, str):
                raise ConfigError(f"config field {key!r} must be a string, got {type(value).__name__}")
            values[key] = value
        return cls(**values)

    def apply_env(self, env: Mapping[str, str] | None = None) -> ServerConfig:
        """Overlay non-empty environment values onto this config (in place)."""
        env = os.environ if env is None else env
        for var, attr in ENV_OVERRIDES.items():
            if value := env.get(var, ""):
                setattr(self, attr, value)
        return self

    def has_credentials(self) -> bool:
        """Pre-flight: an API key is set or the OAuth2 client file exists."""
        return bool(self.youtube_api_key) or Path(self.oauth2_credentials_file).is_file()

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write this config as indented JSON."""
        Path(path).write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")


def load_config(env_file: str = ".env", *, env: Mapping[str, str] | None = None) -> ServerConfig:
    """Load defaults, then a ``.env`` file (optional), then the environment.

    Values already present in the process environment win over the ``.env``
    file, matching python-dotenv's default.
    """
    if env is None:
        env_path = dotenv.find_dotenv(env_file, usecwd=True)
        if env_path and dotenv.load_dotenv(env_path):
            logger.info("Loaded environment from %s", env_path)
        else:
            logger.info("No %s file found; using process environment only", env_file)

    return ServerConfig().apply_env(env)


def load_config_from_json(path: str | Path, *, env: Mapping[str, str] | None = None) -> ServerConfig:
    """Load defaults, overlay a JSON config file when it exists, then the environment.

    A missing file is not an error; an unreadable or malformed one is.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.info("Config file %s not found; using defaults", cfg_path)
        return ServerConfig().apply_env(env)

    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"unable to read config file {cfg_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"config file {cfg_path} must contain a JSON object")

    return ServerConfig.from_mapping(data).apply_env(env)
