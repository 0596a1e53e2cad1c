"""
Credential broker for the YouTube Data API.

Resolution order (first success wins, decided once per process):
  1) API key from configuration -> anonymous, key-authenticated service.
  2) OAuth2 client-secrets file + cached token (``token_file``).
  3) OAuth2 client-secrets file + interactive authorization-code exchange;
     the resulting token is written to ``token_file`` for the next start.

The cached token is used as-is. google-auth refreshes an expired access
token on the first request that needs it; a token the upstream rejects
surfaces as an :class:`~yt_mcp.errors.UpstreamError` from that call.

Every failure in steps 2-3 is raised as :class:`ConfigError` or
:class:`AuthError`, which the server entrypoint treats as fatal.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import json
import os
from pathlib import Path
import re
import secrets
import sys
import threading
from typing import Any

import google_auth_httplib2
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
import httplib2

from yt_mcp.config import ServerConfig
from yt_mcp.errors import AuthError, ConfigError
from yt_mcp.utils.log_utils import get_logger

logger = get_logger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/youtube.readonly"]
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
AUTH_STATE = "state-token"

_CLIENT_REQUIRED_KEYS = ("client_id", "client_secret", "auth_uri", "token_uri")
# Some RFC 3339 writers emit nanoseconds; datetime keeps microseconds.
_EXCESS_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
# Go's oauth2.Token writes "never expires" as the zero time 0001-01-01T00:00:00Z.
_EPOCH = datetime(1970, 1, 1)

# The interactive exchange blocks on stdin; only one may run at a time.
_AUTH_LOCK = threading.Lock()


class AuthMode(str, Enum):
    api_key = "api_key"
    oauth2 = "oauth2"


@dataclass(frozen=True, slots=True)
class YouTubeContext:
    """The one authenticated handle a server process uses for its lifetime."""

    service: Any
    mode: AuthMode
    credentials: Credentials | None = None

    @property
    def has_user_identity(self) -> bool:
        """True when "mine" lookups can resolve to an authenticated channel."""
        return self.mode is AuthMode.oauth2

    def new_http(self) -> httplib2.Http:
        """Return a fresh transport for one request.

        httplib2 connections are not thread-safe, so each upstream call gets
        its own; OAuth2 transports share the same credentials object.
        """
        http = httplib2.Http()
        if self.credentials is None:
            return http
        return google_auth_httplib2.AuthorizedHttp(self.credentials, http=http)


ServiceBuilder = Callable[..., Any]
FlowFactory = Callable[..., Any]


def build_youtube_service(*, developer_key: str | None = None, credentials: Credentials | None = None):
    """Build a youtube/v3 discovery client from the bundled discovery document."""
    return build(
        "youtube",
        "v3",
        developerKey=developer_key,
        credentials=credentials,
        cache_discovery=False,
    )


def _print_stderr(message: str) -> None:
    # stdout belongs to the stdio transport.
    print(message, file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# Client descriptor (client_secret.json)
# ---------------------------------------------------------------------------

def load_client_config(path: str | Path) -> dict[str, Any]:
    """Read and sanity-check a Google OAuth2 client-secrets file.

    Raises:
        ConfigError: the file is missing, unreadable, not JSON, or lacks the
            ``installed``/``web`` section and its endpoint fields.
    """
    secrets_path = Path(path)
    try:
        data = json.loads(secrets_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"unable to read client secret file {secrets_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"unable to parse client secret file {secrets_path}: {exc}") from exc

    section = client_section(data) if isinstance(data, dict) else None
    if section is None:
        raise ConfigError(
            f"unable to parse client secret file {secrets_path}: expected an 'installed' or 'web' object"
        )

    missing = [k for k in _CLIENT_REQUIRED_KEYS if not section.get(k)]
    if missing:
        raise ConfigError(f"client secret file {secrets_path} is missing {', '.join(missing)}")

    return data


def client_section(client_config: dict[str, Any]) -> dict[str, Any] | None:
    for key in ("installed", "web"):
        section = client_config.get(key)
        if isinstance(section, dict):
            return section
    return None


# ---------------------------------------------------------------------------
# Token cache (token.json)
# ---------------------------------------------------------------------------

def _parse_expiry(raw: object) -> datetime | None:
    """RFC 3339 -> naive UTC datetime (the form google-auth compares against).

    Pre-epoch values (the zero time in particular) mean "no expiry" and
    map to None.
    """
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise ValueError(f"expiry must be a string, got {type(raw).__name__}")
    text = _EXCESS_FRACTION_RE.sub(r"\1", raw.strip().replace("Z", "+00:00"))
    parsed = datetime.fromisoformat(text)
    if parsed.replace(tzinfo=None) < _EPOCH:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _format_expiry(expiry: datetime | None) -> str | None:
    if expiry is None:
        return None
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def read_token_cache(path: str | Path, client_config: dict[str, Any]) -> Credentials | None:
    """Return credentials from a cached token, or None when no cache exists.

    Accepts the ``access_token``/``refresh_token``/``expiry``/``token_type``
    record written by :func:`write_token_cache` as well as google-auth's own
    ``Credentials.to_json()`` shape (``token`` instead of ``access_token``).

    Raises:
        AuthError: the cache exists but cannot be parsed.
    """
    token_path = Path(path)
    if not token_path.exists():
        return None

    try:
        data = json.loads(token_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise AuthError(f"unable to read cached token {token_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise AuthError(f"cached token {token_path} is not a JSON object")

    access_token = data.get("access_token") or data.get("token")
    refresh_token = data.get("refresh_token")
    if not access_token and not refresh_token:
        raise AuthError(f"cached token {token_path} has neither an access nor a refresh token")

    try:
        expiry = _parse_expiry(data.get("expiry"))
    except ValueError as exc:
        raise AuthError(f"cached token {token_path} has an invalid expiry: {exc}") from exc

    section = client_section(client_config) or {}
    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=section.get("token_uri"),
        client_id=section.get("client_id"),
        client_secret=section.get("client_secret"),
        scopes=SCOPES,
        expiry=expiry,
    )


def write_token_cache(path: str | Path, credentials: Credentials) -> None:
    """Atomically persist the token record; the file is readable by the owner only."""
    token_path = Path(path)
    record = {
        "access_token": credentials.token,
        "token_type": "Bearer",
        "refresh_token": credentials.refresh_token,
        "expiry": _format_expiry(credentials.expiry),
    }

    token_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = token_path.with_name(f".{token_path.name}.tmp.{os.getpid()}.{secrets.token_hex(6)}")
    try:
        tmp_path.write_text(json.dumps(record, indent=2) + "\n", encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, token_path)
    finally:
        tmp_path.unlink(missing_ok=True)
    logger.info("💾 Saved credential file to %s", token_path)


# ---------------------------------------------------------------------------
# Interactive authorization-code exchange
# ---------------------------------------------------------------------------

def authorize_interactively(
    client_config: dict[str, Any],
    token_path: str | Path,
    *,
    flow_factory: FlowFactory = InstalledAppFlow.from_client_config,
    prompt: Callable[[], str] = input,
    out: Callable[[str], None] = _print_stderr,
) -> Credentials:
    """Run the console authorization-code flow and cache the resulting token.

    Blocks until the operator pastes a code; there is no timeout.
    """
    section = client_section(client_config) or {}
    redirect_uri = (section.get("redirect_uris") or [OOB_REDIRECT_URI])[0]
    flow = flow_factory(client_config, scopes=SCOPES, redirect_uri=redirect_uri)

    auth_url, _state = flow.authorization_url(
        access_type="offline",
        prompt="consent",
        state=AUTH_STATE,
    )
    out("Go to the following link in your browser then type the authorization code:")
    out(auth_url)

    try:
        code = prompt().strip()
    except (EOFError, KeyboardInterrupt) as exc:
        raise AuthError("unable to read authorization code") from exc
    if not code:
        raise AuthError("unable to read authorization code: empty input")

    try:
        flow.fetch_token(code=code)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise AuthError(f"unable to retrieve token from web: {exc}") from exc

    credentials = flow.credentials
    try:
        write_token_cache(token_path, credentials)
    except OSError as exc:
        raise AuthError(f"unable to cache oauth token: {exc}") from exc
    return credentials


def oauth2_credentials(
    config: ServerConfig,
    *,
    flow_factory: FlowFactory = InstalledAppFlow.from_client_config,
    prompt: Callable[[], str] = input,
    out: Callable[[str], None] = _print_stderr,
) -> Credentials:
    """Cached token if there is one, otherwise the interactive exchange."""
    client_config = load_client_config(config.oauth2_credentials_file)

    credentials = read_token_cache(config.token_file, client_config)
    if credentials is not None:
        logger.info("✅ Using cached OAuth2 token from %s", config.token_file)
        return credentials

    logger.info("No cached token at %s; starting interactive authorization", config.token_file)
    with _AUTH_LOCK:
        return authorize_interactively(
            client_config,
            config.token_file,
            flow_factory=flow_factory,
            prompt=prompt,
            out=out,
        )


def acquire(
    config: ServerConfig,
    *,
    build_service: ServiceBuilder = build_youtube_service,
    flow_factory: FlowFactory = InstalledAppFlow.from_client_config,
    prompt: Callable[[], str] = input,
    out: Callable[[str], None] = _print_stderr,
) -> YouTubeContext:
    """Resolve the authentication mode and return the process-wide handle.

    An API key wins whenever one is configured and the service builds with
    it; OAuth2 is only attempted otherwise.

    Raises:
        ConfigError: OAuth2 is needed and the client-secrets file is bad.
        AuthError: token cache, authorization exchange, or service
            construction failed.
    """
    if config.youtube_api_key:
        try:
            service = build_service(developer_key=config.youtube_api_key)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("⚠️ Failed to create service with API key: %s; trying OAuth2", exc)
        else:
            logger.info("✅ Using API-key authentication")
            return YouTubeContext(service=service, mode=AuthMode.api_key)

    credentials = oauth2_credentials(config, flow_factory=flow_factory, prompt=prompt, out=out)
    try:
        service = build_service(credentials=credentials)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise AuthError(f"failed to create YouTube service: {exc}") from exc

    logger.info("✅ Using OAuth2 authentication")
    return YouTubeContext(service=service, mode=AuthMode.oauth2, credentials=credentials)
