"""Logging policy for the YouTube MCP server.

The stdio transport owns stdout, so every handler configured here writes to
stderr or to a rotating log file.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any


# -----------------------------------------------------------------------------
# Public: Logger factory + configuration
# -----------------------------------------------------------------------------

_DEFAULT_ROOT = os.environ.get("MCP_LOG_ROOT", "yt_mcp")
_DEFAULT_LEVEL = os.environ.get("MCP_LOG_LEVEL", "INFO").upper()

#: Keys whose values never reach a log line.
SECRET_KEYS: frozenset[str] = frozenset({
    "key",
    "api_key",
    "youtube_api_key",
    "token",
    "access_token",
    "refresh_token",
    "client_secret",
})


def _default_log_file() -> Path | None:
    raw = os.environ.get("MCP_LOG_FILE", "").strip()
    return Path(raw).expanduser() if raw else None


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Central logging policy for the whole server."""

    root: str = _DEFAULT_ROOT
    level: str = _DEFAULT_LEVEL
    fmt: str = "%(asctime)s %(levelname)s %(name)s%(context)s %(message)s"
    datefmt: str = "%H:%M:%S"

    log_file: Path | None = field(default_factory=_default_log_file)
    rotate_max_bytes: int = 5_000_000  # 5 MB
    rotate_backup_count: int = 5

    # Tree rendering defaults (used by log_tree)
    tree_indent: int = 2
    tree_max_depth: int = 10
    tree_max_items: int = 50
    tree_max_str: int = 220


class ContextAdapter(logging.LoggerAdapter):
    """Inject context values (tool, operation, ...) into each LogRecord."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.setdefault("extra", {})
        if not isinstance(extra, dict):
            extra = {}
            kwargs["extra"] = extra
        extra |= self.extra
        return msg, kwargs


def configure_logging(cfg: LogConfig | None = None, *, force: bool = False) -> None:
    """Attach a stderr handler (and optionally a rotating file) to the root logger.

    Safe to call more than once: named handlers are not duplicated unless
    ``force`` is set, in which case existing handlers are dropped first.
    """
    cfg = cfg or LogConfig()
    root_logger = logging.getLogger()

    level = _parse_level(cfg.level)
    root_logger.setLevel(level)

    if force:
        root_logger.handlers.clear()

    formatter = _ContextFormatter(cfg.fmt, datefmt=cfg.datefmt)

    have_console = any(getattr(h, "name", "") == "mcp_console" for h in root_logger.handlers)
    have_file = any(getattr(h, "name", "") == "mcp_file" for h in root_logger.handlers)

    if not have_console:
        ch = logging.StreamHandler(stream=sys.stderr)
        ch.name = "mcp_console"
        ch.setLevel(level)
        ch.setFormatter(formatter)
        root_logger.addHandler(ch)

    if cfg.log_file and not have_file:
        cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            cfg.log_file,
            maxBytes=cfg.rotate_max_bytes,
            backupCount=cfg.rotate_backup_count,
            encoding="utf-8",
        )
        fh.name = "mcp_file"
        fh.setLevel(level)
        fh.setFormatter(formatter)
        root_logger.addHandler(fh)

    # googleapiclient logs every discovery lookup at INFO.
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(
    name: str,
    *,
    cfg: LogConfig | None = None,
    **context: object,
) -> logging.Logger:
    """Return a logger under the project root namespace.

    Extra keyword arguments become structured context rendered as
    ``[key=value ...]`` after the logger name.
    """
    cfg = cfg or LogConfig()

    base = logging.getLogger(_normalize_name(name, root=cfg.root))
    return ContextAdapter(base, context) if context else base


def bind(logger: logging.Logger, **context: object) -> logging.Logger:
    """Add/override context on an existing logger."""
    if isinstance(logger, ContextAdapter):
        merged = dict(logger.extra)
        merged |= context
        return ContextAdapter(logger.logger, merged)
    return ContextAdapter(logger, context)


# -----------------------------------------------------------------------------
# Public: Tree logging for upstream payloads and normalized records
# -----------------------------------------------------------------------------

def log_tree(
    logger: logging.Logger,
    level: int,
    label: str,
    obj: object,
    *,
    cfg: LogConfig | None = None,
    collapse_keys: set[str] | None = None,
    redact_keys: set[str] | None = None,
) -> None:
    """Log a nested dict/list payload as an indented tree.

    Secret keys are always redacted; ``redact_keys`` adds to that set.
    """
    if not logger.isEnabledFor(level):
        return

    cfg = cfg or LogConfig()
    rendered = format_tree(
        obj,
        indent=cfg.tree_indent,
        max_depth=cfg.tree_max_depth,
        max_items=cfg.tree_max_items,
        max_str=cfg.tree_max_str,
        collapse_keys=collapse_keys or {"localized", "thumbnails"},
        redact_keys=set(SECRET_KEYS) | (redact_keys or set()),
    )
    logger.log(level, "%s\n%s", label, rendered)


def format_tree(
    obj: object,
    *,
    indent: int = 2,
    max_depth: int = 10,
    max_items: int = 50,
    max_str: int = 500,
    collapse_keys: set[str] | None = None,
    redact_keys: set[str] | None = None,
) -> str:
    """Return an indented tree view of nested dict/list structures.

    Upstream resources carry a ``kind`` such as ``youtube#video``; those get a
    one-line summary header before their fields.
    """
    collapse_keys = collapse_keys or set()
    redact_keys = redact_keys or set()

    seen: set[int] = set()
    lines: list[str] = []

    def _short(v: object) -> str:
        if isinstance(v, str):
            s = v.replace("\n", "\\n")
            return s if len(s) <= max_str else f"{s[: max_str - 1]}…"
        r = repr(v)
        return r if len(r) <= max_str else f"{r[: max_str - 1]}…"

    def _is_seq(v: object) -> bool:
        return isinstance(v, Sequence) and not isinstance(v, (str, bytes, bytearray))

    def _collapsed_hint(v: object) -> str:
        if isinstance(v, Mapping):
            return f"<collapsed dict keys={len(v)}>"
        return f"<collapsed list items={len(v)}>"  # type: ignore[arg-type]

    def _kind_summary(d: Mapping[object, object]) -> str | None:
        kind = d.get("kind")
        if not isinstance(kind, str) or not kind.startswith("youtube#"):
            return None
        snippet = d.get("snippet")
        title = snippet.get("title", "") if isinstance(snippet, Mapping) else ""
        rid = d.get("id", "")
        if isinstance(rid, Mapping):
            rid = rid.get("videoId") or rid.get("channelId") or rid.get("playlistId") or ""
        return f"{kind} {rid!s} title={_short(title)}"

    def _walk(v: object, prefix: str, depth: int) -> None:
        if depth >= max_depth:
            lines.append(f"{prefix}<max_depth {max_depth} reached>")
            return

        if isinstance(v, Mapping):
            vid = id(v)
            if vid in seen:
                lines.append(f"{prefix}<cycle dict id={vid}>")
                return
            seen.add(vid)

            header = _kind_summary(v)
            if header is not None:
                lines.append(f"{prefix}{header}")
                child_prefix = prefix + " " * indent
            else:
                child_prefix = prefix

            keys = list(v.keys())
            for shown, k in enumerate(keys):
                if shown >= max_items:
                    lines.append(f"{child_prefix}  <{len(keys) - shown} more keys>")
                    break

                key = str(k)
                val = v.get(k)

                if key in redact_keys:
                    lines.append(f"{child_prefix}{key}: <redacted>")
                elif key in collapse_keys and (isinstance(val, Mapping) or _is_seq(val)):
                    lines.append(f"{child_prefix}{key}: {_collapsed_hint(val)}")
                elif isinstance(val, Mapping) or _is_seq(val):
                    lines.append(f"{child_prefix}{key}:")
                    _walk(val, child_prefix + " " * indent, depth + 1)
                else:
                    lines.append(f"{child_prefix}{key}: {_short(val)}")
            return

        if _is_seq(v):
            vid = id(v)
            if vid in seen:
                lines.append(f"{prefix}<cycle seq id={vid}>")
                return
            seen.add(vid)

            n = len(v)  # type: ignore[arg-type]
            limit = min(n, max_items)
            for i in range(limit):
                item = v[i]  # type: ignore[index]
                if isinstance(item, Mapping) or _is_seq(item):
                    lines.append(f"{prefix}[{i}]:")
                    _walk(item, prefix + " " * indent, depth + 1)
                else:
                    lines.append(f"{prefix}[{i}]: {_short(item)}")

            if n > limit:
                lines.append(f"{prefix}  <{n - limit} more items>")
            return

        lines.append(f"{prefix}{_short(v)}")

    _walk(obj, "", 0)
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Internals
# -----------------------------------------------------------------------------

class _ContextFormatter(logging.Formatter):
    """Adds %(context)s to the record based on any extra keys in the record."""

    _KNOWN_STD = {
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "asctime", "taskName", "message", "context",
    }

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            k: v for k, v in record.__dict__.items()
            if k not in self._KNOWN_STD and not k.startswith("_")
        }
        if extras:
            parts = " ".join(f"{k}={_safe_value(v)}" for k, v in sorted(extras.items()))
            record.context = f" [{parts}]"
        else:
            record.context = ""
        return super().format(record)


def _safe_value(v: object) -> str:
    try:
        s = str(v)
    except Exception as e:  # pylint: disable=broad-exception-caught
        return f"<str failed: {type(e).__name__}: {e}>"
    return s.replace("\n", "\\n")


def _normalize_name(name: str, *, root: str) -> str:
    base = root if name == "__main__" else name
    base = base.removeprefix("src.")

    if base.startswith(root + ".") or base == root:
        return base
    return f"{root}.{base}"


def _parse_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO
