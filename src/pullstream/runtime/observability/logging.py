"""Structured logging for producers and stream pipelines.

Entries are an event name plus key-value context. Context comes from three
places, later ones winning: the active `log_context` scope, the logger's bound
context, and the call-site keywords.

Quick Start:
    >>> from pullstream.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json")
    >>> log = get_logger("producer", stream="messages")
    >>> log.info("sent", item="a")
    {"timestamp": "...", "level": "info", "event": "sent", "stream": "messages", "item": "a", "logger": "producer"}
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TextIO, TypeAlias, runtime_checkable

import orjson

from pullstream.foundation.config import get_settings

JsonValue: TypeAlias = "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
JsonDict: TypeAlias = "dict[str, JsonValue]"

_scope: ContextVar[JsonDict] = ContextVar("pullstream_log_scope", default={})

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


# ─────────────────────────────────────────────────────────────────────────────
# Entries
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def when(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)

    @property
    def ts_iso(self) -> str:
        return self.when.isoformat()

    @property
    def ts_human(self) -> str:
        """Wall-clock time with millisecond precision."""
        return self.when.strftime("%H:%M:%S.%f")[:-3]

    def as_record(self) -> JsonDict:
        return {"timestamp": self.ts_iso, "level": self.level, "event": self.event, **self.context}


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_ANSI = {"debug": 34, "info": 32, "warning": 33, "error": 31, "critical": 31, "key": 36, "time": 2, "event": 1}


@dataclass(slots=True)
class ConsoleRenderer:
    """One line per entry: `12:00:00.123 [info] sent item=a n=1`.

    Context keys are sorted; string values containing spaces are quoted.
    A traceback captured by `BoundLogger.exception` follows on its own lines.
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def _paint(self, text: str, style: str) -> str:
        return f"\033[{_ANSI[style]}m{text}\033[0m" if self.colors and style in _ANSI else text

    def render(self, entry: LogEntry) -> None:
        trace = entry.context.get("exc_info")
        words = [self._paint(entry.ts_human, "time")] if self.show_timestamp else []
        words.append(self._paint(f"[{entry.level}]", entry.level))
        words.append(self._paint(entry.event, "event"))
        for key in sorted(k for k in entry.context if k != "exc_info"):
            value = entry.context[key]
            shown = repr(value) if isinstance(value, str) and " " in value else str(value)
            words.append(f"{self._paint(key, 'key')}={shown}")
        self.output.write(" ".join(words) + "\n")
        if trace:
            self.output.write(self._paint(str(trace), "error") + "\n")


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines; values orjson cannot encode are written with str()."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        data = orjson.dumps(entry.as_record(), default=str, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE)
        self.output.write(data.decode())


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


class BoundLogger:
    """Logger carrying immutable context. `bind` and `unbind` return new loggers.

    Example:
        >>> log = get_logger("merge").bind(side="left")
        >>> log.debug("input exhausted", polls=12)
    """

    __slots__ = ("_context", "_level", "_renderer")

    def __init__(self, context: JsonDict | None = None, *, level: int = logging.DEBUG,
                 renderer: LogRenderer | None = None) -> None:
        self._context: JsonDict = dict(context or {})
        self._level = level
        self._renderer = renderer

    @property
    def context(self) -> JsonDict:
        return dict(self._context)

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self._context, **kw}, level=self._level, renderer=self._renderer)

    def unbind(self, *keys: str) -> BoundLogger:
        kept = {k: v for k, v in self._context.items() if k not in keys}
        return BoundLogger(kept, level=self._level, renderer=self._renderer)

    def log(self, level: int, event: str, **kw: JsonValue) -> None:
        if level < self._level:
            return
        entry = LogEntry(time.time(), _LEVEL_NAMES.get(level, "info"), event, {**_scope.get(), **self._context, **kw})
        (self._renderer or _active_renderer()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """Error entry with the traceback of the exception being handled."""
        self.log(logging.ERROR, event, exc_info=traceback.format_exc(), **kw)

    def __repr__(self) -> str:
        return f"BoundLogger({self._context!r})"


@contextmanager
def log_context(**kw: JsonValue) -> Iterator[None]:
    """Add `kw` to every entry logged inside the block, across awaits in the same task."""
    token = _scope.set({**_scope.get(), **kw})
    try:
        yield
    finally:
        _scope.reset(token)


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


_renderer: LogRenderer | None = None
_default_level: int | None = None


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    format: str | None = None,  # noqa: A002
    level: str | None = None,
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the process-wide renderer and level.

    Arguments left as None fall back to settings.logging (PULLSTREAM_LOG_*).
    Loggers created afterwards use the new level; the renderer applies to all.

    Raises:
        ValueError: If format is not console, json or none
    """
    global _renderer, _default_level
    cfg = get_settings().logging
    chosen = format or cfg.format
    if chosen == "console":
        renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=cfg.colors if colors is None else colors)
    elif chosen == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif chosen == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown log format {chosen!r}; expected 'console', 'json' or 'none'")
    _renderer, _default_level = renderer, _parse_level(level or cfg.level)
    return renderer


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Logger with `initial_context` bound; `name` is recorded under the `logger` key."""
    if name:
        initial_context["logger"] = name
    level = _parse_level(get_settings().logging.level) if _default_level is None else _default_level
    return BoundLogger(initial_context, level=level)


def _active_renderer() -> LogRenderer:
    return _renderer if _renderer is not None else configure_logging()
