"""Tests for structured logging: renderers, bound context and producer reports."""

from __future__ import annotations

import asyncio
import io

import orjson
import pytest

from pullstream import configure_logging, get_logger, spawn
from pullstream.runtime.observability import ConsoleRenderer, LogEntry, NoOpRenderer, log_context
from pullstream.runtime.observability import logging as structured


@pytest.fixture
def json_log(monkeypatch: pytest.MonkeyPatch) -> io.StringIO:
    """Route structured logging to an in-memory JSON Lines buffer for one test."""
    monkeypatch.setattr(structured, "_renderer", None)
    monkeypatch.setattr(structured, "_default_level", None)
    buf = io.StringIO()
    configure_logging("json", "DEBUG", output=buf)
    return buf


def _lines(buf: io.StringIO) -> list[dict]:
    return [orjson.loads(line) for line in buf.getvalue().splitlines()]


def test_json_entry_has_bound_context(json_log: io.StringIO) -> None:
    get_logger("test", stream="messages").bind(n=1).info("sent", item="a")
    (entry,) = _lines(json_log)
    assert entry["event"] == "sent"
    assert entry["level"] == "info"
    assert entry["logger"] == "test"
    assert entry["stream"] == "messages"
    assert entry["n"] == 1
    assert entry["item"] == "a"
    assert "timestamp" in entry


def test_unbind_drops_keys(json_log: io.StringIO) -> None:
    get_logger("test", a=1, b=2).unbind("a").info("x")
    (entry,) = _lines(json_log)
    assert "a" not in entry
    assert entry["b"] == 2


def test_log_context_is_scoped(json_log: io.StringIO) -> None:
    log = get_logger("test")
    with log_context(pipeline="ticks"):
        log.info("inside")
    log.info("outside")
    inside, outside = _lines(json_log)
    assert inside["pipeline"] == "ticks"
    assert "pipeline" not in outside


def test_level_filtering(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(structured, "_renderer", None)
    monkeypatch.setattr(structured, "_default_level", None)
    buf = io.StringIO()
    configure_logging("json", "WARNING", output=buf)
    log = get_logger("test")
    log.info("dropped")
    log.warning("kept")
    assert [e["event"] for e in _lines(buf)] == ["kept"]


def test_exception_includes_traceback(json_log: io.StringIO) -> None:
    try:
        raise KeyError("missing")
    except KeyError:
        get_logger("test").exception("failed")
    (entry,) = _lines(json_log)
    assert entry["level"] == "error"
    assert "KeyError" in entry["exc_info"]


def test_non_json_values_are_stringified(json_log: io.StringIO) -> None:
    get_logger("test").info("odd", value=object())
    (entry,) = _lines(json_log)
    assert entry["value"].startswith("<object object")


def test_console_renderer_without_colors() -> None:
    buf = io.StringIO()
    ConsoleRenderer(output=buf, colors=False, show_timestamp=False).render(
        LogEntry(0.0, "info", "sent", {"item": "a b", "n": 1})
    )
    assert buf.getvalue() == "[info] sent item='a b' n=1\n"


def test_configure_logging_formats(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(structured, "_renderer", None)
    monkeypatch.setattr(structured, "_default_level", None)
    assert isinstance(configure_logging("none"), NoOpRenderer)
    assert isinstance(configure_logging("console", colors=False), ConsoleRenderer)
    with pytest.raises(ValueError):
        configure_logging("xml")


@pytest.mark.asyncio
async def test_failed_producer_is_reported(json_log: io.StringIO) -> None:
    async def broken() -> None:
        raise ValueError("boom")

    handle = spawn(broken(), name="broken-producer")
    with pytest.raises(ValueError):
        await handle.wait()
    await asyncio.sleep(0)

    failures = [e for e in _lines(json_log) if e["event"] == "producer failed"]
    assert len(failures) == 1
    assert failures[0]["task"] == "broken-producer"
    assert failures[0]["code"] == "PRODUCER_FAILED"
    assert failures[0]["error"] == "boom"
