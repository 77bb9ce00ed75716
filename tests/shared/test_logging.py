"""Tests for structured logging configuration and public API logging."""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass, field
from typing import Iterator

import pytest

from packages.tracker_shared.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    get_logger,
    log_context,
    public_api_logged,
)


@dataclass
class _Meta:
    trace_id: str = "trace-1"
    envelope_id: str = "env-1"
    principal: str = "operator"


@dataclass
class _Error:
    code: str
    message: str


@dataclass
class _Result:
    ok: bool
    errors: list[_Error] = field(default_factory=list)


@pytest.fixture
def stream() -> Iterator[io.StringIO]:
    """Route root logging to an in-memory JSON stream."""
    buffer = io.StringIO()
    clear_context()
    configure_logging(level="DEBUG", json_output=True, stream=buffer)
    yield buffer
    clear_context()
    logging.getLogger().handlers.clear()


def _records(buffer: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_json_formatter_includes_bound_context(stream: io.StringIO) -> None:
    """Context bound through ``log_context`` should land on each record."""
    logger = get_logger("tests.logging")

    with log_context({"artifact_path": "Stories/A.md", "skipped": None}):
        logger.info("classified %s", "A")
    logger.info("after")

    first, second = _records(stream)
    assert first["message"] == "classified A"
    assert first["level"] == "INFO"
    assert first["artifact_path"] == "Stories/A.md"
    assert "skipped" not in first
    assert "artifact_path" not in second


def test_configure_logging_seeds_service_context() -> None:
    buffer = io.StringIO()
    clear_context()
    try:
        configure_logging(
            level="INFO",
            json_output=False,
            service="pattern-tracker",
            environment="test",
            stream=buffer,
        )
        get_logger("tests.logging").info("hello")
    finally:
        clear_context()
        logging.getLogger().handlers.clear()

    line = buffer.getvalue().strip()
    assert "INFO tests.logging hello" in line
    assert line.endswith("environment=test service=pattern-tracker")


def test_bind_and_clear_context() -> None:
    clear_context()
    bind_context(run="1", stage="stage2")
    clear_context("stage")

    assert get_context() == {"run": "1"}
    clear_context()
    assert get_context() == {}


def test_public_api_logged_emits_invocation_and_completion(stream: io.StringIO) -> None:
    """Decorated calls should log one invocation and one completion event."""
    logger = get_logger("tests.public_api")

    @public_api_logged(logger=logger, component_id="service_example", id_fields=("path",))
    def get_item(*, meta: _Meta, path: str) -> _Result:
        return _Result(ok=False, errors=[_Error(code="NOT_FOUND", message="gone")])

    get_item(meta=_Meta(), path="Stories/A.md")

    invocation, completion = _records(stream)
    assert invocation["event"] == "public_api_invocation"
    assert invocation["component_id"] == "service_example"
    assert invocation["api_name"] == "get_item"
    assert invocation["trace_id"] == "trace-1"
    assert invocation["path"] == "Stories/A.md"
    assert completion["event"] == "public_api_completion"
    assert completion["level"] == "WARNING"
    assert completion["success"] == "False"
    assert "NOT_FOUND: gone" in str(completion["errors"])


def test_public_api_logged_reraises_exceptions(stream: io.StringIO) -> None:
    logger = get_logger("tests.public_api")

    @public_api_logged(logger=logger, component_id="service_example")
    def explode(*, meta: _Meta) -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        explode(meta=_Meta())

    completion = _records(stream)[-1]
    assert completion["success"] == "False"
    assert "RuntimeError: boom" in str(completion["errors"])
