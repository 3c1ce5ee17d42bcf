from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from cassatodo.observability import (
    ConsoleLogFormatter,
    _level_for_logger,
    configure_driver_logging,
    get_json_logger,
)


def _parse_json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.strip().splitlines() if line.strip()]


def test_json_logger_redacts_and_formats(capsys: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger("obs-test-json")
    logger.setLevel(logging.INFO)
    logger.info(
        "connected",
        extra={
            "event": "cassandra_connected",
            "keyspace": "demo",
            "attributes": {"password": "hunter2", "port": 9042},
        },
    )

    lines = _parse_json_lines(capsys.readouterr().out)
    assert len(lines) == 1
    rec = lines[0]
    assert rec["msg"] == "connected"
    assert rec["level"] == "info"
    assert rec["service"] == "cassatodo"
    assert rec["event"] == "cassandra_connected"
    assert rec["keyspace"] == "demo"
    assert rec["attributes"] == {"password": "[REDACTED]", "port": 9042}


def test_json_logger_includes_error_fields(
    capsys: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger("obs-test-error")
    try:
        raise ValueError("bad row")
    except ValueError:
        logger.error("failed", exc_info=True)

    rec = _parse_json_lines(capsys.readouterr().out)[0]
    assert rec["err_type"] == "ValueError"
    assert rec["err"] == "bad row"
    assert "Traceback" in rec["stack"]


def test_console_formatter_compact_line() -> None:
    record = logging.LogRecord(
        "cassatodo.store", logging.INFO, __file__, 1, "todo updated", None, None
    )
    record.event = "todo_updated"
    record.todo_id = "0123456789abcdef"
    line = ConsoleLogFormatter().format(record)
    assert "INFO cassatodo.store todo_updated todo=01234567 - todo updated" in line


def test_module_level_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("LOG_MODULE_LEVELS", "cassatodo=info,cassatodo.store=debug")
    assert _level_for_logger("cassatodo.store") == logging.DEBUG
    assert _level_for_logger("cassatodo.db") == logging.INFO
    assert _level_for_logger("other") == logging.WARNING


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ("", logging.WARNING),
        ("xcassandra=debug", logging.WARNING),
        ("cassandra.cluster=debug", logging.WARNING),
        ("cassatodo=debug, cassandra=error", logging.ERROR),
    ],
)
def test_driver_logging_level_parses_overrides(
    monkeypatch: pytest.MonkeyPatch, overrides: str, expected: int
) -> None:
    monkeypatch.setenv("LOG_MODULE_LEVELS", overrides)
    configure_driver_logging()
    lg = logging.getLogger("cassandra")
    try:
        assert lg.level == expected
    finally:
        for h in list(lg.handlers):
            lg.removeHandler(h)
