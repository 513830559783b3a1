from __future__ import annotations

import json
import logging

import pytest

from copilot_ai.core import logging_config
from copilot_ai.core.logging_config import (
    DETAILED_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    JsonFormatter,
    RunContextFilter,
    build_formatter,
    get_logger,
    get_run_logger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(message: str = "hello", **attrs) -> logging.LogRecord:
    record = logging.LogRecord("copilot_ai.test", logging.INFO, "module.py", 12, message, None, None)
    for name, value in attrs.items():
        setattr(record, name, value)
    return record


def test_setup_logging_installs_single_console_handler(restore_root_logger) -> None:
    setup_logging(log_level="warning", log_format="simple", enable_file=False)
    setup_logging(log_level="warning", log_format="simple", enable_file=False)

    handlers = restore_root_logger.handlers
    assert len(handlers) == 1
    assert handlers[0].level == logging.WARNING
    assert handlers[0].formatter._fmt == SIMPLE_FORMAT
    assert any(isinstance(f, RunContextFilter) for f in handlers[0].filters)


def test_setup_logging_applies_module_levels(restore_root_logger) -> None:
    setup_logging(enable_file=False)

    for name, level in MODULE_LOG_LEVELS.items():
        assert logging.getLogger(name).level == logging.getLevelName(level)


def test_file_logging_writes_into_configured_dir(restore_root_logger, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(logging_config, "ENABLE_FILE_LOGGING", True)
    monkeypatch.setattr(logging_config, "LOG_FILE_DIR", str(tmp_path / "logs"))

    setup_logging(log_format="json")

    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(tmp_path / "logs" / "copilot_ai.log")
    assert isinstance(file_handlers[0].formatter, JsonFormatter)
    file_handlers[0].close()


def test_file_logging_stays_off_when_disabled_in_settings(restore_root_logger, monkeypatch) -> None:
    monkeypatch.setattr(logging_config, "ENABLE_FILE_LOGGING", False)

    setup_logging()

    assert not [h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)]


def test_build_formatter_selects_format() -> None:
    assert isinstance(build_formatter("json"), JsonFormatter)
    assert build_formatter("simple")._fmt == SIMPLE_FORMAT
    assert build_formatter("anything-else")._fmt == DETAILED_FORMAT


def test_run_context_filter_fills_missing_ids() -> None:
    record = _record(trace_id="t-1")

    assert RunContextFilter().filter(record) is True
    assert record.trace_id == "t-1"
    assert record.agent_id == "-"
    assert record.request_id == "-"


def test_detailed_format_shows_run_ids() -> None:
    record = _record(trace_id="t-1", agent_id="product-qa")
    RunContextFilter().filter(record)

    line = build_formatter("detailed").format(record)

    assert "[trace=t-1 agent=product-qa]" in line
    assert line.endswith("- hello")


def test_json_formatter_emits_valid_json_for_quoted_messages() -> None:
    record = _record('tool "calculator" failed', trace_id="t-9")

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == 'tool "calculator" failed'
    assert payload["level"] == "INFO"
    assert payload["trace_id"] == "t-9"
    assert payload["agent_id"] == "-"


def test_run_logger_stamps_ids_on_records(caplog) -> None:
    caplog.set_level(logging.INFO, logger="copilot_ai.test.run")
    log = get_run_logger("copilot_ai.test.run", trace_id="t-2", agent_id="monorepo-rag", user="ignored")

    log.info("searching")

    (record,) = [r for r in caplog.records if r.name == "copilot_ai.test.run"]
    assert record.trace_id == "t-2"
    assert record.agent_id == "monorepo-rag"
    assert not hasattr(record, "user")


def test_get_logger_returns_named_logger() -> None:
    assert get_logger("copilot_ai.agent_core.service") is logging.getLogger("copilot_ai.agent_core.service")
