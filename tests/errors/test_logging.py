from __future__ import annotations

import json
import logging
from pathlib import Path

from taskrun.errors.config import RunnerConfig
from taskrun.errors.logging import JsonlEventLogger, configure_logging


def _quiet_cfg(tmp_path: Path, *, write_jsonl: bool = False) -> RunnerConfig:
    return RunnerConfig(
        log_dir=tmp_path / "logs",
        run_id="testrun",
        write_jsonl=write_jsonl,
        console_level=logging.CRITICAL + 1,  # keep test output quiet
        file_level=logging.DEBUG,
    )


def test_jsonl_event_logger_writes_valid_lines(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "events_abc.jsonl"
    ev = JsonlEventLogger(path=path, run_id="abc")

    ev.write(event="task_start", component="app.cli", operation="main", level="INFO")
    ev.write(
        event="task_failed",
        component="app.cli",
        operation="main",
        level="CRITICAL",
        exc=ValueError("nope"),
        elapsed_s=0.5,
    )

    assert path.exists()
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2

    a = json.loads(lines[0])
    assert a["run_id"] == "abc"
    assert a["event"] == "task_start"
    assert a["component"] == "app.cli"
    assert a["operation"] == "main"
    assert a["level"] == "INFO"
    assert "time_utc" in a

    b = json.loads(lines[1])
    assert b["event"] == "task_failed"
    assert b["exc_type"] == "ValueError"
    assert b["exc_msg"] == "nope"
    assert b["elapsed_s"] == 0.5


def test_configure_logging_creates_log_file_and_writes(tmp_path: Path) -> None:
    cfg = _quiet_cfg(tmp_path)

    logger, event_logger = configure_logging(cfg=cfg)
    assert event_logger is None
    assert logger.name == "taskrun"

    log_path = cfg.log_dir / "run_testrun.log"
    assert log_path.exists()

    # No extra= given, so the filter must inject defaults
    logger.info("hello world")

    text = log_path.read_text(encoding="utf-8")
    assert "hello world" in text
    assert "run=testrun" in text
    assert "| -.- |" in text


def test_configure_logging_component_extra_is_used_in_file(tmp_path: Path) -> None:
    cfg = _quiet_cfg(tmp_path)
    logger, _ = configure_logging(cfg=cfg)

    logger.error("boom", extra={"component": "app.cli", "operation": "main"})

    text = (cfg.log_dir / "run_testrun.log").read_text(encoding="utf-8")
    assert "boom" in text
    assert "app.cli.main" in text


def test_configure_logging_twice_does_not_duplicate_handlers(tmp_path: Path) -> None:
    cfg = _quiet_cfg(tmp_path)
    configure_logging(cfg=cfg)
    logger, _ = configure_logging(cfg=cfg)

    assert len(logger.handlers) == 2
    assert len(logger.filters) == 1


def test_configure_logging_returns_event_logger_when_enabled(tmp_path: Path) -> None:
    cfg = _quiet_cfg(tmp_path, write_jsonl=True)
    _, event_logger = configure_logging(cfg=cfg)
    assert event_logger is not None
    assert event_logger.path == cfg.log_dir / "events_testrun.jsonl"
    assert event_logger.run_id == "testrun"
