from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .config import RunnerConfig
from .types import safe_str

LOGGER_NAME = "taskrun"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_logger() -> logging.Logger:
    """Logger used when a caller does not supply one."""
    return logging.getLogger(LOGGER_NAME)


@dataclass
class JsonlEventLogger:
    """
    Writes structured task events as JSON lines.

    Each line is a dict that includes at least:
    - time_utc
    - run_id
    - event
    - component
    - operation
    - level
    - message, exc_type, exc_msg (optional)

    Usage example
    -------------
        ev = JsonlEventLogger(path=Path("logs/events_abc.jsonl"), run_id="abc")
        ev.write(event="task_failed", component="app.cli", operation="main", level="CRITICAL", exc=exc)
    """
    path: Path
    run_id: str

    def write(
        self,
        *,
        event: str,
        component: str,
        operation: str,
        level: str,
        exc: Optional[BaseException] = None,
        message: Optional[str] = None,
        **fields: Any,
    ) -> None:
        payload: dict[str, Any] = {
            "time_utc": _utc_now_iso(),
            "run_id": self.run_id,
            "event": event,
            "component": component,
            "operation": operation,
            "level": level,
        }
        if message:
            payload["message"] = message
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_msg"] = safe_str(exc)
        payload.update(fields)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False, default=repr) + "\n")


class _RunContextFilter(logging.Filter):
    def __init__(self, *, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Formatter needs these on records that did not come through the runner
        if not hasattr(record, "run_id"):
            setattr(record, "run_id", self._run_id)
        if not hasattr(record, "component"):
            setattr(record, "component", "-")
        if not hasattr(record, "operation"):
            setattr(record, "operation", "-")
        return True


def configure_logging(*, cfg: RunnerConfig) -> tuple[logging.Logger, Optional[JsonlEventLogger]]:
    """
    Configure console + file logging, plus optional JSONL event logger.

    Returns
    -------
    logger
        A configured logger named "taskrun".
    event_logger
        JsonlEventLogger if cfg.write_jsonl else None.

    Usage example
    -------------
        logger, event_logger = configure_logging(cfg=cfg)
        logger.info("Hello")
    """
    run_id = cfg.resolved_run_id()
    log_dir = cfg.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = default_logger()
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for old_filter in list(logger.filters):
        logger.removeFilter(old_filter)
    logger.propagate = False

    logger.addFilter(_RunContextFilter(run_id=run_id))

    # Console handler (try rich if available)
    console_handler: logging.Handler
    try:
        from rich.console import Console  # type: ignore
        from rich.logging import RichHandler  # type: ignore

        console_handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        console_fmt = "%(component)s.%(operation)s: %(message)s"
    except Exception:
        console_handler = logging.StreamHandler()
        console_fmt = "[%(levelname)s] %(component)s.%(operation)s: %(message)s"

    console_handler.setLevel(cfg.console_level)
    console_handler.setFormatter(logging.Formatter(console_fmt))
    logger.addHandler(console_handler)

    # File handler (always plain)
    file_path = log_dir / f"run_{run_id}.log"
    file_handler = logging.FileHandler(file_path, encoding="utf-8")
    file_handler.setLevel(cfg.file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | run=%(run_id)s | %(component)s.%(operation)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    event_logger = None
    if cfg.write_jsonl:
        event_logger = JsonlEventLogger(path=log_dir / f"events_{run_id}.jsonl", run_id=run_id)

    logger.debug("Logging configured (run_id=%s, log_dir=%s)", run_id, str(log_dir))
    return logger, event_logger
