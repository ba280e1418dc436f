from __future__ import annotations

import logging
import sys
import time
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, TextIO

from .logging import JsonlEventLogger
from .types import TaskOutcome, safe_str


def timestamp() -> str:
    """Local time with millisecond precision and UTC offset, e.g. 2024-05-01T09:30:00.123+0200."""
    now = datetime.now().astimezone()
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}" + now.strftime("%z")


def report_problem(
    logger: logging.Logger,
    exc: BaseException,
    *,
    component: str,
    operation: str,
    message: str = "UNEXPECTED exception caught",
    stream: Optional[TextIO] = None,
) -> None:
    """
    Best-effort report of an exception that must not propagate.

    Logs at CRITICAL with the traceback. If logging fails, both tracebacks are written to
    the unbuffered interpreter stderr (or `stream`). If even that fails the error is dropped.
    Never raises.

    Usage example
    -------------
        try:
            cleanup()
        except Exception as exc:
            report_problem(logger, exc, component="app.cli", operation="main")
    """
    try:
        logger.critical(
            "%s: %s: %s",
            message,
            type(exc).__name__,
            safe_str(exc),
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"component": component, "operation": operation},
        )
    except Exception as log_exc:
        try:
            out = stream if stream is not None else sys.__stderr__
            print(file=out)
            print("THE FOLLOWING EXCEPTION WAS RAISED:", file=out)
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=out)
            print("BUT THE ABOVE EXCEPTION FAILED TO BE LOGGED DUE TO:", file=out)
            traceback.print_exception(type(log_exc), log_exc, log_exc.__traceback__, file=out)
            out.flush()
        except Exception:
            pass  # last resort: nowhere left to report


@dataclass
class TaskReporter:
    """
    Logs the lifecycle events of one task execution and tracks its outcome.

    Design notes
    ------------
    - This is the single source of truth for "what happened" to the task.
    - The runner decides *when* to report; the reporter decides formatting.
    - `stop()` and `failed()` never raise, since they run in cleanup paths.

    Usage example
    -------------
        reporter = TaskReporter(logger=logger, component="app.cli", operation="main", level=logging.INFO)
        reporter.start()
        ...
        reporter.stop()
        print(reporter.elapsed_s, reporter.exit_code())
    """

    logger: logging.Logger
    component: str
    operation: str
    level: int = logging.INFO
    event_logger: Optional[JsonlEventLogger] = None

    def __post_init__(self) -> None:
        """Initialize invocation-scoped state."""
        self._t1: Optional[float] = None
        self._outcome: Optional[TaskOutcome] = None
        self.elapsed_s: Optional[float] = None

    @property
    def outcome(self) -> Optional[TaskOutcome]:
        return self._outcome

    def _log(self, level: int, msg: str, *args: Any) -> None:
        self.logger.log(level, msg, *args, extra={"component": self.component, "operation": self.operation})

    def _event(self, event: str, level: int, **fields: Any) -> None:
        if self.event_logger is not None:
            self.event_logger.write(
                event=event,
                component=self.component,
                operation=self.operation,
                level=logging.getLevelName(level),
                **fields,
            )

    def start(self) -> None:
        """Log the start event and start the clock."""
        self._t1 = time.perf_counter()
        stamp = timestamp()
        self._log(self.level, "task start date = %s", stamp)
        self._event("task_start", self.level, date=stamp)

    def result(self, value: Any) -> None:
        """Log the task's return value."""
        self._log(self.level, "task result = %s", value)
        self._event("task_result", self.level, message=str(value))

    def succeeded(self) -> None:
        self._outcome = TaskOutcome.OK

    def failed(self, exc: BaseException, *, log: bool) -> None:
        """Record a task failure; when `log` is set, also log it at CRITICAL. Never raises."""
        self._outcome = TaskOutcome.FAILED
        if not log:
            return
        report_problem(self.logger, exc, component=self.component, operation=self.operation, message="task failed")
        try:
            self._event("task_failed", logging.CRITICAL, exc=exc)
        except Exception as event_exc:
            report_problem(self.logger, event_exc, component=self.component, operation=self.operation)

    def stop(self) -> None:
        """Log the stop date and elapsed time. Never raises."""
        try:
            t2 = time.perf_counter()
            t1 = self._t1 if self._t1 is not None else t2
            self.elapsed_s = max(t2 - t1, 0.0)
            stamp = timestamp()
            self._log(self.level, "task stop date = %s", stamp)
            self._log(self.level, "task execution time = %.6f seconds", self.elapsed_s)
            self._event("task_stop", self.level, date=stamp, elapsed_s=self.elapsed_s)
        except Exception as exc:
            report_problem(self.logger, exc, component=self.component, operation=self.operation)

    def exiting(self, code: int) -> None:
        """Log the exit code that is about to be used."""
        self._log(self.level, "will next call exit(%d)", code)
        self._event("task_exit", self.level, exit_code=code)

    def exit_code(self) -> int:
        """Return a conventional process exit code: 0 if the task returned, else 1."""
        return 0 if self._outcome == TaskOutcome.OK else 1
