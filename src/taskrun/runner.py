"""
Run a task with standard lifecycle bookkeeping.

Every run:
- installs a `FailureLogger` as the process-wide uncaught-exception hook
  (it stays installed after the run, unless other code replaces it);
- logs the task's start and stop dates and its execution time;
- either re-raises a task failure as `TaskFailedError`, or logs it before exiting.

Optionally the run ends by exiting the process with code 0 (task returned) or
1 (task raised). Typical use in a program's ``main``::

    def main() -> None:
        then_exit_if_entry_point(ActionTask(_do_work))

When ``main`` is the program entry point this never returns; when it is called from
other code it returns normally and the process keeps running.

The execution time is a rough measurement of a single run, good enough for a quick
comparison of long-running tasks but not a benchmark.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from taskrun.caller import find_caller
from taskrun.errors.logging import JsonlEventLogger, default_logger
from taskrun.errors.reporter import TaskReporter, report_problem
from taskrun.errors.types import ConfigError, TaskFailedError
from taskrun.hooks import PROCESS_HOOKS, ExceptHookRegistry, FailureLogger
from taskrun.notify import terminal_bell

T = TypeVar("T")

ExitFn = Callable[[int], Any]
Notifier = Callable[[bool], None]


@dataclass(frozen=True)
class ValueTask(Generic[T]):
    """A task whose result is returned to the caller."""
    fn: Callable[[], T]


@dataclass(frozen=True)
class ActionTask:
    """A task run only for its side effects; any return value is discarded."""
    fn: Callable[[], Any]


Task = Union[ValueTask[Any], ActionTask]


def _check_not_blank(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{name} must be a non-blank string, got {value!r}")


@dataclass(frozen=True)
class RunOptions:
    """
    How a task is run and reported.

    Parameters
    ----------
    component
        Name of the calling module; used on every log record.
    operation
        Name of the calling function; used on every log record.
    level
        Logging level for normal events. Failures are always logged at CRITICAL.
    sound_on_success
        Play a notification when the task returns normally. A failure always plays one.
    exit_when_done
        Exit the process when the run is over (0 if the task returned, 1 if it raised);
        the result value, or the failure, is logged first since no caller will see it.
    logger
        Destination for all records. Never closed by the runner. The "taskrun" logger by default.
    """

    component: str
    operation: str
    level: int = logging.INFO
    sound_on_success: bool = False
    exit_when_done: bool = False
    logger: logging.Logger = field(default_factory=default_logger)

    def __post_init__(self) -> None:
        _check_not_blank("component", self.component)
        _check_not_blank("operation", self.operation)
        if self.level is None or isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ConfigError(f"level must be an int logging level, got {self.level!r}")
        if self.logger is None:
            raise ConfigError("logger must not be None")


def _check_task(task: Any) -> None:
    if task is None:
        raise ConfigError("task must not be None")
    if not isinstance(task, (ValueTask, ActionTask)):
        raise ConfigError(f"task's type = {type(task).__name__} is unsupported")
    if not callable(task.fn):
        raise ConfigError(f"task.fn = {task.fn!r} is not callable")


class TaskRunner:
    """
    Executes tasks; holds the process-level collaborators so tests can replace them.

    Parameters
    ----------
    hooks
        Registry through which the FailureLogger is installed.
    exit_fn
        Called with the exit code when a run has ``exit_when_done``; ``sys.exit`` by default.
    notifier
        Called with ``success`` after the stop event; a terminal bell by default.
    event_logger
        Optional JSONL mirror of the lifecycle events.
    """

    def __init__(
        self,
        *,
        hooks: Optional[ExceptHookRegistry] = None,
        exit_fn: Optional[ExitFn] = None,
        notifier: Optional[Notifier] = None,
        event_logger: Optional[JsonlEventLogger] = None,
    ) -> None:
        self.hooks = hooks if hooks is not None else PROCESS_HOOKS
        self.exit_fn: ExitFn = exit_fn if exit_fn is not None else sys.exit
        self.notifier: Notifier = notifier if notifier is not None else terminal_bell
        self.event_logger = event_logger

    def run(self, task: Task, options: RunOptions) -> Any:
        """
        Execute `task` once on the calling thread.

        Returns
        -------
        value
            The task's result for a ValueTask, None for an ActionTask.
            Never returns when ``options.exit_when_done`` and the exit function exits.

        Raises
        ------
        ConfigError
            If task or options are invalid; the task is not run.
        TaskFailedError
            If the task raised; the original exception is the cause.
        KeyboardInterrupt, SystemExit
            Re-raised unchanged when the task raised them. Either counts as a failure.
        """
        _check_task(task)
        if options is None:
            raise ConfigError("options must not be None")

        reporter = TaskReporter(
            logger=options.logger,
            component=options.component,
            operation=options.operation,
            level=options.level,
            event_logger=self.event_logger,
        )
        try:
            self.hooks.install(FailureLogger(options.logger))
            reporter.start()
            result = self._execute(task, options, reporter)
            reporter.succeeded()
            return result
        except BaseException as exc:
            # logged here only when the process is about to exit
            reporter.failed(exc, log=options.exit_when_done)
            if not isinstance(exc, Exception):
                raise
            raise TaskFailedError(f"task failed: {type(exc).__name__}") from exc
        finally:
            reporter.stop()  # must precede notification
            self._notify(reporter, options)
            self._maybe_exit(reporter, options)

    def _execute(self, task: Task, options: RunOptions, reporter: TaskReporter) -> Any:
        if isinstance(task, ValueTask):
            result = task.fn()
            if options.exit_when_done:
                reporter.result(result)
            return result
        task.fn()
        return None

    def _notify(self, reporter: TaskReporter, options: RunOptions) -> None:
        success = reporter.exit_code() == 0
        if success and not options.sound_on_success:
            return
        try:
            self.notifier(success)
        except Exception as exc:
            report_problem(options.logger, exc, component=options.component, operation=options.operation)

    def _maybe_exit(self, reporter: TaskReporter, options: RunOptions) -> None:
        if not options.exit_when_done:
            return
        code = reporter.exit_code()
        try:
            reporter.exiting(code)
            # the logger stays open: exit handlers may still use it
            self.exit_fn(code)
        except Exception as exc:
            report_problem(options.logger, exc, component=options.component, operation=options.operation)


_DEFAULT_RUNNER = TaskRunner()


def run(task: Task, options: RunOptions) -> Any:
    """Run `task` with the default runner; see `TaskRunner.run`."""
    return _DEFAULT_RUNNER.run(task, options)


def _as_task(task: Union[Task, Callable[[], Any]]) -> Any:
    if isinstance(task, (ValueTask, ActionTask)) or task is None or not callable(task):
        return task
    return ValueTask(task)


def then_continue(
    task: Union[Task, Callable[[], Any]],
    logger: Optional[logging.Logger] = None,
    *,
    runner: Optional[TaskRunner] = None,
) -> Any:
    """
    Run `task` on behalf of the calling function and return its result.

    Normal events are logged at INFO; no sound is played on success and the
    process is never exited. A bare callable is treated as a ValueTask.
    """
    caller = find_caller()
    options = RunOptions(
        component=caller.component,
        operation=caller.operation,
        level=logging.INFO,
        sound_on_success=False,
        exit_when_done=False,
        logger=logger if logger is not None else default_logger(),
    )
    return (runner or _DEFAULT_RUNNER).run(_as_task(task), options)


def then_exit_if_entry_point(
    task: Union[Task, Callable[[], Any]],
    logger: Optional[logging.Logger] = None,
    *,
    runner: Optional[TaskRunner] = None,
) -> Any:
    """
    Run `task` on behalf of the calling function, exiting if that function is the entry point.

    If the caller is the program's outermost ``main``, the result (or failure) is logged and
    the process exits with 0 or 1, so this never returns. Otherwise the result is returned,
    or a failure raised as TaskFailedError, and the process keeps running. A notification is
    played when the task finishes. A bare callable is treated as a ValueTask.
    """
    caller = find_caller()
    options = RunOptions(
        component=caller.component,
        operation=caller.operation,
        level=logging.INFO,
        sound_on_success=True,
        exit_when_done=caller.is_entry_point,
        logger=logger if logger is not None else default_logger(),
    )
    return (runner or _DEFAULT_RUNNER).run(_as_task(task), options)
