"""taskrun: run a program's main task with lifecycle logging, uncaught-exception logging and exit codes."""

from taskrun.caller import CallerInfo, Frame, capture_frames, derive_caller
from taskrun.errors import CallerLookupError, ConfigError, TaskFailedError
from taskrun.hooks import PROCESS_HOOKS, ExceptHookRegistry, FailureLogger
from taskrun.runner import (
    ActionTask,
    RunOptions,
    Task,
    TaskRunner,
    ValueTask,
    run,
    then_continue,
    then_exit_if_entry_point,
)
from taskrun.version import __version__

__all__ = [
    "ActionTask",
    "CallerInfo",
    "CallerLookupError",
    "ConfigError",
    "ExceptHookRegistry",
    "FailureLogger",
    "Frame",
    "PROCESS_HOOKS",
    "RunOptions",
    "Task",
    "TaskFailedError",
    "TaskRunner",
    "ValueTask",
    "__version__",
    "capture_frames",
    "derive_caller",
    "run",
    "then_continue",
    "then_exit_if_entry_point",
]
