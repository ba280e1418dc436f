"""
errors subpackage: error types, configuration and logging around task runs.

Key primitives
--------------
- RunnerConfig: logging/notification config (log paths, levels, JSONL, env overrides)
- configure_logging(): console + file logging, optional JSONL event logger
- TaskReporter: logs one task's lifecycle events and tracks its outcome
- report_problem(): best-effort reporting for cleanup paths that must not raise
- ConfigError / TaskFailedError / CallerLookupError: the exceptions callers can see
"""

from .types import CallerLookupError, ConfigError, TaskFailedError, TaskOutcome, safe_str
from .config import RunnerConfig, config_from_mapping, load_config
from .logging import JsonlEventLogger, configure_logging, default_logger
from .reporter import TaskReporter, report_problem, timestamp

__all__ = [
    "CallerLookupError",
    "ConfigError",
    "TaskFailedError",
    "TaskOutcome",
    "safe_str",
    "RunnerConfig",
    "config_from_mapping",
    "load_config",
    "JsonlEventLogger",
    "configure_logging",
    "default_logger",
    "TaskReporter",
    "report_problem",
    "timestamp",
]
