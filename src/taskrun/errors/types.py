from __future__ import annotations

from enum import Enum


class ConfigError(ValueError):
    """Raised when a task, its run options or the runtime configuration are invalid."""


class TaskFailedError(RuntimeError):
    """Raised by the runner when the task itself raised; the original exception is ``__cause__``."""


class CallerLookupError(RuntimeError):
    """Raised when the calling frame cannot be identified from the captured stack."""


class TaskOutcome(str, Enum):
    """Outcome of a single task execution."""
    OK = "ok"
    FAILED = "failed"


def safe_str(exc: BaseException) -> str:
    """``str(exc)``, or a placeholder when the exception's ``__str__`` itself raises."""
    try:
        return str(exc)
    except Exception:
        return f"<unprintable {type(exc).__name__} object>"
