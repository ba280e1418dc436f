"""Process-wide logging of exceptions that no handler caught."""

from __future__ import annotations

import logging
import sys
import threading
import traceback
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Optional

from taskrun.errors.logging import default_logger

COMPONENT = "FailureLogger"
OPERATION = "uncaught"

_UNKNOWN = "UNKNOWN (None was supplied)"


def describe_thread(thread: Optional[threading.Thread]) -> str:
    if thread is None:
        return _UNKNOWN
    return f"name={thread.name!r} ident={thread.ident} daemon={thread.daemon}"


def describe_exception(exc: Optional[BaseException]) -> str:
    if exc is None:
        return _UNKNOWN
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip("\n")


class FailureLogger:
    """
    Logs every otherwise uncaught exception to a logger at CRITICAL.

    Instances are installed as both ``sys.excepthook`` (through `sys_hook`) and
    ``threading.excepthook`` (through `thread_hook`); see `ExceptHookRegistry`.

    Usage example
    -------------
        PROCESS_HOOKS.install(FailureLogger(logger))
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger if logger is not None else default_logger()

    def uncaught(self, thread: Optional[threading.Thread], exc: Optional[BaseException]) -> None:
        """Log one uncaught exception. Never raises."""
        try:
            msg = (
                "AN UNCAUGHT EXCEPTION HAS BEEN DETECTED\n"
                f"Thread reporting the uncaught exception: {describe_thread(thread)}\n"
                f"Uncaught exception: {describe_exception(exc)}"
            )
            self.logger.critical(msg, extra={"component": COMPONENT, "operation": OPERATION})
        except Exception:
            # nothing above an excepthook can handle this
            pass

    def sys_hook(
        self,
        exc_type: type[BaseException],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is not None and issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        if exc is not None and exc.__traceback__ is None and tb is not None:
            exc = exc.with_traceback(tb)
        self.uncaught(threading.current_thread(), exc)

    def thread_hook(self, args: Any) -> None:
        exc_type = getattr(args, "exc_type", None)
        if exc_type is not None and issubclass(exc_type, SystemExit):
            return
        self.uncaught(getattr(args, "thread", None), getattr(args, "exc_value", None))


@dataclass
class ExceptHookRegistry:
    """
    Explicit handle on the process-level uncaught-exception slots.

    `install` is last-writer-wins and unsynchronized. The hooks that were in place
    before the first install are remembered so `restore` can put them back.

    Usage example
    -------------
        registry = ExceptHookRegistry()
        registry.install(FailureLogger(logger))
        ...
        registry.restore()
    """

    sys_module: Any = sys
    threading_module: Any = threading
    _current: Optional[FailureLogger] = field(default=None, init=False, repr=False)
    _saved: Optional[tuple[Any, Any]] = field(default=None, init=False, repr=False)

    def install(self, failure_logger: FailureLogger) -> None:
        """Make `failure_logger` the handler for uncaught exceptions in every thread."""
        if self._saved is None:
            self._saved = (self.sys_module.excepthook, self.threading_module.excepthook)
        self.sys_module.excepthook = failure_logger.sys_hook
        self.threading_module.excepthook = failure_logger.thread_hook
        self._current = failure_logger

    def current(self) -> Optional[FailureLogger]:
        """Return the FailureLogger most recently installed through this registry, if any."""
        return self._current

    def restore(self) -> None:
        """Put back the hooks that were active before the first install."""
        if self._saved is None:
            return
        self.sys_module.excepthook, self.threading_module.excepthook = self._saved
        self._saved = None
        self._current = None


PROCESS_HOOKS = ExceptHookRegistry()
