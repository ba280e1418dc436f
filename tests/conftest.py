from __future__ import annotations

import logging
import sys
import threading
from typing import Iterator

import pytest

from taskrun.errors.logging import LOGGER_NAME


@pytest.fixture(autouse=True)
def _restore_process_hooks(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    # Runs install FailureLogger into the real interpreter slots; undo after each test.
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    yield


@pytest.fixture(autouse=True)
def _reset_taskrun_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for old_filter in list(logger.filters):
        logger.removeFilter(old_filter)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
