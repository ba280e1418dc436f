"""Audible notification when a task finishes."""

from __future__ import annotations

import time
from typing import Optional

from rich.console import Console

_FAILURE_RINGS = 2
_RING_GAP_S = 0.15


def terminal_bell(success: bool, *, console: Optional[Console] = None) -> None:
    """
    Ring the terminal bell: once on success, twice on failure.

    Nothing is written unless the console is attached to a terminal.

    Usage example
    -------------
        terminal_bell(False)
    """
    console = console if console is not None else Console(stderr=True)
    if not console.is_terminal:
        return
    rings = 1 if success else _FAILURE_RINGS
    for i in range(rings):
        if i:
            time.sleep(_RING_GAP_S)
        console.bell()
