"""Identify the code that called into the runner, and whether it is the program entry point."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Sequence

from taskrun.errors.types import CallerLookupError

RUNNER_COMPONENT = "taskrun.runner"

# Frames the interpreter puts outside the user's entry point.
_BOOTSTRAP_COMPONENTS = ("runpy", "importlib")


@dataclass(frozen=True)
class Frame:
    component: str
    operation: str


@dataclass(frozen=True)
class CallerInfo:
    component: str
    operation: str
    is_entry_point: bool


def capture_frames() -> list[Frame]:
    """Return the current thread's frames, innermost (this function) first."""
    frames: list[Frame] = []
    frame = inspect.currentframe()
    try:
        while frame is not None:
            frames.append(Frame(frame.f_globals.get("__name__", "?"), frame.f_code.co_name))
            frame = frame.f_back
    finally:
        del frame
    return frames


def _is_bootstrap(frame: Frame) -> bool:
    if frame.component == "__main__" and frame.operation == "<module>":
        return True
    return frame.component.split(".", 1)[0] in _BOOTSTRAP_COMPONENTS


def derive_caller(frames: Sequence[Frame]) -> CallerInfo:
    """
    Find the first frame outside this module and the runner; that is the caller.

    The caller is the entry point iff its operation is ``main`` and every frame
    further out belongs to the interpreter's bootstrap (script body, runpy, importlib).

    Raises
    ------
    CallerLookupError
        If ``frames[0]`` is not `capture_frames`, or no caller frame exists.
    """
    if not frames:
        raise CallerLookupError("no frames were captured")
    first = frames[0]
    if first.component != __name__ or first.operation != capture_frames.__name__:
        raise CallerLookupError(
            f"frames[0] = {first.component}.{first.operation} is not {__name__}.{capture_frames.__name__}"
        )

    for index in range(1, len(frames)):  # frames[0] already checked
        frame = frames[index]
        if frame.component in (__name__, RUNNER_COMPONENT):
            continue
        is_entry_point = frame.operation == "main" and all(_is_bootstrap(f) for f in frames[index + 1:])
        return CallerInfo(frame.component, frame.operation, is_entry_point)

    raise CallerLookupError("failed to find the calling frame")


def find_caller() -> CallerInfo:
    return derive_caller(capture_frames())
