from __future__ import annotations

import pytest

from taskrun.caller import CallerInfo, Frame, capture_frames, derive_caller, find_caller
from taskrun.errors.types import CallerLookupError

CAPTURE = Frame("taskrun.caller", "capture_frames")
FIND = Frame("taskrun.caller", "find_caller")
RUNNER = Frame("taskrun.runner", "then_exit_if_entry_point")
SCRIPT_BODY = Frame("__main__", "<module>")


def test_capture_frames_starts_with_itself_then_caller() -> None:
    frames = capture_frames()

    assert frames[0] == CAPTURE
    assert frames[1] == Frame(__name__, "test_capture_frames_starts_with_itself_then_caller")


def test_find_caller_from_test_is_not_entry_point() -> None:
    info = find_caller()

    assert info == CallerInfo(__name__, "test_find_caller_from_test_is_not_entry_point", False)


def test_main_called_from_script_body_is_entry_point() -> None:
    frames = [CAPTURE, FIND, RUNNER, Frame("app.cli", "main"), SCRIPT_BODY]

    assert derive_caller(frames) == CallerInfo("app.cli", "main", True)


def test_main_as_outermost_frame_is_entry_point() -> None:
    assert derive_caller([CAPTURE, RUNNER, Frame("app", "main")]).is_entry_point is True


def test_main_under_runpy_is_entry_point() -> None:
    frames = [
        CAPTURE,
        RUNNER,
        Frame("app.__main__", "main"),
        SCRIPT_BODY,
        Frame("runpy", "_run_code"),
        Frame("runpy", "_run_module_as_main"),
    ]

    assert derive_caller(frames).is_entry_point is True


def test_main_called_by_another_main_is_not_entry_point() -> None:
    frames = [CAPTURE, RUNNER, Frame("lib.tool", "main"), Frame("__main__", "main"), SCRIPT_BODY]

    info = derive_caller(frames)

    assert info == CallerInfo("lib.tool", "main", False)


def test_non_main_outermost_is_not_entry_point() -> None:
    assert derive_caller([CAPTURE, RUNNER, Frame("app", "run")]).is_entry_point is False


def test_script_body_caller_is_not_entry_point() -> None:
    info = derive_caller([CAPTURE, RUNNER, SCRIPT_BODY])

    assert info == CallerInfo("__main__", "<module>", False)


def test_first_frame_must_be_capture_frames() -> None:
    with pytest.raises(CallerLookupError, match="is not taskrun.caller.capture_frames"):
        derive_caller([Frame("app", "main")])


def test_empty_stack_raises() -> None:
    with pytest.raises(CallerLookupError):
        derive_caller([])


def test_only_helper_frames_raises() -> None:
    with pytest.raises(CallerLookupError, match="failed to find"):
        derive_caller([CAPTURE, FIND, RUNNER])
