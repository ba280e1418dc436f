"""Argument handling shared by `taskrun call` and `taskrun exec`."""

from __future__ import annotations

import argparse
import importlib
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable

from taskrun.errors import ConfigError, RunnerConfig, config_from_mapping, configure_logging, load_config
from taskrun.errors.config import parse_level
from taskrun.notify import terminal_bell
from taskrun.runner import RunOptions, TaskRunner, ValueTask

ENV_PREFIX = "TASKRUN_"


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("target", help="Callable to run, as 'package.module:function'.")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="String arguments passed to the callable.")
    parser.add_argument("--level", default=None, help="Logging level for task events (e.g. INFO, DEBUG).")
    parser.add_argument("--log-dir", default=None, help="Directory for log files.")
    parser.add_argument("--no-sound", action="store_true", help="Never play a notification.")
    parser.add_argument("--no-jsonl", action="store_true", help="Do not write the JSONL event log.")


def resolve_target(target: str) -> Callable[..., Any]:
    """Import ``package.module:attr.path`` and return the callable it names."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name.strip() or not attr_path.strip():
        raise ConfigError(f"Target must look like 'package.module:function', got {target!r}.")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as error:
        raise ConfigError(f"Cannot import module {module_name!r}: {error}") from error
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as error:
            raise ConfigError(f"{module_name!r} has no attribute {attr_path!r}.") from error
    if not callable(obj):
        raise ConfigError(f"Target {target!r} is not callable.")
    return obj


def resolve_config(args: argparse.Namespace) -> RunnerConfig:
    """
    Combine config sources, lowest priority first:
    defaults, ``taskrun.yaml``/``config.yaml`` in the cwd, ``TASKRUN_*`` env vars, CLI flags.
    """
    base = config_from_mapping(load_config(Path.cwd()), default=RunnerConfig(env_prefix=ENV_PREFIX))
    cfg = RunnerConfig.from_env(default=base)
    updates: dict[str, Any] = {}
    if getattr(args, "level", None):
        updates["event_level"] = parse_level(args.level)
    if getattr(args, "log_dir", None):
        updates["log_dir"] = Path(args.log_dir)
    if getattr(args, "no_sound", False):
        updates["sound"] = False
    if getattr(args, "no_jsonl", False):
        updates["write_jsonl"] = False
    return replace(cfg, **updates)


def _silent(success: bool) -> None:
    return None


def run_target(args: argparse.Namespace, *, exit_when_done: bool, sound_on_success: bool) -> Any:
    """Resolve the target and run it as a task; returns its result unless the runner exits."""
    cfg = resolve_config(args)
    fn = resolve_target(args.target)
    logger, event_logger = configure_logging(cfg=cfg)
    runner = TaskRunner(event_logger=event_logger, notifier=terminal_bell if cfg.sound else _silent)
    options = RunOptions(
        component=getattr(fn, "__module__", None) or args.target.partition(":")[0],
        operation=getattr(fn, "__qualname__", None) or args.target.partition(":")[2],
        level=cfg.event_level,
        sound_on_success=sound_on_success and cfg.sound,
        exit_when_done=exit_when_done,
        logger=logger,
    )
    call_args = list(args.args or [])
    return runner.run(ValueTask(lambda: fn(*call_args)), options)
