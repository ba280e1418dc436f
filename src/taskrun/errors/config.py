from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional
import logging
import os
import uuid

import yaml

from .types import ConfigError


_TRUTHY_OFF = ("0", "false", "False", "no", "off", "")


def load_config(root: Path) -> dict[str, Any]:
    """
    Load taskrun config from a directory if present.

    Search order:
    1) ``taskrun.yaml``
    2) ``config.yaml``
    """

    for filename in ("taskrun.yaml", "config.yaml"):
        config_path = root / filename
        if config_path.exists():
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigError(f"{config_path} must contain a mapping at top level.")
            return data
    return {}


def parse_level(value: Any) -> int:
    """Resolve a logging level given as an int or a level name like ``"INFO"``."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid logging level: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        resolved = logging.getLevelName(value.strip().upper())
        if isinstance(resolved, int):
            return resolved
    raise ConfigError(f"Invalid logging level: {value!r}")


@dataclass(frozen=True)
class RunnerConfig:
    """
    Configuration for logging and notification around task runs.

    Parameters
    ----------
    log_dir
        Directory where log files and JSONL event logs are written.
    run_id
        Unique identifier for the run. If "auto", a UUID4 is generated.
    console_level
        Logging level for console output.
    file_level
        Logging level for file output.
    event_level
        Logging level used for normal task events (start/stop/elapsed time).
    write_jsonl
        If True, writes structured JSONL events to <log_dir>/events_<run_id>.jsonl.
    sound
        If True, a notification is played when a task finishes.
    env_prefix
        Prefix for environment-variable overrides, e.g. "TASKRUN_".

    Usage example
    -------------
        cfg = RunnerConfig(log_dir=Path("logs"), event_level=logging.DEBUG)
    """

    log_dir: Path = Path("logs")
    run_id: str = "auto"

    console_level: int = 20  # logging.INFO
    file_level: int = 10  # logging.DEBUG
    event_level: int = 20  # logging.INFO

    write_jsonl: bool = True
    sound: bool = True

    env_prefix: str = field(default="", repr=False)

    def resolved_run_id(self) -> str:
        """Return a non-auto run id."""
        if self.run_id != "auto":
            return self.run_id
        return uuid.uuid4().hex[:10]

    @classmethod
    def from_env(cls, *, default: Optional["RunnerConfig"] = None) -> "RunnerConfig":
        """
        Create config from environment variables.

        Supported variables (prefix controlled by env_prefix on `default`):
        - <PFX>LOG_DIR: path
        - <PFX>LOG_LEVEL: level name used for task events
        - <PFX>WRITE_JSONL: "1"/"0"
        - <PFX>SOUND: "1"/"0"

        Notes
        -----
        If `default` is None, uses cls() and prefix "".

        Usage example
        -------------
            cfg = RunnerConfig.from_env(default=RunnerConfig(env_prefix="TASKRUN_"))
        """
        base = default if default is not None else cls()
        pfx = base.env_prefix

        log_dir = Path(os.getenv(f"{pfx}LOG_DIR", str(base.log_dir)))

        event_level = base.event_level
        level_raw = os.getenv(f"{pfx}LOG_LEVEL", "")
        if level_raw.strip():
            try:
                event_level = parse_level(level_raw)
            except ConfigError:
                event_level = base.event_level

        write_jsonl_raw = os.getenv(f"{pfx}WRITE_JSONL", "1" if base.write_jsonl else "0").strip()
        write_jsonl = write_jsonl_raw not in _TRUTHY_OFF

        sound_raw = os.getenv(f"{pfx}SOUND", "1" if base.sound else "0").strip()
        sound = sound_raw not in _TRUTHY_OFF

        return replace(base, log_dir=log_dir, event_level=event_level, write_jsonl=write_jsonl, sound=sound)


def config_from_mapping(data: Mapping[str, Any], *, default: Optional[RunnerConfig] = None) -> RunnerConfig:
    """
    Build a RunnerConfig from the ``logging`` section of a loaded config file.

    Unknown keys are ignored; invalid values raise ConfigError.

    Usage example
    -------------
        cfg = config_from_mapping(load_config(Path.cwd()))
    """
    base = default if default is not None else RunnerConfig()
    section = data.get("logging")
    if section is None:
        return base
    if not isinstance(section, Mapping):
        raise ConfigError("Config section 'logging' must be a mapping.")

    updates: dict[str, Any] = {}
    if "log_dir" in section:
        updates["log_dir"] = Path(str(section["log_dir"]))
    if "run_id" in section:
        updates["run_id"] = str(section["run_id"])
    for key in ("console_level", "file_level", "event_level"):
        if key in section:
            updates[key] = parse_level(section[key])
    for key in ("write_jsonl", "sound"):
        if key in section:
            value = section[key]
            if not isinstance(value, bool):
                raise ConfigError(f"Config key 'logging.{key}' must be true or false.")
            updates[key] = value
    return replace(base, **updates)
