# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Settings of batcheuphoria.

Every setting has a default and can be overridden from a TOML file whose
tables mirror the dataclasses below (e.g. `[manager]`, `[lsf_options]`).
The loaded configuration is available as `CFG`.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by batcheuphoria."""

    # Enables debug mode.
    debug_mode: str = "BE_DEBUG"
    # Name of the backend to use.
    backend: str = "BE_BACKEND"
    # Path to an explicit configuration file.
    config: str = "BE_CONFIG"
    # Creation counter of a job, exported into the job's environment.
    job_creation_counter: str = "JOB_CREATION_COUNTER"


@dataclass
class TimeoutSettings:
    """Timeout settings in seconds."""

    # Kill a command run by the local execution service after this many seconds.
    # No timeout is applied if not set.
    execution: int | None = None


@dataclass
class ManagerSettings:
    """Settings for the job manager and its status synchronization."""

    # Maximal age (in seconds) of the cached bulk status before it is refreshed.
    status_cache_ttl: float = 30.0
    # Status queries are scoped to tracked job IDs only if fewer jobs than this are tracked.
    scoped_query_limit: int = 10
    # Interval (in seconds) between background status updates.
    update_interval: int = 60
    # Number of additional polls a job reported in an unrecognized state survives
    # before it is considered failed.
    unknown_submitted_grace_polls: int = 0


@dataclass
class LSFOptions:
    """Options associated with LSF."""

    # Delimiter used to separate fields in the bjobs projection.
    delimiter: str = "<"


@dataclass
class PBSOptions:
    """Options associated with PBS."""

    # Dependency type used to express parent jobs.
    dependency_type: str = "afterok"


@dataclass
class PresenterSettings:
    """Settings for the job status table."""

    # Maximal width of the status panel.
    max_width: int | None = None
    # Minimal width of the status panel.
    min_width: int | None = 60
    # Maximum displayed length of a job name before truncation.
    max_job_name_length: int = 20
    # Style used for border lines.
    border_style: str = "white"
    # Style used for the title.
    title_style: str = "white bold"
    # Style used for table headers.
    headers_style: str = "default"
    # Style used for table values.
    main_style: str = "white"


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format.
    standard: str = "%Y-%m-%d %H:%M:%S"
    # Date format used by LSF bjobs (no year).
    lsf: str = "%b %d %H:%M"


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Default error code for failures of commands.
    default: int = 91
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 99


@dataclass
class Config:
    """Main configuration for batcheuphoria."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    manager: ManagerSettings = field(default_factory=ManagerSettings)
    lsf_options: LSFOptions = field(default_factory=LSFOptions)
    pbs_options: PBSOptions = field(default_factory=PBSOptions)
    presenter: PresenterSettings = field(default_factory=PresenterSettings)
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)

    # Name of the binary.
    binary_name: str = "beu"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Build the configuration from a TOML file, falling back to the defaults.

        Keys missing from the file keep their default values. If no path is given,
        `BE_CONFIG`, `./beu_config.toml`, and `$XDG_CONFIG_HOME/beu/config.toml`
        are tried in this order.

        Raises:
            ValueError: If the file exists but cannot be parsed.
        """
        path = config_path or Config._get_config_path()
        if not path or not path.exists():
            return cls()

        try:
            with path.open("rb") as f:
                return _dict_to_dataclass(cls, tomllib.load(f))
        except Exception as e:
            raise ValueError(f"Could not read config '{path}': {e}.") from e

    @staticmethod
    def _get_config_path() -> Path | None:
        xdg_home = Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config")
        candidates = [
            os.getenv(EnvironmentVariables.config),
            Path.cwd() / "beu_config.toml",
            xdg_home / "beu" / "config.toml",
        ]

        return next(
            (Path(c) for c in candidates if c and Path(c).is_file()),
            None,
        )


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Instantiate dataclass `cls` from `data`, descending into nested dataclass fields.
    Unknown keys are ignored.
    """
    if not is_dataclass(cls):
        return data

    values = {}
    for f in fields(cls):
        if f.name not in data:
            continue

        value = data[f.name]
        nested = is_dataclass(f.type) and isinstance(value, dict)
        values[f.name] = _dict_to_dataclass(f.type, value) if nested else value

    return cls(**values)


# Global configuration.
CFG = Config.load()
