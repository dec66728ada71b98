# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for OnSite FinSight.

This module is responsible for:
- loading the application configuration from a TOML file,
- resolving the CSV record files relative to that file,
- exposing typed dataclasses used by the CLI.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .io import COLLECTIONS
from .log import LOG_LEVELS
from .periods import DEFAULT_TIMEFRAME, TIMEFRAMES

DEFAULT_CONFIG_FILE = "onsite_finsight_config.toml"
DISPLAY_MODES: tuple[str, ...] = ("table", "json", "csv", "both")


@dataclass(frozen=True)
class DataConfig:
    """
    Location of the CSV file of each record collection.

    ``section`` keeps the raw [data] table so that the directory can be
    swapped without losing per-collection file names.
    """

    paths: dict[str, Optional[Path]] = field(default_factory=dict)
    section: dict[str, Any] = field(default_factory=dict)

    def existing(self) -> dict[str, Path]:
        """Only the configured files that exist on disk."""
        return {k: p for k, p in self.paths.items() if p is not None and p.is_file()}

    def with_dir(self, data_dir: Path) -> "DataConfig":
        """Same collections, read from ``data_dir`` instead of [data].dir."""
        section = {**self.section, "dir": str(Path(data_dir).resolve())}
        return resolve_data_paths(section, Path.cwd())


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json: bool = False


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for OnSite FinSight.

    This aggregates:
    - the default report timeframe and the presentation currency,
    - where the record collections are read from,
    - display options for tables,
    - logging options.
    """

    timeframe: str = DEFAULT_TIMEFRAME
    currency: str = "USD"
    data: DataConfig = field(default_factory=DataConfig)
    display_mode: str = "table"
    decimals: int = 2
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return section


def resolve_data_paths(section: Mapping[str, Any], base_dir: Path) -> DataConfig:
    """
    Resolve the CSV path of every collection.

    Each collection defaults to "<collection>.csv" inside ``dir`` (itself
    relative to the config file, "data" by default).
    """
    unknown = set(section) - set(COLLECTIONS) - {"dir"}
    if unknown:
        raise ValueError(
            f"Unknown key(s) in [data]: {', '.join(sorted(unknown))}. "
            f"Expected 'dir' or one of: {', '.join(COLLECTIONS)}."
        )

    data_dir = (base_dir / str(section.get("dir") or "data")).resolve()

    paths: dict[str, Optional[Path]] = {}
    for name in COLLECTIONS:
        raw_path = section.get(name, f"{name}.csv")
        if raw_path is None or raw_path == "":
            paths[name] = None
        else:
            paths[name] = (data_dir / str(raw_path)).resolve()
    return DataConfig(paths=paths, section=dict(section))


def default_app_config(base_dir: Optional[Path] = None) -> AppConfig:
    """Configuration used when no config file exists."""
    base = (base_dir or Path.cwd()).resolve()
    return AppConfig(data=resolve_data_paths({}, base))


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the OnSite FinSight configuration from a TOML file.

    Expected sections (all optional)
    --------------------------------
    [report]
        timeframe (6months, year, 2years, quarterly, forecast), currency.
    [data]
        dir, and one CSV path per collection, relative to ``dir``.
    [display]
        mode (table | json | csv | both), decimals.
    [logging]
        level, json.

    All paths are resolved relative to the directory of the TOML file.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If the file cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Report options
    report_section = _section(raw, "report")
    timeframe = str(report_section.get("timeframe") or DEFAULT_TIMEFRAME)
    if timeframe not in TIMEFRAMES:
        raise ValueError(
            f"Invalid value for 'report.timeframe': {timeframe!r}. "
            f"Expected one of: {', '.join(TIMEFRAMES)}."
        )
    currency = str(report_section.get("currency") or "USD")

    # 2) Data files
    data = resolve_data_paths(_section(raw, "data"), base_dir)

    # 3) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'display.decimals' in the configuration. "
            "Expected an integer."
        ) from exc

    # 4) Logging
    logging_section = _section(raw, "logging")
    level = str(logging_section.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid value for 'logging.level': {level!r}. "
            f"Expected one of: {', '.join(LOG_LEVELS)}."
        )
    log_json = logging_section.get("json", False)
    if not isinstance(log_json, bool):
        raise ValueError(
            f"Invalid value for 'logging.json': {log_json!r}. "
            "Expected a boolean (true or false)."
        )

    return AppConfig(
        timeframe=timeframe,
        currency=currency,
        data=data,
        display_mode=display_mode,
        decimals=decimals,
        logging=LoggingConfig(level=level, json=log_json),
    )
