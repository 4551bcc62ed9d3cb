"""Configuration handling for the treepath CLI.

The config file is a JSON object mapping long option flags to their default
values, e.g. ``{"--out": "json", "--max-results": 20}``. Defaults are handed
to commands through click's ``default_map``, so flags given on the command
line always win.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import typer

from treepath.output_format import OutputFormat


DEFAULT_CONFIG_NAME = ".treepath.json"

# Defaults collected from the config file, keyed by option destination.
CONFIG_DEFAULTS: dict[str, object] = {}

logger = logging.getLogger("treepath")


@dataclass(frozen=True)
class ConfigOption:
    """Config file entry for one CLI option."""

    dest: str
    validate: Callable[[str, object], object | None]
    per_command: bool = True


def validate_int_option(value: object, min_value: int | None) -> int | None:
    """Return `value` if it is an int no smaller than `min_value`."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if min_value is not None and value < min_value:
        return None
    return value


def validate_str_option(key: str, value: object) -> str | None:
    """Return `value` if it is a usable non-blank string for option `key`."""
    if not isinstance(value, str) or not value.strip():
        return None
    if key == "--out" and value.strip().lower() not in set(OutputFormat):
        return None
    return value


def _validate_count(_key: str, value: object) -> int | None:
    return validate_int_option(value, 0)


def _validate_flag(_key: str, value: object) -> bool | None:
    return value if isinstance(value, bool) else None


CONFIG_OPTIONS: dict[str, ConfigOption] = {
    "--max-results": ConfigOption("max_results", _validate_count),
    "--offset": ConfigOption("offset", _validate_count),
    "--out": ConfigOption("out", validate_str_option),
    "--out-theme": ConfigOption("out_theme", validate_str_option),
    "--verbose": ConfigOption("verbose", _validate_flag, per_command=False),
    "--debug": ConfigOption("debug", _validate_flag, per_command=False),
}

COMMAND_OPTION_NAMES = {"color_flag"} | {
    option.dest for option in CONFIG_OPTIONS.values() if option.per_command
}

DEST_TO_OPTION_NAME: dict[str, str] = {
    "color_flag": "--color/--no-color",
    "config": "--config",
} | {option.dest: flag for flag, option in CONFIG_OPTIONS.items()}


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Read the raw config object from `filepath`.

    Args:
        filepath: Path to the JSON config file

    Returns:
        The parsed object and whether the file was malformed. A missing file
        is not malformed and yields an empty object.
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except (OSError, json.JSONDecodeError):
        return ({}, True)

    if isinstance(data, dict):
        return (data, False)
    return ({}, True)


def parse_color_defaults(config: dict[str, object]) -> tuple[dict[str, object], bool]:
    """Turn `--color`/`--no-color` entries into a `color_flag` default.

    Returns the defaults and whether the entries were valid. Both flags
    enabled at once is a conflict.
    """
    flags = {key: config[key] for key in ("--color", "--no-color") if key in config}
    if any(not isinstance(value, bool) for value in flags.values()):
        return ({}, False)

    color_on = flags.get("--color") is True
    color_off = flags.get("--no-color") is True
    if color_on and color_off:
        return ({}, False)
    if color_on or color_off:
        return ({"color_flag": color_on}, True)
    return ({}, True)


def build_config_defaults(config: dict[str, object]) -> dict[str, object] | None:
    """Validate a raw config object.

    Returns:
        Defaults keyed by option destination, or None when any entry is
        unknown or has an invalid value
    """
    defaults, color_valid = parse_color_defaults(config)
    if not color_valid:
        return None

    for key, value in config.items():
        if key in ("--color", "--no-color"):
            continue
        option = CONFIG_OPTIONS.get(key)
        checked = None if option is None else option.validate(key, value)
        if option is None or checked is None:
            logger.debug("Rejected config entry %s=%r", key, value)
            return None
        defaults[option.dest] = checked

    return defaults


def parse_config_argument(argv: list[str]) -> str:
    """Find the `--config` value in `argv` ahead of click's own parsing."""
    args = argv[1:]
    for position, arg in enumerate(args):
        if arg.startswith("--config="):
            return arg.partition("=")[2]
        if arg == "--config" and position + 1 < len(args):
            return args[position + 1]
    return DEFAULT_CONFIG_NAME


def load_cli_config(argv: list[str]) -> dict[str, object]:
    """Load and validate defaults from the config file selected by `argv`."""
    config_path = Path(parse_config_argument(argv))
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path

    raw, malformed = load_config(str(config_path))
    defaults = None if malformed else build_config_defaults(raw)
    if defaults is None:
        raise typer.BadParameter("Malformed config")
    return defaults


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build the click `default_map` from validated config defaults."""
    return {"query": {k: v for k, v in defaults.items() if k in COMMAND_OPTION_NAMES}}


def _joined_entries(items: list[tuple[str, object]]) -> str:
    return ", ".join(f"{name}={value!r}" for name, value in items)


def log_applied_config_defaults(command_name: str) -> None:
    """Log the config defaults in effect for `command_name`."""
    entries = [
        (DEST_TO_OPTION_NAME[dest], value)
        for dest, value in sorted(CONFIG_DEFAULTS.items())
        if dest in DEST_TO_OPTION_NAME
    ]
    if entries:
        logger.info("Config defaults applied (%s): %s", command_name, _joined_entries(entries))


def log_command_arguments(args: object, command_name: str) -> None:
    """Log the final argument values a command runs with."""
    if not logger.isEnabledFor(logging.INFO) or not hasattr(args, "__dict__"):
        return
    entries = sorted(vars(args).items())
    logger.info("Command arguments (%s): %s", command_name, _joined_entries(entries))
