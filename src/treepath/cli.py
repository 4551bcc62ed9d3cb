#!/usr/bin/env python
"""Command line entry point for treepath."""

from __future__ import annotations

import sys

import typer

from treepath import config, logging_config
from treepath.commands import lex, query


app = typer.Typer(
    help="Select nodes from JSON documents with JSONPath-style path expressions.",
    no_args_is_help=True,
)


DEFAULT_VERBOSE: dict[str, bool] = {"value": False, "debug": False}


def _resolve_flag(value: bool | None, key: str) -> bool:
    if value is None:
        return DEFAULT_VERBOSE[key]
    return value


@app.callback()
def main_callback(
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging output",
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug",
        help="Log path compilation and matching details",
    ),
) -> None:
    """Options shared by all treepath commands."""
    if verbose is None and debug is None and not any(DEFAULT_VERBOSE.values()):
        return
    logging_config.configure_logging(
        _resolve_flag(verbose, "value"),
        _resolve_flag(debug, "debug"),
    )


query.register(app)
lex.register(app)


def main() -> None:
    """Load config defaults, then run the typer application."""
    defaults = config.load_cli_config(sys.argv)
    DEFAULT_VERBOSE["value"] = bool(defaults.pop("verbose", False))
    DEFAULT_VERBOSE["debug"] = bool(defaults.pop("debug", False))
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_DEFAULTS.update(defaults)

    command = typer.main.get_command(app)
    default_map = config.build_default_map(defaults) if defaults else None
    command.main(
        args=sys.argv[1:],
        prog_name="treepath",
        standalone_mode=True,
        default_map=default_map,
    )


if __name__ == "__main__":
    main()
