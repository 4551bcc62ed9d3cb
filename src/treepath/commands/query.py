"""Query command selecting nodes from JSON documents."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass

import typer

from treepath import config as config_module
from treepath.color import build_console, should_use_color
from treepath.nodes import Node
from treepath.output_format import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    OutputFormatError,
    get_query_formatter,
    print_prepared_output,
)
from treepath.path_language import PathCompileError, compile_path


logger = logging.getLogger("treepath")

STDIN_NAME = "-"


@dataclass
class QueryArgs:
    """Resolved options of one `treepath query` run."""

    path: str
    files: list[str] | None
    config: str
    color_flag: bool | None
    max_results: int
    offset: int
    out: str
    out_theme: str


def _read_document_text(filename: str) -> str:
    if filename == STDIN_NAME:
        return sys.stdin.read()
    try:
        with open(filename, encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read '{filename}': {exc.strerror}") from exc
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"Cannot read '{filename}': not UTF-8 text") from exc


def load_document(filename: str) -> object:
    """Load one JSON document from a file, or stdin for `-`."""
    text = _read_document_text(filename)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        source = "stdin" if filename == STDIN_NAME else f"'{filename}'"
        raise typer.BadParameter(f"Malformed JSON in {source}: {exc}") from exc
    logger.info("Loaded document from %s", "stdin" if filename == STDIN_NAME else filename)
    return document


def select_window(nodes: list[Node], offset: int, max_results: int) -> list[Node]:
    """Skip `offset` matches and keep at most `max_results`, 0 keeping all."""
    window = nodes[offset:]
    if max_results > 0:
        window = window[:max_results]
    return window


def run_query(args: QueryArgs) -> None:
    """Run the query command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    if args.offset < 0:
        raise typer.BadParameter("--offset must be non-negative")
    if args.max_results < 0:
        raise typer.BadParameter("--max-results must be non-negative")
    try:
        formatter = get_query_formatter(args.out)
    except OutputFormatError as exc:
        raise typer.BadParameter(str(exc), param_hint="--out") from exc

    try:
        compiled_path = compile_path(args.path)
    except PathCompileError as exc:
        raise typer.BadParameter(str(exc), param_hint="PATH") from exc

    matches: list[Node] = []
    for filename in args.files or [STDIN_NAME]:
        document_matches = compiled_path(load_document(filename))
        logger.info("Matched %d nodes in %s", len(document_matches), filename)
        matches.extend(document_matches)

    try:
        prepared_output = formatter.prepare(
            select_window(matches, args.offset, args.max_results),
            color_enabled,
            args.out_theme,
        )
    except OutputFormatError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print_prepared_output(console, prepared_output)


def register(app: typer.Typer) -> None:
    """Add the `query` command to `app`."""

    @app.command("query")
    def query_command(  # noqa: PLR0913
        path: str = typer.Argument(..., metavar="PATH", help="Path expression, e.g. $.a[0]"),
        files: list[str] | None = typer.Argument(  # noqa: B008
            None, metavar="FILE", help="JSON files to query, '-' or none for stdin"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="JSON config file with option defaults",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
        max_results: int = typer.Option(
            0,
            "--max-results",
            "-n",
            metavar="N",
            help="Maximum number of results to display, 0 for all",
        ),
        offset: int = typer.Option(
            0,
            "--offset",
            metavar="N",
            help="Skip the first N matches",
        ),
        out: str = typer.Option(
            OutputFormat.TEXT,
            "--out",
            help="Output format: text, json or locations",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Pygments theme used for highlighted JSON",
        ),
    ) -> None:
        """Print the nodes of JSON documents selected by a path expression."""
        args = QueryArgs(
            path=path,
            files=files,
            config=config,
            color_flag=color_flag,
            max_results=max_results,
            offset=offset,
            out=out,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("query")
        config_module.log_command_arguments(args, "query")
        run_query(args)
