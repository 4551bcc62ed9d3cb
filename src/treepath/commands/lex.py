"""Lex command printing the lexeme stream of a path."""

from __future__ import annotations

import json
from dataclasses import dataclass

import typer

from treepath import config as config_module
from treepath.color import build_console, colorize, error_style, should_use_color
from treepath.output_format import OutputOperation, PreparedOutput, print_prepared_output
from treepath.path_language import Lexeme, LexemeType, Lexer


@dataclass
class LexArgs:
    """Resolved options of one `treepath lex` run."""

    path: str
    color_flag: bool | None


def format_lexeme_lines(lexemes: list[Lexeme], color_enabled: bool) -> list[str]:
    """Format one `position type value` line per lexeme, columns aligned."""
    type_width = max((len(lexeme.type.name) for lexeme in lexemes), default=0)
    lines: list[str] = []
    for lexeme in lexemes:
        value = json.dumps(lexeme.value, ensure_ascii=False)
        if lexeme.type is LexemeType.ERROR:
            value = error_style(value, color_enabled)
        else:
            value = colorize(value, "green", color_enabled)
        type_name = colorize(lexeme.type.name.ljust(type_width), "bold", color_enabled)
        lines.append(f"{lexeme.position:>4}  {type_name}  {value}")
    return lines


def run_lex(args: LexArgs) -> None:
    """Run the lex command."""
    color_enabled = should_use_color(args.color_flag)
    lines = format_lexeme_lines(list(Lexer(args.path)), color_enabled)
    kind = "console_print" if color_enabled else "plain_write"
    prepared = PreparedOutput(
        operations=tuple(
            OutputOperation(kind=kind, text=line, markup=color_enabled) for line in lines
        )
    )
    print_prepared_output(build_console(color_enabled), prepared)


def register(app: typer.Typer) -> None:
    """Add the `lex` command to `app`."""

    @app.command("lex")
    def lex_command(
        path: str = typer.Argument(..., metavar="PATH", help="Path expression to tokenize"),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """Print the lexemes of a path expression, one per line."""
        args = LexArgs(path=path, color_flag=color_flag)
        config_module.log_command_arguments(args, "lex")
        run_lex(args)
