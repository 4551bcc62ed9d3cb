"""Tests for the lex command."""

from __future__ import annotations

from typer.testing import CliRunner

from treepath.cli import app
from treepath.commands.lex import format_lexeme_lines
from treepath.path_language import Lexer


def test_format_lexeme_lines_aligns_columns() -> None:
    """Each lexeme should get one line with padded type names."""
    lines = format_lexeme_lines(list(Lexer("$.a[0]")), False)

    assert lines == [
        '   0  ROOT             "$"',
        '   1  DOT_CHILD        ".a"',
        '   3  ARRAY_SUBSCRIPT  "[0]"',
        '   6  IDENTITY         ""',
    ]


def test_format_lexeme_lines_colored_markup() -> None:
    """Colored lines should style errors differently from other values."""
    lines = format_lexeme_lines(list(Lexer("$.")), True)

    assert lines[0] == '   0  [bold]ROOT [/]  [green]"$"[/]'
    assert lines[1] == '   1  [bold]ERROR[/]  [bold red]"child name missing after ."[/]'


def test_lex_command_prints_lexemes() -> None:
    """The lex command should print lexeme types and values."""
    runner = CliRunner()

    result = runner.invoke(app, ["lex", "--no-color", "$.a[0]"])

    assert result.exit_code == 0
    assert result.stdout.splitlines()[2] == '   3  ARRAY_SUBSCRIPT  "[0]"'


def test_lex_command_prints_error_lexeme() -> None:
    """Lexer errors should appear as the last line without failing the command."""
    runner = CliRunner()

    result = runner.invoke(app, ["lex", "--no-color", "$."])

    assert result.exit_code == 0
    assert result.stdout.splitlines()[-1] == '   1  ERROR  "child name missing after ."'
