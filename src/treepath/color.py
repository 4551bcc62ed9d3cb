"""Rich markup styles for treepath output."""

import sys

from rich.console import Console
from rich.markup import escape

from treepath.nodes import ScalarKind


_SCALAR_STYLES: dict[ScalarKind, str] = {
    ScalarKind.STRING: "green",
    ScalarKind.INT: "cyan",
    ScalarKind.FLOAT: "cyan",
    ScalarKind.BOOL: "magenta",
    ScalarKind.NULL: "dim white",
}


def should_use_color(color_flag: bool | None) -> bool:
    """Resolve `--color/--no-color`, falling back to whether stdout is a TTY."""
    if color_flag is None:
        return sys.stdout.isatty()
    return color_flag


def colorize(text: str, style: str, enabled: bool) -> str:
    """Wrap `text` in rich markup for `style`, escaping markup inside it.

    Disabled coloring returns `text` untouched.
    """
    if not enabled:
        return text
    return f"[{style}]{escape(text)}[/]"


def location_style(text: str, enabled: bool) -> str:
    """Style a node location such as `$['a'][0]`."""
    return colorize(text, "bold blue", enabled)


def scalar_style(text: str, kind: ScalarKind, enabled: bool) -> str:
    """Style rendered scalar text according to its kind."""
    return colorize(text, _SCALAR_STYLES[kind], enabled)


def error_style(text: str, enabled: bool) -> str:
    """Style lexer error values."""
    return colorize(text, "bold red", enabled)


def build_console(color_enabled: bool) -> Console:
    """Build the stdout console used for command output."""
    return Console(
        color_system="auto" if color_enabled else None,
        force_terminal=color_enabled,
        no_color=not color_enabled,
        highlight=False,
        soft_wrap=True,
    )
