"""Rendering of query matches in the supported output formats.

Formatters do not print anything themselves. They turn matched nodes into a
`PreparedOutput`, a list of operations that `print_prepared_output` later
replays on a rich console. Uncolored lines bypass rich entirely so that values
containing brackets are never read as markup or re-wrapped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from rich.console import Console
from rich.syntax import Syntax

from treepath.color import location_style, scalar_style
from treepath.nodes import DataNode, Node, NodeKind, ScalarKind

DEFAULT_OUTPUT_THEME = "github-dark"


class OutputFormat(StrEnum):
    """Values accepted by `--out`."""

    JSON = "json"
    TEXT = "text"
    LOCATIONS = "locations"


class QueryOutputFormatter(Protocol):
    """Something that can render the matches of a query."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        """Turn matched nodes into output operations."""
        ...


@dataclass(frozen=True)
class OutputOperation:
    """A single write to the console.

    `kind` is either ``plain_write`` (text written to the console file as is)
    or ``console_print`` (text or renderable printed through rich).
    """

    kind: str
    text: str | None = None
    renderable: object | None = None
    markup: bool = False


@dataclass(frozen=True)
class PreparedOutput:
    operations: tuple[OutputOperation, ...]


class OutputFormatError(RuntimeError):
    """Unknown output format or a match that cannot be rendered."""


def node_to_data(node: Node) -> object:
    """Rebuild plain JSON-compatible data from a node."""
    if isinstance(node, DataNode):
        return node.value
    match node.kind:
        case NodeKind.MAPPING:
            return {key: node_to_data(child) for key, child in node.pairs()}
        case NodeKind.SEQUENCE:
            return [node_to_data(child) for child in node.items()]
    return node.scalar()[1]


def node_location(node: Node) -> str:
    """Return the normalized path of `node`, or `?` for nodes without one."""
    location = getattr(node, "location", None)
    return location if isinstance(location, str) else "?"


def _scalar_text(kind: ScalarKind, value: object) -> str:
    match kind:
        case ScalarKind.NULL:
            return "null"
        case ScalarKind.BOOL:
            return json.dumps(bool(value))
    return str(value)


def _to_json(value: object, indent: int | None = None) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, indent=indent)
    except (TypeError, ValueError) as exc:
        raise OutputFormatError(f"Cannot serialize result: {exc}") from exc


def _line(text: str, color_enabled: bool) -> OutputOperation:
    if color_enabled:
        return OutputOperation(kind="console_print", text=text, markup=True)
    return OutputOperation(kind="plain_write", text=text)


def _highlighted(text: str, out_theme: str, word_wrap: bool = False) -> OutputOperation:
    theme = out_theme.strip() or DEFAULT_OUTPUT_THEME
    syntax = Syntax(text, "json", theme=theme, word_wrap=word_wrap)
    return OutputOperation(kind="console_print", renderable=syntax)


NO_RESULTS = PreparedOutput(
    operations=(OutputOperation(kind="console_print", text="No results"),)
)


class JsonQueryOutputFormatter:
    """Print all matched values as one indented JSON array."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        text = _to_json([node_to_data(node) for node in nodes], indent=2)
        if color_enabled:
            operation = _highlighted(text, out_theme, word_wrap=True)
        else:
            operation = OutputOperation(kind="plain_write", text=text)
        return PreparedOutput(operations=(operation,))


class TextQueryOutputFormatter:
    """Print one match per line: scalars bare, containers as compact JSON."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        if not nodes:
            return NO_RESULTS

        operations: list[OutputOperation] = []
        for node in nodes:
            if node.kind is NodeKind.SCALAR:
                kind, value = node.scalar()
                text = scalar_style(_scalar_text(kind, value), kind, color_enabled)
                operations.append(_line(text, color_enabled))
            elif color_enabled:
                operations.append(_highlighted(_to_json(node_to_data(node)), out_theme))
            else:
                operations.append(_line(_to_json(node_to_data(node)), False))
        return PreparedOutput(operations=tuple(operations))


class LocationsQueryOutputFormatter:
    """Print the normalized path of every match."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        if not nodes:
            return NO_RESULTS
        return PreparedOutput(
            operations=tuple(
                _line(location_style(node_location(node), color_enabled), color_enabled)
                for node in nodes
            )
        )


_FORMATTERS: dict[OutputFormat, QueryOutputFormatter] = {
    OutputFormat.JSON: JsonQueryOutputFormatter(),
    OutputFormat.TEXT: TextQueryOutputFormatter(),
    OutputFormat.LOCATIONS: LocationsQueryOutputFormatter(),
}


def get_query_formatter(output_format: str) -> QueryOutputFormatter:
    """Look up the formatter for an `--out` value, ignoring case and padding."""
    try:
        return _FORMATTERS[OutputFormat(output_format.strip().lower())]
    except ValueError:
        supported = ", ".join(OutputFormat)
        raise OutputFormatError(
            f"Unsupported output format '{output_format}', expected one of: {supported}"
        ) from None


def print_prepared_output(console: Console, prepared_output: PreparedOutput) -> None:
    """Replay prepared operations on `console`."""
    for operation in prepared_output.operations:
        if operation.kind == "plain_write":
            if operation.text is not None:
                console.file.write(operation.text + "\n")
                console.file.flush()
        elif operation.renderable is not None:
            console.print(operation.renderable)
        else:
            console.print(operation.text or "", markup=operation.markup)
