"""Compiler entrypoints for path language."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from treepath.nodes import Node, as_node
from treepath.path_language.ast import Pipeline
from treepath.path_language.parser import parse_path
from treepath.path_language.runtime import apply_pipeline


CompiledPath: TypeAlias = Callable[[object], list[Node]]


def compile_pipeline(pipeline: Pipeline) -> CompiledPath:
    """Compile a pipeline into a callable applying it to a document."""

    def _compiled(document: object) -> list[Node]:
        return apply_pipeline(pipeline, as_node(document))

    return _compiled


def compile_path(path: str) -> CompiledPath:
    """Parse and compile path text."""
    pipeline = parse_path(path)
    return compile_pipeline(pipeline)


def apply(path: str, document: object) -> list[Node]:
    """Compile a path and apply it once to a document or node."""
    return compile_path(path)(document)
