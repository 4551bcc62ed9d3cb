"""Runtime evaluation of compiled pipelines against document nodes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeAlias
from dataclasses import dataclass
from operator import eq, ge, gt, le, lt, ne

from treepath.nodes import DataNode, Node, NodeKind, ScalarKind, ScalarValue
from treepath.path_language.ast import (
    And,
    BracketChild,
    Compare,
    DotChild,
    Filter,
    FloatLiteral,
    Identity,
    Index,
    IntLiteral,
    Not,
    Or,
    PathOperand,
    Pipeline,
    Predicate,
    RecursiveDescent,
    RegexLiteral,
    Root,
    Slice,
    Stage,
    StringLiteral,
    Wildcard,
)


logger = logging.getLogger("treepath")

Scalar: TypeAlias = tuple[ScalarKind, ScalarValue]

_COMPARATORS: dict[str, Callable[[object, object], bool]] = {
    "==": eq,
    "!=": ne,
    "<": lt,
    "<=": le,
    ">": gt,
    ">=": ge,
}
_NUMERIC_KINDS = frozenset({ScalarKind.INT, ScalarKind.FLOAT})


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Execution context for one application of a pipeline."""

    root: Node


def apply_pipeline(pipeline: Pipeline, root: Node) -> list[Node]:
    """Apply a compiled pipeline to a document root and return the matched nodes."""
    matches = evaluate_pipeline(pipeline, [root], EvalContext(root))
    logger.debug("Pipeline of %d stages matched %d nodes", len(pipeline.stages), len(matches))
    return matches


def evaluate_pipeline(
    pipeline: Pipeline, candidates: list[Node], context: EvalContext
) -> list[Node]:
    """Run every stage of a pipeline over an evolving candidate list."""
    current = candidates
    for stage in pipeline.stages:
        current = evaluate_stage(stage, current, context)
    return current


def evaluate_stage(stage: Stage, candidates: list[Node], context: EvalContext) -> list[Node]:
    """Evaluate one stage over the candidate list."""
    if isinstance(stage, Root):
        return [context.root]
    if isinstance(stage, Identity):
        return list(candidates)
    if isinstance(stage, DotChild | BracketChild):
        return _evaluate_child(stage.name, candidates)
    if isinstance(stage, Wildcard):
        return [child for candidate in candidates for child in _children(candidate)]
    if isinstance(stage, Index):
        return _evaluate_index(stage.index, candidates)
    if isinstance(stage, Slice):
        return _evaluate_slice(stage, candidates)
    if isinstance(stage, RecursiveDescent):
        return _evaluate_recursive_descent(stage.name, candidates)
    if isinstance(stage, Filter):
        return _evaluate_filter(stage.predicate, candidates, context)
    raise TypeError(f"Unsupported stage type: {type(stage).__name__}")


def _children(node: Node) -> Sequence[Node]:
    """Return mapping values or sequence items, nothing for scalars."""
    if node.kind is NodeKind.MAPPING:
        return [child for _key, child in node.pairs()]
    if node.kind is NodeKind.SEQUENCE:
        return node.items()
    return ()


def _child_named(node: Node, name: str) -> Node | None:
    if isinstance(node, DataNode):
        return node.child(name)
    if node.kind is not NodeKind.MAPPING:
        return None
    for key, child in node.pairs():
        if key == name:
            return child
    return None


def _evaluate_child(name: str, candidates: list[Node]) -> list[Node]:
    output: list[Node] = []
    for candidate in candidates:
        child = _child_named(candidate, name)
        if child is not None:
            output.append(child)
    return output


def _evaluate_index(index: int, candidates: list[Node]) -> list[Node]:
    """Select one item per sequence, skipping out-of-range indices."""
    output: list[Node] = []
    for candidate in candidates:
        if candidate.kind is not NodeKind.SEQUENCE:
            continue
        items = candidate.items()
        if -len(items) <= index < len(items):
            output.append(items[index])
    return output


def _evaluate_slice(stage: Slice, candidates: list[Node]) -> list[Node]:
    bounds = slice(stage.start, stage.end, stage.step)
    output: list[Node] = []
    for candidate in candidates:
        if candidate.kind is NodeKind.SEQUENCE:
            output.extend(list(candidate.items())[bounds])
    return output


def _evaluate_recursive_descent(name: str, candidates: list[Node]) -> list[Node]:
    """Pre-order walk of every candidate subtree, visiting each node once.

    `*` selects every child of every visited node.
    """
    output: list[Node] = []
    # Keyed by id(); holding the node keeps the id from being reused mid-walk.
    visited: dict[int, Node] = {}

    def descend(node: Node) -> None:
        if id(node) in visited:
            return
        visited[id(node)] = node
        children = _children(node)
        if name == "*":
            output.extend(children)
        else:
            child = _child_named(node, name)
            if child is not None:
                output.append(child)
        for child in children:
            descend(child)

    for candidate in candidates:
        descend(candidate)
    return output


def _evaluate_filter(
    predicate: Predicate, candidates: list[Node], context: EvalContext
) -> list[Node]:
    output: list[Node] = []
    for candidate in candidates:
        output.extend(
            child
            for child in _children(candidate)
            if evaluate_predicate(predicate, child, context)
        )
    return output


def evaluate_predicate(predicate: Predicate, current: Node, context: EvalContext) -> bool:
    """Evaluate a filter predicate with `current` bound to `@`."""
    if isinstance(predicate, Not):
        return not evaluate_predicate(predicate.expr, current, context)
    if isinstance(predicate, And):
        return evaluate_predicate(predicate.left, current, context) and evaluate_predicate(
            predicate.right, current, context
        )
    if isinstance(predicate, Or):
        return evaluate_predicate(predicate.left, current, context) or evaluate_predicate(
            predicate.right, current, context
        )
    if isinstance(predicate, Compare):
        return _evaluate_compare(predicate, current, context)
    if isinstance(predicate, PathOperand):
        return bool(_resolve_path(predicate, current, context))
    raise TypeError(f"Unsupported predicate type: {type(predicate).__name__}")


def _resolve_path(operand: PathOperand, current: Node, context: EvalContext) -> list[Node]:
    start = current if operand.anchor == "@" else context.root
    return evaluate_pipeline(operand.pipeline, [start], context)


def _resolve_scalar(operand: Predicate, current: Node, context: EvalContext) -> Scalar | None:
    """Resolve an operand to exactly one scalar, or None."""
    if isinstance(operand, IntLiteral):
        return (ScalarKind.INT, operand.value)
    if isinstance(operand, FloatLiteral):
        return (ScalarKind.FLOAT, operand.value)
    if isinstance(operand, StringLiteral):
        return (ScalarKind.STRING, operand.value)
    if isinstance(operand, PathOperand):
        nodes = _resolve_path(operand, current, context)
        if len(nodes) != 1 or nodes[0].kind is not NodeKind.SCALAR:
            return None
        return nodes[0].scalar()
    return None


def _evaluate_compare(expr: Compare, current: Node, context: EvalContext) -> bool:
    left = _resolve_scalar(expr.left, current, context)
    if left is None:
        return False

    if expr.operator == "=~":
        left_kind, left_value = left
        if left_kind is not ScalarKind.STRING or not isinstance(expr.right, RegexLiteral):
            return False
        return expr.right.pattern.search(str(left_value)) is not None

    right = _resolve_scalar(expr.right, current, context)
    if right is None:
        return False
    return _compare_scalars(expr.operator, left, right)


def _compare_scalars(operator: str, left: Scalar, right: Scalar) -> bool:
    """Compare two scalars of compatible kind; incompatible kinds never match."""
    left_kind, left_value = left
    right_kind, right_value = right
    comparator = _COMPARATORS[operator]
    if left_kind in _NUMERIC_KINDS and right_kind in _NUMERIC_KINDS:
        return comparator(left_value, right_value)
    if operator in {"==", "!="} and left_kind is right_kind:
        return comparator(left_value, right_value)
    return False
