"""Compiled matcher stages and filter predicates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, TypeAlias


@dataclass(frozen=True, slots=True)
class Stage:
    """Base matcher stage type."""


@dataclass(frozen=True, slots=True)
class Root(Stage):
    """Stage replacing the candidates with the document root."""


@dataclass(frozen=True, slots=True)
class Identity(Stage):
    """Stage returning the candidates unchanged."""


@dataclass(frozen=True, slots=True)
class DotChild(Stage):
    """Child lookup written as `.name`."""

    name: str


@dataclass(frozen=True, slots=True)
class BracketChild(Stage):
    """Child lookup written as `['name']`."""

    name: str


@dataclass(frozen=True, slots=True)
class RecursiveDescent(Stage):
    """Child lookup at any depth written as `..name`."""

    name: str


@dataclass(frozen=True, slots=True)
class Wildcard(Stage):
    """All children of mappings and sequences."""


@dataclass(frozen=True, slots=True)
class Index(Stage):
    """Sequence item lookup, negative indices count from the end."""

    index: int


@dataclass(frozen=True, slots=True)
class Slice(Stage):
    """Sequence slice with Python slice semantics."""

    start: int | None
    end: int | None
    step: int | None


@dataclass(frozen=True, slots=True)
class Filter(Stage):
    """Keep the children for which a predicate holds."""

    predicate: Predicate


@dataclass(frozen=True, slots=True)
class Pipeline:
    """Immutable sequence of stages applied left to right."""

    stages: tuple[Stage, ...]


@dataclass(frozen=True, slots=True)
class Predicate:
    """Base filter predicate type."""


@dataclass(frozen=True, slots=True)
class PathOperand(Predicate):
    """Sub-path anchored at the filtered item (`@`) or the document root (`$`).

    Used on its own as a predicate it tests for existence.
    """

    anchor: Literal["@", "$"]
    pipeline: Pipeline


@dataclass(frozen=True, slots=True)
class IntLiteral(Predicate):
    """Integer literal operand."""

    value: int


@dataclass(frozen=True, slots=True)
class FloatLiteral(Predicate):
    """Float literal operand."""

    value: float


@dataclass(frozen=True, slots=True)
class StringLiteral(Predicate):
    """String literal operand."""

    value: str


@dataclass(frozen=True, slots=True)
class RegexLiteral(Predicate):
    """Compiled regular expression operand of `=~`."""

    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class Not(Predicate):
    """Negated predicate."""

    expr: Predicate


@dataclass(frozen=True, slots=True)
class And(Predicate):
    """Conjunction of two predicates."""

    left: Predicate
    right: Predicate


@dataclass(frozen=True, slots=True)
class Or(Predicate):
    """Disjunction of two predicates."""

    left: Predicate
    right: Predicate


@dataclass(frozen=True, slots=True)
class Compare(Predicate):
    """Binary comparison between two operands."""

    operator: str
    left: Predicate
    right: Predicate


Operand: TypeAlias = PathOperand | IntLiteral | FloatLiteral | StringLiteral | RegexLiteral
