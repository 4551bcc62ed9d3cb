"""Parser turning a lexeme stream into a pipeline of matcher stages."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Generator
from typing import cast

from parsy import ParseError, Parser, forward_declaration, generate, seq, test_item

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
    Operand,
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
from treepath.path_language.errors import PathCompileError
from treepath.path_language.lexer import Lexeme, Lexer, LexemeType, regular_expression_source


logger = logging.getLogger("treepath")


class _LiteralConditionError(Exception):
    """A literal used alone as a filter condition."""

    def __init__(self, lexeme: Lexeme) -> None:
        super().__init__(lexeme.value)
        self.lexeme = lexeme

_COMPARISON_OPERATORS = (
    LexemeType.FILTER_EQUALITY,
    LexemeType.FILTER_INEQUALITY,
    LexemeType.FILTER_GREATER_THAN,
    LexemeType.FILTER_GREATER_THAN_OR_EQUAL,
    LexemeType.FILTER_LESS_THAN,
    LexemeType.FILTER_LESS_THAN_OR_EQUAL,
    LexemeType.FILTER_MATCHES_REGULAR_EXPRESSION,
)
_LITERALS = (
    LexemeType.FILTER_INTEGER_LITERAL,
    LexemeType.FILTER_FLOAT_LITERAL,
    LexemeType.FILTER_STRING_LITERAL,
    LexemeType.FILTER_REGULAR_EXPRESSION_LITERAL,
)


def _describe(lexeme_type: LexemeType) -> str:
    return lexeme_type.name.lower().replace("_", " ")


def _lexeme(*types: LexemeType) -> Parser:
    """Build a parser accepting one lexeme of the given types."""
    description = " or ".join(_describe(lexeme_type) for lexeme_type in types)
    return test_item(lambda lexeme: lexeme.type in types, description)


def _dot_child_stage(lexeme: Lexeme) -> Stage:
    name = lexeme.value[1:]
    if name == "*":
        return Wildcard()
    return DotChild(name)


def _bracket_child_stage(lexeme: Lexeme) -> Stage:
    return BracketChild(lexeme.value[2:-2])


def _recursive_descent_stage(lexeme: Lexeme) -> Stage:
    return RecursiveDescent(lexeme.value[2:])


def _array_subscript_stage(lexeme: Lexeme) -> Stage:
    """Build an index, slice or wildcard stage from a validated `[...]` lexeme."""
    subscript = lexeme.value[1:-1]
    if subscript == "*":
        return Wildcard()
    parts = subscript.split(":")
    if len(parts) == 1:
        return Index(int(parts[0]))
    bounds = [int(part) if part else None for part in parts]
    step = bounds[2] if len(bounds) == 3 else None
    return Slice(bounds[0], bounds[1], step)


def _literal_operand(lexeme: Lexeme) -> Operand:
    if lexeme.type is LexemeType.FILTER_INTEGER_LITERAL:
        return IntLiteral(int(lexeme.value))
    if lexeme.type is LexemeType.FILTER_FLOAT_LITERAL:
        return FloatLiteral(float(lexeme.value))
    if lexeme.type is LexemeType.FILTER_STRING_LITERAL:
        return StringLiteral(lexeme.value[1:-1])
    return RegexLiteral(re.compile(regular_expression_source(lexeme.value)))


def _operand(term: object) -> Operand:
    if isinstance(term, Lexeme):
        return _literal_operand(term)
    return cast(PathOperand, term)


def _and_builder(left: Predicate, right: Predicate) -> Predicate:
    return And(left, right)


def _or_builder(left: Predicate, right: Predicate) -> Predicate:
    return Or(left, right)


def _chain_left(
    term: Parser,
    op: Parser,
    builder: Callable[[Predicate, Predicate], Predicate],
) -> Parser:
    """Build a left-associative parser from term and operator parsers."""

    @generate
    def parser() -> Generator[Parser, object, Predicate]:
        left_result = yield term
        if not isinstance(left_result, Predicate):
            raise PathCompileError("Invalid left filter expression")

        rest_result = yield (op >> term).many()
        if not isinstance(rest_result, list):
            raise PathCompileError("Invalid filter operator chain")

        current: Predicate = left_result
        for right in rest_result:
            if not isinstance(right, Predicate):
                raise PathCompileError("Invalid right filter expression")
            current = builder(current, right)
        return current

    return parser


def _build_comparison_parser(term: Parser) -> Parser:
    """Build parser for `operand [op operand]`, a bare path being an existence test."""
    comparison_operator = _lexeme(*_COMPARISON_OPERATORS)

    @generate
    def comparison() -> Generator[Parser, object, Predicate]:
        left = yield term
        rest = yield seq(comparison_operator, term).optional()
        if rest is None:
            if isinstance(left, Lexeme):
                raise _LiteralConditionError(left)
            return _operand(left)
        operator_lexeme, right = cast(tuple[Lexeme, object], rest)
        return Compare(operator_lexeme.value, _operand(left), _operand(right))

    return comparison


def _make_parser() -> Parser:
    """Create the full path parser over lexeme lists."""
    filter_expr = forward_declaration()
    unary = forward_declaration()

    segment = (
        _lexeme(LexemeType.DOT_CHILD).map(_dot_child_stage)
        | _lexeme(LexemeType.BRACKET_CHILD).map(_bracket_child_stage)
        | _lexeme(LexemeType.RECURSIVE_DESCENT).map(_recursive_descent_stage)
        | _lexeme(LexemeType.ARRAY_SUBSCRIPT).map(_array_subscript_stage)
        | (
            _lexeme(LexemeType.FILTER_BEGIN) >> filter_expr << _lexeme(LexemeType.FILTER_END)
        ).map(Filter)
    )
    segments = segment.many()
    root = _lexeme(LexemeType.ROOT).result(Root())

    current_path = (_lexeme(LexemeType.FILTER_AT) >> segments).map(
        lambda stages: PathOperand("@", Pipeline(tuple(stages)))
    )
    root_path = seq(root, segments).combine(
        lambda first, rest: PathOperand("$", Pipeline((first, *rest)))
    )
    term = current_path | root_path | _lexeme(*_LITERALS)

    grouped = (
        _lexeme(LexemeType.FILTER_OPEN_BRACKET)
        >> filter_expr
        << _lexeme(LexemeType.FILTER_CLOSE_BRACKET)
    )
    negation = (_lexeme(LexemeType.FILTER_NOT) >> unary).map(Not)
    unary.become(negation | grouped | _build_comparison_parser(term))

    conjunction = _chain_left(unary, _lexeme(LexemeType.FILTER_AND), _and_builder)
    disjunction = _chain_left(conjunction, _lexeme(LexemeType.FILTER_OR), _or_builder)
    filter_expr.become(disjunction)

    identity = _lexeme(LexemeType.IDENTITY).result(Identity())
    path = seq(root, segments, identity).combine(
        lambda first, rest, last: Pipeline((first, *rest, last))
    )
    return path | identity.map(lambda stage: Pipeline((stage,)))


def _byte_offset(path: str, offset: int) -> int:
    return len(path[:offset].encode("utf-8"))


def _format_literal_condition_error(path: str, lexeme: Lexeme) -> str:
    return (
        f"literal {lexeme.value} cannot be used as a filter condition "
        f"at position {_byte_offset(path, lexeme.position)}"
    )


def _format_parse_error(path: str, lexemes: list[Lexeme], exc: ParseError) -> str:
    """Build parse error message pointing at the offending lexeme."""
    if exc.index < len(lexemes):
        lexeme = lexemes[exc.index]
        found = f'"{lexeme.value}"'
        offset = lexeme.position
    else:
        found = "end of path"
        offset = len(path)
    position = _byte_offset(path, offset)
    expected = ", ".join(sorted(exc.expected))
    pointer = " " * offset + "^"
    return (
        f"invalid path syntax: unexpected {found} at position {position}, "
        f"expected {expected}\n\n{path}\n{pointer}"
    )


def lex_for_parsing(path: str) -> list[Lexeme]:
    """Lex a whole path, raising the message of the first error lexeme."""
    lexemes: list[Lexeme] = []
    for lexeme in Lexer(path):
        if lexeme.type is LexemeType.ERROR:
            raise PathCompileError(lexeme.value)
        lexemes.append(lexeme)
    return lexemes


PATH_PARSER = _make_parser()


def parse_path(path: str) -> Pipeline:
    """Lex and parse path text into an immutable pipeline."""
    lexemes = lex_for_parsing(path)
    try:
        result = PATH_PARSER.parse(lexemes)
    except ParseError as exc:
        raise PathCompileError(_format_parse_error(path, lexemes, exc)) from exc
    except _LiteralConditionError as exc:
        raise PathCompileError(_format_literal_condition_error(path, exc.lexeme)) from exc
    if isinstance(result, Pipeline):
        logger.debug("Compiled path %r into %d stages", path, len(result.stages))
        return result
    raise PathCompileError("Parser did not produce a pipeline")
