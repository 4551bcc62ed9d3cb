"""Lexer turning path text into a stream of typed lexemes."""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TypeAlias


class LexemeType(Enum):
    """Kinds of lexemes produced by the lexer."""

    ERROR = auto()
    IDENTITY = auto()
    ROOT = auto()
    DOT_CHILD = auto()
    BRACKET_CHILD = auto()
    RECURSIVE_DESCENT = auto()
    ARRAY_SUBSCRIPT = auto()
    FILTER_BEGIN = auto()
    FILTER_END = auto()
    FILTER_OPEN_BRACKET = auto()
    FILTER_CLOSE_BRACKET = auto()
    FILTER_NOT = auto()
    FILTER_AT = auto()
    FILTER_AND = auto()
    FILTER_OR = auto()
    FILTER_EQUALITY = auto()
    FILTER_INEQUALITY = auto()
    FILTER_GREATER_THAN = auto()
    FILTER_GREATER_THAN_OR_EQUAL = auto()
    FILTER_LESS_THAN = auto()
    FILTER_LESS_THAN_OR_EQUAL = auto()
    FILTER_MATCHES_REGULAR_EXPRESSION = auto()
    FILTER_INTEGER_LITERAL = auto()
    FILTER_FLOAT_LITERAL = auto()
    FILTER_STRING_LITERAL = auto()
    FILTER_REGULAR_EXPRESSION_LITERAL = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Lexeme:
    """One classified lexeme.

    ``value`` is the exact source text of the lexeme, a synthesized ``$`` for an
    implicit root, or the message of an error lexeme. ``position`` is the offset
    of the lexeme in the path and is ignored by equality.
    """

    type: LexemeType
    value: str
    position: int = field(default=0, compare=False)


StateFn: TypeAlias = "Callable[[], StateFn | None]"


# Longer operators first so that "==" wins over "=" prefixes.
_BINARY_OPERATORS: tuple[tuple[str, LexemeType], ...] = (
    ("==", LexemeType.FILTER_EQUALITY),
    ("=~", LexemeType.FILTER_MATCHES_REGULAR_EXPRESSION),
    ("!=", LexemeType.FILTER_INEQUALITY),
    (">=", LexemeType.FILTER_GREATER_THAN_OR_EQUAL),
    ("<=", LexemeType.FILTER_LESS_THAN_OR_EQUAL),
    (">", LexemeType.FILTER_GREATER_THAN),
    ("<", LexemeType.FILTER_LESS_THAN),
    ("&&", LexemeType.FILTER_AND),
    ("||", LexemeType.FILTER_OR),
)
_BINARY_OPERATOR_TYPES = frozenset(lexeme_type for _text, lexeme_type in _BINARY_OPERATORS)
_ORDERING_OPERATOR_TYPES = frozenset(
    {
        LexemeType.FILTER_GREATER_THAN,
        LexemeType.FILTER_GREATER_THAN_OR_EQUAL,
        LexemeType.FILTER_LESS_THAN,
        LexemeType.FILTER_LESS_THAN_OR_EQUAL,
    }
)
_LITERAL_TYPES = frozenset(
    {
        LexemeType.FILTER_INTEGER_LITERAL,
        LexemeType.FILTER_FLOAT_LITERAL,
        LexemeType.FILTER_STRING_LITERAL,
    }
)
_FILTER_NAME_TERMINATORS = frozenset(")=!<>&|")
_INTEGER_PATTERN = re.compile(r"-?[0-9]+")
_REGEX_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)
_MIN_INT64 = -(2**63)
_MAX_INT64 = 2**63 - 1


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


def regular_expression_source(literal: str) -> str:
    """Return the pattern of a ``/.../`` literal with ``\\/`` unescaped."""
    body = literal[1:-1]
    return _REGEX_ESCAPE_PATTERN.sub(
        lambda match: "/" if match.group(1) == "/" else match.group(0), body
    )


def _validate_array_subscript(raw: str) -> str | None:
    """Return an error message for a malformed ``[...]`` subscript, if any."""
    subscript = raw[1:-1]
    if not subscript:
        return "subscript missing from []"
    if subscript == "*":
        return None
    parts = subscript.split(":")
    if len(parts) > 3:
        return f"invalid array index, too many colons: {raw}"
    if any(part and not _INTEGER_PATTERN.fullmatch(part) for part in parts):
        return f"invalid array index containing non-integer value: {raw}"
    if len(parts) == 3 and parts[2] and int(parts[2]) == 0:
        return f"invalid array index, step cannot be zero: {raw}"
    return None


def _validate_integer_literal(raw: str) -> str | None:
    """Return an error message for an invalid signed 64-bit integer literal."""
    if not _INTEGER_PATTERN.fullmatch(raw):
        return f'invalid integer literal "{raw}": invalid syntax'
    if not _MIN_INT64 <= int(raw) <= _MAX_INT64:
        return f'invalid integer literal "{raw}": value out of range'
    return None


class Lexer:
    """Pull-based lexer over a single path string.

    The lexer is a small state machine: each state consumes some input, emits
    zero or more lexemes and returns the next state. ``next_lexeme`` runs states
    until a lexeme is available. After an error lexeme, or after the final
    identity lexeme, only ``EOF`` lexemes are returned.
    """

    def __init__(self, path: str) -> None:
        self.input = path
        self.start = 0
        self.pos = 0
        self._context_start = 0
        self._last_emitted: Lexeme | None = None
        self._filter_depths: list[int] = []
        self._pending: deque[Lexeme] = deque()
        self._state: StateFn | None = self._lex_path

    def __iter__(self) -> Iterator[Lexeme]:
        while True:
            lexeme = self.next_lexeme()
            if lexeme.type is LexemeType.EOF:
                return
            yield lexeme

    def next_lexeme(self) -> Lexeme:
        """Return the next lexeme, or an ``EOF`` lexeme once exhausted."""
        while not self._pending:
            if self._state is None:
                return Lexeme(LexemeType.EOF, "", self.pos)
            self._state = self._state()
        return self._pending.popleft()

    # Cursor helpers

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.input):
            return self.input[index]
        return ""

    def _advance(self, count: int = 1) -> None:
        self.pos = min(self.pos + count, len(self.input))

    def _has_prefix(self, prefix: str) -> bool:
        return self.input.startswith(prefix, self.pos)

    def _at_end(self) -> bool:
        return self.pos >= len(self.input)

    def _skip_whitespace(self) -> None:
        while self._peek().isspace():
            self.pos += 1
        self.start = self.pos

    def _accept_name(self) -> bool:
        begin = self.pos
        while self._is_name_char(self._peek()):
            self.pos += 1
        return self.pos > begin

    def _is_name_char(self, char: str) -> bool:
        if char in {"", ".", "["}:
            return False
        if self._filter_depths:
            return not (char.isspace() or char in _FILTER_NAME_TERMINATORS)
        return True

    def _match_operator(self) -> tuple[str, LexemeType] | None:
        for text, lexeme_type in _BINARY_OPERATORS:
            if self._has_prefix(text):
                return (text, lexeme_type)
        return None

    @property
    def _last_emitted_type(self) -> LexemeType:
        if self._last_emitted is None:
            return LexemeType.EOF
        return self._last_emitted.type

    # Emission helpers

    def _emit(self, lexeme_type: LexemeType) -> None:
        lexeme = Lexeme(lexeme_type, self.input[self.start : self.pos], self.start)
        self._pending.append(lexeme)
        self._last_emitted = lexeme
        self._context_start = self.start
        self.start = self.pos

    def _emit_synthetic(self, lexeme_type: LexemeType, value: str) -> None:
        lexeme = Lexeme(lexeme_type, value, self.start)
        self._pending.append(lexeme)
        self._last_emitted = lexeme

    def _byte_position(self) -> int:
        return len(self.input[: self.pos].encode("utf-8"))

    def _context(self) -> str:
        return self.input[self._context_start : self.pos]

    def _error(self, message: str) -> None:
        self._pending.append(Lexeme(LexemeType.ERROR, message, self.start))
        self._filter_depths.clear()

    def _error_at(self, description: str) -> None:
        self._error(
            f'{description} at position {self._byte_position()}, following "{self._context()}"'
        )

    # States

    def _lex_path(self) -> StateFn | None:
        if self._at_end():
            self._emit(LexemeType.IDENTITY)
            return None
        if self._has_prefix("$"):
            self._advance()
            self._emit(LexemeType.ROOT)
        else:
            self._emit_synthetic(LexemeType.ROOT, "$")
        return self._lex_subpath

    def _lex_subpath(self) -> StateFn | None:
        if self._filter_depths:
            if not (self._has_prefix(".") or self._has_prefix("[")):
                return self._lex_filter_operator
        elif self._at_end():
            self._emit(LexemeType.IDENTITY)
            return None

        if self._has_prefix(".."):
            return self._lex_recursive_descent
        if self._has_prefix("."):
            return self._lex_dot_child
        if self._has_prefix("[?("):
            return self._lex_filter_begin
        if self._has_prefix("['"):
            return self._lex_bracket_child
        if self._has_prefix("["):
            return self._lex_array_subscript
        return self._error_at(f'invalid path syntax starting at "{self._peek()}"')

    def _lex_dot_child(self) -> StateFn | None:
        self._advance()
        if not self._accept_name():
            return self._error("child name missing after .")
        self._emit(LexemeType.DOT_CHILD)
        return self._lex_subpath

    def _lex_recursive_descent(self) -> StateFn | None:
        self._advance(2)
        if not self._accept_name():
            return self._error("child name missing after ..")
        self._emit(LexemeType.RECURSIVE_DESCENT)
        return self._lex_subpath

    def _lex_bracket_child(self) -> StateFn | None:
        close = self.input.find("']", self.pos + 2)
        if close == -1:
            return self._error_at("unmatched \"['\"")
        if close == self.pos + 2:
            return self._error("child name missing from ['']")
        self.pos = close + 2
        self._emit(LexemeType.BRACKET_CHILD)
        return self._lex_subpath

    def _lex_array_subscript(self) -> StateFn | None:
        close = self.input.find("]", self.pos + 1)
        if close == -1:
            return self._error_at('unmatched "["')
        message = _validate_array_subscript(self.input[self.start : close + 1])
        if message is not None:
            return self._error(message)
        self.pos = close + 1
        self._emit(LexemeType.ARRAY_SUBSCRIPT)
        return self._lex_subpath

    def _lex_filter_begin(self) -> StateFn | None:
        self._advance(3)
        self._emit(LexemeType.FILTER_BEGIN)
        self._filter_depths.append(0)
        return self._lex_filter_term

    def _lex_filter_term(self) -> StateFn | None:
        """Lex the operand expected next inside a filter."""
        self._skip_whitespace()
        char = self._peek()
        if char == "":
            if self._last_emitted_type in _BINARY_OPERATOR_TYPES:
                return self._error("missing filter term")
            return self._error_at("missing end of filter")
        if char == ")":
            return self._error("missing filter term")
        if self._last_emitted_type is LexemeType.FILTER_MATCHES_REGULAR_EXPRESSION:
            return self._lex_regular_expression

        operator = self._match_operator()
        if operator is not None:
            if self._last_emitted_type in _BINARY_OPERATOR_TYPES:
                return self._error("missing filter term")
            return self._error(f"missing first operand for binary operator {operator[0]}")

        if char == "!":
            self._advance()
            self._emit(LexemeType.FILTER_NOT)
            return self._lex_filter_term
        if char == "(":
            self._advance()
            self._filter_depths[-1] += 1
            self._emit(LexemeType.FILTER_OPEN_BRACKET)
            return self._lex_filter_term
        if char == "@":
            self._advance()
            self._emit(LexemeType.FILTER_AT)
            return self._lex_subpath
        if char == "$":
            self._advance()
            self._emit(LexemeType.ROOT)
            return self._lex_subpath
        if char == "'":
            return self._lex_string_literal
        if char in {"-", "."} or _is_digit(char):
            return self._lex_number_literal
        return self._error_at(f'invalid filter syntax starting at "{char}"')

    def _lex_filter_operator(self) -> StateFn | None:
        """Lex a binary operator or a closing bracket after a complete operand."""
        self._skip_whitespace()
        char = self._peek()
        if char == "":
            return self._error_at("missing end of filter")
        if char == ")":
            if self._filter_depths[-1] > 0:
                self._filter_depths[-1] -= 1
                self._advance()
                self._emit(LexemeType.FILTER_CLOSE_BRACKET)
                return self._lex_filter_operator
            if self._peek(1) == "]":
                self._advance(2)
                self._emit(LexemeType.FILTER_END)
                self._filter_depths.pop()
                return self._lex_subpath
            return self._error_at("missing end of filter")

        operator = self._match_operator()
        if operator is None:
            return self._error_at(f'invalid filter syntax starting at "{char}"')
        text, lexeme_type = operator
        previous = self._last_emitted_type
        if (
            lexeme_type is LexemeType.FILTER_MATCHES_REGULAR_EXPRESSION
            and previous in _LITERAL_TYPES
        ):
            return self._error_at('literal cannot be matched using =~ starting at "="')
        if lexeme_type in _ORDERING_OPERATOR_TYPES and previous is LexemeType.FILTER_STRING_LITERAL:
            return self._error_at(f"strings cannot be compared using {text}")
        self._advance(len(text))
        self._emit(lexeme_type)
        return self._lex_filter_term

    def _lex_string_literal(self) -> StateFn | None:
        if self._last_emitted is not None and self._last_emitted_type in _ORDERING_OPERATOR_TYPES:
            return self._error_at(f"strings cannot be compared using {self._last_emitted.value}")
        close = self.input.find("'", self.pos + 1)
        if close == -1:
            return self._error_at("unmatched string delimiter \"'\"")
        self.pos = close + 1
        self._emit(LexemeType.FILTER_STRING_LITERAL)
        return self._lex_filter_operator

    def _lex_number_literal(self) -> StateFn | None:
        if self._peek() == "-":
            self._advance()
        while _is_digit(self._peek()):
            self._advance()
        if self._peek() != ".":
            raw = self.input[self.start : self.pos]
            message = _validate_integer_literal(raw)
            if message is not None:
                return self._error(message)
            self._emit(LexemeType.FILTER_INTEGER_LITERAL)
            return self._lex_filter_operator

        self._advance()
        while _is_digit(self._peek()):
            self._advance()
        raw = self.input[self.start : self.pos]
        try:
            float(raw)
        except ValueError:
            return self._error(f'invalid float literal "{raw}": invalid syntax')
        self._emit(LexemeType.FILTER_FLOAT_LITERAL)
        return self._lex_filter_operator

    def _lex_regular_expression(self) -> StateFn | None:
        if self._peek() != "/":
            return self._error_at("regular expression does not start with /")
        index = self.pos + 1
        while index < len(self.input):
            char = self.input[index]
            if char == "\\":
                index += 2
                continue
            if char == "/":
                break
            index += 1
        else:
            return self._error_at('unmatched regular expression delimiter "/"')

        literal = self.input[self.pos : index + 1]
        try:
            re.compile(regular_expression_source(literal))
        except re.error as exc:
            return self._error(
                f"invalid regular expression position {self._byte_position()}, "
                f'following "{self._context()}": {exc}'
            )
        self.pos = index + 1
        self._emit(LexemeType.FILTER_REGULAR_EXPRESSION_LITERAL)
        return self._lex_filter_operator


def lex(path: str) -> Iterator[Lexeme]:
    """Iterate over the lexemes of a path, stopping before ``EOF``."""
    return iter(Lexer(path))
