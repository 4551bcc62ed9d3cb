"""Public API for path language lexer/parser/compiler/runtime."""

from treepath.path_language.ast import Pipeline
from treepath.path_language.compiler import CompiledPath, apply, compile_path, compile_pipeline
from treepath.path_language.errors import PathCompileError, PathLanguageError
from treepath.path_language.lexer import Lexeme, Lexer, LexemeType, lex
from treepath.path_language.parser import parse_path
from treepath.path_language.runtime import EvalContext, apply_pipeline


__all__ = [
    "CompiledPath",
    "EvalContext",
    "Lexeme",
    "LexemeType",
    "Lexer",
    "PathCompileError",
    "PathLanguageError",
    "Pipeline",
    "apply",
    "apply_pipeline",
    "compile_path",
    "compile_pipeline",
    "lex",
    "parse_path",
]
