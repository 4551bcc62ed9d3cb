"""treepath - Select nodes from JSON-like documents with JSONPath-style paths."""

from treepath.nodes import DataNode, Node, NodeKind, ScalarKind, as_node
from treepath.path_language import (
    CompiledPath,
    Lexeme,
    LexemeType,
    Lexer,
    PathCompileError,
    PathLanguageError,
    Pipeline,
    apply,
    apply_pipeline,
    compile_path,
    compile_pipeline,
    lex,
    parse_path,
)
from treepath.cli import main


__version__ = "0.1.0"

__all__ = [
    "CompiledPath",
    "DataNode",
    "Lexeme",
    "LexemeType",
    "Lexer",
    "Node",
    "NodeKind",
    "PathCompileError",
    "PathLanguageError",
    "Pipeline",
    "ScalarKind",
    "__version__",
    "apply",
    "apply_pipeline",
    "as_node",
    "compile_path",
    "compile_pipeline",
    "lex",
    "main",
    "parse_path",
]
