"""Errors for path language compilation."""


class PathLanguageError(Exception):
    """Base exception for path language failures."""


class PathCompileError(PathLanguageError):
    """Raised when path text cannot be lexed or compiled."""
