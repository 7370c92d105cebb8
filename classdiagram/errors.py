"""
Error taxonomy for the class-diagram pipeline.

Every failure aborts the whole parse; callers catch PumlError (or one of
its subclasses) and decide how to surface it.
"""

from typing import Optional


class PumlError(Exception):
    """Base class for all class-diagram parsing and export failures."""


class LexerError(PumlError):
    """The scanner could not classify the current character run."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"Line {line}, column {column}: {message}")
        self.line = line
        self.column = column


class ParseError(PumlError):
    """The token stream does not fit the expected diagram structure."""

    def __init__(self, message: str, token=None) -> None:
        if token is not None:
            message = f"Line {token.line}, column {token.column}: {message}"
        super().__init__(message)
        self.token = token


class ResolutionError(ParseError):
    """A relation references a name that is not in the registry."""

    def __init__(self, name: str, token=None, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unknown class-like '{name}'", token)
        self.name = name


class UnsupportedRelationError(ParseError):
    """An arrow family the lexer knows but the parser does not interpret."""

    def __init__(self, family: str, arrow: str, token=None) -> None:
        super().__init__(f"Unsupported {family} relation '{arrow}'", token)
        self.family = family
        self.arrow = arrow


class RelationCycleError(PumlError):
    """Nested-tree export reached an entity already on the expansion path."""


class TreeFormatError(PumlError):
    """A nested-tree record does not have the exported shape."""
