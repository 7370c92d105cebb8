"""
Token model for the PlantUML class-diagram lexer.
"""

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    START = "@startuml"
    END = "@enduml"

    # Element keywords
    CLASS = "class"
    ABSTRACT_CLASS = "abstract class"
    INTERFACE = "interface"
    PACKAGE = "package"

    ELEMENT_VALUE = "element value"
    OPEN_BRACE = "{"
    CLOSE_BRACE = "}"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    LEFT_ARROW = "left arrow"
    RIGHT_ARROW = "right arrow"

    @property
    def is_class_like(self) -> bool:
        return self in (TokenKind.CLASS, TokenKind.ABSTRACT_CLASS, TokenKind.INTERFACE)

    @property
    def is_element_keyword(self) -> bool:
        return self.is_class_like or self is TokenKind.PACKAGE

    @property
    def is_relation(self) -> bool:
        return self in (
            TokenKind.EXTENDS,
            TokenKind.IMPLEMENTS,
            TokenKind.LEFT_ARROW,
            TokenKind.RIGHT_ARROW,
        )


@dataclass(frozen=True)
class Token:
    """A lexical token.

    ``text`` is the exact matched substring; ``line`` and ``column`` are
    1-based and point at its first character.
    """

    kind: TokenKind
    text: str
    line: int = 0
    column: int = 0

    @property
    def value(self) -> str:
        """Name denoted by the token, with quotes stripped from quoted identifiers."""
        if self.kind is TokenKind.ELEMENT_VALUE and len(self.text) >= 2 and self.text[0] == self.text[-1] == '"':
            return self.text[1:-1]
        return self.text
