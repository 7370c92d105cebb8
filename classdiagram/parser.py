"""
Recursive-descent parser for PlantUML class diagrams.

Pulls tokens from a Lexer and builds a Nodes registry: declarations become
ClassLike entities tagged with their package path, and every supported
relation (``extends`` / ``implements`` keywords, ``<|--`` / ``..|>`` style
arrows in any direction variant) is resolved against the registry as it
stands when the relation is read.
"""

import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from classdiagram.diagram_ast import ClassKind, ClassLike, Nodes
from classdiagram.errors import ParseError, ResolutionError, UnsupportedRelationError
from classdiagram.lexer import DIRECTIONS, Lexer
from classdiagram.tokens import Token, TokenKind


class Relation(Enum):
    EXTENDS = "extends"
    IMPLEMENTS = "implements"


_CLASS_KINDS: Dict[TokenKind, ClassKind] = {
    TokenKind.CLASS: ClassKind.CLASS,
    TokenKind.ABSTRACT_CLASS: ClassKind.ABSTRACT_CLASS,
    TokenKind.INTERFACE: ClassKind.INTERFACE,
}

_DIRECTION_RE = re.compile('|'.join(DIRECTIONS))

# Checked in order against the normalized arrow text.
_LEFT_ARROWS: List[Tuple[str, Optional[Relation], str]] = [
    ('<|.', Relation.IMPLEMENTS, 'realization'),
    ('<|-', Relation.EXTENDS, 'inheritance'),
    ('<-', None, 'association'),
    ('<.', None, 'dependency'),
    ('o-', None, 'aggregation'),
    ('o.', None, 'aggregation'),
    ('*-', None, 'composition'),
    ('*.', None, 'composition'),
]

_RIGHT_ARROWS: List[Tuple[str, Optional[Relation], str]] = [
    ('.|>', Relation.IMPLEMENTS, 'realization'),
    ('-|>', Relation.EXTENDS, 'inheritance'),
    ('->', None, 'association'),
    ('.>', None, 'dependency'),
    ('-o', None, 'aggregation'),
    ('.o', None, 'aggregation'),
    ('-*', None, 'composition'),
    ('.*', None, 'composition'),
    ('-', None, 'link'),
    ('.', None, 'link'),
]


def normalize_arrow(text: str) -> str:
    """Strip direction words (``up``, ``down``, ``left``, ``right``) from an arrow."""
    return _DIRECTION_RE.sub('', text)


def classify_arrow(token: Token) -> Relation:
    """Map an arrow token to its canonical relation, or raise for unsupported families."""
    arrow = normalize_arrow(token.text)
    if token.kind is TokenKind.LEFT_ARROW:
        table, matches = _LEFT_ARROWS, arrow.startswith
    else:
        table, matches = _RIGHT_ARROWS, arrow.endswith
    for glyph, relation, family in table:
        if matches(glyph):
            if relation is None:
                raise UnsupportedRelationError(family, token.text, token)
            return relation
    raise UnsupportedRelationError('unknown', token.text, token)


class Parser:
    """Builds a Nodes registry from one token stream.

    A parser instance is single-use: ``parse()`` consumes its lexer.
    """

    def __init__(self, lexer: Lexer):
        self._lexer = lexer
        self._nodes = Nodes.empty()
        # (package path, brace depth outside the package's opening brace)
        self._packages: List[Tuple[str, int]] = []
        self._depth = 0
        self._pending: Optional[Token] = None
        # Right-hand operand and subject of the last keyword relation.
        self._operand: Optional[Token] = None
        self._subject: Optional[ClassLike] = None

        self._handlers: Dict[TokenKind, Callable[[Token], None]] = {
            TokenKind.START: self._skip,
            TokenKind.PACKAGE: self._parse_package,
            TokenKind.CLASS: self._parse_class_like,
            TokenKind.ABSTRACT_CLASS: self._parse_class_like,
            TokenKind.INTERFACE: self._parse_class_like,
            TokenKind.EXTENDS: self._parse_keyword_relation,
            TokenKind.IMPLEMENTS: self._parse_keyword_relation,
            TokenKind.LEFT_ARROW: self._parse_arrow,
            TokenKind.RIGHT_ARROW: self._parse_arrow,
            TokenKind.OPEN_BRACE: self._open_brace,
            TokenKind.CLOSE_BRACE: self._close_brace,
            TokenKind.ELEMENT_VALUE: self._parse_operand,
        }

    @classmethod
    def from_source(cls, source: str) -> "Parser":
        return cls(Lexer(source))

    @property
    def current_package(self) -> str:
        return self._packages[-1][0] if self._packages else ""

    def parse(self) -> Nodes:
        """Consume the token stream and return the populated registry."""
        while True:
            token = self._lexer.next()
            if token.kind is TokenKind.END:
                self._finish(token)
                return self._nodes
            if self._pending is not None and not token.kind.is_relation:
                raise ParseError(f"Dangling identifier '{self._pending.value}'", self._pending)
            self._handlers[token.kind](token)

    def _finish(self, token: Token) -> None:
        if self._pending is not None:
            raise ParseError(f"Dangling identifier '{self._pending.value}'", self._pending)
        if self._packages:
            raise ParseError(f"Package '{self.current_package}' is never closed", token)

    # ── Token handlers ────────────────────────────────────────────

    def _skip(self, token: Token) -> None:
        pass

    def _parse_operand(self, token: Token) -> None:
        self._pending = token

    def _parse_package(self, token: Token) -> None:
        name = self._expect_value(token).value
        brace = self._lexer.next()
        if brace.kind is not TokenKind.OPEN_BRACE:
            raise ParseError(f"Expected '{{' after package '{name}', got '{brace.text}'", brace)
        path = f"{self.current_package}/{name}" if self._packages else name
        self._packages.append((path, self._depth))
        self._depth += 1

    def _open_brace(self, token: Token) -> None:
        self._depth += 1

    def _close_brace(self, token: Token) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._packages and self._packages[-1][1] == self._depth:
            self._packages.pop()

    def _parse_class_like(self, token: Token) -> None:
        name = self._expect_value(token).value
        self._nodes.add(ClassLike(name, self.current_package, _CLASS_KINDS[token.kind]))

    def _parse_keyword_relation(self, token: Token) -> None:
        subject = self._keyword_subject(token)
        operand = self._expect_value(token)
        target = self._resolve(operand)
        if token.kind is TokenKind.EXTENDS:
            subject.extends(target)
        else:
            subject.implements(target)
        self._operand, self._subject = operand, subject

    def _parse_arrow(self, token: Token) -> None:
        left = self._lexer.prev()
        if left is None or left.kind is not TokenKind.ELEMENT_VALUE:
            raise ParseError(f"Arrow '{token.text}' has no left-hand class", token)
        relation = classify_arrow(token)
        self._pending = None

        before = self._resolve(left)
        after = self._resolve(self._expect_value(token))
        if token.kind is TokenKind.LEFT_ARROW:
            child, parent = after, before
        else:
            child, parent = before, after

        if relation is Relation.EXTENDS:
            child.extends(parent)
        else:
            child.implements(parent)

    # ── Helpers ───────────────────────────────────────────────────

    def _keyword_subject(self, token: Token) -> ClassLike:
        prev = self._lexer.prev()
        self._pending = None
        if prev is not None and prev is self._operand and self._subject is not None:
            # class A extends B implements C
            return self._subject
        if prev is not None and prev.kind is TokenKind.ELEMENT_VALUE:
            return self._resolve(prev)
        subject = self._nodes.last()
        if subject is None:
            raise ResolutionError(
                token.text, token, f"'{token.text}' has no class-like to attach to"
            )
        return subject

    def _expect_value(self, after: Token) -> Token:
        token = self._lexer.next()
        if token.kind is not TokenKind.ELEMENT_VALUE:
            raise ParseError(
                f"Expected a name after '{after.text}', got '{token.text or token.kind.value}'",
                token,
            )
        return token

    def _resolve(self, token: Token) -> ClassLike:
        entity = self._nodes.search_by_name(token.value)
        if entity is None:
            raise ResolutionError(token.value, token)
        return entity


def parse(source: str) -> Nodes:
    """Parse PlantUML class-diagram text into a Nodes registry."""
    return Parser.from_source(source).parse()
