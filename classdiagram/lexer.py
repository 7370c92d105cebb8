"""
Lexical scanner for PlantUML class diagrams.

Turns raw diagram text into a stream of tokens in a single forward pass.
The parser pulls tokens one at a time with ``next()`` and may look one
token back with ``prev()`` to recover the left-hand operand of a relation.
"""

import re
from collections import deque
from typing import Deque, Iterator, List, Optional, Tuple

from classdiagram.errors import LexerError
from classdiagram.tokens import Token, TokenKind

# Layout hints allowed inside arrows; they never change the relation.
DIRECTIONS = ('up', 'down', 'left', 'right')

_DIR = r'(?:up|down|left|right)'

_IGNORED = re.compile(r"\s+|'[^\n]*")

# Dotted or slashed name segments (com.acme.Foo, Lexer/Arrow); a segment
# that starts a glued direction arrow (A.up.|>I) belongs to the arrow.
_NAME_TAIL = r'(?:[./](?!' + _DIR + r'[-.]+(?:\|>|>|\*|o(?!\w)|\s|$))\w+)*'

_RULES: List[Tuple[TokenKind, re.Pattern]] = [
    (TokenKind.START, re.compile(r'@startuml\b[^\n]*')),
    (TokenKind.END, re.compile(r'@enduml\b')),
    (TokenKind.ABSTRACT_CLASS, re.compile(r'abstract(?:[ \t]+class)?\b')),
    (TokenKind.CLASS, re.compile(r'class\b')),
    (TokenKind.INTERFACE, re.compile(r'interface\b')),
    (TokenKind.PACKAGE, re.compile(r'(?:package|namespace)\b')),
    (TokenKind.EXTENDS, re.compile(r'extends\b')),
    (TokenKind.IMPLEMENTS, re.compile(r'implements\b')),
    # <|--  <|up--  <|-up-  <|..  <--  <..  o--  *..
    (TokenKind.LEFT_ARROW, re.compile(
        r'(?:<\||<|[o*](?=[-.]))(?:' + _DIR + r'(?=[-.]))?[-.]+(?:' + _DIR + r'[-.]+)?'
    )),
    # --|>  -up-|>  ..|>  -->  ..>  --o  --*  --
    (TokenKind.RIGHT_ARROW, re.compile(
        r'[-.]+(?:' + _DIR + r'[-.]+)?(?:\|>|>|o(?!\w)|\*)?'
    )),
    (TokenKind.OPEN_BRACE, re.compile(r'\{')),
    (TokenKind.CLOSE_BRACE, re.compile(r'\}')),
    (TokenKind.ELEMENT_VALUE, re.compile(r'"[^"\n]*"|[A-Za-z_]\w*' + _NAME_TAIL)),
]


class Lexer:
    """Pull-based tokenizer with a one-token lookback."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._line_start = 0
        self._end: Optional[Token] = None
        self._history: Deque[Token] = deque(maxlen=2)

    def next(self) -> Token:
        """Consume and return the next token; END repeats once input is exhausted."""
        token = self._scan()
        self._history.append(token)
        return token

    def prev(self) -> Optional[Token]:
        """Return the token before the one most recently returned by next()."""
        if len(self._history) < 2:
            return None
        return self._history[0]

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            if token.kind is TokenKind.END:
                return
            yield token

    # ── Scanning ──────────────────────────────────────────────────

    def _column(self) -> int:
        return self._pos - self._line_start + 1

    def _consume(self, end: int) -> None:
        chunk = self._source[self._pos:end]
        newlines = chunk.count('\n')
        if newlines:
            self._line += newlines
            self._line_start = self._pos + chunk.rfind('\n') + 1
        self._pos = end

    def _skip_ignored(self) -> None:
        while self._pos < len(self._source):
            if self._source.startswith("/'", self._pos):
                close = self._source.find("'/", self._pos + 2)
                if close == -1:
                    raise LexerError("Unterminated block comment", self._line, self._column())
                self._consume(close + 2)
                continue
            m = _IGNORED.match(self._source, self._pos)
            if not m:
                return
            self._consume(m.end())

    def _scan(self) -> Token:
        if self._end is not None:
            return self._end

        self._skip_ignored()
        if self._pos >= len(self._source):
            self._end = Token(TokenKind.END, '', self._line, self._column())
            return self._end

        for kind, pattern in _RULES:
            m = pattern.match(self._source, self._pos)
            if m:
                token = Token(kind, m.group(), self._line, self._column())
                self._consume(m.end())
                if kind is TokenKind.END:
                    self._end = token
                return token

        char = self._source[self._pos]
        if char == '"':
            raise LexerError("Unterminated quoted identifier", self._line, self._column())
        raise LexerError(f"Unexpected character {char!r}", self._line, self._column())


def tokenize(source: str) -> List[Token]:
    """Return every token of ``source`` up to and including the first END."""
    lexer = Lexer(source)
    tokens = list(lexer)
    tokens.append(lexer.next())
    return tokens
