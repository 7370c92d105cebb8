"""PlantUML class-diagram parser.

Tokenizes a restricted PlantUML class-diagram subset, resolves class,
abstract class and interface declarations with their extends / implements
relations into a Nodes registry, and exports it as a nested tree.
"""

from classdiagram.diagram_ast import ClassKind, ClassLike, Nodes, from_tree, to_tree
from classdiagram.errors import (
    LexerError,
    ParseError,
    PumlError,
    RelationCycleError,
    ResolutionError,
    TreeFormatError,
    UnsupportedRelationError,
)
from classdiagram.lexer import Lexer, tokenize
from classdiagram.parser import Parser, parse
from classdiagram.plantuml_to_ast import convert_plantuml_to_ast, extract_plantuml_blocks
from classdiagram.tokens import Token, TokenKind

__all__ = [
    "ClassKind",
    "ClassLike",
    "Nodes",
    "from_tree",
    "to_tree",
    "LexerError",
    "ParseError",
    "PumlError",
    "RelationCycleError",
    "ResolutionError",
    "TreeFormatError",
    "UnsupportedRelationError",
    "Lexer",
    "tokenize",
    "Parser",
    "parse",
    "convert_plantuml_to_ast",
    "extract_plantuml_blocks",
    "Token",
    "TokenKind",
]
