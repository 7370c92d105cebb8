#!/usr/bin/env python3
"""
Class Diagram AST: in-memory model for parsed PlantUML class diagrams

Every parsed diagram produces a Nodes registry of class-like entities
(class, abstract class, interface) linked by extends / implements edges.
The registry is exported as a nested tree (each parent / interface
re-expanded inline), serialized to .ast.json, and can be rendered as a
markdown table for human review.

The nested tree is the primary artifact; the markdown table is a derived view.
"""

import json
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from classdiagram.errors import RelationCycleError, TreeFormatError

AST_SCHEMA_VERSION = "1.0.0"


# ──────────────────────────────────────────────────────────────────
# Entities
# ──────────────────────────────────────────────────────────────────

class ClassKind(Enum):
    CLASS = "class"
    ABSTRACT_CLASS = "abstract class"
    INTERFACE = "interface"


@dataclass(eq=False)
class ClassLike:
    """A declared class, abstract class or interface.

    ``parents`` and ``interfaces`` hold references into the same registry;
    the registry owns the entities. Equality is identity.
    """
    name: str
    package: str = ""
    kind: ClassKind = ClassKind.CLASS
    parents: List["ClassLike"] = field(default_factory=list)
    interfaces: List["ClassLike"] = field(default_factory=list)

    def extends(self, parent: "ClassLike") -> "ClassLike":
        self.parents.append(parent)
        return self

    def implements(self, interface: "ClassLike") -> "ClassLike":
        self.interfaces.append(interface)
        return self

    def __repr__(self) -> str:
        # Relations may form cycles, so only names are shown.
        return (
            f"ClassLike(name={self.name!r}, package={self.package!r}, kind={self.kind.value!r}, "
            f"parents={[p.name for p in self.parents]}, "
            f"interfaces={[i.name for i in self.interfaces]})"
        )


class Nodes:
    """Insertion-ordered registry of class-like entities."""

    def __init__(self, entities: Optional[List[ClassLike]] = None):
        self._entities: List[ClassLike] = list(entities or [])

    @classmethod
    def empty(cls) -> "Nodes":
        return cls()

    def add(self, entity: ClassLike) -> ClassLike:
        """Append an entity. Duplicate names are allowed; the first one wins lookups."""
        self._entities.append(entity)
        return entity

    def search_by_name(self, name: str) -> Optional[ClassLike]:
        for entity in self._entities:
            if entity.name == name:
                return entity
        return None

    def last(self) -> Optional[ClassLike]:
        return self._entities[-1] if self._entities else None

    def names(self) -> List[str]:
        return [e.name for e in self._entities]

    def to_tree(self) -> List[Dict[str, Any]]:
        return to_tree(self)

    def __iter__(self) -> Iterator[ClassLike]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __getitem__(self, index: int) -> ClassLike:
        return self._entities[index]

    def __repr__(self) -> str:
        return f"Nodes({self.names()!r})"


# ──────────────────────────────────────────────────────────────────
# Nested-tree export / import
# ──────────────────────────────────────────────────────────────────

def entity_to_record(entity: ClassLike, _path: Tuple[int, ...] = ()) -> Dict[str, Any]:
    """Serialize one entity, re-expanding every parent and interface inline.

    Raises RelationCycleError when an entity is reached again through its
    own relations.
    """
    if id(entity) in _path:
        raise RelationCycleError(
            f"Relation cycle through '{entity.name}', nested tree would be infinite"
        )
    path = _path + (id(entity),)
    return {
        entity.kind.value: {
            'Name': entity.name,
            'Package': entity.package,
            'Parents': [entity_to_record(p, path) for p in entity.parents],
            'Interfaces': [entity_to_record(i, path) for i in entity.interfaces],
        }
    }


def to_tree(nodes: Nodes) -> List[Dict[str, Any]]:
    """Export a registry as one nested record per entity, in declaration order."""
    return [entity_to_record(entity) for entity in nodes]


def _unpack(record: Any) -> Tuple[ClassKind, Dict[str, Any]]:
    if not isinstance(record, dict) or len(record) != 1:
        raise TreeFormatError(f"Expected a single-key record, got {record!r}")
    tag, body = next(iter(record.items()))
    try:
        kind = ClassKind(tag)
    except ValueError:
        raise TreeFormatError(f"Unknown kind tag '{tag}'") from None
    if not isinstance(body, dict) or not isinstance(body.get('Name'), str):
        raise TreeFormatError(f"Record for '{tag}' has no Name")
    for key in ('Parents', 'Interfaces'):
        if not isinstance(body.get(key, []), list):
            raise TreeFormatError(f"'{key}' of '{body['Name']}' must be a list")
    return kind, body


def _bind(nodes: Nodes, record: Any) -> ClassLike:
    """Find the registry entity a nested record refers to, or rebuild it detached."""
    kind, body = _unpack(record)
    package = body.get('Package', '')
    for candidate in nodes:
        if candidate.name == body['Name'] and candidate.package == package and candidate.kind is kind:
            return candidate
    entity = ClassLike(body['Name'], package, kind)
    _attach_relations(nodes, entity, body)
    return entity


def _attach_relations(nodes: Nodes, entity: ClassLike, body: Dict[str, Any]) -> None:
    for parent in body.get('Parents', []):
        entity.extends(_bind(nodes, parent))
    for interface in body.get('Interfaces', []):
        entity.implements(_bind(nodes, interface))


def from_tree(records: List[Dict[str, Any]]) -> Nodes:
    """Rebuild a registry from an exported nested tree."""
    if not isinstance(records, list):
        raise TreeFormatError("Nested tree must be a list of records")
    nodes = Nodes.empty()
    bodies = []
    for record in records:
        kind, body = _unpack(record)
        entity = nodes.add(ClassLike(body['Name'], body.get('Package', ''), kind))
        bodies.append((entity, body))
    for entity, body in bodies:
        _attach_relations(nodes, entity, body)
    return nodes


# ──────────────────────────────────────────────────────────────────
# JSON Serialization
# ──────────────────────────────────────────────────────────────────

def to_json(nodes: Nodes) -> dict:
    """Serialize a registry to a JSON-compatible dict."""
    return {
        'schema_version': AST_SCHEMA_VERSION,
        'entities': to_tree(nodes),
    }


def from_json(data: dict) -> Nodes:
    """Deserialize a dict (from JSON) into a registry."""
    return from_tree(data.get('entities', []))


def save_ast(nodes: Nodes, path: str) -> None:
    """Write a registry to a .ast.json file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(to_json(nodes), f, indent=2)


def load_ast(path: str) -> Nodes:
    """Read a .ast.json file and return a registry."""
    with open(path, 'r', encoding='utf-8') as f:
        return from_json(json.load(f))


# ──────────────────────────────────────────────────────────────────
# Markdown Table Generation
# ──────────────────────────────────────────────────────────────────

def _esc(text: str) -> str:
    """Escape pipe characters for markdown table cells."""
    if not text:
        return ""
    return str(text).replace("|", "\\|")


def ast_to_markdown_tables(nodes: Nodes, source_name: str = "") -> str:
    """Render a registry as a markdown table, one row per entity."""
    lines: List[str] = []

    heading = f"#### Class Diagram: {source_name}" if source_name else "#### Class Diagram"
    lines.append(heading)
    lines.append("")

    if not len(nodes):
        lines.append("_No class-like entities._")
        lines.append("")
        return "\n".join(lines)

    lines.append("| Name | Kind | Package | Extends | Implements |")
    lines.append("|------|------|---------|---------|------------|")
    for e in nodes:
        lines.append(
            f"| {_esc(e.name)} | {_esc(e.kind.value)} | {_esc(e.package)} "
            f"| {_esc(', '.join(p.name for p in e.parents))} "
            f"| {_esc(', '.join(i.name for i in e.interfaces))} |"
        )
    lines.append("")

    return "\n".join(lines)


# ──────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────

def main() -> int:
    import argparse
    parser = argparse.ArgumentParser(description='Class diagram AST utilities')
    sub = parser.add_subparsers(dest='command')

    show = sub.add_parser('show', help='Pretty-print an .ast.json file')
    show.add_argument('file', help='Path to .ast.json')

    tbl = sub.add_parser('table', help='Generate a markdown table from .ast.json')
    tbl.add_argument('file', help='Path to .ast.json')
    tbl.add_argument('--name', default='', help='Diagram source name for heading')

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 0

    try:
        nodes = load_ast(args.file)
    except (OSError, json.JSONDecodeError, TreeFormatError) as exc:
        print(f"Error: Cannot load {args.file}: {exc}", file=sys.stderr)
        return 1

    if args.command == 'show':
        print(json.dumps(to_json(nodes), indent=2))
    elif args.command == 'table':
        print(ast_to_markdown_tables(nodes, source_name=args.name or Path(args.file).stem))

    return 0


if __name__ == '__main__':
    sys.exit(main())
