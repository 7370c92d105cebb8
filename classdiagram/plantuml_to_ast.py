#!/usr/bin/env python3
"""
PlantUML Class Diagram to AST Converter

Parses PlantUML class-diagram blocks into a Nodes registry with:
- class / abstract class / interface declarations
- nested package scopes (paths joined with '/')
- extends / implements keywords
- inheritance and realization arrows in every direction variant
  (<|--, <|up--, -left-|>, ..|>, <|.. and so on)

Association, dependency, aggregation and composition arrows are rejected,
never silently dropped.
"""

import argparse
import json
import re
import sys
from pathlib import Path
from typing import List

from classdiagram.diagram_ast import Nodes, save_ast, to_json
from classdiagram.errors import PumlError
from classdiagram.parser import Parser


# ─── Public API ───────────────────────────────────────────────────

def convert_plantuml_to_ast(puml_content: str) -> Nodes:
    """Parse a PlantUML class-diagram block and return its registry."""
    return Parser.from_source(puml_content).parse()


def extract_plantuml_blocks(text: str) -> List[str]:
    """Extract PlantUML blocks from text (both @startuml and fenced code blocks)."""
    blocks = []

    for m in re.finditer(r'@startuml\b.*?\n(.*?)@enduml', text, re.DOTALL | re.IGNORECASE):
        blocks.append(m.group(1))

    for m in re.finditer(r'```(?:plantuml|puml)\s*\n(.*?)```', text, re.DOTALL | re.IGNORECASE):
        blocks.append(m.group(1))

    return blocks


def load_plantuml_source(path: str, block: int = 0) -> str:
    """Read diagram text from a .puml file or from a markdown file's N-th PlantUML block."""
    content = Path(path).read_text(encoding='utf-8')
    if Path(path).suffix.lower() not in ('.md', '.markdown'):
        return content
    blocks = extract_plantuml_blocks(content)
    if not blocks:
        raise IndexError(f"No PlantUML block found in {path}")
    return blocks[block]


# ─── CLI ──────────────────────────────────────────────────────────

def main() -> int:
    parser = argparse.ArgumentParser(description="Convert PlantUML class diagrams to AST JSON")
    parser.add_argument("--input", "-i", help="Input .puml (or markdown) file")
    parser.add_argument("--output", "-o", help="Output .ast.json path (default: print tree to stdout)")
    parser.add_argument("--stdin", action="store_true", help="Read from stdin")
    parser.add_argument("--block", type=int, default=0,
                        help="Index of the PlantUML block to parse in a markdown input")
    args = parser.parse_args()

    if args.stdin:
        content = sys.stdin.read()
    elif args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            return 1
        try:
            content = load_plantuml_source(args.input, block=args.block)
        except IndexError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    else:
        parser.error("Either --input or --stdin is required")
        return 2

    try:
        nodes = convert_plantuml_to_ast(content)
        if args.output:
            save_ast(nodes, args.output)
        else:
            print(json.dumps(to_json(nodes), indent=2))
    except PumlError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        print(f"[plantuml] {len(nodes)} class-like entities written to {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
