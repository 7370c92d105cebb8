"""
State persistence for parsed class diagrams.

In-memory dict persisted to the diagram state file on every mutation.
Each entry keeps the diagram source next to its exported nested tree so a
stored diagram can be re-parsed later.
"""

import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from classdiagram.diagram_ast import Nodes, to_tree

DEFAULT_STATE_FILE = "data/diagrams.json"


class DiagramStore:
    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or os.environ.get("PUML_STATE_FILE", DEFAULT_STATE_FILE))
        self._diagrams: Dict[str, Dict[str, Any]] = {}
        self._version = 0
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    self._diagrams = json.load(f)
            except (json.JSONDecodeError, IOError) as exc:
                print(f"[store] Ignoring unreadable state file {self._path}: {exc}", file=sys.stderr)
                self._diagrams = {}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._diagrams, f, indent=2, default=str)

    def save(self) -> None:
        """Explicit save for shutdown / flush."""
        self._save()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def version(self) -> int:
        return self._version

    def _changed(self) -> None:
        self._version += 1
        self._save()

    # ── Diagrams ──────────────────────────────────────────────────

    def list_diagrams(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": name,
                "entity_count": len(entry.get("entities", [])),
                "updated_at": entry.get("updated_at"),
            }
            for name, entry in self._diagrams.items()
        ]

    def get_diagram(self, name: str) -> Optional[Dict[str, Any]]:
        return self._diagrams.get(name)

    def put_diagram(self, name: str, source: str, nodes: Nodes) -> Dict[str, Any]:
        entry = {
            "name": name,
            "source": source,
            "entities": to_tree(nodes),
            "updated_at": datetime.now().isoformat(),
        }
        self._diagrams[name] = entry
        self._changed()
        return entry

    def remove_diagram(self, name: str) -> bool:
        if name not in self._diagrams:
            return False
        del self._diagrams[name]
        self._changed()
        return True
