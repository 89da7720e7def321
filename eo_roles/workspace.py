"""JSON workspace files: definitions, edges and stored assertions in one document.

Layout::

    {
      "definitions": [{"id": "...", "stability": "...", ...}],
      "edges": [{"type": "DEPENDS_ON", "sourceId": "...", "targetId": "..."}],
      "assertions": {"<definition id>": {"role": "holon", ...}}
    }

Every section is optional.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from eo_roles.engine import EOInferenceEngine
from eo_roles.models import Definition, Edge, EORolesError, WorkspaceError

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    definitions: list[Definition] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    assertions: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        self._by_id = {d.id: d for d in self.definitions}
        self._adjacency: dict[str, list[Edge]] = defaultdict(list)
        for edge in self.edges:
            self._adjacency[edge.source_id].append(edge)
            if edge.target_id != edge.source_id:
                self._adjacency[edge.target_id].append(edge)

    def definition(self, definition_id: str) -> Definition | None:
        return self._by_id.get(definition_id)

    def edges_for(self, definition_id: str) -> list[Edge]:
        """Edges with *definition_id* at either end (single hop)."""
        return list(self._adjacency.get(definition_id, ()))

    def build_engine(self) -> EOInferenceEngine:
        return EOInferenceEngine(self.assertions)

    @classmethod
    def from_dict(cls, data: Any) -> Workspace:
        if not isinstance(data, dict):
            raise WorkspaceError("workspace must be a JSON object")
        definitions = data.get("definitions") or []
        edges = data.get("edges") or []
        assertions = data.get("assertions") or {}
        if not isinstance(definitions, list) or not isinstance(edges, list):
            raise WorkspaceError("'definitions' and 'edges' must be JSON arrays")
        if not isinstance(assertions, dict):
            raise WorkspaceError("'assertions' must be a JSON object keyed by definition id")
        return cls(
            definitions=[Definition.from_dict(d) for d in definitions],
            edges=[Edge.from_dict(e) for e in edges],
            assertions=dict(assertions),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "definitions": [d.to_dict() for d in self.definitions],
            "edges": [e.to_dict() for e in self.edges],
            "assertions": self.assertions,
        }


def load_workspace(path: Path | str) -> Workspace:
    """Read and validate a workspace file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise WorkspaceError(f"cannot read workspace {path}: {exc}") from exc

    try:
        workspace = Workspace.from_dict(data)
        # Validates assertions up front so malformed entries surface on load.
        workspace.build_engine()
    except WorkspaceError:
        raise
    except (EORolesError, AttributeError, TypeError, ValueError) as exc:
        raise WorkspaceError(f"invalid workspace {path}: {exc}") from exc

    logger.info(
        "Loaded workspace %s: %d definitions, %d edges, %d assertions",
        path, len(workspace.definitions), len(workspace.edges), len(workspace.assertions),
    )
    return workspace


def save_workspace(workspace: Workspace, path: Path | str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(workspace.to_dict(), f, indent=2, ensure_ascii=False, default=str)
    logger.info("Wrote workspace to %s", path)
