import json

import pytest

from eo_roles.models import Definition, Edge, EdgeType


def _edges(edge_type, count, source=None, target=None, prefix="x"):
    return [
        Edge(edge_type, source or f"{prefix}_{i}", target or f"{prefix}_{i}")
        for i in range(count)
    ]


@pytest.fixture
def anchor_definition():
    """Stable, system-owned, immutable: behaves like a holon."""
    return Definition(
        id="def_currency_code",
        name="Currency code",
        stability="stable",
        authority="system",
        time="immutable",
    )


@pytest.fixture
def anchor_edges(anchor_definition):
    """9 dependency-type edges around the anchor -> dependency tolerance 0.9."""
    did = anchor_definition.id
    return (
        _edges(EdgeType.DEPENDS_ON, 5, target=did, prefix="dep")
        + _edges(EdgeType.VALIDATES_AGAINST, 2, target=did, prefix="val")
        + _edges(EdgeType.DEFINES_MEANING_OF, 2, source=did, prefix="fld")
    )


@pytest.fixture
def perspective_definition():
    """Interpretive, human-owned, evolving: behaves like an emanon."""
    return Definition(
        id="def_customer_sentiment",
        stability="interpretive",
        authority="human",
        time="evolves",
        values={"fld_def_term": "Customer sentiment"},
    )


@pytest.fixture
def bridge_definition():
    """Contextual, process-owned, versioned with 5 dependents: a protogon."""
    return Definition(
        id="def_order_status",
        name="Order status",
        stability="contextual",
        authority="process",
        time="versioned",
    )


@pytest.fixture
def bridge_edges(bridge_definition):
    return _edges(EdgeType.DEPENDS_ON, 5, target=bridge_definition.id, prefix="ord")


@pytest.fixture
def ambiguous_definition():
    """Stable but human-owned and evolving: no prototype is within 0.5."""
    return Definition(
        id="def_region",
        stability="stable",
        authority="human",
        time="evolves",
    )


@pytest.fixture
def workspace_data(anchor_definition, anchor_edges, perspective_definition,
                   bridge_definition, bridge_edges, ambiguous_definition):
    definitions = [
        anchor_definition,
        perspective_definition,
        bridge_definition,
        ambiguous_definition,
    ]
    edges = list(anchor_edges) + list(bridge_edges) + [
        Edge(EdgeType.SUPERSEDES, "def_region", "def_currency_code"),
        Edge(EdgeType.CONFLICTS_WITH, "def_region", "def_order_status"),
    ]
    return {
        "definitions": [d.to_dict() for d in definitions],
        "edges": [e.to_dict() for e in edges],
        "assertions": {
            # Conditions fail for an interpretive, human-owned definition.
            "def_customer_sentiment": {
                "role": "holon",
                "assertedBy": "human",
                "confidence": 0.8,
                "conditions": [
                    {"property": "stability", "operator": "==", "value": "stable"},
                    {"property": "authority", "operator": "in", "value": ["system", "external"]},
                ],
                "scope": "global",
                "timestamp": "2026-01-05T10:00:00+00:00",
                "reason": "Treated as reference data by finance",
            },
            # No conditions, so the assertion stands while behavior disagrees.
            "def_currency_code": {
                "role": "protogon",
                "assertedBy": "policy",
                "confidence": 0.6,
                "conditions": [],
                "scope": "dataset",
                "timestamp": "2026-01-05T10:00:00+00:00",
                "reason": None,
            },
        },
    }


@pytest.fixture
def workspace_file(tmp_path, workspace_data):
    path = tmp_path / "workspace.json"
    path.write_text(json.dumps(workspace_data), encoding="utf-8")
    return path
