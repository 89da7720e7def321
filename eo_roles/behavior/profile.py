"""Observed behavior layer.

A ``BehaviorProfile`` is a point in a 4-dimensional behavior space derived
from a definition's declared properties and its relationship edges.  It is
not a role: roles are named regions of this space, centred on the
canonical prototypes defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import numpy as np

from eo_roles.config import (
    DEPENDENCY_SATURATION,
    STABLE_TOLERANCE_FLOOR,
    SUPERSESSION_FLUX_STEP,
    UNSTABLE_TOLERANCE_CEILING,
)
from eo_roles.models import Definition, Edge, EdgeType, ProfileError, Role, utc_now


DIMENSIONS = (
    "interpretive_weight",
    "temporal_flux",
    "authority_rigidity",
    "dependency_tolerance",
)

_JSON_KEYS = {
    "interpretive_weight": "interpretiveWeight",
    "temporal_flux": "temporalFlux",
    "authority_rigidity": "authorityRigidity",
    "dependency_tolerance": "dependencyTolerance",
}


# ---------------------------------------------------------------------------
# Profile value object
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BehaviorProfile:
    """Immutable behavior vector with an explainability trace."""

    interpretive_weight: float
    temporal_flux: float
    authority_rigidity: float
    dependency_tolerance: float
    sources: tuple[Mapping[str, Any], ...] = field(default=(), compare=False)
    computed_at: str = field(default_factory=utc_now, compare=False)

    def __post_init__(self):
        for name in DIMENSIONS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ProfileError(f"{name} must be a number, got {value!r}")
            if not 0.0 <= value <= 1.0:
                raise ProfileError(f"{name}={value} is outside [0, 1]")
            object.__setattr__(self, name, float(value))
        object.__setattr__(self, "sources", tuple(self.sources))

    def as_vector(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in DIMENSIONS], dtype=np.float64)

    def distance_to(self, other: BehaviorProfile) -> float:
        """Euclidean distance to another profile."""
        return float(np.linalg.norm(self.as_vector() - other.as_vector()))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {_JSON_KEYS[name]: getattr(self, name) for name in DIMENSIONS}
        out["computedAt"] = self.computed_at
        out["sources"] = [dict(s) for s in self.sources]
        return out


# ---------------------------------------------------------------------------
# Canonical prototypes (centres of each role region)
# ---------------------------------------------------------------------------

CANONICAL_PROFILES: Mapping[Role, BehaviorProfile] = MappingProxyType({
    Role.HOLON: BehaviorProfile(
        interpretive_weight=0.1,    # very stable meaning
        temporal_flux=0.1,          # rarely changes
        authority_rigidity=0.9,     # strong system/external authority
        dependency_tolerance=0.9,   # can bear many dependencies
    ),
    Role.PROTOGON: BehaviorProfile(
        interpretive_weight=0.5,
        temporal_flux=0.5,
        authority_rigidity=0.6,     # process-bound authority
        dependency_tolerance=0.5,
    ),
    Role.EMANON: BehaviorProfile(
        interpretive_weight=0.9,
        temporal_flux=0.8,
        authority_rigidity=0.2,     # perspectival authority
        dependency_tolerance=0.2,
    ),
})


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

INTERPRETIVE_WEIGHT_BY_STABILITY: Mapping[str, float] = MappingProxyType({
    "stable": 0.1,
    "contextual": 0.5,
    "interpretive": 0.8,
    "evolves": 0.8,
})
DEFAULT_INTERPRETIVE_WEIGHT = 0.5

AUTHORITY_RIGIDITY_BY_AUTHORITY: Mapping[str, float] = MappingProxyType({
    "system": 0.9,
    "external": 0.8,
    "process": 0.6,
    "human": 0.2,
})
DEFAULT_AUTHORITY_RIGIDITY = 0.5

TEMPORAL_FLUX_BY_TIME: Mapping[str, float] = MappingProxyType({
    "immutable": 0.0,
    "mutable": 0.3,
    "evolves": 0.7,
    "versioned": 0.7,
})
DEFAULT_TEMPORAL_FLUX = 0.3

_DEPENDENCY_EDGE_TYPES = frozenset({EdgeType.DEPENDS_ON, EdgeType.VALIDATES_AGAINST})


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------

def compute_behavior_profile(
    definition: Definition,
    edges: Iterable[Edge] = (),
) -> BehaviorProfile:
    """Derive the observed behavior profile of *definition*.

    Parameters
    ----------
    definition:
        The definition whose declared properties seed three of the four
        dimensions.  Unknown or absent categorical values fall back to the
        mid-point defaults.
    edges:
        Edges around the definition.  Only edges touching ``definition.id``
        contribute.

    Returns
    -------
    A ``BehaviorProfile`` whose ``sources`` record which input produced
    each dimension.
    """
    edges = list(edges)
    sources: list[dict[str, Any]] = []

    stability = definition.get_property("stability")
    authority = definition.get_property("authority")
    time_behavior = definition.get_property("time")

    # -- Interpretive weight from stability ------------------------------
    interpretive_weight = INTERPRETIVE_WEIGHT_BY_STABILITY.get(
        stability, DEFAULT_INTERPRETIVE_WEIGHT
    )
    sources.append({"dimension": "interpretiveWeight", "from": "stability", "value": stability})

    # -- Authority rigidity from authority type --------------------------
    authority_rigidity = AUTHORITY_RIGIDITY_BY_AUTHORITY.get(
        authority, DEFAULT_AUTHORITY_RIGIDITY
    )
    sources.append({"dimension": "authorityRigidity", "from": "authority", "value": authority})

    # -- Temporal flux from time behavior + supersession -----------------
    temporal_flux = TEMPORAL_FLUX_BY_TIME.get(time_behavior, DEFAULT_TEMPORAL_FLUX)
    supersessions = sum(
        1 for e in edges
        if e.type == EdgeType.SUPERSEDES and e.touches(definition.id)
    )
    if supersessions:
        temporal_flux = min(1.0, temporal_flux + SUPERSESSION_FLUX_STEP * supersessions)
        sources.append({
            "dimension": "temporalFlux",
            "from": "supersedes_edges",
            "count": supersessions,
        })
    sources.append({"dimension": "temporalFlux", "from": "time", "value": time_behavior})

    # -- Dependency tolerance from edge patterns -------------------------
    incoming_deps = sum(
        1 for e in edges
        if e.target_id == definition.id and e.type in _DEPENDENCY_EDGE_TYPES
    )
    outgoing_bindings = sum(
        1 for e in edges
        if e.source_id == definition.id and e.type == EdgeType.DEFINES_MEANING_OF
    )
    raw_tolerance = min(1.0, (incoming_deps + outgoing_bindings) / DEPENDENCY_SATURATION)
    # Stable definitions are assumed able to bear dependencies; everything
    # else is capped no matter how many dependents it has.
    if stability == "stable":
        dependency_tolerance = max(STABLE_TOLERANCE_FLOOR, raw_tolerance)
    else:
        dependency_tolerance = min(UNSTABLE_TOLERANCE_CEILING, raw_tolerance)
    sources.append({
        "dimension": "dependencyTolerance",
        "from": "edges",
        "incomingDeps": incoming_deps,
        "outgoingBindings": outgoing_bindings,
    })

    return BehaviorProfile(
        interpretive_weight=interpretive_weight,
        temporal_flux=temporal_flux,
        authority_rigidity=authority_rigidity,
        dependency_tolerance=dependency_tolerance,
        sources=tuple(sources),
    )
