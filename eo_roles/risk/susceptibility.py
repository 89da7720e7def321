"""Role susceptibility and edge risk.

Roles do not cause different effects; they sensitize a definition to the
same edge differently.  A ``SUPERSEDES`` edge is routine for an emanon and
identity-breaking for a holon.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from eo_roles.assertion.resolver import Resolution
from eo_roles.config import BASE_EDGE_RISK, NEUTRAL_RISK_MULTIPLIER
from eo_roles.models import Edge, EdgeType, Role, coerce_edge_type


@dataclass(frozen=True)
class Susceptibility:
    risk_multiplier: float
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {"riskMultiplier": self.risk_multiplier, "explanation": self.explanation}


def _row(**entries: tuple[float, str]) -> Mapping[Role, Susceptibility]:
    return MappingProxyType({
        Role(role): Susceptibility(multiplier, explanation)
        for role, (multiplier, explanation) in entries.items()
    })


ROLE_SUSCEPTIBILITY: Mapping[EdgeType, Mapping[Role, Susceptibility]] = MappingProxyType({
    EdgeType.DEPENDS_ON: _row(
        holon=(0.5, "Dependency is safe and strengthening"),
        protogon=(1.0, "Dependency is legitimate but phase-bound"),
        emanon=(2.0, "Building structure on perspectival meaning is fragile"),
    ),
    EdgeType.SUPERSEDES: _row(
        holon=(3.0, "Supersession threatens referential identity"),
        protogon=(1.0, "Supersession is a normal phase transition"),
        emanon=(0.5, "Supersession is natural for emergent meanings"),
    ),
    EdgeType.GOVERNED_BY: _row(
        holon=(0.5, "Governance may over-specify stable authority"),
        protogon=(0.8, "Governance reinforces structured change"),
        emanon=(0.5, "Governance helps crystallize meaning"),
    ),
    EdgeType.CONFLICTS_WITH: _row(
        holon=(4.0, "Conflict with anchor meaning is critical"),
        protogon=(2.0, "Conflict signals phase/process mismatch"),
        emanon=(1.0, "Conflict is expected for perspectival meanings"),
    ),
    EdgeType.REFINES_MEANING_OF: _row(
        holon=(2.0, "Refinement may alter stable identity"),
        protogon=(0.8, "Specialization within bounds is safe"),
        emanon=(0.5, "Refinement may be reinterpretation"),
    ),
})

NO_EDGE_SUSCEPTIBILITY = Susceptibility(
    NEUTRAL_RISK_MULTIPLIER, "No specific susceptibility defined"
)
NO_ROLE_SUSCEPTIBILITY = Susceptibility(
    NEUTRAL_RISK_MULTIPLIER, "No role-specific susceptibility"
)


def get_susceptibility(role: Role | str, edge_type: EdgeType | str) -> Susceptibility:
    """Look up how strongly *role* reacts to an edge of *edge_type*.

    Unknown edge types and roles without an entry (``mixed`` or any
    unrecognized value) fall back to a neutral multiplier of 1.0.
    """
    row = ROLE_SUSCEPTIBILITY.get(coerce_edge_type(edge_type))
    if row is None:
        return NO_EDGE_SUSCEPTIBILITY
    try:
        role = Role(role)
    except ValueError:
        return NO_ROLE_SUSCEPTIBILITY
    return row.get(role, NO_ROLE_SUSCEPTIBILITY)


@dataclass(frozen=True)
class EdgeRisk:
    edge: Edge
    target_role: Role
    base_risk: float
    susceptibility_multiplier: float
    adjusted_risk: float
    explanation: str
    role_explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "edge": self.edge.to_dict(),
            "targetRole": self.target_role.value,
            "baseRisk": self.base_risk,
            "susceptibilityMultiplier": self.susceptibility_multiplier,
            "adjustedRisk": self.adjusted_risk,
            "explanation": self.explanation,
            "roleExplanation": self.role_explanation,
        }


def compute_edge_risk(edge: Edge, target_resolution: Resolution) -> EdgeRisk:
    """Price *edge* against the resolved role of its target definition."""
    susceptibility = get_susceptibility(target_resolution.effective_role, edge.type)
    return EdgeRisk(
        edge=edge,
        target_role=target_resolution.effective_role,
        base_risk=BASE_EDGE_RISK,
        susceptibility_multiplier=susceptibility.risk_multiplier,
        adjusted_risk=BASE_EDGE_RISK * susceptibility.risk_multiplier,
        explanation=susceptibility.explanation,
        role_explanation=(
            f"Target is acting as {target_resolution.effective_role.value} "
            f"({target_resolution.source.value})"
        ),
    )
