"""Effective role resolution.

Combines the inferred role with an optional asserted role:

1. No assertion: the inferred role wins.
2. Assertion whose conditions all hold: the asserted role wins.  A
   disagreeing inference is reported as *soft* drift.
3. Assertion whose conditions fail: the assertion is invalidated, the
   inferred role wins and *hard* drift is reported.

Nothing here is cached; every call re-derives the resolution from its inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from eo_roles.assertion.asserted import EOAssertedRole
from eo_roles.assertion.conditions import (
    ConditionEvaluation,
    ConditionResult,
    evaluate_conditions,
)
from eo_roles.behavior.classifier import RoleInference, infer_eo_role
from eo_roles.behavior.profile import BehaviorProfile, compute_behavior_profile
from eo_roles.models import Definition, DriftType, Edge, ResolutionSource, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Drift:
    """Mismatch between asserted intent and observed behavior."""

    type: DriftType
    message: str
    inferred_role: Role
    asserted_role: Role
    confidence: float | None = None
    failed_conditions: tuple[ConditionResult, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type.value,
            "message": self.message,
            "inferredRole": self.inferred_role.value,
            "assertedRole": self.asserted_role.value,
        }
        if self.type is DriftType.SOFT:
            out["confidence"] = self.confidence
        else:
            out["failedConditions"] = [r.to_dict() for r in self.failed_conditions]
        return out


@dataclass(frozen=True)
class Resolution:
    effective_role: Role
    source: ResolutionSource
    inferred: RoleInference
    asserted: EOAssertedRole | None
    drift: Drift | None
    behavior_profile: BehaviorProfile
    condition_evaluation: ConditionEvaluation | None = None
    definition_id: str | None = None
    computed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.definition_id is not None:
            out["definitionId"] = self.definition_id
        out.update({
            "effectiveRole": self.effective_role.value,
            "source": self.source.value,
            "behaviorProfile": self.behavior_profile.to_dict(),
            "inferred": self.inferred.to_dict(),
            "asserted": self.asserted.to_dict() if self.asserted else None,
            "drift": self.drift.to_dict() if self.drift else None,
            "conditionEvaluation": (
                self.condition_evaluation.to_dict() if self.condition_evaluation else None
            ),
        })
        if self.computed_at is not None:
            out["computedAt"] = self.computed_at
        return out


def resolve_effective_role(
    definition: Definition,
    edges: Iterable[Edge] = (),
    asserted_role: EOAssertedRole | None = None,
) -> Resolution:
    """Resolve the role *definition* should be treated as right now."""
    edges = list(edges)
    behavior_profile = compute_behavior_profile(definition, edges)
    inferred = infer_eo_role(behavior_profile)

    if asserted_role is None:
        return Resolution(
            effective_role=inferred.role,
            source=ResolutionSource.INFERRED,
            inferred=inferred,
            asserted=None,
            drift=None,
            behavior_profile=behavior_profile,
        )

    evaluation = evaluate_conditions(asserted_role.conditions, definition, edges)

    if evaluation.all_met:
        drift = None
        if inferred.role != asserted_role.role:
            drift = Drift(
                type=DriftType.SOFT,
                message=(
                    f"Behaving like {inferred.role.value} but asserted as "
                    f"{asserted_role.role.value}"
                ),
                inferred_role=inferred.role,
                asserted_role=asserted_role.role,
                confidence=inferred.confidence,
            )
            logger.debug("Soft drift on %s: %s", definition.id, drift.message)
        return Resolution(
            effective_role=asserted_role.role,
            source=ResolutionSource.ASSERTED,
            inferred=inferred,
            asserted=asserted_role,
            drift=drift,
            behavior_profile=behavior_profile,
            condition_evaluation=evaluation,
        )

    drift = Drift(
        type=DriftType.HARD,
        message=f"Asserted as {asserted_role.role.value} but conditions no longer hold",
        inferred_role=inferred.role,
        asserted_role=asserted_role.role,
        failed_conditions=evaluation.failed,
    )
    logger.warning(
        "Hard drift on %s: %s (%d failed condition(s))",
        definition.id, drift.message, len(drift.failed_conditions),
    )
    return Resolution(
        effective_role=inferred.role,
        source=ResolutionSource.INFERRED_DUE_TO_DRIFT,
        inferred=inferred,
        asserted=asserted_role,
        drift=drift,
        behavior_profile=behavior_profile,
        condition_evaluation=evaluation,
    )
