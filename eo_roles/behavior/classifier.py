"""Inferred role layer: nearest-prototype classification of a behavior profile."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from eo_roles.behavior.profile import CANONICAL_PROFILES, BehaviorProfile
from eo_roles.config import CLASSIFICATION_THRESHOLD
from eo_roles.models import Role


@dataclass(frozen=True)
class RoleInference:
    """What the system thinks a definition is acting like right now."""

    role: Role
    confidence: float
    distances: Mapping[Role, float]
    profile: BehaviorProfile

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "confidence": self.confidence,
            "distances": {role.value: d for role, d in self.distances.items()},
            "profile": self.profile.to_dict(),
        }


def infer_eo_role(
    profile: BehaviorProfile,
    threshold: float = CLASSIFICATION_THRESHOLD,
) -> RoleInference:
    """Classify *profile* by Euclidean distance to the canonical prototypes.

    Prototypes are visited in holon, protogon, emanon order and only a
    strictly smaller distance replaces the current best, so the earlier
    prototype wins an exact tie.  When even the nearest prototype is
    farther than *threshold* the result is ``Role.MIXED``.
    """
    distances = {
        role: profile.distance_to(prototype)
        for role, prototype in CANONICAL_PROFILES.items()
    }

    closest = Role.MIXED
    min_distance = math.inf
    for role, distance in distances.items():
        if distance < min_distance:
            min_distance = distance
            closest = role

    if min_distance > threshold:
        closest = Role.MIXED

    return RoleInference(
        role=closest,
        confidence=max(0.0, 1.0 - min_distance),
        distances=distances,
        profile=profile,
    )
