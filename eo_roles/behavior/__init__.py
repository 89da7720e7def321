"""Observed behavior and inferred role layers."""
from eo_roles.behavior.classifier import RoleInference, infer_eo_role
from eo_roles.behavior.profile import (
    CANONICAL_PROFILES,
    BehaviorProfile,
    compute_behavior_profile,
)
