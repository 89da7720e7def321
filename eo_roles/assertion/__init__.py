"""Asserted role layer and effective role resolution."""
from eo_roles.assertion.asserted import EOAssertedRole
from eo_roles.assertion.conditions import (
    DEFAULT_ROLE_CONDITIONS,
    ConditionEvaluation,
    EdgeCondition,
    PropertyCondition,
    evaluate_conditions,
    parse_condition,
)
from eo_roles.assertion.resolver import Drift, Resolution, resolve_effective_role
