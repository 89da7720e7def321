"""EO role inference and resolution.

Three layers describe how a data definition behaves:

1. observed behavior, a profile derived from properties and edges;
2. the inferred role, the canonical prototype nearest that profile;
3. the asserted role, a stored conditional claim that wins while its
   conditions hold.

The resolved role then weights the risk of edges touching the definition.
"""

__version__ = "0.1.0"

from eo_roles.assertion import (
    DEFAULT_ROLE_CONDITIONS,
    EOAssertedRole,
    evaluate_conditions,
    resolve_effective_role,
)
from eo_roles.behavior import (
    CANONICAL_PROFILES,
    BehaviorProfile,
    compute_behavior_profile,
    infer_eo_role,
)
from eo_roles.engine import DriftReport, EOInferenceEngine
from eo_roles.models import Definition, Edge, EdgeType, Role
from eo_roles.risk import ROLE_SUSCEPTIBILITY, get_susceptibility
