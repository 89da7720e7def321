"""Role susceptibility table and edge risk pricing."""
from eo_roles.risk.susceptibility import (
    ROLE_SUSCEPTIBILITY,
    EdgeRisk,
    Susceptibility,
    compute_edge_risk,
    get_susceptibility,
)
