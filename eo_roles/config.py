"""Global configuration constants for eo-roles."""

import logging
import os

# Classification
CLASSIFICATION_THRESHOLD = 0.5  # max distance to a prototype before "mixed"
SUGGESTION_MIN_CONFIDENCE = 0.5

# Profile derivation
SUPERSESSION_FLUX_STEP = 0.2  # temporal flux added per SUPERSEDES edge
DEPENDENCY_SATURATION = 10  # edge count at which raw tolerance reaches 1.0
STABLE_TOLERANCE_FLOOR = 0.5
UNSTABLE_TOLERANCE_CEILING = 0.5

# Risk
BASE_EDGE_RISK = 1.0
NEUTRAL_RISK_MULTIPLIER = 1.0

# Definitions coming from the builder store their categorical properties
# as namespaced fields under ``values`` (e.g. ``fld_def_stability``).
NAMESPACED_FIELD_PREFIX = "fld_def_"
TERM_FIELD = "fld_def_term"

# Logging
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_log_level(name):
    """Upper-cased level name, or the default when logging does not know it."""
    name = (name or DEFAULT_LOG_LEVEL).strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    return DEFAULT_LOG_LEVEL


LOG_LEVEL = resolve_log_level(os.environ.get("EO_ROLES_LOG_LEVEL"))
