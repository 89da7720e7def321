"""Shared data models for eo-roles.

``Definition`` and ``Edge`` are owned by external collaborators (the
definition builder and the edge registry).  The engine only ever reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from eo_roles.config import NAMESPACED_FIELD_PREFIX, TERM_FIELD


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class EORolesError(Exception):
    """Base class for every error raised by eo-roles."""


class ProfileError(EORolesError, ValueError):
    """A behavior profile component is missing or outside [0, 1]."""


class ConditionError(EORolesError, ValueError):
    """A condition dict cannot be parsed into a property or edge condition."""


class AssertedRoleError(EORolesError, ValueError):
    """An asserted role is missing a required field or carries an invalid value."""


class WorkspaceError(EORolesError):
    """A workspace file cannot be read or has the wrong shape."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Role(str, Enum):
    HOLON = "holon"          # stable anchor, load-bearing
    PROTOGON = "protogon"    # bridge/mediator, phase-bound
    EMANON = "emanon"        # emergent/contextual, perspectival
    MIXED = "mixed"          # no dominant pattern; never a prototype


class EdgeType(str, Enum):
    DEPENDS_ON = "DEPENDS_ON"
    SUPERSEDES = "SUPERSEDES"
    GOVERNED_BY = "GOVERNED_BY"
    CONFLICTS_WITH = "CONFLICTS_WITH"
    REFINES_MEANING_OF = "REFINES_MEANING_OF"
    VALIDATES_AGAINST = "VALIDATES_AGAINST"
    DEFINES_MEANING_OF = "DEFINES_MEANING_OF"


class Direction(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    EITHER = "either"


class Operator(str, Enum):
    EQ = "=="
    NE = "!="
    IN = "in"
    GT = ">"
    LT = "<"


class AssertedBy(str, Enum):
    SYSTEM = "system"
    HUMAN = "human"
    POLICY = "policy"


class Scope(str, Enum):
    GLOBAL = "global"
    DATASET = "dataset"
    PROCESS = "process"


class ResolutionSource(str, Enum):
    INFERRED = "inferred"
    ASSERTED = "asserted"
    INFERRED_DUE_TO_DRIFT = "inferred_due_to_drift"


class DriftType(str, Enum):
    SOFT = "soft"
    HARD = "hard"


def coerce_edge_type(value: Any) -> EdgeType | str:
    """Return the matching ``EdgeType`` or the raw string for unknown types."""
    if isinstance(value, EdgeType):
        return value
    try:
        return EdgeType(value)
    except ValueError:
        return str(value)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Role descriptions
# ---------------------------------------------------------------------------

ROLE_DESCRIPTIONS: Mapping[Role, Mapping[str, Any]] = MappingProxyType({
    Role.HOLON: MappingProxyType({
        "name": "Holon",
        "short_description": "Stable identity anchor",
        "description": (
            "Acts as a meaning anchor - stable semantic foundation that "
            "others depend on."
        ),
        "characteristics": (
            "Stable meaning that resists change",
            "System or external authority",
            "High dependency tolerance (many things rely on it)",
            "Low temporal flux",
        ),
    }),
    Role.PROTOGON: MappingProxyType({
        "name": "Protogon",
        "short_description": "Meaning bridge",
        "description": (
            "Acts as a meaning bridge - mediates between stable and dynamic "
            "meanings within structured phases."
        ),
        "characteristics": (
            "Contextual stability (valid within scope)",
            "Process-bound authority",
            "Moderate dependencies",
            "Structured change is expected",
        ),
    }),
    Role.EMANON: MappingProxyType({
        "name": "Emanon",
        "short_description": "Emergent meaning",
        "description": (
            "Acts as emergent meaning - highly contextual and adaptive, "
            "shaped by perspective."
        ),
        "characteristics": (
            "Interpretive stability (meaning varies)",
            "Human/perspectival authority",
            "Low dependency tolerance",
            "High temporal flux",
        ),
    }),
    Role.MIXED: MappingProxyType({
        "name": "Mixed",
        "short_description": "No dominant pattern",
        "description": (
            "No single dominant behavior pattern - exhibits characteristics "
            "of multiple roles."
        ),
        "characteristics": (),
    }),
})


# ---------------------------------------------------------------------------
# External data contracts
# ---------------------------------------------------------------------------

_DEFINITION_KEYS = {"id", "name", "stability", "authority", "time", "values"}


@dataclass(frozen=True)
class Definition:
    """A data definition as handed over by the definition store."""

    id: str
    name: str | None = None
    stability: str | None = None
    authority: str | None = None
    time: str | None = None
    values: Mapping[str, Any] = field(default_factory=dict)
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Definition:
        if not data.get("id"):
            raise WorkspaceError(f"definition is missing an id: {dict(data)!r}")
        values = data.get("values") or {}
        if not isinstance(values, Mapping):
            raise WorkspaceError(
                f"definition {data['id']!r}: values must be an object, got {type(values).__name__}"
            )
        return cls(
            id=str(data["id"]),
            name=data.get("name"),
            stability=data.get("stability"),
            authority=data.get("authority"),
            time=data.get("time"),
            values=dict(values),
            attributes={k: v for k, v in data.items() if k not in _DEFINITION_KEYS},
        )

    def get_property(self, name: str) -> Any:
        """Read a property, falling back to its namespaced field in ``values``."""
        if name in ("stability", "authority", "time", "name", "id"):
            direct = getattr(self, name)
        else:
            direct = self.attributes.get(name)
        if direct:
            return direct
        return self.values.get(f"{NAMESPACED_FIELD_PREFIX}{name}")

    @property
    def display_name(self) -> str | None:
        return self.name or self.values.get(TERM_FIELD)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.attributes)
        out["id"] = self.id
        for key in ("name", "stability", "authority", "time"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.values:
            out["values"] = dict(self.values)
        return out


@dataclass(frozen=True)
class Edge:
    """A directed relationship between two definitions."""

    type: EdgeType | str
    source_id: str
    target_id: str

    def __post_init__(self):
        object.__setattr__(self, "type", coerce_edge_type(self.type))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Edge:
        source = data.get("sourceId", data.get("source_id"))
        target = data.get("targetId", data.get("target_id"))
        if not data.get("type") or source is None or target is None:
            raise WorkspaceError(f"edge needs type, sourceId and targetId: {dict(data)!r}")
        return cls(type=data["type"], source_id=str(source), target_id=str(target))

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, EdgeType) else self.type

    def touches(self, definition_id: str) -> bool:
        return self.source_id == definition_id or self.target_id == definition_id

    def matches_direction(self, definition_id: str, direction: Direction) -> bool:
        if direction is Direction.OUTGOING:
            return self.source_id == definition_id
        if direction is Direction.INCOMING:
            return self.target_id == definition_id
        return self.touches(definition_id)

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type_name,
            "sourceId": self.source_id,
            "targetId": self.target_id,
        }
