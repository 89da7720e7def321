"""Asserted role layer.

An asserted role is not a claim that a definition *is* a holon; it says
"treat this as a holon so long as these conditions hold".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from eo_roles.assertion.conditions import Condition, parse_condition
from eo_roles.models import (
    AssertedBy,
    AssertedRoleError,
    ConditionError,
    Role,
    Scope,
    utc_now,
)

# Serialized field set, in export order.
ASSERTION_FIELDS = (
    "role",
    "assertedBy",
    "confidence",
    "conditions",
    "scope",
    "timestamp",
    "reason",
)


def _coerce_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = [m.value for m in enum_cls]
        raise AssertedRoleError(
            f"{field_name} must be one of {allowed}, got {value!r}"
        ) from exc


@dataclass(frozen=True)
class EOAssertedRole:
    """A conditional, stored claim about how a definition should be treated."""

    role: Role
    asserted_by: AssertedBy = AssertedBy.SYSTEM
    confidence: float = 0.5
    conditions: tuple[Condition, ...] = ()
    scope: Scope = Scope.GLOBAL
    timestamp: str = field(default_factory=utc_now)
    reason: str | None = None

    def __post_init__(self):
        if self.role is None or self.role == "":
            raise AssertedRoleError("asserted role requires a role")
        object.__setattr__(self, "role", _coerce_enum(Role, self.role, "role"))
        object.__setattr__(
            self, "asserted_by", _coerce_enum(AssertedBy, self.asserted_by, "assertedBy")
        )
        object.__setattr__(self, "scope", _coerce_enum(Scope, self.scope, "scope"))

        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise AssertedRoleError(f"confidence must be a number, got {self.confidence!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise AssertedRoleError(f"confidence={self.confidence} is outside [0, 1]")

        if not self.timestamp or not isinstance(self.timestamp, str):
            raise AssertedRoleError(f"timestamp must be an ISO-8601 string, got {self.timestamp!r}")
        if self.reason is not None and not isinstance(self.reason, str):
            raise AssertedRoleError(f"reason must be a string or None, got {self.reason!r}")

        if isinstance(self.conditions, (str, bytes, Mapping)):
            raise AssertedRoleError("conditions must be a list of condition objects")
        try:
            conditions = tuple(parse_condition(c) for c in self.conditions)
        except ConditionError as exc:
            raise AssertedRoleError(f"invalid condition: {exc}") from exc
        except TypeError as exc:
            raise AssertedRoleError("conditions must be a list of condition objects") from exc
        object.__setattr__(self, "conditions", conditions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EOAssertedRole:
        """Build an assertion from its serialized (camelCase) form.

        Only ``role`` is required; every other field takes its default.
        """
        if not isinstance(data, Mapping):
            raise AssertedRoleError(f"assertion must be a mapping, got {type(data).__name__}")
        if "role" not in data:
            raise AssertedRoleError(f"assertion is missing required field 'role': {dict(data)!r}")
        unknown = set(data) - set(ASSERTION_FIELDS) - {"asserted_by"}
        if unknown:
            raise AssertedRoleError(f"assertion has unknown fields: {sorted(unknown)}")

        kwargs: dict[str, Any] = {"role": data["role"]}
        asserted_by = data.get("assertedBy", data.get("asserted_by"))
        if asserted_by is not None:
            kwargs["asserted_by"] = asserted_by
        for key in ("confidence", "scope", "timestamp", "reason"):
            if data.get(key) is not None:
                kwargs[key] = data[key]
        if data.get("conditions") is not None:
            kwargs["conditions"] = data["conditions"]
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "assertedBy": self.asserted_by.value,
            "confidence": self.confidence,
            "conditions": [c.to_dict() for c in self.conditions],
            "scope": self.scope.value,
            "timestamp": self.timestamp,
            "reason": self.reason,
        }
