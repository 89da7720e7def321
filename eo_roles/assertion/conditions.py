"""Declarative validity conditions attached to asserted roles.

Two kinds of condition exist:

* **property** conditions compare a definition property against a value
  (``==``, ``!=``, ``in``);
* **edge** conditions count edges of one type around the definition,
  filtered by direction, and compare the count (``==``, ``>``, ``<``).

Evaluation fails closed: an operator that is not valid for the condition
kind is never satisfied.  Such results carry an ``error`` so callers can
tell a misconfigured condition apart from one that is legitimately unmet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

from eo_roles.models import (
    ConditionError,
    Definition,
    Direction,
    Edge,
    EdgeType,
    Operator,
    Role,
    coerce_edge_type,
)

logger = logging.getLogger(__name__)


PROPERTY_OPERATORS = frozenset({Operator.EQ, Operator.NE, Operator.IN})
EDGE_OPERATORS = frozenset({Operator.EQ, Operator.GT, Operator.LT})


def _coerce_operator(value: Any) -> Operator | str:
    if isinstance(value, Operator):
        return value
    try:
        return Operator(value)
    except ValueError:
        # Kept verbatim; evaluation treats it as unmet.
        return str(value)


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Condition types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PropertyCondition:
    property: str
    operator: Operator | str
    value: Any

    def __post_init__(self):
        if not self.property:
            raise ConditionError("property condition needs a property name")
        object.__setattr__(self, "operator", _coerce_operator(self.operator))
        object.__setattr__(self, "value", _freeze(self.value))

    def describe(self) -> str:
        op = self.operator.value if isinstance(self.operator, Operator) else self.operator
        return f"{self.property} {op} {_thaw(self.value)!r}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "operator": self.operator.value if isinstance(self.operator, Operator) else self.operator,
            "value": _thaw(self.value),
        }


@dataclass(frozen=True)
class EdgeCondition:
    edge: EdgeType | str
    operator: Operator | str
    count: int
    direction: Direction = Direction.EITHER

    def __post_init__(self):
        if not self.edge:
            raise ConditionError("edge condition needs an edge type")
        object.__setattr__(self, "edge", coerce_edge_type(self.edge))
        object.__setattr__(self, "operator", _coerce_operator(self.operator))
        try:
            object.__setattr__(self, "direction", Direction(self.direction))
        except ValueError as exc:
            raise ConditionError(
                f"edge condition direction must be one of "
                f"{[d.value for d in Direction]}, got {self.direction!r}"
            ) from exc
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ConditionError(f"edge condition count must be an integer, got {self.count!r}")

    @property
    def edge_name(self) -> str:
        return self.edge.value if isinstance(self.edge, EdgeType) else self.edge

    def describe(self) -> str:
        op = self.operator.value if isinstance(self.operator, Operator) else self.operator
        return f"count({self.edge_name}, {self.direction.value}) {op} {self.count}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "edge": self.edge_name,
            "direction": self.direction.value,
            "operator": self.operator.value if isinstance(self.operator, Operator) else self.operator,
            "count": self.count,
        }


Condition = Union[PropertyCondition, EdgeCondition]


def parse_condition(data: Condition | Mapping[str, Any]) -> Condition:
    """Build a typed condition from its serialized dict form."""
    if isinstance(data, (PropertyCondition, EdgeCondition)):
        return data
    if not isinstance(data, Mapping):
        raise ConditionError(f"condition must be a mapping, got {type(data).__name__}")
    if "operator" not in data:
        raise ConditionError(f"condition is missing an operator: {dict(data)!r}")
    if data.get("property"):
        return PropertyCondition(
            property=data["property"],
            operator=data["operator"],
            value=data.get("value"),
        )
    if data.get("edge"):
        if "count" not in data:
            raise ConditionError(f"edge condition is missing a count: {dict(data)!r}")
        return EdgeCondition(
            edge=data["edge"],
            operator=data["operator"],
            count=data["count"],
            direction=data.get("direction", Direction.EITHER.value),
        )
    raise ConditionError(
        f"condition must name either a property or an edge: {dict(data)!r}"
    )


# ---------------------------------------------------------------------------
# Default conditions per role
# ---------------------------------------------------------------------------

DEFAULT_ROLE_CONDITIONS: Mapping[Role, tuple[Condition, ...]] = MappingProxyType({
    Role.HOLON: (
        PropertyCondition("stability", Operator.EQ, "stable"),
        PropertyCondition("authority", Operator.IN, ("system", "external")),
        EdgeCondition(EdgeType.SUPERSEDES, Operator.EQ, 0, Direction.OUTGOING),
    ),
    Role.PROTOGON: (
        PropertyCondition("stability", Operator.IN, ("stable", "contextual")),
        PropertyCondition("authority", Operator.EQ, "process"),
    ),
    Role.EMANON: (
        PropertyCondition("stability", Operator.IN, ("contextual", "interpretive")),
        PropertyCondition("authority", Operator.EQ, "human"),
    ),
})


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConditionResult:
    condition: Condition
    met: bool
    actual: Any
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "condition": self.condition.to_dict(),
            "met": self.met,
            "actual": _thaw(self.actual),
        }
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class ConditionEvaluation:
    all_met: bool
    results: tuple[ConditionResult, ...]

    @property
    def failed(self) -> tuple[ConditionResult, ...]:
        return tuple(r for r in self.results if not r.met)

    def to_dict(self) -> dict[str, Any]:
        return {
            "allMet": self.all_met,
            "results": [r.to_dict() for r in self.results],
        }


def _unsupported(condition: Condition, actual: Any) -> ConditionResult:
    op = condition.operator.value if isinstance(condition.operator, Operator) else condition.operator
    kind = "property" if isinstance(condition, PropertyCondition) else "edge"
    error = f"unsupported operator {op!r} for {kind} condition"
    logger.warning("Condition %s failed closed: %s", condition.describe(), error)
    return ConditionResult(condition=condition, met=False, actual=actual, error=error)


def _evaluate_property(condition: PropertyCondition, definition: Definition) -> ConditionResult:
    actual = definition.get_property(condition.property)
    op = condition.operator
    if op not in PROPERTY_OPERATORS:
        return _unsupported(condition, actual)

    if op is Operator.EQ:
        met = actual == condition.value
    elif op is Operator.NE:
        met = actual != condition.value
    else:
        met = isinstance(condition.value, tuple) and actual in condition.value
    return ConditionResult(condition=condition, met=met, actual=actual)


def _evaluate_edge(
    condition: EdgeCondition,
    definition: Definition,
    edges: list[Edge],
) -> ConditionResult:
    actual = sum(
        1 for e in edges
        if e.type == condition.edge
        and e.matches_direction(definition.id, condition.direction)
    )
    op = condition.operator
    if op not in EDGE_OPERATORS:
        return _unsupported(condition, actual)

    if op is Operator.EQ:
        met = actual == condition.count
    elif op is Operator.GT:
        met = actual > condition.count
    else:
        met = actual < condition.count
    return ConditionResult(condition=condition, met=met, actual=actual)


def evaluate_conditions(
    conditions: Iterable[Condition | Mapping[str, Any]],
    definition: Definition,
    edges: Iterable[Edge] = (),
) -> ConditionEvaluation:
    """Evaluate every condition against *definition* and its *edges*.

    ``all_met`` is the conjunction of the individual results, so an empty
    condition list is vacuously satisfied.
    """
    edges = list(edges)
    results: list[ConditionResult] = []
    for raw in conditions:
        condition = parse_condition(raw)
        if isinstance(condition, PropertyCondition):
            results.append(_evaluate_property(condition, definition))
        else:
            results.append(_evaluate_edge(condition, definition, edges))

    return ConditionEvaluation(
        all_met=all(r.met for r in results),
        results=tuple(results),
    )
