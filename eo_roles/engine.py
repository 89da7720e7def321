"""Inference engine: orchestrates the observed / inferred / asserted layers.

The engine owns the only mutable state in the package, the map of asserted
roles keyed by definition id.  Writes to that map are serialized with a
lock; reads copy a snapshot and compute outside the lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping

from eo_roles.assertion.asserted import EOAssertedRole
from eo_roles.assertion.conditions import DEFAULT_ROLE_CONDITIONS
from eo_roles.assertion.resolver import Drift, Resolution, resolve_effective_role
from eo_roles.behavior.classifier import infer_eo_role
from eo_roles.behavior.profile import compute_behavior_profile
from eo_roles.config import SUGGESTION_MIN_CONFIDENCE
from eo_roles.models import (
    AssertedBy,
    AssertedRoleError,
    Definition,
    Edge,
    Role,
    Scope,
    utc_now,
)
from eo_roles.risk.susceptibility import EdgeRisk, compute_edge_risk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriftReport:
    """Drift found for one stored assertion."""

    definition_id: str
    definition_name: str | None
    drift: Drift

    def to_dict(self) -> dict[str, Any]:
        return {
            "definitionId": self.definition_id,
            "definitionName": self.definition_name,
            **self.drift.to_dict(),
        }


class EOInferenceEngine:
    """Resolves effective roles for definitions against stored assertions."""

    def __init__(self, assertions: Mapping[str, EOAssertedRole | Mapping[str, Any]] | None = None) -> None:
        self._assertions: dict[str, EOAssertedRole] = {}
        self._lock = threading.Lock()
        if assertions:
            self.import_assertions(assertions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._assertions)

    # ------------------------------------------------------------------
    # Assertion store
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(definition_id: str, data: EOAssertedRole | Mapping[str, Any]) -> EOAssertedRole:
        if isinstance(data, EOAssertedRole):
            return data
        try:
            return EOAssertedRole.from_dict(data)
        except AssertedRoleError as exc:
            raise AssertedRoleError(f"assertion for {definition_id!r}: {exc}") from exc

    def set_assertion(
        self,
        definition_id: str,
        assertion: EOAssertedRole | Mapping[str, Any],
    ) -> EOAssertedRole:
        """Store *assertion* for *definition_id*, replacing any previous one."""
        if not definition_id:
            raise AssertedRoleError("definition id is required to store an assertion")
        assertion = self._coerce(definition_id, assertion)
        with self._lock:
            self._assertions[definition_id] = assertion
        logger.debug("Asserted %s as %s", definition_id, assertion.role.value)
        return assertion

    def get_assertion(self, definition_id: str) -> EOAssertedRole | None:
        with self._lock:
            return self._assertions.get(definition_id)

    def clear_assertion(self, definition_id: str) -> bool:
        """Remove the assertion for *definition_id*; return whether one existed."""
        with self._lock:
            removed = self._assertions.pop(definition_id, None)
        if removed is not None:
            logger.debug("Cleared assertion for %s", definition_id)
        return removed is not None

    def assertions(self) -> dict[str, EOAssertedRole]:
        """Snapshot of the stored assertions."""
        with self._lock:
            return dict(self._assertions)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def compute_profile(self, definition: Definition, edges: Iterable[Edge] = ()) -> Resolution:
        """Resolve *definition* against its stored assertion, if any."""
        resolved = resolve_effective_role(
            definition, edges, self.get_assertion(definition.id)
        )
        return replace(resolved, definition_id=definition.id, computed_at=utc_now())

    def compute_edge_risk(
        self,
        edge: Edge,
        target_definition: Definition,
        edges: Iterable[Edge] = (),
    ) -> EdgeRisk:
        """Price *edge* by the effective role of *target_definition*."""
        return compute_edge_risk(edge, self.compute_profile(target_definition, edges))

    def detect_drift(
        self,
        definitions: Iterable[Definition],
        get_edges_for_definition: Callable[[str], Iterable[Edge]],
    ) -> list[DriftReport]:
        """Re-resolve every stored assertion and collect soft and hard drift.

        Assertions whose definition is not among *definitions* are skipped.
        """
        by_id = {d.id: d for d in definitions}
        reports: list[DriftReport] = []

        for definition_id, assertion in self.assertions().items():
            definition = by_id.get(definition_id)
            if definition is None:
                logger.debug("No definition for asserted id %s, skipping", definition_id)
                continue
            resolved = resolve_effective_role(
                definition, get_edges_for_definition(definition_id), assertion
            )
            if resolved.drift is not None:
                reports.append(DriftReport(
                    definition_id=definition_id,
                    definition_name=definition.display_name,
                    drift=resolved.drift,
                ))

        logger.info("Drift check: %d assertion(s) with drift", len(reports))
        return reports

    def suggest_assertion(
        self,
        definition: Definition,
        edges: Iterable[Edge] = (),
    ) -> EOAssertedRole | None:
        """Propose an assertion from observed behavior.

        Returns ``None`` when the inference is ``mixed`` or its confidence is
        below the suggestion floor.
        """
        inferred = infer_eo_role(compute_behavior_profile(definition, edges))
        if inferred.role is Role.MIXED or inferred.confidence < SUGGESTION_MIN_CONFIDENCE:
            return None

        return EOAssertedRole(
            role=inferred.role,
            asserted_by=AssertedBy.SYSTEM,
            confidence=inferred.confidence,
            conditions=DEFAULT_ROLE_CONDITIONS.get(inferred.role, ()),
            scope=Scope.GLOBAL,
            reason=(
                f"System inferred from behavior profile with "
                f"{inferred.confidence * 100:.0f}% confidence"
            ),
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export_assertions(self) -> dict[str, dict[str, Any]]:
        return {
            definition_id: assertion.to_dict()
            for definition_id, assertion in self.assertions().items()
        }

    def import_assertions(
        self,
        data: Mapping[str, EOAssertedRole | Mapping[str, Any]],
    ) -> int:
        """Merge serialized assertions into the store.

        Every entry is validated before any is stored, so a malformed entry
        leaves the store untouched.
        """
        parsed = {
            definition_id: self._coerce(definition_id, entry)
            for definition_id, entry in data.items()
        }
        with self._lock:
            self._assertions.update(parsed)
        logger.debug("Imported %d assertion(s)", len(parsed))
        return len(parsed)
