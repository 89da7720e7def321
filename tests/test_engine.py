"""Tests for the inference engine, susceptibility table and edge risk."""
import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from eo_roles.assertion.asserted import EOAssertedRole
from eo_roles.assertion.conditions import DEFAULT_ROLE_CONDITIONS
from eo_roles.engine import EOInferenceEngine
from eo_roles.models import (
    AssertedBy,
    AssertedRoleError,
    Definition,
    DriftType,
    Edge,
    EdgeType,
    ResolutionSource,
    Role,
    Scope,
)
from eo_roles.risk.susceptibility import ROLE_SUSCEPTIBILITY, get_susceptibility


class TestSusceptibility:

    def test_holon_supersedes(self):
        assert get_susceptibility("holon", "SUPERSEDES").risk_multiplier == 3.0

    def test_emanon_supersedes(self):
        assert get_susceptibility(Role.EMANON, EdgeType.SUPERSEDES).risk_multiplier == 0.5

    def test_unknown_edge_type(self):
        s = get_susceptibility("holon", "UNKNOWN_TYPE")
        assert s.risk_multiplier == 1.0
        assert s.explanation == "No specific susceptibility defined"

    def test_uncovered_role(self):
        s = get_susceptibility(Role.MIXED, EdgeType.SUPERSEDES)
        assert s.risk_multiplier == 1.0
        assert s.explanation == "No role-specific susceptibility"
        assert get_susceptibility("keystone", "DEPENDS_ON").risk_multiplier == 1.0

    def test_known_edge_without_row(self):
        assert get_susceptibility(Role.HOLON, EdgeType.VALIDATES_AGAINST).risk_multiplier == 1.0

    def test_conflict_on_holon_is_most_severe(self):
        worst = max(
            s.risk_multiplier for row in ROLE_SUSCEPTIBILITY.values() for s in row.values()
        )
        assert get_susceptibility(Role.HOLON, EdgeType.CONFLICTS_WITH).risk_multiplier == worst == 4.0

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_SUSCEPTIBILITY[EdgeType.DEPENDS_ON] = {}
        with pytest.raises(TypeError):
            ROLE_SUSCEPTIBILITY[EdgeType.DEPENDS_ON][Role.HOLON] = None


class TestAssertionStore:

    def test_set_get_clear(self):
        engine = EOInferenceEngine()
        assert engine.get_assertion("d1") is None
        stored = engine.set_assertion("d1", {"role": "holon", "assertedBy": "human"})
        assert isinstance(stored, EOAssertedRole)
        assert engine.get_assertion("d1") is stored
        assert len(engine) == 1
        assert engine.clear_assertion("d1") is True
        assert engine.get_assertion("d1") is None
        assert engine.clear_assertion("d1") is False

    def test_set_replaces_wholesale(self):
        engine = EOInferenceEngine()
        engine.set_assertion("d1", {"role": "holon", "reason": "first"})
        engine.set_assertion("d1", {"role": "emanon"})
        a = engine.get_assertion("d1")
        assert a.role is Role.EMANON
        assert a.reason is None

    def test_set_rejects_malformed(self):
        engine = EOInferenceEngine()
        with pytest.raises(AssertedRoleError, match="d1"):
            engine.set_assertion("d1", {"confidence": 0.9})
        assert len(engine) == 0

    def test_set_requires_id(self):
        with pytest.raises(AssertedRoleError):
            EOInferenceEngine().set_assertion("", {"role": "holon"})

    def test_snapshot_is_detached(self):
        engine = EOInferenceEngine()
        engine.set_assertion("d1", {"role": "holon"})
        snapshot = engine.assertions()
        snapshot.clear()
        assert len(engine) == 1

    def test_concurrent_writes(self):
        engine = EOInferenceEngine()

        def write(i):
            engine.set_assertion(f"d{i}", {"role": "protogon", "confidence": 0.5})
            if i % 2:
                engine.clear_assertion(f"d{i}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(write, range(200)))
        assert len(engine) == 100
        assert all(int(k[1:]) % 2 == 0 for k in engine.assertions())


class TestComputeProfile:

    def test_without_assertion(self, anchor_definition, anchor_edges):
        r = EOInferenceEngine().compute_profile(anchor_definition, anchor_edges)
        assert r.definition_id == "def_currency_code"
        assert r.computed_at
        assert r.source is ResolutionSource.INFERRED
        assert r.effective_role is Role.HOLON

    def test_uses_stored_assertion(self, perspective_definition):
        engine = EOInferenceEngine()
        engine.set_assertion(perspective_definition.id, EOAssertedRole(
            role=Role.HOLON, conditions=DEFAULT_ROLE_CONDITIONS[Role.HOLON],
        ))
        r = engine.compute_profile(perspective_definition, [])
        assert r.source is ResolutionSource.INFERRED_DUE_TO_DRIFT
        assert r.drift.type is DriftType.HARD
        d = r.to_dict()
        assert d["definitionId"] == perspective_definition.id
        assert "computedAt" in d


class TestComputeEdgeRisk:

    def test_supersedes_on_inferred_holon(self, anchor_definition, anchor_edges):
        edge = Edge(EdgeType.SUPERSEDES, "def_currency_code_v2", anchor_definition.id)
        risk = EOInferenceEngine().compute_edge_risk(
            edge, anchor_definition, anchor_edges + [edge]
        )
        assert risk.target_role is Role.HOLON
        assert risk.base_risk == 1.0
        assert risk.susceptibility_multiplier == 3.0
        assert risk.adjusted_risk == 3.0
        assert risk.explanation == "Supersession threatens referential identity"
        assert risk.role_explanation == "Target is acting as holon (inferred)"

    def test_asserted_role_changes_risk(self, anchor_definition, anchor_edges):
        engine = EOInferenceEngine()
        engine.set_assertion(anchor_definition.id, {"role": "emanon"})
        edge = Edge(EdgeType.SUPERSEDES, "def_currency_code_v2", anchor_definition.id)
        risk = engine.compute_edge_risk(edge, anchor_definition, anchor_edges + [edge])
        assert risk.target_role is Role.EMANON
        assert risk.adjusted_risk == 0.5
        assert risk.role_explanation == "Target is acting as emanon (asserted)"

    def test_unknown_edge_type_is_neutral(self, anchor_definition):
        edge = Edge("ANNOTATES", "note_1", anchor_definition.id)
        risk = EOInferenceEngine().compute_edge_risk(edge, anchor_definition, [edge])
        assert risk.adjusted_risk == 1.0
        assert risk.to_dict()["edge"]["type"] == "ANNOTATES"

    def test_mixed_target_is_neutral(self, ambiguous_definition):
        edge = Edge(EdgeType.CONFLICTS_WITH, "other", ambiguous_definition.id)
        risk = EOInferenceEngine().compute_edge_risk(edge, ambiguous_definition, [edge])
        assert risk.target_role is Role.MIXED
        assert risk.adjusted_risk == 1.0


class TestDetectDrift:

    def test_collects_soft_and_hard(self, anchor_definition, anchor_edges,
                                    perspective_definition, bridge_definition,
                                    bridge_edges):
        engine = EOInferenceEngine()
        engine.set_assertion(perspective_definition.id, EOAssertedRole(
            role=Role.HOLON, conditions=DEFAULT_ROLE_CONDITIONS[Role.HOLON],
        ))
        engine.set_assertion(anchor_definition.id, EOAssertedRole(role=Role.PROTOGON))
        engine.set_assertion(bridge_definition.id, EOAssertedRole(
            role=Role.PROTOGON, conditions=DEFAULT_ROLE_CONDITIONS[Role.PROTOGON],
        ))
        engine.set_assertion("def_deleted", EOAssertedRole(role=Role.HOLON))

        edges_by_id = {
            anchor_definition.id: anchor_edges,
            bridge_definition.id: bridge_edges,
        }
        reports = engine.detect_drift(
            [anchor_definition, perspective_definition, bridge_definition],
            lambda did: edges_by_id.get(did, []),
        )

        assert [r.definition_id for r in reports] == [
            perspective_definition.id, anchor_definition.id,
        ]
        hard, soft = reports
        assert hard.drift.type is DriftType.HARD
        assert hard.definition_name == "Customer sentiment"
        assert soft.drift.type is DriftType.SOFT
        assert soft.definition_name == "Currency code"

        flat = hard.to_dict()
        assert flat["definitionId"] == perspective_definition.id
        assert flat["type"] == "hard"
        assert flat["assertedRole"] == "holon"
        assert flat["inferredRole"] == "emanon"

    def test_no_assertions_no_reports(self, anchor_definition):
        assert EOInferenceEngine().detect_drift([anchor_definition], lambda did: []) == []


class TestSuggestAssertion:

    def test_confident_suggestion(self, anchor_definition, anchor_edges):
        s = EOInferenceEngine().suggest_assertion(anchor_definition, anchor_edges)
        assert s.role is Role.HOLON
        assert s.asserted_by is AssertedBy.SYSTEM
        assert s.scope is Scope.GLOBAL
        assert s.confidence == pytest.approx(0.9)
        assert s.conditions == DEFAULT_ROLE_CONDITIONS[Role.HOLON]
        assert s.reason == "System inferred from behavior profile with 90% confidence"

    def test_suggestion_validates_against_its_own_conditions(self, anchor_definition, anchor_edges):
        engine = EOInferenceEngine()
        engine.set_assertion(
            anchor_definition.id, engine.suggest_assertion(anchor_definition, anchor_edges)
        )
        r = engine.compute_profile(anchor_definition, anchor_edges)
        assert r.source is ResolutionSource.ASSERTED
        assert r.drift is None

    def test_mixed_returns_none(self, ambiguous_definition):
        assert EOInferenceEngine().suggest_assertion(ambiguous_definition, []) is None

    def test_does_not_store(self, anchor_definition, anchor_edges):
        engine = EOInferenceEngine()
        engine.suggest_assertion(anchor_definition, anchor_edges)
        assert len(engine) == 0


class TestExportImport:

    def _populated(self):
        engine = EOInferenceEngine()
        engine.set_assertion("def_a", EOAssertedRole(
            role=Role.HOLON,
            asserted_by=AssertedBy.POLICY,
            confidence=0.9,
            conditions=DEFAULT_ROLE_CONDITIONS[Role.HOLON],
            scope=Scope.DATASET,
            reason="Golden reference",
        ))
        engine.set_assertion("def_b", {"role": "emanon", "assertedBy": "human"})
        return engine

    def test_round_trip_through_json(self):
        engine_a = self._populated()
        payload = json.loads(json.dumps(engine_a.export_assertions()))
        engine_b = EOInferenceEngine()
        assert engine_b.import_assertions(payload) == 2
        assert engine_b.assertions() == engine_a.assertions()
        assert engine_b.export_assertions() == engine_a.export_assertions()

    def test_export_field_set(self):
        exported = self._populated().export_assertions()
        for entry in exported.values():
            assert set(entry) == {
                "role", "assertedBy", "confidence", "conditions", "scope", "timestamp", "reason",
            }

    def test_import_is_all_or_nothing(self):
        engine = EOInferenceEngine()
        with pytest.raises(AssertedRoleError):
            engine.import_assertions({
                "def_ok": {"role": "holon"},
                "def_bad": {"role": "holon", "confidence": 7},
            })
        assert len(engine) == 0

    def test_import_merges(self):
        engine = EOInferenceEngine()
        engine.set_assertion("def_x", {"role": "protogon"})
        engine.import_assertions({"def_y": {"role": "holon"}})
        assert set(engine.assertions()) == {"def_x", "def_y"}

    def test_constructor_imports(self):
        engine = EOInferenceEngine({"def_a": {"role": "holon"}})
        assert engine.get_assertion("def_a").role is Role.HOLON

    def test_definition_unaffected(self):
        d = Definition(id="d1", stability="stable")
        engine = EOInferenceEngine()
        engine.set_assertion("d1", {"role": "holon"})
        engine.compute_profile(d, [])
        assert d.stability == "stable"
