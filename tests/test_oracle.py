"""Tests for oracle.py — payload parsing and the oracle contract."""

from __future__ import annotations

import json

import pytest

from flowspine.errors import OracleResponseError
from flowspine.graph import Edge, NodeKind
from flowspine.oracle import ANALYSIS_SCHEMA, AnalysisResult, WarningKind


def sample_payload() -> dict:
    return {
        "nodes": [
            {"id": "n1", "type": "start", "label": "OpportunityTrigger", "line": 1},
            {"id": "n2", "type": "soql", "label": "Get Contacts", "details": "SELECT Id FROM Contact"},
            {"id": "n3", "type": "dml", "label": "Insert Tasks", "line": 40},
            {"id": "n4", "type": "end", "label": "End Process"},
        ],
        "edges": [
            {"id": "e1", "source": "n1", "target": "n2"},
            {"id": "e2", "source": "n2", "target": "n3", "label": "True", "animated": True},
            {"id": "e3", "source": "n3", "target": "n4"},
        ],
        "warnings": [
            {"type": "limit", "message": "SOQL inside a loop", "line": 12},
            {"type": "best-practice", "message": "Hardcoded stage name"},
        ],
    }


class TestFromPayload:
    def test_nodes(self):
        result = AnalysisResult.from_payload(sample_payload())
        assert [n.id for n in result.nodes] == ["n1", "n2", "n3", "n4"]
        assert [n.kind for n in result.nodes] == [NodeKind.START, NodeKind.QUERY, NodeKind.MUTATION, NodeKind.END]
        assert result.nodes[0].source_line == 1
        assert result.nodes[1].detail == "SELECT Id FROM Contact"
        assert result.nodes[1].source_line is None

    def test_edges(self):
        result = AnalysisResult.from_payload(sample_payload())
        assert result.edges[1] == Edge(id="e2", source="n2", target="n3", label="True", animated=True)
        assert result.edges[0].label is None
        assert result.edges[0].animated is False

    def test_warnings(self):
        result = AnalysisResult.from_payload(sample_payload())
        assert [w.kind for w in result.warnings] == [WarningKind.LIMIT, WarningKind.BEST_PRACTICE]
        assert result.warnings[0].line == 12
        assert result.warnings[1].line is None

    def test_from_json(self):
        result = AnalysisResult.from_json(json.dumps(sample_payload()))
        assert result == AnalysisResult.from_payload(sample_payload())

    def test_empty_arrays(self):
        result = AnalysisResult.from_payload({"nodes": [], "edges": [], "warnings": []})
        assert result == AnalysisResult()


class TestRejectedPayloads:
    def test_not_json(self):
        with pytest.raises(OracleResponseError, match="JSON"):
            AnalysisResult.from_json("Sure! Here is your flowchart:")

    def test_not_an_object(self):
        with pytest.raises(OracleResponseError):
            AnalysisResult.from_payload([1, 2, 3])

    @pytest.mark.parametrize("key", ["nodes", "edges", "warnings"])
    def test_missing_array(self, key):
        payload = sample_payload()
        del payload[key]
        with pytest.raises(OracleResponseError, match=key):
            AnalysisResult.from_payload(payload)

    def test_node_missing_label(self):
        payload = sample_payload()
        del payload["nodes"][0]["label"]
        with pytest.raises(OracleResponseError, match="label"):
            AnalysisResult.from_payload(payload)

    def test_unknown_node_type(self):
        payload = sample_payload()
        payload["nodes"][0]["type"] = "widget"
        with pytest.raises(OracleResponseError, match="widget"):
            AnalysisResult.from_payload(payload)

    def test_unknown_warning_type(self):
        payload = sample_payload()
        payload["warnings"][0]["type"] = "style"
        with pytest.raises(OracleResponseError):
            AnalysisResult.from_payload(payload)

    def test_edge_missing_target(self):
        payload = sample_payload()
        del payload["edges"][0]["target"]
        with pytest.raises(OracleResponseError):
            AnalysisResult.from_payload(payload)

    def test_non_integer_line(self):
        payload = sample_payload()
        payload["nodes"][0]["line"] = "one"
        with pytest.raises(OracleResponseError):
            AnalysisResult.from_payload(payload)

    def test_item_not_an_object(self):
        payload = sample_payload()
        payload["edges"].append("n1->n2")
        with pytest.raises(OracleResponseError):
            AnalysisResult.from_payload(payload)


class TestSchema:
    def test_node_types_match_kinds(self):
        enum = ANALYSIS_SCHEMA["properties"]["nodes"]["items"]["properties"]["type"]["enum"]
        assert enum == [k.value for k in NodeKind]

    def test_required_top_level_keys(self):
        assert ANALYSIS_SCHEMA["required"] == ["nodes", "edges", "warnings"]
