"""Tests for step and metadata models."""

import pytest
from pydantic import ValidationError

from research_graph.models.research_step import (
    MAX_EXTENSION_KEYS,
    Citation,
    EffortType,
    NodeMetadata,
    ResearchStep,
    StepType,
)
from research_graph.utils.identifiers import edge_base_id, iso_to_ms, ms_to_iso, node_id_for_step


class TestNodeMetadata:
    def test_defaults(self):
        metadata = NodeMetadata()
        assert metadata.schema_version == 1
        assert metadata.effort == EffortType.medium
        assert metadata.sources_count == 0
        assert metadata.extensions == {}

    def test_closed_schema(self):
        with pytest.raises(ValidationError):
            NodeMetadata(favorite_color="blue")

    def test_extensions_bounded(self):
        NodeMetadata(extensions={f"k{i}": i for i in range(MAX_EXTENSION_KEYS)})
        with pytest.raises(ValidationError) as exc_info:
            NodeMetadata(extensions={f"k{i}": i for i in range(MAX_EXTENSION_KEYS + 1)})
        assert "at most" in str(exc_info.value)

    def test_paradigm_scores_in_range(self):
        NodeMetadata(paradigm_probabilities={"dolores": 0.7, "maeve": 0.3})
        with pytest.raises(ValidationError):
            NodeMetadata(paradigm_probabilities={"dolores": 1.5})

    def test_merged_returns_new_object(self):
        original = NodeMetadata(phase="plan")
        merged = original.merged({"phase": "search", "tools_used": ["web"]})
        assert merged.phase == "search"
        assert merged.tools_used == ["web"]
        assert original.phase == "plan"


class TestResearchStep:
    def test_requires_id_and_type(self):
        with pytest.raises(ValidationError):
            ResearchStep(id="", type=StepType.reflection)
        with pytest.raises(ValidationError):
            ResearchStep(id="x", type="SOMETHING_ELSE")

    def test_type_from_wire_value(self):
        step = ResearchStep.model_validate({"id": "x", "type": "FINAL_ANSWER"})
        assert step.type == StepType.final_answer

    def test_citation_dedupe_key(self):
        assert Citation(url="https://a", title="A").dedupe_key() == "https://a"
        assert Citation(title="A").dedupe_key() == "A"
        assert Citation().dedupe_key() is None


class TestIdentifiers:
    def test_node_and_edge_ids(self):
        assert node_id_for_step("abc") == "node-abc"
        assert edge_base_id("node-a", "node-b", "error") == "edge-node-a-node-b-error"

    def test_timestamp_round_trip(self):
        ms = 1_700_000_000_123
        assert iso_to_ms(ms_to_iso(ms)) == ms
        assert iso_to_ms("2023-11-14T22:13:20Z") == 1_700_000_000_000
