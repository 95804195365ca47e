"""
VideoMind - Document Model Tests
=================================

Validation, error classification and canonical serialization.
"""

import json
import math

import pytest

from videomind.core.errors import DocumentValidationError, RangeError, SchemaError
from videomind.data.builtin import BUILTIN_DOCUMENTS, DatasetTier
from videomind.schemas.mindmap import MindMapDocument, deserialize, serialize, validate_document


# =============================================================================
# validate_document
# =============================================================================

class TestValidateDocument:
    """Accepting and rejecting candidates."""

    def test_valid_document(self, doc_dict):
        doc = validate_document(doc_dict)

        assert isinstance(doc, MindMapDocument)
        assert doc.root_topic == doc_dict["root_topic"]
        assert [n.topic for n in doc.nodes] == ["Topic 0", "Topic 1"]
        assert doc.nodes[1].start == 30
        assert doc.nodes[1].end == 90
        assert doc.video_url is None
        assert doc.transcription is None

    def test_empty_node_list_is_valid(self):
        doc = validate_document({"root_topic": "Nothing yet", "nodes": []})
        assert doc.nodes == []

    def test_missing_nodes_is_schema_error(self, doc_dict):
        del doc_dict["nodes"]
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    def test_missing_root_topic_is_schema_error(self, doc_dict):
        del doc_dict["root_topic"]
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    def test_nodes_wrong_shape_is_schema_error(self, doc_dict):
        doc_dict["nodes"] = {"topic": "not a list"}
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    def test_non_object_candidate_is_schema_error(self):
        with pytest.raises(SchemaError):
            validate_document(["root_topic", "nodes"])

    def test_non_numeric_timestamp_is_schema_error(self, doc_dict):
        doc_dict["nodes"][0]["timestamp"] = ["0", "30"]
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    def test_boolean_timestamp_is_schema_error(self, doc_dict):
        doc_dict["nodes"][0]["timestamp"] = [False, True]
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    def test_timestamp_needs_two_values(self, doc_dict):
        doc_dict["nodes"][0]["timestamp"] = [0, 10, 20]
        with pytest.raises(SchemaError):
            validate_document(doc_dict)

    @pytest.mark.parametrize("bad", [[30, 0], [10, 10], [-1, 5], [0, math.inf], [math.nan, 4]])
    def test_bad_range_is_range_error(self, doc_dict, bad):
        doc_dict["nodes"][1]["timestamp"] = bad
        with pytest.raises(RangeError) as exc_info:
            validate_document(doc_dict)
        assert exc_info.value.errors
        assert "nodes.1.timestamp" in str(exc_info.value)

    def test_range_error_is_a_validation_error(self):
        assert issubclass(RangeError, DocumentValidationError)
        assert issubclass(SchemaError, DocumentValidationError)

    def test_mixed_failures_are_schema_error(self, doc_dict):
        doc_dict["nodes"][0]["timestamp"] = [30, 0]
        del doc_dict["root_topic"]
        with pytest.raises(SchemaError) as exc_info:
            validate_document(doc_dict)
        assert not isinstance(exc_info.value, RangeError)

    def test_overlapping_and_unsorted_ranges_are_allowed(self):
        doc = validate_document({
            "root_topic": "x",
            "nodes": [
                {"topic": "b", "timestamp": [50, 100]},
                {"topic": "a", "timestamp": [0, 60]},
            ],
        })
        assert len(doc.nodes) == 2

    def test_missing_summary_and_keywords_default_to_empty(self):
        doc = validate_document({"root_topic": "x", "nodes": [{"topic": "a", "timestamp": [0, 1]}]})
        assert doc.nodes[0].summary == []
        assert doc.nodes[0].keywords == []

    def test_duplicate_keywords_are_kept(self, doc_dict):
        doc_dict["nodes"][0]["keywords"] = ["ai", "ai", "ml"]
        doc = validate_document(doc_dict)
        assert doc.nodes[0].keywords == ["ai", "ai", "ml"]

    def test_non_finite_transcript_time_is_range_error(self, doc_dict):
        doc_dict["transcription"] = [{"text": "hi", "start": 0, "end": math.inf}]
        with pytest.raises(RangeError):
            validate_document(doc_dict)

    def test_document_passes_through(self, document):
        assert validate_document(document) is document


# =============================================================================
# serialize / deserialize
# =============================================================================

class TestSerialization:
    """Canonical JSON and its round trip."""

    def test_round_trip_preserves_everything(self, doc_dict):
        doc_dict["video_url"] = "https://example.com/v.mp4"
        doc_dict["transcription"] = [
            {"text": "Hello", "start": 0, "end": 2.5},
            {"text": "World", "start": 2.5, "end": 4},
        ]
        doc_dict["nodes"].reverse()
        doc = validate_document(doc_dict)

        again = deserialize(serialize(doc))

        assert again == doc
        assert [n.topic for n in again.nodes] == ["Topic 1", "Topic 0"]

    def test_round_trip_of_builtin_documents(self):
        for tier in DatasetTier:
            doc = BUILTIN_DOCUMENTS[tier]
            assert deserialize(serialize(doc)) == doc

    def test_serialized_shape(self, doc_dict):
        payload = json.loads(serialize(validate_document(doc_dict)))

        assert set(payload) == {"root_topic", "nodes"}
        assert payload["nodes"][0]["timestamp"] == [0, 30]
        assert set(payload["nodes"][0]) == {"topic", "summary", "keywords", "timestamp"}

    def test_integer_seconds_stay_integers(self, document):
        text = serialize(document).decode("utf-8")
        assert "30.0" not in text
        assert isinstance(deserialize(text).nodes[0].end, int)

    def test_float_seconds_stay_floats(self):
        doc = validate_document({"root_topic": "x", "nodes": [{"topic": "a", "timestamp": [0.5, 12.25]}]})
        assert deserialize(serialize(doc)).nodes[0].timestamp == (0.5, 12.25)

    def test_serialize_is_indented_utf8(self):
        doc = validate_document({"root_topic": "Café", "nodes": []})
        data = serialize(doc)
        assert isinstance(data, bytes)
        assert "Café".encode("utf-8") in data
        assert b'\n  "root_topic"' in data

    def test_deserialize_invalid_json_is_schema_error(self):
        with pytest.raises(SchemaError):
            deserialize(b"{not json")

    def test_deserialize_missing_nodes_is_schema_error(self):
        with pytest.raises(SchemaError):
            deserialize('{"root_topic": "x"}')

    def test_deserialize_inverted_range_is_range_error(self):
        with pytest.raises(RangeError):
            deserialize('{"root_topic": "x", "nodes": [{"topic": "a", "timestamp": [9, 3]}]}')
