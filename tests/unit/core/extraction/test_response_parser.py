"""Tests for oracle response decoding with shape validation."""
import pytest
from app.core.exceptions import ChunkParseError
from app.core.extraction.payload_shapes import (
    ClassificationPayload,
    MedicalBillsPayload,
    MedicalEventPayload,
)
from app.core.extraction.response_parser import DecodeOutcome, ResponseParser


class TestDecodeObject:
    """Test single-object decoding."""

    @pytest.fixture
    def parser(self):
        return ResponseParser()

    def test_clean_object_is_valid(self, parser):
        result = parser.decode_object('{"category": "MEDICAL_BILLS", "confidence": 0.9}', ClassificationPayload)
        assert result.outcome == DecodeOutcome.VALID
        assert result.payload["category"] == "MEDICAL_BILLS"

    def test_markdown_code_block(self, parser):
        result = parser.decode_object('```json\n{"charges": []}\n```', MedicalBillsPayload)
        assert result.is_valid
        assert result.payload == {"charges": []}

    def test_prose_around_object(self, parser):
        """Locates the first top-level object inside surrounding text."""
        response = 'Here is the data:\n{"provider": {"name": "Clinic"}, "charges": [{"amountBilled": 5}]}\nDone.'
        result = parser.decode_object(response, MedicalBillsPayload)
        assert result.is_valid
        assert result.payload["provider"]["name"] == "Clinic"

    def test_no_json_is_not_json(self, parser):
        assert parser.decode_object("No data found.").outcome == DecodeOutcome.NOT_JSON
        assert parser.decode_object("").outcome == DecodeOutcome.NOT_JSON
        assert parser.decode_object(None).outcome == DecodeOutcome.NOT_JSON

    def test_malformed_object_is_not_json(self, parser):
        result = parser.decode_object('{"charges": [1, 2')
        assert result.outcome == DecodeOutcome.NOT_JSON

    def test_wrong_shape(self, parser):
        """Decodable JSON with a list where an object belongs is WRONG_SHAPE."""
        result = parser.decode_object('{"charges": "lots"}', MedicalBillsPayload)
        assert result.outcome == DecodeOutcome.WRONG_SHAPE
        assert "MedicalBillsPayload" in result.error

    def test_missing_required_field_is_wrong_shape(self, parser):
        result = parser.decode_object('{"confidence": 0.5}', ClassificationPayload)
        assert result.outcome == DecodeOutcome.WRONG_SHAPE

    def test_extra_keys_are_preserved(self, parser):
        result = parser.decode_object('{"charges": [], "insuranceInfo": {"claimNumber": "A1"}}', MedicalBillsPayload)
        assert result.payload["insuranceInfo"] == {"claimNumber": "A1"}

    def test_unwrap_raises_with_kind(self, parser):
        with pytest.raises(ChunkParseError) as exc_info:
            parser.decode_object("nope").unwrap()
        assert exc_info.value.kind == ChunkParseError.NOT_JSON

        with pytest.raises(ChunkParseError) as exc_info:
            parser.decode_object('{"charges": 7}', MedicalBillsPayload).unwrap()
        assert exc_info.value.kind == ChunkParseError.WRONG_SHAPE


class TestDecodeArray:
    """Test event-array decoding."""

    @pytest.fixture
    def parser(self):
        return ResponseParser()

    def test_clean_array(self, parser):
        response = '[{"date_of_service": "2024-01-15", "provider_name": "Dr. Smith"}]'
        result = parser.decode_array(response, MedicalEventPayload)
        assert result.is_valid
        assert len(result.payload) == 1

    def test_single_object_is_wrapped(self, parser):
        result = parser.decode_array('{"date_of_service": "2024-01-15"}', MedicalEventPayload)
        assert result.payload == [{"date_of_service": "2024-01-15"}]

    def test_items_without_date_are_dropped(self, parser):
        response = '[{"date_of_service": "2024-01-15"}, {"provider_name": "No date"}, {"date_of_service": null}]'
        result = parser.decode_array(response, MedicalEventPayload)
        assert result.is_valid
        assert len(result.payload) == 1
        assert result.dropped == 2

    def test_nested_arrays_do_not_hijack_object(self, parser):
        """A lone object containing arrays is wrapped, not replaced by its inner array."""
        response = '{"date_of_service": "2024-01-15", "diagnoses": [{"diagnosis_name": "A"}]}'
        result = parser.decode_array(response, MedicalEventPayload)
        assert result.payload[0]["diagnoses"] == [{"diagnosis_name": "A"}]

    def test_truncated_array_keeps_complete_items(self, parser):
        response = '[{"date_of_service": "2024-01-15", "vital_signs": {"pain_score": 5}}, {"date_of_service": "2024-02'
        result = parser.decode_array(response, MedicalEventPayload)
        assert result.is_valid
        assert len(result.payload) == 1
        assert result.payload[0]["vital_signs"]["pain_score"] == 5

    def test_empty_array_is_valid_and_empty(self, parser):
        result = parser.decode_array("```json\n[]\n```", MedicalEventPayload)
        assert result.is_valid
        assert result.payload == []

    def test_all_items_invalid_is_wrong_shape(self, parser):
        result = parser.decode_array('[{"provider_name": "x"}, 3]', MedicalEventPayload)
        assert result.outcome == DecodeOutcome.WRONG_SHAPE

    def test_garbage_is_not_json(self, parser):
        assert parser.decode_array("I could not find any events.").outcome == DecodeOutcome.NOT_JSON
