"""Tests for core exceptions."""
from app.core.exceptions import (
    ChronologyError,
    ChunkParseError,
    CoreError,
    DocumentPipelineError,
    EventExtractionError,
    ExtractionError,
    InvalidTransitionError,
    LLMError,
    NotFoundError,
    StorageError,
    SynthesisError,
    ValidationError,
)


class TestExceptionHierarchy:
    def test_llm_error_is_core_error(self):
        error = LLMError("test")
        assert isinstance(error, CoreError)

    def test_extraction_errors(self):
        assert isinstance(ChunkParseError("bad"), ExtractionError)
        assert isinstance(EventExtractionError("bad"), ExtractionError)

    def test_invalid_transition_is_pipeline_error(self):
        error = InvalidTransitionError("cannot move")
        assert isinstance(error, DocumentPipelineError)
        assert isinstance(error, CoreError)

    def test_not_found_is_storage_error(self):
        assert isinstance(NotFoundError("missing"), StorageError)

    def test_synthesis_and_chronology_errors_are_core_errors(self):
        assert isinstance(SynthesisError("x"), CoreError)
        assert isinstance(ChronologyError("x"), CoreError)

    def test_validation_error_is_core_error(self):
        error = ValidationError("test")
        assert isinstance(error, CoreError)

    def test_error_message_preserved(self):
        error = LLMError("specific message")
        assert str(error) == "specific message"


class TestChunkParseError:
    def test_defaults_to_not_json(self):
        assert ChunkParseError("no json").kind == ChunkParseError.NOT_JSON

    def test_wrong_shape_kind(self):
        error = ChunkParseError("expected object", kind=ChunkParseError.WRONG_SHAPE)
        assert error.kind == "wrong_shape"
        assert str(error) == "expected object"
