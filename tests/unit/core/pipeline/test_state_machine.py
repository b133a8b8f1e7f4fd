"""Tests for the document processing state machine."""
import pytest
from app.core.exceptions import InvalidTransitionError
from app.core.models.document import Document, ProcessingStatus
from app.core.pipeline.state_machine import (
    ALLOWED_TRANSITIONS,
    can_transition,
    reset_for_reprocess,
    transition,
)

S = ProcessingStatus
HAPPY_PATH = [S.PENDING, S.EXTRACTING_TEXT, S.CLASSIFYING, S.EXTRACTING_DATA, S.COMPLETED]


def make_document(status=S.PENDING):
    return Document(id="doc-1", case_id="case-1", filename="cases/case-1/doc-1.pdf", processing_status=status)


class TestTransitions:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(ProcessingStatus)

    def test_happy_path(self):
        document = make_document()

        for target in HAPPY_PATH[1:]:
            transition(document, target)

        assert document.processing_status == S.COMPLETED
        assert document.processing_error is None

    @pytest.mark.parametrize("status", HAPPY_PATH[:-1])
    def test_any_non_terminal_state_can_fail(self, status):
        document = make_document(status)

        transition(document, S.FAILED, error="Bedrock generate failed")

        assert document.processing_status == S.FAILED
        assert document.processing_error == "Bedrock generate failed"

    def test_failure_without_message_gets_default(self):
        document = transition(make_document(), S.FAILED)
        assert document.processing_error == "Unknown error"

    @pytest.mark.parametrize("current,target", [
        (S.PENDING, S.CLASSIFYING),
        (S.PENDING, S.COMPLETED),
        (S.EXTRACTING_TEXT, S.EXTRACTING_DATA),
        (S.CLASSIFYING, S.PENDING),
        (S.COMPLETED, S.FAILED),
        (S.COMPLETED, S.PENDING),
        (S.FAILED, S.PENDING),
        (S.FAILED, S.EXTRACTING_TEXT),
    ])
    def test_disallowed_transitions_raise(self, current, target):
        document = make_document(current)

        with pytest.raises(InvalidTransitionError, match=f"from {current.value} to {target.value}"):
            transition(document, target)

        assert document.processing_status == current

    def test_terminal_states_have_no_exits(self):
        assert not any(can_transition(S.COMPLETED, target) for target in ProcessingStatus)
        assert not any(can_transition(S.FAILED, target) for target in ProcessingStatus)


class TestResetForReprocess:
    @pytest.mark.parametrize("status", [S.COMPLETED, S.FAILED])
    def test_terminal_document_returns_to_pending(self, status):
        document = make_document(status)
        document.processing_error = "boom"
        document.extracted_data = {"visits": []}

        reset_for_reprocess(document)

        assert document.processing_status == S.PENDING
        assert document.processing_error is None
        assert document.extracted_data is None

    @pytest.mark.parametrize("status", [S.PENDING, S.EXTRACTING_TEXT, S.CLASSIFYING, S.EXTRACTING_DATA])
    def test_in_progress_document_cannot_be_reset(self, status):
        with pytest.raises(InvalidTransitionError, match="only finished documents"):
            reset_for_reprocess(make_document(status))
