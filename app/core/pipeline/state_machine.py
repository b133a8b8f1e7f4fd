"""
Document processing state machine.

    PENDING -> EXTRACTING_TEXT -> CLASSIFYING -> EXTRACTING_DATA -> COMPLETED
    any non-terminal state -> FAILED

COMPLETED and FAILED are terminal. The only way out of a terminal state is
an explicit reprocess, which resets the document to PENDING.
"""
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from app.core.exceptions import InvalidTransitionError
from app.core.models.document import Document, ProcessingStatus

_S = ProcessingStatus

ALLOWED_TRANSITIONS: Dict[ProcessingStatus, FrozenSet[ProcessingStatus]] = {
    _S.PENDING: frozenset({_S.EXTRACTING_TEXT, _S.FAILED}),
    _S.EXTRACTING_TEXT: frozenset({_S.CLASSIFYING, _S.FAILED}),
    _S.CLASSIFYING: frozenset({_S.EXTRACTING_DATA, _S.FAILED}),
    _S.EXTRACTING_DATA: frozenset({_S.COMPLETED, _S.FAILED}),
    _S.COMPLETED: frozenset(),
    _S.FAILED: frozenset(),
}


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(document: Document, target: ProcessingStatus, error: Optional[str] = None) -> Document:
    """
    Move a document to target status in place.

    Args:
        document: Document to update
        target: Next status
        error: Failure message, recorded only when target is FAILED

    Returns:
        The same document

    Raises:
        InvalidTransitionError: If the state machine does not allow the move
    """
    current = document.processing_status
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Document {document.id}: cannot move from {current.value} to {target.value}"
        )

    document.processing_status = target
    if target == _S.FAILED:
        document.processing_error = error or "Unknown error"
    document.updated_at = datetime.now()
    return document


def reset_for_reprocess(document: Document) -> Document:
    """Return a terminal document to PENDING, clearing prior results.

    Raises:
        InvalidTransitionError: If the document is still being processed
    """
    if not document.is_terminal:
        raise InvalidTransitionError(
            f"Document {document.id} is {document.processing_status.value}; only finished documents can be reprocessed"
        )

    document.processing_status = _S.PENDING
    document.processing_error = None
    document.extracted_data = None
    document.updated_at = datetime.now()
    return document
