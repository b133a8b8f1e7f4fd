"""Document processing pipeline: state machine, executor and processor."""
from app.core.pipeline.document_processor import DocumentProcessor
from app.core.pipeline.executor import CaseCompletionGate, DocumentTaskExecutor
from app.core.pipeline.state_machine import ALLOWED_TRANSITIONS, can_transition, reset_for_reprocess, transition

__all__ = [
    "DocumentProcessor",
    "CaseCompletionGate",
    "DocumentTaskExecutor",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "reset_for_reprocess",
    "transition",
]
