"""Abstract interfaces for external dependencies."""
from app.core.ports.llm import LLMPort, ModelConfig
from app.core.ports.object_storage import ObjectStoragePort
from app.core.ports.storage import CaseRepositoryPort
from app.core.ports.text_extraction import ExtractedText, TextExtractionPort

__all__ = [
    "LLMPort",
    "ModelConfig",
    "ObjectStoragePort",
    "CaseRepositoryPort",
    "TextExtractionPort",
    "ExtractedText",
]
