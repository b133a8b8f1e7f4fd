"""Oracle-backed extraction: chunking, decoding, merging and event dedup."""
from app.core.extraction.categories import CATEGORY_RULES, CategoryRule, MergeStrategy, rule_for
from app.core.extraction.classifier import DocumentClassifier
from app.core.extraction.event_deduplicator import deduplicate_events, event_key, merge_events
from app.core.extraction.event_extractor import MedicalEventExtractor, save_medical_events
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.response_parser import DecodeOutcome, DecodeResult, ResponseParser
from app.core.extraction.structured_extractor import StructuredExtractor
from app.core.extraction.text_chunker import TextChunk, TextChunker

__all__ = [
    "CATEGORY_RULES",
    "CategoryRule",
    "MergeStrategy",
    "rule_for",
    "DocumentClassifier",
    "deduplicate_events",
    "event_key",
    "merge_events",
    "MedicalEventExtractor",
    "save_medical_events",
    "PromptLoader",
    "DecodeOutcome",
    "DecodeResult",
    "ResponseParser",
    "StructuredExtractor",
    "TextChunk",
    "TextChunker",
]
