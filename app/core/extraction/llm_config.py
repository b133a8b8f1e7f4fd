"""
Centralized LLM configuration for the document pipeline.

All token limits, model settings, and retry parameters for oracle
calls are defined here for consistency across extractors and builders.
"""
from dataclasses import dataclass, field


@dataclass
class ExtractionConfig:
    """Configuration for a single oracle call type."""
    max_tokens: int
    temperature: float = 0.05
    model_preference: str = "haiku"


@dataclass
class LLMSettings:
    """
    Centralized LLM settings for pipeline oracle calls.

    Usage:
        from app.core.extraction.llm_config import LLM_SETTINGS

        max_tokens = LLM_SETTINGS.event_extraction.max_tokens
    """
    # Document category detection on the leading sample
    classification: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=1000,
            temperature=0.0,
            model_preference="haiku",
        )
    )

    # Category-specific structured payloads (records, bills, ...)
    structured_extraction: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=8000,
            temperature=0.05,
            model_preference="haiku",
        )
    )

    # Per-encounter medical events
    event_extraction: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=16000,
            temperature=0.05,
            model_preference="haiku",
        )
    )

    # Treatment gap explanations
    gap_explanation: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=2000,
            temperature=0.2,
            model_preference="sonnet",
        )
    )

    # Chronology narrative prose
    narrative: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=8000,
            temperature=0.3,
            model_preference="sonnet",
        )
    )

    # Executive summary prose
    executive_summary: ExtractionConfig = field(
        default_factory=lambda: ExtractionConfig(
            max_tokens=1500,
            temperature=0.3,
            model_preference="sonnet",
        )
    )

    # Model IDs for Bedrock
    haiku_model_id: str = "us.anthropic.claude-haiku-4-5-20251001-v1:0"
    sonnet_model_id: str = "us.anthropic.claude-sonnet-4-5-20250929-v1:0"

    # Retry configuration (throttling only)
    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 60.0


# Global singleton instance
LLM_SETTINGS = LLMSettings()
