"""
DocumentClassifier - Oracle-based document category detection.

Only the leading sample of a document is sent. Any failure yields the
default classification (OTHER, confidence 0) rather than an error.
"""
import logging
from typing import Optional

from app.config.pipeline_limits import CLASSIFICATION_SAMPLE_CHARS
from app.core.builders.date_utils import parse_date
from app.core.extraction.llm_config import LLM_SETTINGS
from app.core.extraction.payload_shapes import ClassificationPayload
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.response_parser import ResponseParser
from app.core.extraction.retry_utils import RetryConfig, retry_with_backoff
from app.core.models.document import Classification, DocumentCategory
from app.core.ports.llm import LLMPort

logger = logging.getLogger(__name__)

PROMPT_NAME = "classification"


class DocumentClassifier:
    """Classify document text into a DocumentCategory."""

    def __init__(
        self,
        llm: LLMPort,
        prompt_loader: Optional[PromptLoader] = None,
        retry_config: Optional[RetryConfig] = None,
        sample_chars: int = CLASSIFICATION_SAMPLE_CHARS,
    ):
        self._llm = llm
        self._prompts = prompt_loader or PromptLoader()
        self._parser = ResponseParser()
        self._retry_config = retry_config or RetryConfig.for_bedrock()
        self._config = LLM_SETTINGS.classification
        self._sample_chars = sample_chars

    async def classify(self, text: str, document_id: str = "") -> Classification:
        """
        Classify a document.

        Args:
            text: Full document text (only the leading sample is used)
            document_id: Used for log context only

        Returns:
            Classification; the default OTHER/0.0 classification on any failure
        """
        rendered = self._prompts.render(PROMPT_NAME, document_text=(text or "")[:self._sample_chars])

        try:
            response = await retry_with_backoff(
                self._llm.generate,
                prompt=rendered.prompt,
                model=self._config.model_preference,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=rendered.system,
                max_retries=self._retry_config.max_retries,
                base_delay=self._retry_config.base_delay,
                max_delay=self._retry_config.max_delay,
            )
            payload = self._parser.decode_object(response, ClassificationPayload).unwrap()
        except Exception as e:
            logger.error(f"Classification failed for {document_id}: {e}")
            return Classification()

        category = DocumentCategory.coerce(payload.get("category"))
        if category.value != str(payload.get("category", "")).strip().upper():
            logger.warning(f"Unknown category {payload.get('category')!r} for {document_id}, using OTHER")

        classification = Classification(
            category=category,
            subcategory=payload.get("subcategory"),
            confidence=_confidence(payload.get("confidence")),
            document_date=parse_date(payload.get("documentDate")),
            provider_name=payload.get("providerName"),
        )
        logger.info(f"Document {document_id} classified as: {category.value} ({classification.confidence})")
        return classification


def _confidence(value) -> float:
    try:
        return max(0.0, min(1.0, float(value)))
    except (TypeError, ValueError):
        return 0.0
