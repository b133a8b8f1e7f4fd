"""
StructuredExtractor - Category-specific structured extraction with chunk merging.

Large documents are split into chunks that are sent to the oracle
concurrently; the valid chunk payloads are merged with the category's
merge strategy once every chunk has resolved.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from app.config.pipeline_limits import RAW_TEXT_FALLBACK_CHARS, STRUCTURED_CHUNK_SIZE
from app.core.exceptions import ChunkParseError
from app.core.extraction.categories import CategoryRule, rule_for
from app.core.extraction.chunk_merger import MERGERS
from app.core.extraction.llm_config import LLM_SETTINGS
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.response_parser import ResponseParser
from app.core.extraction.retry_utils import RetryConfig, retry_with_backoff
from app.core.extraction.text_chunker import TextChunk, TextChunker
from app.core.models.document import DocumentCategory
from app.core.ports.llm import LLMPort

logger = logging.getLogger(__name__)

EXTRACTION_FAILED = {"error": "Failed to extract structured data"}


class StructuredExtractor:
    """Extract a category-shaped payload from a document's text.

    Usage:
        extractor = StructuredExtractor(llm=bedrock_adapter)
        payload = await extractor.extract(text, DocumentCategory.MEDICAL_BILLS, document.id)
    """

    def __init__(
        self,
        llm: LLMPort,
        prompt_loader: Optional[PromptLoader] = None,
        chunker: Optional[TextChunker] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._llm = llm
        self._prompts = prompt_loader or PromptLoader()
        self._chunker = chunker or TextChunker(max_chars=STRUCTURED_CHUNK_SIZE)
        self._parser = ResponseParser()
        self._retry_config = retry_config or RetryConfig.for_bedrock()
        self._config = LLM_SETTINGS.structured_extraction

    async def extract(
        self,
        text: str,
        category: DocumentCategory,
        document_id: str = "",
    ) -> Dict[str, Any]:
        """
        Extract structured data for a document.

        Args:
            text: Full document text
            category: Classified document category
            document_id: Used for log context only

        Returns:
            Category-shaped payload, {"rawText": ...} for categories without a
            prompt, or {"error": ...} when no chunk produced a valid payload
        """
        rule = rule_for(category)
        if not rule.calls_oracle:
            return {"rawText": (text or "")[:RAW_TEXT_FALLBACK_CHARS]}

        chunks = self._chunker.chunk_text(text or "")
        if not chunks:
            logger.warning(f"No text to extract for {document_id}")
            return dict(EXTRACTION_FAILED)

        if len(chunks) > 1:
            logger.info(f"Extracting {document_id} as {rule.category.value} in {len(chunks)} concurrent chunks")

        outcomes = await asyncio.gather(
            *(self._extract_chunk(chunk, rule, document_id) for chunk in chunks),
            return_exceptions=True,
        )

        valid: List[Dict[str, Any]] = []
        for chunk, outcome in zip(chunks, outcomes):
            if isinstance(outcome, ChunkParseError):
                logger.warning(
                    f"Chunk {chunk.chunk_index + 1}/{chunk.total_chunks} of {document_id} "
                    f"unusable ({outcome.kind}): {outcome}"
                )
            elif isinstance(outcome, Exception):
                logger.warning(
                    f"Chunk {chunk.chunk_index + 1}/{chunk.total_chunks} of {document_id} failed: {outcome}"
                )
            else:
                valid.append(outcome)

        if not valid:
            logger.error(f"Structured extraction failed for {document_id}: no chunk produced a valid payload")
            return dict(EXTRACTION_FAILED)

        if len(chunks) == 1:
            return valid[0]

        merged = MERGERS[rule.strategy](valid)
        logger.info(f"Merged {len(valid)}/{len(chunks)} chunk results for {document_id}")
        return merged

    async def _extract_chunk(
        self,
        chunk: TextChunk,
        rule: CategoryRule,
        document_id: str,
    ) -> Dict[str, Any]:
        """Call the oracle for one chunk and decode its payload.

        Raises:
            ChunkParseError: If the response is not JSON or has the wrong shape
            LLMError: If the oracle call fails
        """
        rendered = self._prompts.render(
            rule.prompt_name,
            document_text=chunk.text,
            chunk_label=f"part {chunk.chunk_index + 1} of {chunk.total_chunks}",
        )
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
        return self._parser.decode_object(response, rule.shape).unwrap()
