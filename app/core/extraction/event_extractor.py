"""
MedicalEventExtractor - Per-encounter medical event extraction.

Chunks are sent to the oracle one at a time, in order. A chunk whose call
or decode fails contributes no events and extraction continues with the
next chunk. Results are deduplicated across chunks.
"""
import logging
from typing import Any, Dict, List, Optional

from app.config.pipeline_limits import EVENT_CHUNK_SIZE
from app.core.exceptions import ChunkParseError, CoreError, ValidationError
from app.core.extraction.event_deduplicator import deduplicate_events, normalize_list_fields
from app.core.extraction.llm_config import LLM_SETTINGS
from app.core.extraction.payload_shapes import MedicalEventPayload
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.response_parser import ResponseParser
from app.core.extraction.retry_utils import RetryConfig, retry_with_backoff
from app.core.extraction.text_chunker import TextChunk, TextChunker
from app.core.models.medical_event import MedicalEvent
from app.core.ports.llm import LLMPort
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)

PROMPT_NAME = "medical_events"


class MedicalEventExtractor:
    """Extract deduplicated medical events from a document's text.

    Usage:
        extractor = MedicalEventExtractor(llm=bedrock_adapter)
        raw_events = await extractor.extract(document.extracted_text, document.id)
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
        self._chunker = chunker or TextChunker(max_chars=EVENT_CHUNK_SIZE)
        self._parser = ResponseParser()
        self._retry_config = retry_config or RetryConfig.for_bedrock()
        self._config = LLM_SETTINGS.event_extraction

    async def extract(self, text: str, document_id: str = "") -> List[Dict[str, Any]]:
        """
        Extract raw event dicts (oracle snake_case keys).

        Args:
            text: Full document text
            document_id: Used for log context only

        Returns:
            Deduplicated events in first-occurrence order
        """
        chunks = self._chunker.chunk_text(text or "")
        all_events: List[Dict[str, Any]] = []

        for chunk in chunks:
            label = f"{chunk.chunk_index + 1}/{chunk.total_chunks}"
            try:
                events = await self._extract_chunk(chunk)
            except ChunkParseError as e:
                logger.warning(f"Event chunk {label} of {document_id} unusable ({e.kind}): {e}")
                continue
            except Exception as e:
                logger.warning(f"Event chunk {label} of {document_id} failed: {e}")
                continue
            logger.info(f"Event chunk {label} of {document_id}: {len(events)} events")
            all_events.extend(events)

        deduped = deduplicate_events(all_events)
        logger.info(f"Extracted {len(deduped)} medical events from document {document_id}")
        return deduped

    async def _extract_chunk(self, chunk: TextChunk) -> List[Dict[str, Any]]:
        rendered = self._prompts.render(
            PROMPT_NAME,
            document_text=chunk.text,
            chunk_label=f"Chunk {chunk.chunk_index + 1}/{chunk.total_chunks}",
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
        events = self._parser.decode_array(response, MedicalEventPayload).unwrap()
        return [normalize_list_fields(event) for event in events]


async def save_medical_events(
    repository: CaseRepositoryPort,
    case_id: str,
    document_id: str,
    raw_events: List[Dict[str, Any]],
) -> List[MedicalEvent]:
    """
    Persist raw events as MedicalEvent records.

    Events with an unparseable date are skipped; a failed save is logged and
    does not stop the remaining events.

    Returns:
        The events that were saved
    """
    saved: List[MedicalEvent] = []
    for raw in raw_events:
        try:
            event = MedicalEvent.from_extraction(raw, case_id=case_id, document_id=document_id)
        except ValidationError as e:
            logger.warning(f"Skipping event from {document_id}: {e}")
            continue
        try:
            await repository.save_medical_event(event)
        except CoreError as e:
            logger.error(f"Failed to save medical event {event.date_of_service} from {document_id}: {e}")
            continue
        saved.append(event)

    logger.info(f"Saved {len(saved)}/{len(raw_events)} medical events for document {document_id}")
    return saved
