"""
DocumentProcessor - Drives one document through the processing stages.

    fetch binary -> extract text -> classify -> structured extraction
    (+ medical events for clinical categories) -> COMPLETED

Any stage failure moves the document to FAILED with the error message and
stops that attempt. Sibling documents are unaffected. After every terminal
transition the case-level completion check runs behind the case gate.
"""
import asyncio
import logging
import time
from typing import Optional, Tuple

from prometheus_client import Counter, Histogram

from app.core.builders.case_synthesizer import CaseSynthesizer
from app.core.builders.chronology_builder import ChronologyEngine
from app.core.exceptions import NotFoundError
from app.core.extraction.classifier import DocumentClassifier
from app.core.extraction.event_extractor import MedicalEventExtractor, save_medical_events
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.retry_utils import RetryConfig
from app.core.extraction.structured_extractor import StructuredExtractor
from app.core.models.document import CLINICAL_CATEGORIES, Document, ProcessingStatus
from app.core.pipeline.executor import CaseCompletionGate, DocumentTaskExecutor
from app.core.pipeline.state_machine import can_transition, reset_for_reprocess, transition
from app.core.ports.llm import LLMPort
from app.core.ports.object_storage import ObjectStoragePort
from app.core.ports.storage import CaseRepositoryPort
from app.core.ports.text_extraction import TextExtractionPort

logger = logging.getLogger(__name__)

# Prometheus metrics
PROCESSING_TIME = Histogram(
    "demand_document_processing_duration_seconds", "Document processing time")
DOCUMENTS_PROCESSED = Counter(
    "demand_documents_processed_total", "Documents reaching a terminal state", ["status"])


class DocumentProcessor:
    """Process documents and trigger case synthesis when a case is done.

    Collaborators default to the standard extractors built on the given
    oracle; tests pass their own.

    Usage:
        processor = DocumentProcessor(repository, object_storage, text_extractor, llm)
        processor.submit(document)            # non-blocking
        await processor.process(document.id)  # inline
    """

    def __init__(
        self,
        repository: CaseRepositoryPort,
        object_storage: ObjectStoragePort,
        text_extractor: TextExtractionPort,
        llm: LLMPort,
        executor: Optional[DocumentTaskExecutor] = None,
        gate: Optional[CaseCompletionGate] = None,
        prompt_loader: Optional[PromptLoader] = None,
        retry_config: Optional[RetryConfig] = None,
        classifier: Optional[DocumentClassifier] = None,
        structured_extractor: Optional[StructuredExtractor] = None,
        event_extractor: Optional[MedicalEventExtractor] = None,
        synthesizer: Optional[CaseSynthesizer] = None,
        chronology_engine: Optional[ChronologyEngine] = None,
    ):
        prompts = prompt_loader or PromptLoader()
        retry = retry_config or RetryConfig.for_bedrock()

        self._repository = repository
        self._storage = object_storage
        self._text_extractor = text_extractor
        self._executor = executor or DocumentTaskExecutor()
        self._gate = gate or CaseCompletionGate()
        self._classifier = classifier or DocumentClassifier(llm, prompt_loader=prompts, retry_config=retry)
        self._structured = structured_extractor or StructuredExtractor(
            llm, prompt_loader=prompts, retry_config=retry,
        )
        self._events = event_extractor or MedicalEventExtractor(llm, prompt_loader=prompts, retry_config=retry)
        self._synthesizer = synthesizer or CaseSynthesizer(repository)
        self._chronology = chronology_engine or ChronologyEngine(
            repository, llm, prompt_loader=prompts, retry_config=retry,
        )

    @property
    def executor(self) -> DocumentTaskExecutor:
        return self._executor

    def submit(self, document: Document) -> asyncio.Task:
        """Queue a PENDING document for background processing."""
        return self._executor.submit(document.case_id, document.id, lambda: self.process(document.id))

    async def reprocess(self, document_id: str) -> Document:
        """
        Re-run a finished document from scratch.

        The document's medical events are deleted, it is reset to PENDING
        and resubmitted.

        Raises:
            NotFoundError: If the document does not exist
            InvalidTransitionError: If the document is still being processed
        """
        document = await self._repository.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")

        reset_for_reprocess(document)
        deleted = await self._repository.delete_events_for_document(document_id)
        await self._repository.save_document(document)
        logger.info(f"Reprocessing document {document_id} ({deleted} medical events cleared)")

        self.submit(document)
        return document

    async def process(self, document_id: str) -> Document:
        """
        Run every stage for one PENDING document.

        Stage failures are recorded on the document, not raised.

        Raises:
            NotFoundError: If the document does not exist
            InvalidTransitionError: If the document is not PENDING
        """
        document = await self._repository.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")

        start_time = time.time()
        transition(document, ProcessingStatus.EXTRACTING_TEXT)
        await self._repository.save_document(document)
        logger.info(f"Processing document: {document.original_filename or document.filename}")

        try:
            await self._run_stages(document)
        except Exception as e:
            await self._fail(document, e)
        finally:
            PROCESSING_TIME.observe(time.time() - start_time)

        await self._after_terminal(document.case_id)
        return document

    async def _run_stages(self, document: Document) -> None:
        content = await self._storage.fetch(document.filename)
        loop = asyncio.get_event_loop()
        extracted = await loop.run_in_executor(
            None, self._text_extractor.extract, content, document.mime_type,
        )
        document.extracted_text = extracted.text
        document.page_count = extracted.page_count
        transition(document, ProcessingStatus.CLASSIFYING)
        await self._repository.save_document(document)

        classification = await self._classifier.classify(extracted.text, document.id)
        document.apply_classification(classification)
        transition(document, ProcessingStatus.EXTRACTING_DATA)
        await self._repository.save_document(document)

        data = await self._structured.extract(extracted.text, classification.category, document.id)

        if classification.category in CLINICAL_CATEGORIES:
            await self._extract_events(document, extracted.text)

        document.extracted_data = data
        transition(document, ProcessingStatus.COMPLETED)
        await self._repository.save_document(document)

        DOCUMENTS_PROCESSED.labels(status=ProcessingStatus.COMPLETED.value).inc()
        logger.info(f"Document processed successfully: {document.id} ({classification.category.value})")

    async def _extract_events(self, document: Document, text: str) -> None:
        """Extract and save medical events; failures never fail the document."""
        logger.info(f"Extracting medical events from {document.id}")
        try:
            raw_events = await self._events.extract(text, document.id)
            if raw_events:
                await save_medical_events(self._repository, document.case_id, document.id, raw_events)
        except Exception as e:
            logger.error(f"Failed to extract medical events for {document.id}: {e}")

    async def _fail(self, document: Document, error: Exception) -> None:
        logger.error(f"Document processing failed for {document.id}: {error}")
        if not can_transition(document.processing_status, ProcessingStatus.FAILED):
            logger.error(f"Document {document.id} already {document.processing_status.value}; failure not recorded")
            return

        transition(document, ProcessingStatus.FAILED, error=str(error) or type(error).__name__)
        try:
            await self._repository.save_document(document)
        except Exception as e:
            logger.error(f"Could not record failure for document {document.id}: {e}")
        DOCUMENTS_PROCESSED.labels(status=ProcessingStatus.FAILED.value).inc()

    async def _after_terminal(self, case_id: str) -> None:
        try:
            await self._gate.run_once_per_state(
                case_id,
                lambda: self._document_states(case_id),
                lambda: self._synthesize_if_complete(case_id),
            )
        except Exception as e:
            logger.error(f"Case-level synthesis failed for case {case_id}: {e}")

    async def _document_states(self, case_id: str) -> Tuple[Tuple[str, str, str], ...]:
        documents = await self._repository.list_documents(case_id)
        return tuple(
            (d.id, d.processing_status.value, d.updated_at.isoformat()) for d in documents
        )

    async def _synthesize_if_complete(self, case_id: str) -> bool:
        """Synthesize the case, and its chronology when it has events, once all documents are COMPLETED."""
        documents = await self._repository.list_documents(case_id)
        if not documents or any(d.processing_status != ProcessingStatus.COMPLETED for d in documents):
            return False

        await self._synthesizer.synthesize(case_id)

        events = await self._repository.list_medical_events(case_id)
        if events:
            logger.info(f"Generating chronology for case {case_id} ({len(events)} medical events)")
            try:
                await self._chronology.generate(case_id)
            except Exception as e:
                logger.error(f"Failed to generate chronology for case {case_id}: {e}")
        return True


