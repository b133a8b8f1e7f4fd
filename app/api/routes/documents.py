"""Document upload and processing routes"""
import logging
import uuid
from datetime import datetime
from typing import List

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from app.api.rate_limit import limiter
from app.api.schemas import (CaseDocumentsResponse, CaseProcessResponse,
                             DocumentStatusResponse, ProcessResponse)
from app.core.models.case import Case, CaseStatus
from app.core.models.document import Document, ProcessingStatus
from app.core.pipeline.document_processor import DocumentProcessor
from app.core.ports.object_storage import ObjectStoragePort
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "text/plain",
})
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
MAX_FILES_PER_UPLOAD = 20


def create_documents_router(
    repository: CaseRepositoryPort,
    object_storage: ObjectStoragePort,
    processor: DocumentProcessor,
) -> APIRouter:
    """Create document router with dependency injection.

    Args:
        repository: Case repository
        object_storage: Binary store for uploaded files
        processor: Document processor that owns the task executor

    Returns:
        APIRouter configured with document endpoints
    """
    router = APIRouter(tags=["Documents"])

    async def require_case(case_id: str) -> Case:
        case = await repository.get_case(case_id)
        if case is None:
            raise HTTPException(status_code=404, detail="Case not found")
        return case

    async def require_document(document_id: str) -> Document:
        document = await repository.get_document(document_id)
        if document is None:
            raise HTTPException(status_code=404, detail="Document not found")
        return document

    @router.post("/api/v1/cases/{case_id}/documents", status_code=201, response_model=List[DocumentStatusResponse])
    @limiter.limit("20/minute")
    async def upload_documents(request: Request, case_id: str, files: List[UploadFile] = File(...)):
        """Upload documents and start processing each one"""
        case = await require_case(case_id)
        if len(files) > MAX_FILES_PER_UPLOAD:
            raise HTTPException(status_code=400, detail=f"At most {MAX_FILES_PER_UPLOAD} files per upload")

        uploads = []
        for file in files:
            if file.content_type not in ALLOWED_MIME_TYPES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid file type {file.content_type}. Allowed: PDF, PNG, JPG, TXT",
                )
            content = await file.read()
            if len(content) > MAX_UPLOAD_BYTES:
                raise HTTPException(status_code=413, detail=f"{file.filename} exceeds the 50MB limit")
            uploads.append((file, content))

        documents = []
        for file, content in uploads:
            document_id = str(uuid.uuid4())
            key = f"{case_id}/{document_id}-{file.filename}"
            await object_storage.upload(key, content, file.content_type)

            document = Document(
                id=document_id,
                case_id=case_id,
                filename=key,
                original_filename=file.filename or "",
                mime_type=file.content_type,
            )
            await repository.save_document(document)
            documents.append(document)

        # Case is saved before any submit so synthesis never sees a stale record
        case.status = CaseStatus.DOCUMENTS_UPLOADED
        case.updated_at = datetime.now()
        await repository.save_case(case)

        for document in documents:
            processor.submit(document)

        logger.info(f"Uploaded {len(documents)} documents to case {case_id}")
        return [DocumentStatusResponse.from_document(d) for d in documents]

    @router.get("/api/v1/cases/{case_id}/documents", response_model=CaseDocumentsResponse)
    @limiter.limit("120/minute")
    async def list_documents(request: Request, case_id: str):
        """Processing status of every document in a case"""
        await require_case(case_id)
        documents = await repository.list_documents(case_id)

        return CaseDocumentsResponse(
            case_id=case_id,
            documents=[DocumentStatusResponse.from_document(d) for d in documents],
            in_flight=processor.executor.in_flight(case_id),
            all_completed=bool(documents) and all(
                d.processing_status == ProcessingStatus.COMPLETED for d in documents
            ),
        )

    @router.post("/api/v1/cases/{case_id}/documents/process", status_code=202, response_model=CaseProcessResponse)
    @limiter.limit("10/minute")
    async def process_case_documents(request: Request, case_id: str):
        """Submit every PENDING document and reprocess every FAILED one"""
        case = await require_case(case_id)
        documents = await repository.list_documents(case_id)
        runnable = [
            d for d in documents
            if d.processing_status in (ProcessingStatus.PENDING, ProcessingStatus.FAILED)
        ]

        if runnable:
            case.status = CaseStatus.PROCESSING
            case.updated_at = datetime.now()
            await repository.save_case(case)

        submitted = []
        for document in runnable:
            if document.processing_status == ProcessingStatus.PENDING:
                processor.submit(document)
            else:
                await processor.reprocess(document.id)
            submitted.append(document.id)

        return CaseProcessResponse(
            case_id=case_id,
            submitted=submitted,
            message=f"Processing triggered for {len(submitted)} documents",
        )

    @router.get("/api/v1/documents/{document_id}")
    @limiter.limit("120/minute")
    async def get_document(request: Request, document_id: str):
        """Document status with a time-limited download URL"""
        document = await require_document(document_id)
        status = DocumentStatusResponse.from_document(document).dict()
        status["download_url"] = await object_storage.signed_url(document.filename)
        return status

    @router.post("/api/v1/documents/{document_id}/process", status_code=202, response_model=ProcessResponse)
    @limiter.limit("30/minute")
    async def process_document(request: Request, document_id: str):
        """Submit a PENDING document for processing"""
        document = await require_document(document_id)
        if document.processing_status != ProcessingStatus.PENDING:
            raise HTTPException(
                status_code=409,
                detail=f"Document is {document.processing_status.value}; use reprocess for finished documents",
            )

        processor.submit(document)
        return ProcessResponse(document_id=document_id, status=document.processing_status.value,
                               message="Document processing started")

    @router.post("/api/v1/documents/{document_id}/reprocess", status_code=202, response_model=ProcessResponse)
    @limiter.limit("10/minute")
    async def reprocess_document(request: Request, document_id: str):
        """Clear a finished document's results and process it again"""
        await require_document(document_id)
        document = await processor.reprocess(document_id)
        return ProcessResponse(document_id=document_id, status=document.processing_status.value,
                               message="Document reprocessing started")

    return router
