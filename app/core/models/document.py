"""
Document models.

A Document is one uploaded file belonging to exactly one case. The pipeline
mutates it stage by stage; it never deletes it.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from app.core.builders.date_utils import format_date, parse_date


class ProcessingStatus(str, Enum):
    """Per-document processing states (see app.core.pipeline.state_machine)."""
    PENDING = "PENDING"
    EXTRACTING_TEXT = "EXTRACTING_TEXT"
    CLASSIFYING = "CLASSIFYING"
    EXTRACTING_DATA = "EXTRACTING_DATA"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED})


class DocumentCategory(str, Enum):
    """Classification categories for case documents."""
    MEDICAL_RECORDS = "MEDICAL_RECORDS"
    MEDICAL_BILLS = "MEDICAL_BILLS"
    POLICE_REPORT = "POLICE_REPORT"
    PHOTOS = "PHOTOS"
    WAGE_DOCUMENTATION = "WAGE_DOCUMENTATION"
    INSURANCE_CORRESPONDENCE = "INSURANCE_CORRESPONDENCE"
    WITNESS_STATEMENT = "WITNESS_STATEMENT"
    EXPERT_REPORT = "EXPERT_REPORT"
    PRIOR_MEDICAL_RECORDS = "PRIOR_MEDICAL_RECORDS"
    LIEN_LETTER = "LIEN_LETTER"
    OTHER = "OTHER"

    @classmethod
    def coerce(cls, value: Any) -> "DocumentCategory":
        """Map arbitrary oracle output onto a known category (OTHER if unknown)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.OTHER


# Categories whose documents also feed medical event extraction
CLINICAL_CATEGORIES = frozenset({DocumentCategory.MEDICAL_RECORDS, DocumentCategory.MEDICAL_BILLS})


@dataclass
class Classification:
    """Result of classifying a document's text."""
    category: DocumentCategory = DocumentCategory.OTHER
    subcategory: Optional[str] = None
    confidence: float = 0.0
    document_date: Optional[date] = None
    provider_name: Optional[str] = None


@dataclass
class Document:
    """One uploaded case document and its processing state."""
    id: str
    case_id: str
    filename: str  # opaque object storage key
    original_filename: str = ""
    mime_type: str = "application/pdf"
    extracted_text: Optional[str] = None
    page_count: int = 0
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processing_error: Optional[str] = None
    extracted_data: Optional[Dict[str, Any]] = None

    # Classification metadata
    category: Optional[DocumentCategory] = None
    subcategory: Optional[str] = None
    classification_confidence: float = 0.0
    document_date: Optional[date] = None
    provider_name: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_terminal(self) -> bool:
        return self.processing_status in TERMINAL_STATUSES

    def apply_classification(self, classification: Classification) -> None:
        self.category = classification.category
        self.subcategory = classification.subcategory
        self.classification_confidence = classification.confidence
        self.document_date = classification.document_date
        self.provider_name = classification.provider_name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape (camelCase keys)."""
        return {
            "id": self.id,
            "caseId": self.case_id,
            "filename": self.filename,
            "originalFilename": self.original_filename,
            "mimeType": self.mime_type,
            "extractedText": self.extracted_text,
            "pageCount": self.page_count,
            "processingStatus": self.processing_status.value,
            "processingError": self.processing_error,
            "extractedData": self.extracted_data,
            "category": self.category.value if self.category else None,
            "subcategory": self.subcategory,
            "classificationConfidence": self.classification_confidence,
            "documentDate": format_date(self.document_date),
            "providerName": self.provider_name,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        category = data.get("category")
        return cls(
            id=data["id"],
            case_id=data["caseId"],
            filename=data.get("filename", ""),
            original_filename=data.get("originalFilename", ""),
            mime_type=data.get("mimeType", "application/pdf"),
            extracted_text=data.get("extractedText"),
            page_count=data.get("pageCount") or 0,
            processing_status=ProcessingStatus(data.get("processingStatus", "PENDING")),
            processing_error=data.get("processingError"),
            extracted_data=data.get("extractedData"),
            category=DocumentCategory.coerce(category) if category else None,
            subcategory=data.get("subcategory"),
            classification_confidence=data.get("classificationConfidence") or 0.0,
            document_date=parse_date(data.get("documentDate")),
            provider_name=data.get("providerName"),
            created_at=datetime.fromisoformat(data["createdAt"]) if data.get("createdAt") else datetime.now(),
            updated_at=datetime.fromisoformat(data["updatedAt"]) if data.get("updatedAt") else datetime.now(),
        )
