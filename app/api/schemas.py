"""
API Pydantic models for the case document pipeline.

Request/response models used by the document, chronology and medical event
endpoints. Chronology and event records are returned in their persisted
camelCase shape.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator

from app.core.builders.date_utils import parse_date
from app.core.models.document import Document


class DocumentStatusResponse(BaseModel):
    """Processing status of one document"""

    document_id: str
    case_id: str
    original_filename: str
    status: str
    category: Optional[str] = None
    classification_confidence: float = Field(0.0, ge=0, le=1)
    page_count: int = 0
    error: Optional[str] = None
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentStatusResponse":
        return cls(
            document_id=document.id,
            case_id=document.case_id,
            original_filename=document.original_filename or document.filename,
            status=document.processing_status.value,
            category=document.category.value if document.category else None,
            classification_confidence=document.classification_confidence,
            page_count=document.page_count,
            error=document.processing_error,
            updated_at=document.updated_at,
        )


class CaseDocumentsResponse(BaseModel):
    """Processing status of every document in a case"""

    case_id: str
    documents: List[DocumentStatusResponse] = Field(default_factory=list)
    in_flight: int = 0
    all_completed: bool = False


class ProcessResponse(BaseModel):
    """Response for a document processing trigger"""

    document_id: str
    status: str
    message: str


class CaseProcessResponse(BaseModel):
    """Response for triggering processing of a case's documents"""

    case_id: str
    submitted: List[str] = Field(default_factory=list)
    message: str


class MedicalEventUpdateRequest(BaseModel):
    """Attorney corrections to an extracted medical event (camelCase body)"""

    date_of_service: Optional[str] = Field(None, alias="dateOfService")
    provider_name: Optional[str] = Field(None, alias="providerName")
    provider_type: Optional[str] = Field(None, alias="providerType")
    facility_name: Optional[str] = Field(None, alias="facilityName")
    document_type: Optional[str] = Field(None, alias="documentType")
    chief_complaint: Optional[str] = Field(None, alias="chiefComplaint")
    subjective_findings: Optional[str] = Field(None, alias="subjectiveFindings")
    objective_findings: Optional[str] = Field(None, alias="objectiveFindings")
    assessment: Optional[str] = None
    plan: Optional[str] = None
    diagnoses: Optional[List[Dict[str, Any]]] = None
    treatments_procedures: Optional[List[str]] = Field(None, alias="treatmentsProcedures")
    medications: Optional[List[Dict[str, Any]]] = None
    imaging_tests: Optional[List[Dict[str, Any]]] = Field(None, alias="imagingTests")
    vital_signs: Optional[Dict[str, Any]] = Field(None, alias="vitalSigns")
    work_status: Optional[str] = Field(None, alias="workStatus")
    work_restrictions: Optional[str] = Field(None, alias="workRestrictions")
    functional_limitations: Optional[List[str]] = Field(None, alias="functionalLimitations")
    prognosis: Optional[str] = None
    permanency_statements: Optional[str] = Field(None, alias="permanencyStatements")
    future_treatment: Optional[List[str]] = Field(None, alias="futureTreatment")
    pre_existing_mentions: Optional[List[Dict[str, Any]]] = Field(None, alias="preExistingMentions")
    key_quotes: Optional[List[str]] = Field(None, alias="keyQuotes")
    red_flags: Optional[List[str]] = Field(None, alias="redFlags")
    causation_statements: Optional[List[str]] = Field(None, alias="causationStatements")
    total_charge: Optional[float] = Field(None, alias="totalCharge")
    insurance_paid: Optional[float] = Field(None, alias="insurancePaid")
    patient_responsibility: Optional[float] = Field(None, alias="patientResponsibility")

    class Config:
        allow_population_by_field_name = True

    @validator("date_of_service")
    def validate_date_of_service(cls, v):
        if v is not None and parse_date(v) is None:
            raise ValueError("dateOfService must be a date such as YYYY-MM-DD")
        return v


class HealthResponse(BaseModel):
    """Health check response"""

    status: str
    timestamp: datetime
    version: str
    uptime: float
    pipeline_status: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Error response model"""

    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime


__all__ = [
    "DocumentStatusResponse",
    "CaseDocumentsResponse",
    "ProcessResponse",
    "CaseProcessResponse",
    "MedicalEventUpdateRequest",
    "HealthResponse",
    "ErrorResponse",
]
