"""
Pydantic shapes for oracle payloads.

These models check required keys and the top-level shape of decoded
JSON. Fields the pipeline coerces itself accept any value. Unknown keys are allowed and the decoded
dict, not the model, flows on through the pipeline.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator


class _LenientPayload(BaseModel):
    class Config:
        extra = "allow"


class ClassificationPayload(_LenientPayload):
    """Document classification output."""

    category: str = Field(..., description="One of the DocumentCategory values")
    subcategory: Optional[str] = None
    confidence: Optional[Any] = None
    documentDate: Optional[str] = None
    providerName: Optional[str] = None


class MedicalRecordsPayload(_LenientPayload):
    """Structured extraction for MEDICAL_RECORDS documents."""

    patient: Optional[Dict[str, Any]] = None
    visits: Optional[List[Dict[str, Any]]] = None
    imagingSummary: Optional[List[Dict[str, Any]]] = None
    preExistingConditions: Optional[List[Any]] = None
    futureTreatmentRecommendations: Optional[List[Any]] = None


class MedicalBillsPayload(_LenientPayload):
    """Structured extraction for MEDICAL_BILLS documents."""

    provider: Optional[Dict[str, Any]] = None
    patient: Optional[Dict[str, Any]] = None
    charges: Optional[List[Dict[str, Any]]] = None
    summary: Optional[Dict[str, Any]] = None


class PoliceReportPayload(_LenientPayload):
    """Structured extraction for POLICE_REPORT documents."""

    reportInfo: Optional[Dict[str, Any]] = None
    location: Optional[Dict[str, Any]] = None
    parties: Optional[List[Dict[str, Any]]] = None
    narrative: Optional[str] = None
    witnesses: Optional[List[Dict[str, Any]]] = None


class WageDocumentationPayload(_LenientPayload):
    """Structured extraction for WAGE_DOCUMENTATION documents."""

    employer: Optional[Dict[str, Any]] = None
    employee: Optional[Dict[str, Any]] = None
    compensation: Optional[Dict[str, Any]] = None
    payPeriods: Optional[List[Dict[str, Any]]] = None
    wageLoss: Optional[Dict[str, Any]] = None


class MedicalEventPayload(_LenientPayload):
    """One medical event object from the event extraction prompt.

    Only date_of_service is required; list fields are normalized later by
    normalize_list_fields, so any value is accepted here.
    """

    date_of_service: str
    provider_name: Optional[Any] = None
    facility_name: Optional[Any] = None
    diagnoses: Optional[Any] = None
    medications: Optional[Any] = None
    treatments_procedures: Optional[Any] = None

    @validator("date_of_service")
    def date_must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("date_of_service is blank")
        return v


class GapExplanationPayload(_LenientPayload):
    """One gap explanation from the chronology oracle."""

    startDate: Optional[str] = None
    endDate: Optional[str] = None
    explanation: Optional[str] = None
    impact: Optional[str] = None


__all__ = [
    "ClassificationPayload",
    "MedicalRecordsPayload",
    "MedicalBillsPayload",
    "PoliceReportPayload",
    "WageDocumentationPayload",
    "MedicalEventPayload",
    "GapExplanationPayload",
]
