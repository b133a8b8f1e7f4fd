"""Case aggregate model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from app.core.builders.date_utils import format_date, parse_date


class CaseStatus(str, Enum):
    INTAKE = "INTAKE"
    DOCUMENTS_UPLOADED = "DOCUMENTS_UPLOADED"
    PROCESSING = "PROCESSING"
    EXTRACTION_COMPLETE = "EXTRACTION_COMPLETE"
    DRAFT_READY = "DRAFT_READY"
    UNDER_REVIEW = "UNDER_REVIEW"
    SENT = "SENT"
    SETTLED = "SETTLED"
    LITIGATION = "LITIGATION"
    CLOSED = "CLOSED"


@dataclass
class Case:
    """A client matter. The unit of completion for synthesis."""
    id: str
    client_first_name: str = ""
    client_last_name: str = ""
    incident_date: Optional[date] = None
    incident_type: str = ""
    incident_description: Optional[str] = None
    status: CaseStatus = CaseStatus.INTAKE

    # Derived by CaseSynthesizer
    treatment_timeline: List[Dict[str, Any]] = field(default_factory=list)
    damages_calculation: Optional[Dict[str, Any]] = None
    extracted_data: Optional[Dict[str, Any]] = None
    attorney_warnings: List[Dict[str, Any]] = field(default_factory=list)

    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def client_name(self) -> str:
        return f"{self.client_first_name} {self.client_last_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clientFirstName": self.client_first_name,
            "clientLastName": self.client_last_name,
            "incidentDate": format_date(self.incident_date),
            "incidentType": self.incident_type,
            "incidentDescription": self.incident_description,
            "status": self.status.value,
            "treatmentTimeline": self.treatment_timeline,
            "damagesCalculation": self.damages_calculation,
            "extractedData": self.extracted_data,
            "attorneyWarnings": self.attorney_warnings,
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Case":
        return cls(
            id=data["id"],
            client_first_name=data.get("clientFirstName", ""),
            client_last_name=data.get("clientLastName", ""),
            incident_date=parse_date(data.get("incidentDate")),
            incident_type=data.get("incidentType", ""),
            incident_description=data.get("incidentDescription"),
            status=CaseStatus(data.get("status", "INTAKE")),
            treatment_timeline=data.get("treatmentTimeline") or [],
            damages_calculation=data.get("damagesCalculation"),
            extracted_data=data.get("extractedData"),
            attorney_warnings=data.get("attorneyWarnings") or [],
            updated_at=datetime.fromisoformat(data["updatedAt"]) if data.get("updatedAt") else datetime.now(),
        )
