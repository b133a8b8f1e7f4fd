"""
Medical event model.

One clinical or billing encounter extracted from a document. Raw oracle
output uses snake_case keys; the persisted record shape is camelCase.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.core.builders.date_utils import format_date, parse_date
from app.core.exceptions import ValidationError


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


@dataclass
class MedicalEvent:
    """A single medical encounter for a case."""
    case_id: str
    document_id: str
    date_of_service: date
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    provider_name: Optional[str] = None
    provider_type: Optional[str] = None
    facility_name: Optional[str] = None
    document_type: Optional[str] = None

    chief_complaint: Optional[str] = None
    subjective_findings: Optional[str] = None
    objective_findings: Optional[str] = None
    assessment: Optional[str] = None
    plan: Optional[str] = None

    diagnoses: List[Dict[str, Any]] = field(default_factory=list)
    treatments_procedures: List[str] = field(default_factory=list)
    medications: List[Dict[str, Any]] = field(default_factory=list)
    imaging_tests: List[Dict[str, Any]] = field(default_factory=list)
    vital_signs: Dict[str, Any] = field(default_factory=dict)

    work_status: Optional[str] = None
    work_restrictions: Optional[str] = None
    functional_limitations: List[str] = field(default_factory=list)
    prognosis: Optional[str] = None
    permanency_statements: Optional[str] = None
    future_treatment: List[str] = field(default_factory=list)
    pre_existing_mentions: List[Dict[str, Any]] = field(default_factory=list)

    total_charge: Optional[float] = None
    insurance_paid: Optional[float] = None
    patient_responsibility: Optional[float] = None

    key_quotes: List[str] = field(default_factory=list)
    red_flags: List[str] = field(default_factory=list)
    causation_statements: List[str] = field(default_factory=list)

    created_at: datetime = field(default_factory=datetime.now)

    @property
    def display_provider(self) -> Optional[str]:
        return self.provider_name or self.facility_name

    @property
    def pain_score(self) -> Optional[float]:
        """Numeric pain score from vital signs, None if absent or non-numeric."""
        return _to_float((self.vital_signs or {}).get("pain_score"))

    @classmethod
    def from_extraction(cls, raw: Dict[str, Any], case_id: str, document_id: str) -> "MedicalEvent":
        """Build an event from one deduplicated oracle record.

        Raises:
            ValidationError: If date_of_service is missing or unparseable
        """
        service_date = parse_date(raw.get("date_of_service"))
        if service_date is None:
            raise ValidationError(f"Invalid date_of_service: {raw.get('date_of_service')!r}")

        costs = raw.get("costs") or {}
        return cls(
            case_id=case_id,
            document_id=document_id,
            date_of_service=service_date,
            provider_name=raw.get("provider_name"),
            provider_type=raw.get("provider_type"),
            facility_name=raw.get("facility_name"),
            document_type=raw.get("document_type"),
            chief_complaint=raw.get("chief_complaint"),
            subjective_findings=raw.get("subjective_findings"),
            objective_findings=raw.get("objective_findings"),
            assessment=raw.get("assessment"),
            plan=raw.get("plan"),
            diagnoses=_as_list(raw.get("diagnoses")),
            treatments_procedures=_as_list(raw.get("treatments_procedures")),
            medications=_as_list(raw.get("medications")),
            imaging_tests=_as_list(raw.get("imaging_tests")),
            vital_signs=raw.get("vital_signs") if isinstance(raw.get("vital_signs"), dict) else {},
            work_status=raw.get("work_status"),
            work_restrictions=raw.get("work_restrictions"),
            functional_limitations=_as_list(raw.get("functional_limitations")),
            prognosis=raw.get("prognosis"),
            permanency_statements=raw.get("permanency_statements"),
            future_treatment=_as_list(raw.get("future_treatment_recommended")),
            pre_existing_mentions=_as_list(raw.get("pre_existing_mentioned")),
            total_charge=_to_float(costs.get("total_charge")) if isinstance(costs, dict) else None,
            insurance_paid=_to_float(costs.get("insurance_paid")) if isinstance(costs, dict) else None,
            patient_responsibility=_to_float(costs.get("patient_responsibility")) if isinstance(costs, dict) else None,
            key_quotes=_as_list(raw.get("key_quotes")),
            red_flags=_as_list(raw.get("red_flags")),
            causation_statements=_as_list(raw.get("causation_statements")),
        )

    # Fields an attorney may correct after extraction
    EDITABLE_FIELDS = (
        "date_of_service", "provider_name", "provider_type", "facility_name",
        "document_type", "chief_complaint", "subjective_findings",
        "objective_findings", "assessment", "plan", "diagnoses",
        "treatments_procedures", "medications", "imaging_tests", "vital_signs",
        "work_status", "work_restrictions", "functional_limitations",
        "prognosis", "permanency_statements", "future_treatment",
        "pre_existing_mentions", "key_quotes", "red_flags",
        "causation_statements", "total_charge", "insurance_paid",
        "patient_responsibility",
    )

    def apply_updates(self, updates: Dict[str, Any]) -> List[str]:
        """Apply attorney corrections in place.

        Keys outside EDITABLE_FIELDS are ignored.

        Args:
            updates: snake_case field name -> new value

        Returns:
            Names of the fields that were changed

        Raises:
            ValidationError: If date_of_service is given but unparseable
        """
        changed = []
        for name in self.EDITABLE_FIELDS:
            if name not in updates:
                continue
            value = updates[name]
            if name == "date_of_service":
                value = parse_date(value)
                if value is None:
                    raise ValidationError(f"Invalid date_of_service: {updates[name]!r}")
            elif name in ("total_charge", "insurance_paid", "patient_responsibility"):
                value = _to_float(value)
            setattr(self, name, value)
            changed.append(name)
        return changed

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape (camelCase keys)."""
        return {
            "id": self.id,
            "caseId": self.case_id,
            "documentId": self.document_id,
            "dateOfService": format_date(self.date_of_service),
            "providerName": self.provider_name,
            "providerType": self.provider_type,
            "facilityName": self.facility_name,
            "documentType": self.document_type,
            "chiefComplaint": self.chief_complaint,
            "subjectiveFindings": self.subjective_findings,
            "objectiveFindings": self.objective_findings,
            "assessment": self.assessment,
            "plan": self.plan,
            "diagnoses": self.diagnoses,
            "treatmentsProcedures": self.treatments_procedures,
            "medications": self.medications,
            "imagingTests": self.imaging_tests,
            "vitalSigns": self.vital_signs,
            "workStatus": self.work_status,
            "workRestrictions": self.work_restrictions,
            "functionalLimitations": self.functional_limitations,
            "prognosis": self.prognosis,
            "permanencyStatements": self.permanency_statements,
            "futureTreatment": self.future_treatment,
            "preExistingMentions": self.pre_existing_mentions,
            "totalCharge": self.total_charge,
            "insurancePaid": self.insurance_paid,
            "patientResponsibility": self.patient_responsibility,
            "keyQuotes": self.key_quotes,
            "redFlags": self.red_flags,
            "causationStatements": self.causation_statements,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicalEvent":
        return cls(
            id=data["id"],
            case_id=data["caseId"],
            document_id=data["documentId"],
            date_of_service=parse_date(data["dateOfService"]),
            provider_name=data.get("providerName"),
            provider_type=data.get("providerType"),
            facility_name=data.get("facilityName"),
            document_type=data.get("documentType"),
            chief_complaint=data.get("chiefComplaint"),
            subjective_findings=data.get("subjectiveFindings"),
            objective_findings=data.get("objectiveFindings"),
            assessment=data.get("assessment"),
            plan=data.get("plan"),
            diagnoses=data.get("diagnoses") or [],
            treatments_procedures=data.get("treatmentsProcedures") or [],
            medications=data.get("medications") or [],
            imaging_tests=data.get("imagingTests") or [],
            vital_signs=data.get("vitalSigns") or {},
            work_status=data.get("workStatus"),
            work_restrictions=data.get("workRestrictions"),
            functional_limitations=data.get("functionalLimitations") or [],
            prognosis=data.get("prognosis"),
            permanency_statements=data.get("permanencyStatements"),
            future_treatment=data.get("futureTreatment") or [],
            pre_existing_mentions=data.get("preExistingMentions") or [],
            total_charge=data.get("totalCharge"),
            insurance_paid=data.get("insurancePaid"),
            patient_responsibility=data.get("patientResponsibility"),
            key_quotes=data.get("keyQuotes") or [],
            red_flags=data.get("redFlags") or [],
            causation_statements=data.get("causationStatements") or [],
            created_at=datetime.fromisoformat(data["createdAt"]) if data.get("createdAt") else datetime.now(),
        )
