"""
Medical chronology models.

A MedicalChronology is a materialized view over a case's MedicalEvents at
generation time. One per case, fully replaced on each generation.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.core.builders.date_utils import format_date, parse_date


@dataclass
class TreatmentGap:
    """A stretch between consecutive visits longer than the gap threshold."""
    start_date: date
    end_date: date
    duration_days: int
    explanation: Optional[str] = None
    impact: Optional[str] = None  # "low", "medium" or "high"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "startDate": format_date(self.start_date),
            "endDate": format_date(self.end_date),
            "durationDays": self.duration_days,
        }
        if self.explanation is not None:
            data["explanation"] = self.explanation
        if self.impact is not None:
            data["impact"] = self.impact
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreatmentGap":
        return cls(
            start_date=parse_date(data["startDate"]),
            end_date=parse_date(data["endDate"]),
            duration_days=data["durationDays"],
            explanation=data.get("explanation"),
            impact=data.get("impact"),
        )


@dataclass
class PainScoreEntry:
    date: date
    score: float
    provider: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "score": self.score,
            "provider": self.provider,
            "notes": self.notes,
        }


@dataclass
class ProviderSummary:
    name: str
    type: Optional[str] = None
    visit_count: int = 0
    total_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "visitCount": self.visit_count,
            "totalCost": self.total_cost,
        }


@dataclass
class DiagnosisSummary:
    diagnosis: str
    icd_code: Optional[str] = None
    body_part: Optional[str] = None
    first_date: Optional[date] = None
    last_date: Optional[date] = None
    mention_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnosis": self.diagnosis,
            "icdCode": self.icd_code,
            "bodyPart": self.body_part,
            "firstDate": format_date(self.first_date),
            "lastDate": format_date(self.last_date),
            "mentionCount": self.mention_count,
        }


@dataclass
class BodyPartSummary:
    """Diagnoses grouped by body part.

    inferred_treatments are attached by case-insensitive substring match of
    the body-part name against treatment text, not by clinical linkage.
    """
    body_part: str
    diagnoses: List[str] = field(default_factory=list)
    inferred_treatments: List[str] = field(default_factory=list)
    association_method: str = "substring"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bodyPart": self.body_part,
            "diagnoses": self.diagnoses,
            "inferredTreatments": self.inferred_treatments,
            "associationMethod": self.association_method,
        }


@dataclass
class MMIStatus:
    reached: bool = False
    date: Optional[date] = None
    notes: Optional[str] = None


@dataclass
class MedicalChronology:
    """Case-level chronology record."""
    case_id: str
    treatment_duration_days: int = 0
    total_visits: int = 0
    total_medical_costs: float = 0.0
    first_visit_date: Optional[date] = None
    last_visit_date: Optional[date] = None
    executive_summary: str = ""
    chronology_narrative: str = ""
    treatment_gaps: List[TreatmentGap] = field(default_factory=list)
    mmi_reached: bool = False
    mmi_date: Optional[date] = None
    mmi_notes: Optional[str] = None
    pain_score_history: List[PainScoreEntry] = field(default_factory=list)
    providers_summary: List[ProviderSummary] = field(default_factory=list)
    diagnosis_summary: List[DiagnosisSummary] = field(default_factory=list)
    body_parts_affected: List[BodyPartSummary] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caseId": self.case_id,
            "treatmentDurationDays": self.treatment_duration_days,
            "totalVisits": self.total_visits,
            "totalMedicalCosts": self.total_medical_costs,
            "firstVisitDate": format_date(self.first_visit_date),
            "lastVisitDate": format_date(self.last_visit_date),
            "executiveSummary": self.executive_summary,
            "chronologyNarrative": self.chronology_narrative,
            "treatmentGaps": [g.to_dict() for g in self.treatment_gaps],
            "mmiReached": self.mmi_reached,
            "mmiDate": format_date(self.mmi_date),
            "mmiNotes": self.mmi_notes,
            "painScoreHistory": [p.to_dict() for p in self.pain_score_history],
            "providersSummary": [p.to_dict() for p in self.providers_summary],
            "diagnosisSummary": [d.to_dict() for d in self.diagnosis_summary],
            "bodyPartsAffected": [b.to_dict() for b in self.body_parts_affected],
            "generatedAt": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicalChronology":
        return cls(
            case_id=data["caseId"],
            treatment_duration_days=data.get("treatmentDurationDays", 0),
            total_visits=data.get("totalVisits", 0),
            total_medical_costs=data.get("totalMedicalCosts", 0.0),
            first_visit_date=parse_date(data.get("firstVisitDate")),
            last_visit_date=parse_date(data.get("lastVisitDate")),
            executive_summary=data.get("executiveSummary", ""),
            chronology_narrative=data.get("chronologyNarrative", ""),
            treatment_gaps=[TreatmentGap.from_dict(g) for g in data.get("treatmentGaps", [])],
            mmi_reached=data.get("mmiReached", False),
            mmi_date=parse_date(data.get("mmiDate")),
            mmi_notes=data.get("mmiNotes"),
            pain_score_history=[
                PainScoreEntry(
                    date=parse_date(p["date"]),
                    score=p["score"],
                    provider=p.get("provider"),
                    notes=p.get("notes"),
                )
                for p in data.get("painScoreHistory", [])
            ],
            providers_summary=[
                ProviderSummary(
                    name=p["name"],
                    type=p.get("type"),
                    visit_count=p.get("visitCount", 0),
                    total_cost=p.get("totalCost", 0.0),
                )
                for p in data.get("providersSummary", [])
            ],
            diagnosis_summary=[
                DiagnosisSummary(
                    diagnosis=d["diagnosis"],
                    icd_code=d.get("icdCode"),
                    body_part=d.get("bodyPart"),
                    first_date=parse_date(d.get("firstDate")),
                    last_date=parse_date(d.get("lastDate")),
                    mention_count=d.get("mentionCount", 0),
                )
                for d in data.get("diagnosisSummary", [])
            ],
            body_parts_affected=[
                BodyPartSummary(
                    body_part=b["bodyPart"],
                    diagnoses=b.get("diagnoses", []),
                    inferred_treatments=b.get("inferredTreatments", []),
                    association_method=b.get("associationMethod", "substring"),
                )
                for b in data.get("bodyPartsAffected", [])
            ],
            generated_at=datetime.fromisoformat(data["generatedAt"]) if data.get("generatedAt") else datetime.now(),
        )
