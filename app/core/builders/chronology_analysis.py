"""
Deterministic chronology analysis over a case's medical events.

Every function takes events already ordered by date of service ascending
and returns plain model objects. Nothing here calls the oracle.
"""
from typing import Dict, List, Optional

from app.config.pipeline_limits import TREATMENT_GAP_THRESHOLD_DAYS
from app.core.builders.date_utils import days_between
from app.core.models.chronology import (
    BodyPartSummary,
    DiagnosisSummary,
    MMIStatus,
    PainScoreEntry,
    ProviderSummary,
    TreatmentGap,
)
from app.core.models.medical_event import MedicalEvent

MMI_KEYWORDS = (
    "maximum medical improvement",
    "mmi",
    "permanent and stationary",
    "p&s",
)

UNKNOWN_PROVIDER = "Unknown Provider"


def detect_treatment_gaps(
    events: List[MedicalEvent],
    threshold_days: int = TREATMENT_GAP_THRESHOLD_DAYS,
) -> List[TreatmentGap]:
    """Find stretches between consecutive visits longer than threshold_days.

    A difference of exactly threshold_days is not a gap.
    """
    gaps = []
    for previous, current in zip(events, events[1:]):
        duration = days_between(previous.date_of_service, current.date_of_service)
        if duration > threshold_days:
            gaps.append(TreatmentGap(
                start_date=previous.date_of_service,
                end_date=current.date_of_service,
                duration_days=duration,
            ))
    return gaps


def extract_pain_score_history(events: List[MedicalEvent]) -> List[PainScoreEntry]:
    """Pain scores in event order, skipping events without a numeric score."""
    history = []
    for event in events:
        score = event.pain_score
        if score is None:
            continue
        history.append(PainScoreEntry(
            date=event.date_of_service,
            score=score,
            provider=event.provider_name,
            notes=(event.vital_signs or {}).get("pain_location"),
        ))
    return history


def summarize_providers(events: List[MedicalEvent]) -> List[ProviderSummary]:
    """Visit count and charges per provider, most visited first.

    Providers are keyed case-insensitively by provider name, else facility
    name. The first spelling seen is the one reported.
    """
    providers: Dict[str, ProviderSummary] = {}
    for event in events:
        name = event.display_provider or UNKNOWN_PROVIDER
        key = name.lower()
        summary = providers.get(key)
        if summary is None:
            summary = ProviderSummary(name=name, type=event.provider_type or "Unknown")
            providers[key] = summary
        summary.visit_count += 1
        summary.total_cost = round(summary.total_cost + (event.total_charge or 0.0), 2)

    return sorted(providers.values(), key=lambda p: -p.visit_count)


def _diagnosis_name(diagnosis) -> Optional[str]:
    if not isinstance(diagnosis, dict):
        return None
    name = diagnosis.get("diagnosis_name")
    if not isinstance(name, str) or not name.strip():
        return None
    return name


def summarize_diagnoses(events: List[MedicalEvent]) -> List[DiagnosisSummary]:
    """Mentions per diagnosis (case-insensitive), most mentioned first."""
    diagnoses: Dict[str, DiagnosisSummary] = {}
    for event in events:
        for dx in event.diagnoses or []:
            name = _diagnosis_name(dx)
            if name is None:
                continue
            key = name.lower()
            summary = diagnoses.get(key)
            if summary is None:
                diagnoses[key] = DiagnosisSummary(
                    diagnosis=name,
                    icd_code=dx.get("icd_code"),
                    body_part=dx.get("body_part"),
                    first_date=event.date_of_service,
                    last_date=event.date_of_service,
                    mention_count=1,
                )
                continue
            summary.mention_count += 1
            summary.first_date = min(summary.first_date, event.date_of_service)
            summary.last_date = max(summary.last_date, event.date_of_service)

    return sorted(diagnoses.values(), key=lambda d: -d.mention_count)


def summarize_body_parts(events: List[MedicalEvent]) -> List[BodyPartSummary]:
    """Group diagnoses by body part and attach textually related treatments.

    A treatment is attached to every body part seen so far whose name it
    contains (case-insensitive). The association is inferred from text only.
    """
    body_parts: Dict[str, BodyPartSummary] = {}
    for event in events:
        for dx in event.diagnoses or []:
            name = _diagnosis_name(dx)
            body_part = dx.get("body_part") if name else None
            if not isinstance(body_part, str) or not body_part.strip():
                continue
            key = body_part.lower()
            summary = body_parts.get(key)
            if summary is None:
                body_parts[key] = BodyPartSummary(body_part=body_part, diagnoses=[name])
            elif name not in summary.diagnoses:
                summary.diagnoses.append(name)

        for treatment in event.treatments_procedures or []:
            if not isinstance(treatment, str):
                continue
            lowered = treatment.lower()
            for key, summary in body_parts.items():
                if key in lowered and treatment not in summary.inferred_treatments:
                    summary.inferred_treatments.append(treatment)

    return list(body_parts.values())


def detect_mmi(events: List[MedicalEvent]) -> MMIStatus:
    """Find the most recent event stating maximum medical improvement.

    Scans newest to oldest over prognosis, permanency statements,
    assessment and plan; the first keyword hit wins.
    """
    for event in reversed(events):
        text = " ".join(
            part for part in (event.prognosis, event.permanency_statements, event.assessment, event.plan)
            if part
        ).lower()
        if any(keyword in text for keyword in MMI_KEYWORDS):
            return MMIStatus(
                reached=True,
                date=event.date_of_service,
                notes=event.prognosis or event.permanency_statements,
            )
    return MMIStatus(reached=False)


def total_medical_costs(events: List[MedicalEvent]) -> float:
    return round(sum(event.total_charge or 0.0 for event in events), 2)


def treatment_duration_days(events: List[MedicalEvent]) -> int:
    if not events:
        return 0
    return days_between(events[0].date_of_service, events[-1].date_of_service)
