"""Domain models and entities.

Case documents, medical events and the case-level chronology.
"""

from app.core.models.case import Case, CaseStatus
from app.core.models.chronology import (
    BodyPartSummary,
    DiagnosisSummary,
    MedicalChronology,
    MMIStatus,
    PainScoreEntry,
    ProviderSummary,
    TreatmentGap,
)
from app.core.models.document import (
    CLINICAL_CATEGORIES,
    TERMINAL_STATUSES,
    Classification,
    Document,
    DocumentCategory,
    ProcessingStatus,
)
from app.core.models.medical_event import MedicalEvent

__all__ = [
    # document.py models
    "Document",
    "DocumentCategory",
    "ProcessingStatus",
    "Classification",
    "CLINICAL_CATEGORIES",
    "TERMINAL_STATUSES",
    # case.py models
    "Case",
    "CaseStatus",
    # medical_event.py models
    "MedicalEvent",
    # chronology.py models
    "MedicalChronology",
    "TreatmentGap",
    "PainScoreEntry",
    "ProviderSummary",
    "DiagnosisSummary",
    "BodyPartSummary",
    "MMIStatus",
]
