"""
Category table for structured extraction.

Every DocumentCategory maps to exactly one rule: which prompt to send, which
shape the decoded payload must have, and how chunk results are merged.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from pydantic import BaseModel

from app.core.extraction.payload_shapes import (
    MedicalBillsPayload,
    MedicalRecordsPayload,
    PoliceReportPayload,
    WageDocumentationPayload,
)
from app.core.models.document import DocumentCategory


class MergeStrategy(str, Enum):
    RECORDS = "records"            # union of visits, imaging, condition lists
    BILLS = "bills"                # concatenated charges, summed totals
    FIRST_RESULT = "first_result"  # first chunk's payload, others discarded
    RAW_TEXT = "raw_text"          # no oracle call, leading text kept


@dataclass(frozen=True)
class CategoryRule:
    """How one document category is extracted and merged."""
    category: DocumentCategory
    strategy: MergeStrategy
    prompt_name: Optional[str] = None
    shape: Optional[Type[BaseModel]] = None

    @property
    def calls_oracle(self) -> bool:
        return self.prompt_name is not None


def _raw(category: DocumentCategory) -> CategoryRule:
    return CategoryRule(category=category, strategy=MergeStrategy.RAW_TEXT)


CATEGORY_RULES: Dict[DocumentCategory, CategoryRule] = {
    DocumentCategory.MEDICAL_RECORDS: CategoryRule(
        DocumentCategory.MEDICAL_RECORDS, MergeStrategy.RECORDS, "medical_records", MedicalRecordsPayload,
    ),
    DocumentCategory.MEDICAL_BILLS: CategoryRule(
        DocumentCategory.MEDICAL_BILLS, MergeStrategy.BILLS, "medical_bills", MedicalBillsPayload,
    ),
    DocumentCategory.POLICE_REPORT: CategoryRule(
        DocumentCategory.POLICE_REPORT, MergeStrategy.FIRST_RESULT, "police_report", PoliceReportPayload,
    ),
    DocumentCategory.WAGE_DOCUMENTATION: CategoryRule(
        DocumentCategory.WAGE_DOCUMENTATION, MergeStrategy.FIRST_RESULT, "wage_documentation", WageDocumentationPayload,
    ),
    DocumentCategory.PHOTOS: _raw(DocumentCategory.PHOTOS),
    DocumentCategory.INSURANCE_CORRESPONDENCE: _raw(DocumentCategory.INSURANCE_CORRESPONDENCE),
    DocumentCategory.WITNESS_STATEMENT: _raw(DocumentCategory.WITNESS_STATEMENT),
    DocumentCategory.EXPERT_REPORT: _raw(DocumentCategory.EXPERT_REPORT),
    DocumentCategory.PRIOR_MEDICAL_RECORDS: _raw(DocumentCategory.PRIOR_MEDICAL_RECORDS),
    DocumentCategory.LIEN_LETTER: _raw(DocumentCategory.LIEN_LETTER),
    DocumentCategory.OTHER: _raw(DocumentCategory.OTHER),
}


def rule_for(category: DocumentCategory) -> CategoryRule:
    """Look up the extraction rule for a category (OTHER's rule if unknown)."""
    return CATEGORY_RULES.get(DocumentCategory.coerce(category), CATEGORY_RULES[DocumentCategory.OTHER])
