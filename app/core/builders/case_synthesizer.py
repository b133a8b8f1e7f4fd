"""
Case synthesis from completed document extractions.

Aggregates every COMPLETED document's extracted data into the case record:
a treatment timeline from medical record visits and a damages calculation
from medical bills and wage documentation.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.builders.date_utils import date_sort_key
from app.core.exceptions import SynthesisError
from app.core.extraction.chunk_merger import to_amount
from app.core.models.case import Case, CaseStatus
from app.core.models.document import DocumentCategory, ProcessingStatus
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)


def build_treatment_timeline(documents_data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Build the case timeline from MEDICAL_RECORDS visits.

    Args:
        documents_data: [{category, data}] for each completed document

    Returns:
        Timeline entries sorted by date ascending; missing or unparseable
        dates sort last in their original order
    """
    timeline = []
    for item in documents_data:
        if item["category"] != DocumentCategory.MEDICAL_RECORDS.value:
            continue
        visits = (item["data"] or {}).get("visits") or []
        for visit in visits:
            if not isinstance(visit, dict):
                continue
            timeline.append({
                "date": visit.get("date"),
                "provider": visit.get("providerName") or "Unknown",
                "type": visit.get("visitType") or "Visit",
                "description": visit.get("chiefComplaint") or "",
            })

    timeline.sort(key=lambda entry: date_sort_key(entry["date"]))
    return timeline


def _bill_provider_name(data: Dict[str, Any]) -> str:
    provider = data.get("provider")
    if isinstance(provider, dict) and provider.get("name"):
        return provider["name"]
    # Merged multi-chunk bills carry a providers list instead
    names = [p.get("name") for p in data.get("providers") or [] if isinstance(p, dict) and p.get("name")]
    if names:
        return ", ".join(dict.fromkeys(names))
    return "Unknown"


def _wage_loss(data: Dict[str, Any]) -> float:
    if data.get("totalWageLoss") is not None:
        return to_amount(data.get("totalWageLoss"))
    nested = data.get("wageLoss")
    if isinstance(nested, dict):
        return to_amount(nested.get("totalWageLoss"))
    return 0.0


def calculate_damages(documents_data: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Sum special damages from bills and wage documentation.

    Args:
        documents_data: [{category, data}] for each completed document

    Returns:
        {"specialDamages": {medicalBills, wageLoss, total}, "itemizedCharges": [...]}
    """
    medical_bills = 0.0
    wage_loss = 0.0
    itemized_charges = []

    for item in documents_data:
        data = item["data"] or {}
        if item["category"] == DocumentCategory.MEDICAL_BILLS.value:
            provider = _bill_provider_name(data)
            for charge in data.get("charges") or []:
                if not isinstance(charge, dict):
                    continue
                amount = to_amount(charge.get("amountBilled"))
                medical_bills += amount
                itemized_charges.append({
                    "provider": provider,
                    "date": charge.get("dateOfService"),
                    "amount": amount,
                    "description": charge.get("description"),
                })
        elif item["category"] == DocumentCategory.WAGE_DOCUMENTATION.value:
            wage_loss += _wage_loss(data)

    medical_bills = round(medical_bills, 2)
    wage_loss = round(wage_loss, 2)
    return {
        "specialDamages": {
            "medicalBills": medical_bills,
            "wageLoss": wage_loss,
            "total": round(medical_bills + wage_loss, 2),
        },
        "itemizedCharges": itemized_charges,
    }


class CaseSynthesizer:
    """Write timeline and damages onto a case once its documents are done.

    Usage:
        synthesizer = CaseSynthesizer(repository)
        case = await synthesizer.synthesize(case_id)
    """

    def __init__(self, repository: CaseRepositoryPort):
        self._repository = repository

    async def synthesize(self, case_id: str) -> Case:
        """
        Aggregate completed documents into the case and mark it EXTRACTION_COMPLETE.

        Args:
            case_id: Case to synthesize

        Returns:
            The updated case

        Raises:
            SynthesisError: If the case does not exist
        """
        case: Optional[Case] = await self._repository.get_case(case_id)
        if case is None:
            raise SynthesisError(f"Case {case_id} not found")

        documents = await self._repository.list_documents(case_id)
        documents_data = [
            {"category": doc.category.value if doc.category else None, "data": doc.extracted_data}
            for doc in documents
            if doc.processing_status == ProcessingStatus.COMPLETED and doc.extracted_data
        ]

        case.extracted_data = {"documents": documents_data}
        case.treatment_timeline = build_treatment_timeline(documents_data)
        case.damages_calculation = calculate_damages(documents_data)
        case.status = CaseStatus.EXTRACTION_COMPLETE
        case.updated_at = datetime.now()
        await self._repository.save_case(case)

        logger.info(
            f"Case data synthesized: {case_id} "
            f"({len(documents_data)} documents, {len(case.treatment_timeline)} timeline entries, "
            f"${case.damages_calculation['specialDamages']['total']:,.2f} special damages)"
        )
        return case
