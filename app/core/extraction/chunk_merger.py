"""
Merge functions for per-chunk structured extraction results.

Each function takes the VALID payloads of a document's chunks in chunk
order and returns one payload of the same category shape.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from app.core.builders.date_utils import date_sort_key
from app.core.extraction.categories import MergeStrategy

logger = logging.getLogger(__name__)

BILL_SUMMARY_FIELDS = ("totalBilled", "totalPaid", "totalDue")


def to_decimal(value: Any) -> Decimal:
    """Coerce a money value from oracle output to Decimal (0 if unusable)."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    text = str(value)
    if not isinstance(value, (int, float)):
        text = text.replace("$", "").replace(",", "").strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.warning(f"Ignoring non-numeric amount: {value!r}")
        return Decimal(0)
    return amount if amount.is_finite() else Decimal(0)


def to_amount(value: Any) -> float:
    """Coerce a money value from oracle output to float (0.0 if unusable)."""
    return float(to_decimal(value))


def union_preserving_order(*lists: Optional[List[Any]]) -> List[Any]:
    """Exact-value union of lists, keeping first-occurrence order."""
    merged: List[Any] = []
    for values in lists:
        for value in values or []:
            if value not in merged:
                merged.append(value)
    return merged


def merge_medical_records(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge MEDICAL_RECORDS payloads.

    patient is the first non-null one; visits and imagingSummary are
    concatenated with visits sorted by date (unparseable dates last);
    condition and recommendation lists are unioned.
    """
    visits: List[Dict[str, Any]] = []
    imaging: List[Dict[str, Any]] = []
    for result in results:
        visits.extend(result.get("visits") or [])
        imaging.extend(result.get("imagingSummary") or [])

    return {
        "patient": next((r["patient"] for r in results if r.get("patient")), None),
        "visits": sorted(visits, key=lambda v: date_sort_key(v.get("date"))),
        "imagingSummary": imaging,
        "preExistingConditions": union_preserving_order(
            *(r.get("preExistingConditions") for r in results)
        ),
        "futureTreatmentRecommendations": union_preserving_order(
            *(r.get("futureTreatmentRecommendations") for r in results)
        ),
    }


def merge_medical_bills(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge MEDICAL_BILLS payloads.

    Accepts raw chunk payloads (single "provider") and already merged
    payloads ("providers"), so merging is associative over any grouping.
    Totals are summed as exact decimals and never rounded here.
    """
    providers: List[Dict[str, Any]] = []
    charges: List[Dict[str, Any]] = []
    totals = {name: Decimal(0) for name in BILL_SUMMARY_FIELDS}

    for result in results:
        if result.get("provider"):
            providers.append(result["provider"])
        providers.extend(result.get("providers") or [])
        charges.extend(result.get("charges") or [])
        summary = result.get("summary") or {}
        for name in BILL_SUMMARY_FIELDS:
            totals[name] += to_decimal(summary.get(name))

    return {
        "providers": providers,
        "charges": charges,
        "summary": {name: float(total) for name, total in totals.items()},
    }


def first_result(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the first chunk's payload; later chunks are discarded."""
    if len(results) > 1:
        logger.info(f"Keeping first of {len(results)} chunk results, discarding {len(results) - 1}")
    return results[0]


MERGERS: Dict[MergeStrategy, Callable[[List[Dict[str, Any]]], Dict[str, Any]]] = {
    MergeStrategy.RECORDS: merge_medical_records,
    MergeStrategy.BILLS: merge_medical_bills,
    MergeStrategy.FIRST_RESULT: first_result,
}
