"""
Medical event deduplication.

Events from overlapping chunks or repeated pages describe the same
encounter. Identity is operational: (date of service, provider name,
facility name), with missing names normalized to "unknown".
"""
import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

# Lists of objects unioned by one identifying field
KEYED_LIST_FIELDS = {
    "diagnoses": "diagnosis_name",
    "medications": "medication_name",
}

# Lists of strings unioned by exact value
STRING_LIST_FIELDS = (
    "treatments_procedures",
    "key_quotes",
    "red_flags",
    "causation_statements",
)

# Text fields where the first non-empty value wins
SCALAR_TEXT_FIELDS = (
    "chief_complaint",
    "subjective_findings",
    "objective_findings",
    "assessment",
    "plan",
    "prognosis",
)


def normalize_list_fields(event: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce list fields of a raw event to lists.

    A lone object is wrapped, a bare string becomes a one-item list (a
    keyed entry for object lists) and any other scalar becomes [].
    Returns a new dict.
    """
    normalized = dict(event)
    for list_field, id_field in KEYED_LIST_FIELDS.items():
        if list_field in normalized:
            normalized[list_field] = _coerce_list(normalized[list_field], id_field)
    for list_field in STRING_LIST_FIELDS:
        if list_field in normalized:
            normalized[list_field] = _coerce_list(normalized[list_field], None)
    return normalized


def _coerce_list(value: Any, id_field: Optional[str]) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    if isinstance(value, str) and value.strip():
        return [{id_field: value.strip()}] if id_field else [value.strip()]
    return []


def event_key(event: Dict[str, Any]) -> Tuple[str, str, str]:
    """Dedup identity of a raw event."""
    return (
        str(event.get("date_of_service") or ""),
        event.get("provider_name") or UNKNOWN,
        event.get("facility_name") or UNKNOWN,
    )


def _item_identity(item: Any, field_name: str) -> Any:
    return item.get(field_name) if isinstance(item, dict) else item


def merge_events(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Fold a colliding event into the one seen first.

    Returns a new dict; neither input is modified.
    """
    merged = copy.deepcopy(existing)

    for list_field, id_field in KEYED_LIST_FIELDS.items():
        items = list(merged.get(list_field) or [])
        seen = [_item_identity(i, id_field) for i in items]
        for item in incoming.get(list_field) or []:
            identity = _item_identity(item, id_field)
            if identity not in seen:
                seen.append(identity)
                items.append(copy.deepcopy(item))
        if items or list_field in merged:
            merged[list_field] = items

    for list_field in STRING_LIST_FIELDS:
        values = list(merged.get(list_field) or [])
        for value in incoming.get(list_field) or []:
            if value not in values:
                values.append(value)
        if values or list_field in merged:
            merged[list_field] = values

    for text_field in SCALAR_TEXT_FIELDS:
        if not merged.get(text_field) and incoming.get(text_field):
            merged[text_field] = incoming[text_field]

    return merged


def deduplicate_events(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Collapse events sharing a dedup key, keeping first-occurrence order.

    Args:
        events: Raw event dicts in extraction order

    Returns:
        One event per key; colliding events are merged into the first
    """
    by_key: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
    for event in events:
        key = event_key(event)
        if key in by_key:
            by_key[key] = merge_events(by_key[key], event)
        else:
            by_key[key] = event

    if len(by_key) < len(events):
        logger.info(f"Deduplicated {len(events)} events to {len(by_key)}")
    # dicts keep insertion order, so first occurrences lead
    return list(by_key.values())
