"""In-memory implementation of CaseRepositoryPort.

Records are stored as their serialized dicts so callers never share
mutable objects with the store. Used by tests and single-process runs.
"""
from typing import Dict, List, Optional

from app.core.builders.date_utils import date_sort_key
from app.core.models.case import Case
from app.core.models.chronology import MedicalChronology
from app.core.models.document import Document
from app.core.models.medical_event import MedicalEvent
from app.core.ports.storage import CaseRepositoryPort


class InMemoryCaseRepository(CaseRepositoryPort):
    """Dict-backed case repository."""

    def __init__(self):
        self._documents: Dict[str, dict] = {}
        self._cases: Dict[str, dict] = {}
        self._events: Dict[str, dict] = {}
        self._chronologies: Dict[str, dict] = {}

    async def save_document(self, document: Document) -> None:
        self._documents[document.id] = document.to_dict()

    async def get_document(self, document_id: str) -> Optional[Document]:
        data = self._documents.get(document_id)
        return Document.from_dict(data) if data else None

    async def list_documents(self, case_id: str) -> List[Document]:
        documents = [Document.from_dict(d) for d in self._documents.values() if d["caseId"] == case_id]
        return sorted(documents, key=lambda d: d.created_at)

    async def save_case(self, case: Case) -> None:
        self._cases[case.id] = case.to_dict()

    async def get_case(self, case_id: str) -> Optional[Case]:
        data = self._cases.get(case_id)
        return Case.from_dict(data) if data else None

    async def save_medical_event(self, event: MedicalEvent) -> None:
        self._events[event.id] = event.to_dict()

    async def get_medical_event(self, event_id: str) -> Optional[MedicalEvent]:
        data = self._events.get(event_id)
        return MedicalEvent.from_dict(data) if data else None

    async def list_medical_events(self, case_id: str) -> List[MedicalEvent]:
        events = [e for e in self._events.values() if e["caseId"] == case_id]
        events.sort(key=lambda e: date_sort_key(e["dateOfService"]))
        return [MedicalEvent.from_dict(e) for e in events]

    async def delete_medical_event(self, event_id: str) -> bool:
        return self._events.pop(event_id, None) is not None

    async def delete_events_for_document(self, document_id: str) -> int:
        doomed = [event_id for event_id, e in self._events.items() if e["documentId"] == document_id]
        for event_id in doomed:
            del self._events[event_id]
        return len(doomed)

    async def save_chronology(self, chronology: MedicalChronology) -> None:
        self._chronologies[chronology.case_id] = chronology.to_dict()

    async def get_chronology(self, case_id: str) -> Optional[MedicalChronology]:
        data = self._chronologies.get(case_id)
        return MedicalChronology.from_dict(data) if data else None
