"""Storage port interface.

Defines the contract for persisting cases, documents, medical events and
chronologies. Core code depends only on this abstraction, not on specific
implementations like Redis.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from app.core.models.case import Case
from app.core.models.chronology import MedicalChronology
from app.core.models.document import Document
from app.core.models.medical_event import MedicalEvent


class CaseRepositoryPort(ABC):
    """Abstract interface for case data persistence.

    Implementations: InMemoryCaseRepository, RedisCaseRepository
    """

    # Documents

    @abstractmethod
    async def save_document(self, document: Document) -> None:
        """Insert or replace a document record."""
        pass

    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[Document]:
        """Retrieve a document.

        Returns:
            Document or None if not found
        """
        pass

    @abstractmethod
    async def list_documents(self, case_id: str) -> List[Document]:
        """All documents belonging to a case, oldest first."""
        pass

    # Cases

    @abstractmethod
    async def save_case(self, case: Case) -> None:
        """Insert or replace a case record."""
        pass

    @abstractmethod
    async def get_case(self, case_id: str) -> Optional[Case]:
        """Retrieve a case.

        Returns:
            Case or None if not found
        """
        pass

    # Medical events

    @abstractmethod
    async def save_medical_event(self, event: MedicalEvent) -> None:
        """Insert or replace a medical event."""
        pass

    @abstractmethod
    async def get_medical_event(self, event_id: str) -> Optional[MedicalEvent]:
        pass

    @abstractmethod
    async def list_medical_events(self, case_id: str) -> List[MedicalEvent]:
        """All medical events of a case ordered by date of service ascending."""
        pass

    @abstractmethod
    async def delete_medical_event(self, event_id: str) -> bool:
        """Delete one event.

        Returns:
            True if an event was deleted
        """
        pass

    @abstractmethod
    async def delete_events_for_document(self, document_id: str) -> int:
        """Delete every event extracted from a document.

        Returns:
            Number of events deleted
        """
        pass

    # Chronologies

    @abstractmethod
    async def save_chronology(self, chronology: MedicalChronology) -> None:
        """Upsert the case's chronology, replacing any previous one entirely."""
        pass

    @abstractmethod
    async def get_chronology(self, case_id: str) -> Optional[MedicalChronology]:
        pass
