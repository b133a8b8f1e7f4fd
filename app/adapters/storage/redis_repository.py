"""Redis implementation of CaseRepositoryPort.

Each record is a JSON blob under a typed key. Set keys index documents and
events by case, and events by source document:

    {prefix}document:{id}          {prefix}case:{id}:documents
    {prefix}case:{id}              {prefix}case:{id}:events
    {prefix}event:{id}             {prefix}document:{id}:events
    {prefix}chronology:{case_id}
"""
import json
import logging
from typing import Any, Iterable, List, Optional

from redis.exceptions import RedisError

from app.core.builders.date_utils import date_sort_key
from app.core.exceptions import StorageError
from app.core.models.case import Case
from app.core.models.chronology import MedicalChronology
from app.core.models.document import Document
from app.core.models.medical_event import MedicalEvent
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)


def _decode_member(member: Any) -> str:
    return member.decode("utf-8") if isinstance(member, bytes) else member


class RedisCaseRepository(CaseRepositoryPort):
    """Redis implementation of CaseRepositoryPort.

    Args:
        redis_client: Configured redis.Redis instance
        key_prefix: Prefix for all keys (default: "demand:")
        ttl_seconds: Optional time-to-live for every record (default: no expiry)
    """

    def __init__(
        self,
        redis_client,
        key_prefix: str = "demand:",
        ttl_seconds: Optional[int] = None,
    ):
        self._redis = redis_client
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def _key(self, *parts: str) -> str:
        """Build Redis key from parts."""
        return self._prefix + ":".join(parts)

    def _set_json(self, key: str, data: dict) -> None:
        try:
            self._redis.set(key, json.dumps(data), ex=self._ttl)
        except RedisError as e:
            raise StorageError(f"Redis write failed for {key}: {e}") from e

    def _get_json(self, key: str) -> Optional[dict]:
        try:
            raw = self._redis.get(key)
        except RedisError as e:
            raise StorageError(f"Redis read failed for {key}: {e}") from e
        if raw is None:
            return None
        return json.loads(raw)

    def _members(self, key: str) -> List[str]:
        try:
            return sorted(_decode_member(m) for m in self._redis.smembers(key))
        except RedisError as e:
            raise StorageError(f"Redis read failed for {key}: {e}") from e

    def _index(self, key: str, member: str) -> None:
        try:
            self._redis.sadd(key, member)
        except RedisError as e:
            raise StorageError(f"Redis index update failed for {key}: {e}") from e

    def _load_many(self, kind: str, ids: Iterable[str]) -> List[dict]:
        records = []
        for record_id in ids:
            data = self._get_json(self._key(kind, record_id))
            if data is not None:
                records.append(data)
        return records

    # Documents

    async def save_document(self, document: Document) -> None:
        self._set_json(self._key("document", document.id), document.to_dict())
        self._index(self._key("case", document.case_id, "documents"), document.id)

    async def get_document(self, document_id: str) -> Optional[Document]:
        data = self._get_json(self._key("document", document_id))
        return Document.from_dict(data) if data else None

    async def list_documents(self, case_id: str) -> List[Document]:
        ids = self._members(self._key("case", case_id, "documents"))
        documents = [Document.from_dict(d) for d in self._load_many("document", ids)]
        return sorted(documents, key=lambda d: d.created_at)

    # Cases

    async def save_case(self, case: Case) -> None:
        self._set_json(self._key("case", case.id), case.to_dict())

    async def get_case(self, case_id: str) -> Optional[Case]:
        data = self._get_json(self._key("case", case_id))
        return Case.from_dict(data) if data else None

    # Medical events

    async def save_medical_event(self, event: MedicalEvent) -> None:
        self._set_json(self._key("event", event.id), event.to_dict())
        self._index(self._key("case", event.case_id, "events"), event.id)
        self._index(self._key("document", event.document_id, "events"), event.id)

    async def get_medical_event(self, event_id: str) -> Optional[MedicalEvent]:
        data = self._get_json(self._key("event", event_id))
        return MedicalEvent.from_dict(data) if data else None

    async def list_medical_events(self, case_id: str) -> List[MedicalEvent]:
        ids = self._members(self._key("case", case_id, "events"))
        records = self._load_many("event", ids)
        records.sort(key=lambda e: (date_sort_key(e["dateOfService"]), e.get("createdAt") or ""))
        return [MedicalEvent.from_dict(e) for e in records]

    async def delete_medical_event(self, event_id: str) -> bool:
        data = self._get_json(self._key("event", event_id))
        if data is None:
            return False
        try:
            pipe = self._redis.pipeline()
            pipe.delete(self._key("event", event_id))
            pipe.srem(self._key("case", data["caseId"], "events"), event_id)
            pipe.srem(self._key("document", data["documentId"], "events"), event_id)
            pipe.execute()
        except RedisError as e:
            raise StorageError(f"Redis delete failed for event {event_id}: {e}") from e
        return True

    async def delete_events_for_document(self, document_id: str) -> int:
        ids = self._members(self._key("document", document_id, "events"))
        deleted = 0
        for event_id in ids:
            if await self.delete_medical_event(event_id):
                deleted += 1
        logger.info(f"Deleted {deleted} medical events for document {document_id}")
        return deleted

    # Chronologies

    async def save_chronology(self, chronology: MedicalChronology) -> None:
        self._set_json(self._key("chronology", chronology.case_id), chronology.to_dict())

    async def get_chronology(self, case_id: str) -> Optional[MedicalChronology]:
        data = self._get_json(self._key("chronology", case_id))
        return MedicalChronology.from_dict(data) if data else None
