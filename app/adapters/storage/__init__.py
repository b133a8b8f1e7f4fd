"""Storage adapters."""
from app.adapters.storage.memory_repository import InMemoryCaseRepository
from app.adapters.storage.redis_repository import RedisCaseRepository
from app.adapters.storage.s3_object_store import S3ObjectStore

__all__ = ["InMemoryCaseRepository", "RedisCaseRepository", "S3ObjectStore"]
