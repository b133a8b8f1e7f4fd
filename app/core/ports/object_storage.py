"""Object storage port interface.

Document binaries are addressed by an opaque storage key. Core code depends
only on this abstraction, not on specific implementations like S3.
"""
from abc import ABC, abstractmethod


class ObjectStoragePort(ABC):
    """Abstract interface for document binary storage.

    Implementations: S3ObjectStore
    """

    @abstractmethod
    async def upload(self, key: str, content: bytes, content_type: str) -> None:
        """Store document bytes under key."""
        pass

    @abstractmethod
    async def fetch(self, key: str) -> bytes:
        """Fetch document bytes.

        Raises:
            NotFoundError: If no object exists under key
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the object under key (no error if absent)."""
        pass

    @abstractmethod
    async def signed_url(self, key: str, expires_in: int = 3600) -> str:
        """Create a time-limited download URL.

        Args:
            key: Storage key
            expires_in: Lifetime in seconds

        Returns:
            Presigned URL
        """
        pass
