"""
Object storage interface.

Objects are addressed by a path inside one bucket. Implementations raise
``StorageError`` for every failure so callers can decide whether it is fatal.
"""

from abc import ABC, abstractmethod
from typing import List


class ObjectStorage(ABC):
    """Path-addressed blob store used for uploaded documents."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Store ``data`` at ``path``. Never overwrites an existing object.

        Returns:
            The stored path
        """
        pass

    @abstractmethod
    async def remove(self, paths: List[str]) -> None:
        """Delete objects; paths that do not exist are ignored."""
        pass

    @abstractmethod
    async def create_signed_url(self, path: str, expires_in: int) -> str:
        """Time-limited download URL for one object."""
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name"""
        pass

    async def close(self) -> None:
        """Release network resources, if any."""
        return None
