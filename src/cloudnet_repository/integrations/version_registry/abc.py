"""Abstract base class for the version registry."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any

from cloudnet_repository.models.version import CloudNetVersion


class VersionRegistry(ABC):
    """Append-only ledger of installed versions, partitioned by parent.

    Implementations include:
    - FakeVersionRegistry: In-memory for testing
    - RedisVersionRegistry: Redis-backed for production

    "Latest" is always the most recently registered version of a parent,
    independent of the timestamps stored in the records.
    """

    @abstractmethod
    async def register(self, version: CloudNetVersion) -> None:
        """Record a newly installed version.

        Args:
            version: The version to register

        Raises:
            VersionAlreadyExistsError: If (parent, name) is already registered
        """
        ...

    @abstractmethod
    async def get(self, parent: str, name: str) -> CloudNetVersion | None:
        """Get a version by parent and name.

        Returns:
            The version if registered, None otherwise
        """
        ...

    @abstractmethod
    async def latest(self, parent: str) -> CloudNetVersion | None:
        """Get the most recently registered version of a parent.

        Returns:
            The version, or None if the parent has no registered versions
        """
        ...

    @abstractmethod
    async def list_versions(self, parent: str) -> list[CloudNetVersion]:
        """List the versions of a parent in registration order."""
        ...

    @abstractmethod
    async def list_all(self) -> list[CloudNetVersion]:
        """List every registered version, grouped by parent in registration order."""
        ...

    @abstractmethod
    def install_lock(self, parent: str) -> AbstractAsyncContextManager[Any]:
        """Lock serializing installs of one parent.

        Held by every archiver sharing this registry, including archivers
        running in other processes.
        """
        ...

    async def close(self) -> None:
        """Release backend connections."""
        return None
