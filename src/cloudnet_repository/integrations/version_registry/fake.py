"""Fake in-memory version registry for testing."""

import asyncio
from collections import defaultdict

from cloudnet_repository.errors import VersionAlreadyExistsError
from cloudnet_repository.integrations.version_registry.abc import VersionRegistry
from cloudnet_repository.models.version import CloudNetVersion


class FakeVersionRegistry(VersionRegistry):
    """In-memory fake implementation for testing.

    State is provided via constructor or captured during execution.
    """

    def __init__(
        self,
        versions: list[CloudNetVersion] | None = None,
        *,
        fail_on_register: bool = False,
    ) -> None:
        """Create FakeVersionRegistry.

        Args:
            versions: Optional initial versions, in registration order
            fail_on_register: If True, register() raises OSError without storing
        """
        self._order: dict[str, list[str]] = {}
        self._versions: dict[tuple[str, str], CloudNetVersion] = {}
        self._fail_on_register = fail_on_register
        self._register_calls: list[tuple[str, str]] = []
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        for version in versions or []:
            self._store(version)

    @property
    def register_calls(self) -> list[tuple[str, str]]:
        """(parent, name) of every register() call, including rejected ones."""
        return self._register_calls.copy()

    def _store(self, version: CloudNetVersion) -> None:
        key = (version.parent, version.name)
        if key in self._versions:
            raise VersionAlreadyExistsError(version.parent, version.name)
        self._versions[key] = version
        self._order.setdefault(version.parent, []).append(version.name)

    async def register(self, version: CloudNetVersion) -> None:
        self._register_calls.append((version.parent, version.name))
        if self._fail_on_register:
            raise OSError("Simulated registry failure")
        self._store(version)

    async def get(self, parent: str, name: str) -> CloudNetVersion | None:
        return self._versions.get((parent, name))

    async def latest(self, parent: str) -> CloudNetVersion | None:
        names = self._order.get(parent)
        if not names:
            return None
        return self._versions[(parent, names[-1])]

    async def list_versions(self, parent: str) -> list[CloudNetVersion]:
        return [self._versions[(parent, name)] for name in self._order.get(parent, [])]

    async def list_all(self) -> list[CloudNetVersion]:
        return [
            self._versions[(parent, name)] for parent, names in self._order.items() for name in names
        ]

    def install_lock(self, parent: str) -> asyncio.Lock:
        return self._locks[parent]
