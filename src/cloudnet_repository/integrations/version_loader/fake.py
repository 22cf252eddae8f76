"""Fake in-memory version file loader for testing."""

import asyncio

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import UpstreamUnavailableError
from cloudnet_repository.integrations.version_loader.abc import VersionFileLoader
from cloudnet_repository.models.release import LoadedArtifact, ReleaseInfo


class FakeVersionFileLoader(VersionFileLoader):
    """In-memory fake implementation for testing.

    Artifacts are returned as configured, already carrying their mapped names.
    This class has NO public setup methods.
    """

    def __init__(
        self,
        *,
        releases: dict[str, ReleaseInfo] | None = None,
        files: dict[str, dict[str, bytes]] | None = None,
        extract: frozenset[str] = frozenset(),
        unavailable: bool = False,
    ) -> None:
        """Create FakeVersionFileLoader with pre-configured state.

        Args:
            releases: Mapping of parent name -> latest ReleaseInfo
            files: Mapping of release tag -> (artifact name -> content)
            extract: Artifact names to unpack as zip archives
            unavailable: If True, every call raises UpstreamUnavailableError
        """
        self._releases = releases or {}
        self._files = files or {}
        self._extract = extract
        self._unavailable = unavailable
        self._latest_calls: list[str] = []
        self._fetch_calls: list[tuple[str, str]] = []

    @property
    def latest_calls(self) -> list[str]:
        """Parent names passed to latest_release(), for test assertions."""
        return self._latest_calls.copy()

    @property
    def fetch_calls(self) -> list[tuple[str, str]]:
        """(parent name, release tag) pairs passed to fetch(), for test assertions."""
        return self._fetch_calls.copy()

    async def latest_release(self, parent: ParentVersion) -> ReleaseInfo:
        self._latest_calls.append(parent.name)
        if self._unavailable:
            raise UpstreamUnavailableError("fake", "simulated outage")
        if parent.name not in self._releases:
            raise UpstreamUnavailableError("fake", f"no release configured for {parent.name}")
        return self._releases[parent.name]

    async def fetch(self, parent: ParentVersion, release: ReleaseInfo) -> list[LoadedArtifact]:
        self._fetch_calls.append((parent.name, release.tag))
        # Yield once so concurrent installs interleave like real downloads
        await asyncio.sleep(0)
        if self._unavailable:
            raise UpstreamUnavailableError("fake", "simulated outage")
        files = self._files.get(release.tag, {})
        return [
            LoadedArtifact(name=name, source=name, data=data, extract=name in self._extract)
            for name, data in files.items()
        ]
