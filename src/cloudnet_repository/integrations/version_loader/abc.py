"""Abstract base class for upstream version file loaders."""

from abc import ABC, abstractmethod

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.models.release import LoadedArtifact, ReleaseInfo


class VersionFileLoader(ABC):
    """Fetches the build artifacts of a parent version from an upstream source.

    Implementations include:
    - GitHubReleaseLoader: GitHub releases and their assets
    - JenkinsVersionFileLoader: last successful build of a Jenkins job
    - FakeVersionFileLoader: In-memory for testing
    """

    @abstractmethod
    async def latest_release(self, parent: ParentVersion) -> ReleaseInfo:
        """Resolve the newest upstream release of a parent (polling mode).

        Args:
            parent: The parent version to query

        Returns:
            Identity of the newest release

        Raises:
            UpstreamUnavailableError: If the upstream cannot be reached
        """
        ...

    @abstractmethod
    async def fetch(self, parent: ParentVersion, release: ReleaseInfo) -> list[LoadedArtifact]:
        """Download the mapped artifacts of a release.

        The parent's mapping table selects and renames the artifacts;
        unmapped artifacts are dropped without being downloaded.

        Args:
            parent: The parent version the release belongs to
            release: Release identity, from latest_release() or a webhook event

        Returns:
            Artifacts in upstream order, with mapped names

        Raises:
            UpstreamUnavailableError: If the upstream cannot be reached
            ArtifactMissingError: If an expected artifact is absent
        """
        ...
