"""Data models for the release repository."""

from cloudnet_repository.models.release import LoadedArtifact, ReleaseAsset, ReleaseInfo
from cloudnet_repository.models.version import CloudNetVersion, VersionFile

__all__ = ["CloudNetVersion", "LoadedArtifact", "ReleaseAsset", "ReleaseInfo", "VersionFile"]
