"""Upstream version file loaders."""

from cloudnet_repository.integrations.version_loader.abc import VersionFileLoader
from cloudnet_repository.integrations.version_loader.fake import FakeVersionFileLoader

__all__ = ["FakeVersionFileLoader", "VersionFileLoader"]
