"""Version registry integration."""

from cloudnet_repository.integrations.version_registry.abc import VersionRegistry
from cloudnet_repository.integrations.version_registry.fake import FakeVersionRegistry

__all__ = ["FakeVersionRegistry", "VersionRegistry"]
