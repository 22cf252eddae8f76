"""Fake publish endpoint for testing."""

from pathlib import Path

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import EndpointPublishError
from cloudnet_repository.integrations.publishers.abc import UpdatePublisher
from cloudnet_repository.models.version import CloudNetVersion


class FakeUpdatePublisher(UpdatePublisher):
    """In-memory fake implementation that records published versions.

    All state is provided via constructor using keyword arguments.
    This class has NO public setup methods.
    """

    def __init__(self, name: str = "fake", *, enabled: bool = True, should_fail: bool = False) -> None:
        """Create FakeUpdatePublisher.

        Args:
            name: Endpoint name, also used for its config file name
            enabled: Value returned from initialize()
            should_fail: If True, publish() raises EndpointPublishError
        """
        self.name = name
        self._enabled = enabled
        self._should_fail = should_fail
        self._config_paths: list[Path] = []
        self._published: list[tuple[str, str]] = []
        self._shutdown = False

    @property
    def config_paths(self) -> list[Path]:
        """Paths passed to initialize(), for test assertions."""
        return self._config_paths.copy()

    @property
    def published(self) -> list[tuple[str, str]]:
        """(parent, version name) of every publish() call, for test assertions."""
        return self._published.copy()

    @property
    def is_shut_down(self) -> bool:
        return self._shutdown

    def initialize(self, config_path: Path) -> bool:
        self._config_paths.append(config_path)
        return self._enabled

    async def publish(self, parent: ParentVersion, version: CloudNetVersion) -> None:
        self._published.append((parent.name, version.name))
        if self._should_fail:
            raise EndpointPublishError(self.name, "Simulated publish failure")

    async def shutdown(self) -> None:
        self._shutdown = True
