"""Best-effort delivery of version events to the publish endpoints."""

import logging
from collections.abc import Sequence
from pathlib import Path

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.integrations.publishers.abc import UpdatePublisher
from cloudnet_repository.models.version import CloudNetVersion

logger = logging.getLogger(__name__)


class PublisherFanout:
    """Ordered collection of publish endpoints.

    Delivery is sequential. A failing endpoint is logged and skipped; it never
    stops delivery to the others and never reaches the caller.
    """

    def __init__(self, publishers: Sequence[UpdatePublisher], config_dir: Path) -> None:
        self._publishers = list(publishers)
        self._config_dir = config_dir
        self._enabled: list[UpdatePublisher] = []

    @property
    def enabled(self) -> list[UpdatePublisher]:
        return self._enabled.copy()

    def initialize(self) -> None:
        """Initialize every endpoint with `<config_dir>/<name>.json`."""
        self._enabled = []
        for publisher in self._publishers:
            config_path = self._config_dir / f"{publisher.name}.json"
            try:
                enabled = publisher.initialize(config_path)
            except OSError as err:
                logger.warning("Failed to initialize %s publisher: %s", publisher.name, err)
                continue
            if enabled:
                logger.info("Successfully initialized %s publisher", publisher.name)
                self._enabled.append(publisher)
            else:
                logger.info(
                    "Publisher %s is disabled, configure %s to enable it", publisher.name, config_path
                )

    async def publish(self, parent: ParentVersion, version: CloudNetVersion) -> list[str]:
        """Announce a registered version to every enabled endpoint.

        Returns:
            Names of the endpoints that failed
        """
        failed: list[str] = []
        for publisher in self._enabled:
            try:
                await publisher.publish(parent, version)
            except Exception:
                logger.warning(
                    "Publisher %s failed for %s/%s",
                    publisher.name,
                    parent.name,
                    version.name,
                    exc_info=True,
                )
                failed.append(publisher.name)
        return failed

    async def shutdown(self) -> None:
        for publisher in self._publishers:
            try:
                await publisher.shutdown()
            except Exception:
                logger.warning("Publisher %s failed to shut down", publisher.name, exc_info=True)
