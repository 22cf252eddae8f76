"""Abstract base class for publish endpoints."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.models.version import CloudNetVersion

logger = logging.getLogger(__name__)


class UpdatePublisher(ABC):
    """External channel notified after a version has been registered.

    Implementations include:
    - DiscordPublisher: Discord webhook message
    - JsonWebhookPublisher: signed JSON POST to arbitrary URLs
    - FakeUpdatePublisher: In-memory for testing
    """

    name: str

    @abstractmethod
    def initialize(self, config_path: Path) -> bool:
        """Load endpoint configuration.

        Args:
            config_path: Path of this endpoint's JSON config file

        Returns:
            True if the endpoint is configured and should receive events
        """
        ...

    @abstractmethod
    async def publish(self, parent: ParentVersion, version: CloudNetVersion) -> None:
        """Announce a newly installed version.

        Raises:
            EndpointPublishError: If delivery fails
        """
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Release resources held by the endpoint."""
        ...


def load_endpoint_config(config_path: Path, defaults: dict[str, Any]) -> dict[str, Any] | None:
    """Read an endpoint's JSON config, writing a template on first start.

    Returns:
        The parsed config, or None if the file was missing (a template with
        the defaults is written so an operator can fill it in) or unreadable
    """
    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(defaults, indent=2) + "\n", encoding="utf-8")
        logger.info("Wrote default publisher config to %s", config_path)
        return None
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        logger.warning("Cannot read publisher config %s: %s", config_path, err)
        return None
    if not isinstance(data, dict):
        logger.warning("Publisher config %s is not a JSON object", config_path)
        return None
    return {**defaults, **data}
