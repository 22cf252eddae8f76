"""Periodic installation of the latest release of every parent."""

import asyncio
import logging

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import NoNewReleaseError, RepositoryError
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.services.archiver import ReleaseArchiver

logger = logging.getLogger(__name__)


class ReleasePoller:
    """Asks each parent's loader for its latest release on a fixed interval."""

    def __init__(
        self, archiver: ReleaseArchiver, parents: tuple[ParentVersion, ...], interval: float
    ) -> None:
        self._archiver = archiver
        self._parents = parents
        self._interval = interval

    async def poll_once(self) -> list[CloudNetVersion]:
        """Run one polling round.

        Returns:
            Versions installed during this round
        """
        installed: list[CloudNetVersion] = []
        for parent in self._parents:
            try:
                installed.append(await self._archiver.install_latest_release(parent))
            except NoNewReleaseError as err:
                logger.debug("%s", err)
            except RepositoryError as err:
                logger.warning("Polling %s failed: %s", parent.name, err)
            except Exception:
                logger.exception("Polling %s failed", parent.name)
        return installed

    async def run(self) -> None:
        """Poll until cancelled."""
        logger.info("Polling %d parents every %.0fs", len(self._parents), self._interval)
        while True:
            await self.poll_once()
            await asyncio.sleep(self._interval)
