"""Server context for dependency injection."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import httpx

from cloudnet_repository.config import ParentVersion, RepositoryConfig
from cloudnet_repository.integrations.publishers.abc import UpdatePublisher
from cloudnet_repository.integrations.publishers.discord import DiscordPublisher
from cloudnet_repository.integrations.publishers.fake import FakeUpdatePublisher
from cloudnet_repository.integrations.publishers.webhook import JsonWebhookPublisher
from cloudnet_repository.integrations.time.abc import Time
from cloudnet_repository.integrations.time.fake import FakeTime
from cloudnet_repository.integrations.time.real import RealTime
from cloudnet_repository.integrations.version_loader.abc import VersionFileLoader
from cloudnet_repository.integrations.version_loader.fake import FakeVersionFileLoader
from cloudnet_repository.integrations.version_loader.github import GitHubReleaseLoader
from cloudnet_repository.integrations.version_loader.jenkins import JenkinsVersionFileLoader
from cloudnet_repository.integrations.version_registry.abc import VersionRegistry
from cloudnet_repository.integrations.version_registry.fake import FakeVersionRegistry
from cloudnet_repository.integrations.version_registry.real import RedisVersionRegistry
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.services.publisher_fanout import PublisherFanout

USER_AGENT = "cloudnet-repository"


@dataclass(frozen=True)
class ServerContext:
    """Server context containing all dependencies.

    Built once at startup and passed to every service. Use create_context()
    for production and for_test() for testing scenarios.
    """

    config: RepositoryConfig
    registry: VersionRegistry
    loaders: Mapping[str, VersionFileLoader]
    publishers: PublisherFanout
    time: Time
    http_client: httpx.AsyncClient | None = None

    def loader_for(self, parent: ParentVersion) -> VersionFileLoader:
        if parent.loader not in self.loaders:
            raise ValueError(f"No loader {parent.loader!r} available for parent {parent.name}")
        return self.loaders[parent.loader]

    async def aclose(self) -> None:
        await self.publishers.shutdown()
        await self.registry.close()
        if self.http_client is not None:
            await self.http_client.aclose()

    @classmethod
    def for_test(
        cls,
        *,
        archive_dir: Path,
        parents: Sequence[ParentVersion] | None = None,
        config: RepositoryConfig | None = None,
        registry: VersionRegistry | None = None,
        loader: VersionFileLoader | None = None,
        publishers: Sequence[UpdatePublisher] | None = None,
        versions: list[CloudNetVersion] | None = None,
        time: Time | None = None,
        webhook_secret: str | None = "test-secret",
    ) -> "ServerContext":
        """Create a test context with fake implementations.

        Args:
            archive_dir: Archive root, usually a pytest tmp_path
            parents: Parent versions; defaults to a single github parent "P"
            config: Full config, overrides parents/archive_dir/webhook_secret
            registry: Registry to use instead of a FakeVersionRegistry
            loader: Loader registered under every loader name
            publishers: Publish endpoints; defaults to one FakeUpdatePublisher
            versions: Pre-registered versions for the FakeVersionRegistry
            time: Clock; defaults to FakeTime
            webhook_secret: Shared webhook secret

        Returns:
            ServerContext with fake implementations and initialized publishers
        """
        if config is None:
            config = RepositoryConfig(
                parents=tuple(parents or [ParentVersion(name="P", repository="owner/repo")]),
                archive_dir=archive_dir,
                publishers_dir=archive_dir.parent / "publishers",
                webhook_secret=webhook_secret,
            )
        fake_loader = loader or FakeVersionFileLoader()
        fanout = PublisherFanout(
            publishers if publishers is not None else [FakeUpdatePublisher()],
            config.publishers_dir,
        )
        fanout.initialize()
        return cls(
            config=config,
            registry=registry or FakeVersionRegistry(versions),
            loaders={"github": fake_loader, "jenkins": fake_loader},
            publishers=fanout,
            time=time or FakeTime(),
        )


def create_context(config: RepositoryConfig) -> ServerContext:
    """Create the production context with real implementations.

    Publishers are initialized here, so their config files are read once.
    """
    client = httpx.AsyncClient(
        timeout=config.http_timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )
    publishers = PublisherFanout(
        [DiscordPublisher(), JsonWebhookPublisher()],
        config.publishers_dir,
    )
    publishers.initialize()
    return ServerContext(
        config=config,
        registry=RedisVersionRegistry(config.redis_url),
        loaders={
            "github": GitHubReleaseLoader(client, config.github_api_url, config.github_token),
            "jenkins": JenkinsVersionFileLoader(client),
        },
        publishers=publishers,
        time=RealTime(),
        http_client=client,
    )
