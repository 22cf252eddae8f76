"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.context import ServerContext
from cloudnet_repository.integrations.publishers.fake import FakeUpdatePublisher
from cloudnet_repository.integrations.version_loader.fake import FakeVersionFileLoader
from cloudnet_repository.integrations.version_registry.fake import FakeVersionRegistry
from cloudnet_repository.main import create_app
from cloudnet_repository.models.release import ReleaseInfo
from cloudnet_repository.services.archiver import ReleaseArchiver

WEBHOOK_SECRET = "test-secret"


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    return tmp_path / "archive"


@pytest.fixture
def parent() -> ParentVersion:
    return ParentVersion(name="P", repository="CloudNetService/CloudNet-v3", branch="master")


@pytest.fixture
def release() -> ReleaseInfo:
    return ReleaseInfo(release_id="1", tag="v1.0", commit="a" * 40, body="First release")


@pytest.fixture
def fake_registry() -> FakeVersionRegistry:
    return FakeVersionRegistry()


@pytest.fixture
def fake_loader(parent: ParentVersion, release: ReleaseInfo) -> FakeVersionFileLoader:
    return FakeVersionFileLoader(
        releases={parent.name: release},
        files={release.tag: {"a.bin": b"\x00\x01binary", "b.txt": b"hello"}},
    )


@pytest.fixture
def fake_publisher() -> FakeUpdatePublisher:
    return FakeUpdatePublisher()


@pytest.fixture
def server_context(
    archive_dir: Path,
    parent: ParentVersion,
    fake_registry: FakeVersionRegistry,
    fake_loader: FakeVersionFileLoader,
    fake_publisher: FakeUpdatePublisher,
) -> ServerContext:
    """Create a ServerContext with fake implementations."""
    return ServerContext.for_test(
        archive_dir=archive_dir,
        parents=[parent],
        registry=fake_registry,
        loader=fake_loader,
        publishers=[fake_publisher],
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def archiver(server_context: ServerContext) -> ReleaseArchiver:
    return ReleaseArchiver(server_context)


@pytest.fixture
async def client(server_context: ServerContext) -> AsyncIterator[AsyncClient]:
    """Create an async test client bound to the fake context."""
    app = create_app(context=server_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
