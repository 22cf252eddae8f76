"""Tests for the Discord and JSON webhook publishers."""

import json
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import EndpointPublishError
from cloudnet_repository.integrations.publishers.abc import load_endpoint_config
from cloudnet_repository.integrations.publishers.discord import DiscordPublisher
from cloudnet_repository.integrations.publishers.webhook import SIGNATURE_HEADER, JsonWebhookPublisher
from cloudnet_repository.models.version import CloudNetVersion, VersionFile
from cloudnet_repository.signatures import compute_signature

PARENT = ParentVersion(name="P", repository="org/repo")


def make_version(notes: str | None = "Bug fixes") -> CloudNetVersion:
    return CloudNetVersion(
        parent="P",
        name="v1.0",
        commit="a" * 40,
        release_id="1",
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        files=(VersionFile(path="CloudNet.zip", size=3, sha256="0" * 64),),
        url="https://github.com/org/repo/releases/tag/v1.0",
        release_notes=notes,
    )


class Recorder:
    """Collects requests seen by an httpx.MockTransport."""

    def __init__(self, status_code: int = 204) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)


def write_config(path: Path, data: dict[str, object]) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadEndpointConfig:
    def test_missing_file_writes_template(self, tmp_path: Path) -> None:
        path = tmp_path / "publishers" / "discord.json"

        result = load_endpoint_config(path, {"webhook_url": ""})

        assert result is None
        assert json.loads(path.read_text(encoding="utf-8")) == {"webhook_url": ""}

    def test_file_values_override_defaults(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "x.json", {"webhook_url": "https://hook"})

        result = load_endpoint_config(path, {"webhook_url": "", "username": "bot"})

        assert result == {"webhook_url": "https://hook", "username": "bot"}

    @pytest.mark.parametrize("content", ["not json", "[1, 2]"])
    def test_unreadable_file_disables_endpoint(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "x.json"
        path.write_text(content, encoding="utf-8")

        assert load_endpoint_config(path, {}) is None


class TestDiscordPublisher:
    def test_disabled_without_webhook_url(self, tmp_path: Path) -> None:
        publisher = DiscordPublisher()

        assert not publisher.initialize(tmp_path / "discord.json")
        assert not publisher.initialize(write_config(tmp_path / "blank.json", {"webhook_url": " "}))

    async def test_publish_posts_embed(self, tmp_path: Path) -> None:
        recorder = Recorder()
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            publisher = DiscordPublisher(client=client)
            config = write_config(
                tmp_path / "discord.json",
                {"webhook_url": "https://discord.test/hook", "download_base_url": "https://repo/versions/"},
            )
            assert publisher.initialize(config)

            await publisher.publish(PARENT, make_version())

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert str(request.url) == "https://discord.test/hook"
        payload = json.loads(request.content)
        embed = payload["embeds"][0]
        assert payload["username"] == "CloudNet Repository"
        assert embed["title"] == "P v1.0 released"
        assert embed["description"] == "Bug fixes"
        assert embed["url"] == "https://github.com/org/repo/releases/tag/v1.0"
        assert embed["fields"][0] == {"name": "Commit", "value": "`aaaaaaaaaa`", "inline": True}
        assert "[CloudNet.zip](https://repo/versions/v1.0/CloudNet.zip)" in embed["fields"][1]["value"]

    def test_long_release_notes_are_truncated(self) -> None:
        publisher = DiscordPublisher()

        payload = publisher.build_payload(PARENT, make_version(notes="x" * 5000))

        description = payload["embeds"][0]["description"]
        assert len(description) == 2000
        assert description.endswith("...")

    async def test_http_error_is_wrapped(self, tmp_path: Path) -> None:
        recorder = Recorder(status_code=500)
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            publisher = DiscordPublisher(client=client)
            publisher.initialize(write_config(tmp_path / "d.json", {"webhook_url": "https://discord.test/h"}))

            with pytest.raises(EndpointPublishError, match="discord"):
                await publisher.publish(PARENT, make_version())

    async def test_shutdown_keeps_injected_client_open(self) -> None:
        async with httpx.AsyncClient(transport=httpx.MockTransport(Recorder())) as client:
            publisher = DiscordPublisher(client=client)
            await publisher.shutdown()

            assert not client.is_closed


class TestJsonWebhookPublisher:
    def test_disabled_without_urls(self, tmp_path: Path) -> None:
        publisher = JsonWebhookPublisher()

        assert not publisher.initialize(tmp_path / "webhook.json")
        assert not publisher.initialize(write_config(tmp_path / "w.json", {"urls": []}))
        assert not publisher.initialize(write_config(tmp_path / "bad.json", {"urls": "https://x"}))

    async def test_signed_post_to_every_url(self, tmp_path: Path) -> None:
        recorder = Recorder(status_code=200)
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            publisher = JsonWebhookPublisher(client=client)
            config = write_config(
                tmp_path / "webhook.json",
                {"urls": ["https://a.test/hook", "https://b.test/hook"], "secret": "s3cret"},
            )
            assert publisher.initialize(config)

            await publisher.publish(PARENT, make_version())

        assert [str(request.url) for request in recorder.requests] == [
            "https://a.test/hook",
            "https://b.test/hook",
        ]
        request = recorder.requests[0]
        body = json.loads(request.content)
        assert body["event"] == "version_published"
        assert body["version"]["name"] == "v1.0"
        assert request.headers[SIGNATURE_HEADER] == compute_signature("s3cret", request.content)

    async def test_unsigned_without_secret(self, tmp_path: Path) -> None:
        recorder = Recorder(status_code=200)
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            publisher = JsonWebhookPublisher(client=client)
            publisher.initialize(write_config(tmp_path / "w.json", {"urls": ["https://a.test/hook"]}))

            await publisher.publish(PARENT, make_version())

        assert SIGNATURE_HEADER not in recorder.requests[0].headers

    async def test_failures_are_aggregated_after_trying_all_urls(self, tmp_path: Path) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.host)
            if request.url.host == "down.test":
                return httpx.Response(502)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            publisher = JsonWebhookPublisher(client=client)
            publisher.initialize(
                write_config(
                    tmp_path / "w.json", {"urls": ["https://down.test/h", "https://up.test/h"]}
                )
            )

            with pytest.raises(EndpointPublishError, match="down.test"):
                await publisher.publish(PARENT, make_version())

        assert seen == ["down.test", "up.test"]
