"""Tests for WebhookIngress."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.context import ServerContext
from cloudnet_repository.errors import InvalidSignatureError
from cloudnet_repository.integrations.version_loader.fake import FakeVersionFileLoader
from cloudnet_repository.integrations.version_registry.fake import FakeVersionRegistry
from cloudnet_repository.models.release import ReleaseInfo
from cloudnet_repository.services.archiver import ReleaseArchiver
from cloudnet_repository.services.webhook import MalformedPayloadError, WebhookDispatch, WebhookIngress
from cloudnet_repository.signatures import compute_signature

WEBHOOK_SECRET = "test-secret"


def release_event(
    *,
    action: str = "published",
    repository: str = "CloudNetService/CloudNet-v3",
    tag: str = "v1.0",
    commitish: str = "master",
) -> dict[str, Any]:
    return {
        "action": action,
        "release": {
            "id": 42,
            "tag_name": tag,
            "name": f"CloudNet {tag}",
            "target_commitish": commitish,
            "html_url": f"https://github.com/{repository}/releases/tag/{tag}",
            "body": "Changes",
            "assets": [
                {"name": "CloudNet.zip", "browser_download_url": "https://example.com/CloudNet.zip"}
            ],
        },
        "repository": {"full_name": repository},
        "sender": {"login": "octocat"},
    }


def encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode()


@pytest.fixture
def ingress(server_context: ServerContext, archiver: ReleaseArchiver) -> WebhookIngress:
    return WebhookIngress(server_context, archiver)


class TestVerify:
    def test_accepts_valid_signature(self, ingress: WebhookIngress) -> None:
        body = encode(release_event())

        ingress.verify(body, compute_signature(WEBHOOK_SECRET, body))

    def test_rejects_tampered_body(self, ingress: WebhookIngress) -> None:
        body = encode(release_event())
        signature = compute_signature(WEBHOOK_SECRET, body)

        with pytest.raises(InvalidSignatureError):
            ingress.verify(body + b" ", signature)

    def test_rejects_missing_signature(self, ingress: WebhookIngress) -> None:
        with pytest.raises(InvalidSignatureError):
            ingress.verify(b"{}", None)

    def test_rejects_everything_without_secret(self, archive_dir: Path) -> None:
        ctx = ServerContext.for_test(archive_dir=archive_dir, webhook_secret=None)
        ingress = WebhookIngress(ctx, ReleaseArchiver(ctx))
        body = b"{}"

        with pytest.raises(InvalidSignatureError):
            ingress.verify(body, compute_signature("anything", body))


class TestAccept:
    def test_published_release_is_dispatched(
        self, ingress: WebhookIngress, parent: ParentVersion
    ) -> None:
        dispatch = ingress.accept("release", encode(release_event()))

        assert dispatch is not None
        assert dispatch.parent == parent
        assert dispatch.release.tag == "v1.0"
        assert dispatch.release.release_id == "42"
        assert dispatch.release.branch == "master"
        assert dispatch.release.assets[0].name == "CloudNet.zip"

    def test_sha_commitish_is_a_commit(self, archive_dir: Path) -> None:
        ctx = ServerContext.for_test(
            archive_dir=archive_dir,
            parents=[ParentVersion(name="P", repository="CloudNetService/CloudNet-v3")],
        )
        ingress = WebhookIngress(ctx, ReleaseArchiver(ctx))
        sha = "0123456789abcdef0123456789abcdef01234567"

        dispatch = ingress.accept("release", encode(release_event(commitish=sha)))

        assert dispatch is not None
        assert dispatch.release.commit == sha
        assert dispatch.release.branch is None

    @pytest.mark.parametrize("event", ["push", "ping", None])
    def test_other_events_are_ignored(self, ingress: WebhookIngress, event: str | None) -> None:
        assert ingress.accept(event, encode(release_event())) is None

    @pytest.mark.parametrize("action", ["created", "edited", "deleted", "prereleased"])
    def test_other_actions_are_ignored(self, ingress: WebhookIngress, action: str) -> None:
        assert ingress.accept("release", encode(release_event(action=action))) is None

    def test_unknown_repository_is_ignored(
        self, ingress: WebhookIngress, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO):
            result = ingress.accept("release", encode(release_event(repository="someone/else")))

        assert result is None
        assert "No parent configured for someone/else" in caplog.text

    def test_other_branch_is_ignored(self, ingress: WebhookIngress) -> None:
        assert ingress.accept("release", encode(release_event(commitish="development"))) is None

    @pytest.mark.parametrize(
        "body",
        [b"not json", b"[]", b'{"action": "published"}', b'{"action": "published", "release": {}}'],
    )
    def test_malformed_release_body(self, ingress: WebhookIngress, body: bytes) -> None:
        with pytest.raises(MalformedPayloadError):
            ingress.accept("release", body)


class TestMatchParent:
    def make_ingress(self, archive_dir: Path, parents: list[ParentVersion]) -> WebhookIngress:
        ctx = ServerContext.for_test(archive_dir=archive_dir, parents=parents)
        return WebhookIngress(ctx, ReleaseArchiver(ctx))

    def test_repository_match_is_case_insensitive(self, archive_dir: Path) -> None:
        ingress = self.make_ingress(archive_dir, [ParentVersion(name="P", repository="Org/Repo")])

        match = ingress.match_parent("org/repo", None)

        assert match is not None
        assert match.name == "P"

    def test_first_match_wins(self, archive_dir: Path) -> None:
        ingress = self.make_ingress(
            archive_dir,
            [
                ParentVersion(name="A", repository="org/repo"),
                ParentVersion(name="B", repository="org/repo"),
            ],
        )

        match = ingress.match_parent("org/repo", "master")

        assert match is not None
        assert match.name == "A"

    def test_branch_selects_between_parents(self, archive_dir: Path) -> None:
        ingress = self.make_ingress(
            archive_dir,
            [
                ParentVersion(name="stable", repository="org/repo", branch="master"),
                ParentVersion(name="dev", repository="org/repo", branch="development"),
            ],
        )

        stable = ingress.match_parent("org/repo", "master")
        dev = ingress.match_parent("org/repo", "development")

        assert stable is not None and stable.name == "stable"
        assert dev is not None and dev.name == "dev"
        assert ingress.match_parent("org/repo", "feature") is None


class TestDispatch:
    async def test_installs_the_release(
        self,
        ingress: WebhookIngress,
        fake_registry: FakeVersionRegistry,
        fake_loader: FakeVersionFileLoader,
    ) -> None:
        dispatch = ingress.accept("release", encode(release_event()))
        assert dispatch is not None

        await ingress.dispatch(dispatch)

        assert fake_loader.latest_calls == []
        assert fake_registry.register_calls == [("P", "v1.0")]

    async def test_duplicate_delivery_installs_once(
        self, ingress: WebhookIngress, fake_registry: FakeVersionRegistry
    ) -> None:
        dispatch = ingress.accept("release", encode(release_event()))
        assert dispatch is not None

        await ingress.dispatch(dispatch)
        await ingress.dispatch(dispatch)

        assert fake_registry.register_calls == [("P", "v1.0")]

    async def test_failures_are_logged_not_raised(
        self, archive_dir: Path, parent: ParentVersion, caplog: pytest.LogCaptureFixture
    ) -> None:
        ctx = ServerContext.for_test(
            archive_dir=archive_dir,
            parents=[parent],
            loader=FakeVersionFileLoader(unavailable=True),
        )
        ingress = WebhookIngress(ctx, ReleaseArchiver(ctx))
        dispatch = WebhookDispatch(parent=parent, release=ReleaseInfo(release_id="1", tag="v1.0"))

        with caplog.at_level(logging.ERROR):
            await ingress.dispatch(dispatch)

        assert "Install of P/v1.0 failed" in caplog.text
