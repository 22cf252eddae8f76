"""GitHub webhook ingress: verification, decoding and install dispatch."""

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.context import ServerContext
from cloudnet_repository.errors import NoNewReleaseError, RepositoryError
from cloudnet_repository.models.github import GitHubReleaseEvent
from cloudnet_repository.models.release import ReleaseInfo
from cloudnet_repository.services.archiver import ReleaseArchiver
from cloudnet_repository.signatures import verify_signature

logger = logging.getLogger(__name__)

RELEASE_EVENT = "release"
PUBLISHED_ACTION = "published"


class MalformedPayloadError(ValueError):
    """Raised when a correctly signed body is not a valid event payload."""


@dataclass(frozen=True)
class WebhookDispatch:
    """An accepted release event, ready to be installed."""

    parent: ParentVersion
    release: ReleaseInfo


class WebhookIngress:
    """Turns signed GitHub deliveries into install calls.

    Duplicate deliveries are not filtered here; the archiver rejects a
    release that is already registered.
    """

    def __init__(self, ctx: ServerContext, archiver: ReleaseArchiver) -> None:
        self._ctx = ctx
        self._archiver = archiver

    def verify(self, body: bytes, signature: str | None) -> None:
        """Verify the raw body against the signature header.

        Raises:
            InvalidSignatureError: If verification fails
        """
        verify_signature(self._ctx.config.webhook_secret, body, signature)

    def accept(self, event: str | None, body: bytes) -> WebhookDispatch | None:
        """Decode a verified delivery.

        Returns:
            The dispatch for a published release of a configured parent,
            None for every other event

        Raises:
            MalformedPayloadError: If a release event body cannot be decoded
        """
        if event != RELEASE_EVENT:
            logger.debug("Ignoring %s event", event)
            return None
        try:
            payload = GitHubReleaseEvent.model_validate(json.loads(body))
        except (ValueError, ValidationError) as err:
            raise MalformedPayloadError(str(err)) from err
        if payload.action != PUBLISHED_ACTION:
            logger.debug("Ignoring release %s action", payload.action)
            return None

        release = payload.release.to_release_info()
        parent = self.match_parent(payload.repository.full_name, release.branch)
        if parent is None:
            logger.info(
                "No parent configured for %s (%s), ignoring release %s",
                payload.repository.full_name,
                release.branch,
                release.tag,
            )
            return None
        logger.info("Accepted release %s for %s", release.tag, parent.name)
        return WebhookDispatch(parent=parent, release=release)

    def match_parent(self, repository: str, branch: str | None) -> ParentVersion | None:
        """Return the first configured parent for the repository and branch."""
        for parent in self._ctx.config.parents:
            if parent.repository.lower() != repository.lower():
                continue
            if parent.branch is not None and parent.branch != branch:
                continue
            return parent
        return None

    async def dispatch(self, dispatch: WebhookDispatch) -> None:
        """Install an accepted release; failures are logged, not raised."""
        try:
            await self._archiver.install_latest_release(dispatch.parent, dispatch.release)
        except NoNewReleaseError as err:
            logger.info("%s", err)
        except RepositoryError as err:
            logger.error("Install of %s/%s failed: %s", dispatch.parent.name, dispatch.release.tag, err)
        except Exception:
            logger.exception("Install of %s/%s failed", dispatch.parent.name, dispatch.release.tag)
