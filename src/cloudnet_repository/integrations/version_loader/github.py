"""GitHub releases loader."""

import logging

import httpx
from pydantic import ValidationError

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import UpstreamUnavailableError
from cloudnet_repository.integrations.version_loader.abc import VersionFileLoader
from cloudnet_repository.integrations.version_loader.download import download_assets, get_json
from cloudnet_repository.mapping import select_assets
from cloudnet_repository.models.github import GitHubRelease
from cloudnet_repository.models.release import LoadedArtifact, ReleaseInfo

logger = logging.getLogger(__name__)


class GitHubReleaseLoader(VersionFileLoader):
    """Loads releases published on GitHub.

    Polling mode asks the REST API for the latest release of the parent's
    repository; event mode downloads the asset URLs carried by the release.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = "https://api.github.com",
        token: str | None = None,
    ) -> None:
        self._client = client
        self._api_url = api_url.rstrip("/")
        self._token = token

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {"Accept": accept}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def latest_release(self, parent: ParentVersion) -> ReleaseInfo:
        url = f"{self._api_url}/repos/{parent.repository}/releases/latest"
        data = await get_json(
            self._client, url, "github", headers=self._headers("application/vnd.github+json")
        )
        try:
            release = GitHubRelease.model_validate(data)
        except ValidationError as err:
            raise UpstreamUnavailableError("github", f"unexpected release payload from {url}") from err
        logger.debug("Latest release of %s is %s", parent.repository, release.tag_name)
        return release.to_release_info()

    async def fetch(self, parent: ParentVersion, release: ReleaseInfo) -> list[LoadedArtifact]:
        selected = select_assets(parent, release.assets)
        return await download_assets(
            self._client,
            parent,
            selected,
            "github",
            headers=self._headers("application/octet-stream"),
        )
