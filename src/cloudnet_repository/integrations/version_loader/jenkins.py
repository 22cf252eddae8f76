"""Jenkins CI loader mirroring the last successful build of a job."""

from typing import Any

import httpx

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import UpstreamUnavailableError
from cloudnet_repository.integrations.version_loader.abc import VersionFileLoader
from cloudnet_repository.integrations.version_loader.download import download_assets, get_json
from cloudnet_repository.mapping import select_assets
from cloudnet_repository.models.release import LoadedArtifact, ReleaseAsset, ReleaseInfo


class JenkinsVersionFileLoader(VersionFileLoader):
    """Loads artifacts from the builds of `<jenkins_url>/job/<job>`.

    Releases found by polling carry their build number, and their files are
    taken from exactly that build. In event mode the release identity comes
    from the webhook, so the files are taken from the last successful build.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _get_build(self, parent: ParentVersion, build: str) -> dict[str, Any]:
        if parent.jenkins_url is None or parent.jenkins_job is None:
            raise UpstreamUnavailableError("jenkins", f"no Jenkins job configured for {parent.name}")
        url = f"{parent.jenkins_url}/job/{parent.jenkins_job}/{build}/api/json"
        payload = await get_json(self._client, url, "jenkins")
        if not isinstance(payload, dict) or "number" not in payload:
            raise UpstreamUnavailableError("jenkins", f"unexpected build payload from {url}")
        return payload

    def _build_assets(self, build: dict[str, Any]) -> tuple[ReleaseAsset, ...]:
        build_url = str(build.get("url", "")).rstrip("/")
        return tuple(
            ReleaseAsset(
                name=artifact["relativePath"],
                url=f"{build_url}/artifact/{artifact['relativePath']}",
            )
            for artifact in build.get("artifacts", [])
            if artifact.get("relativePath")
        )

    async def latest_release(self, parent: ParentVersion) -> ReleaseInfo:
        build = await self._get_build(parent, "lastSuccessfulBuild")
        number = str(build["number"])
        display_name = str(build.get("displayName") or number).lstrip("#").strip()
        return ReleaseInfo(
            release_id=number,
            tag=display_name or number,
            name=build.get("fullDisplayName"),
            commit=_built_revision(build),
            url=build.get("url"),
            assets=self._build_assets(build),
            build=int(build["number"]),
        )

    async def fetch(self, parent: ParentVersion, release: ReleaseInfo) -> list[LoadedArtifact]:
        if release.build is not None:
            build = await self._get_build(parent, str(release.build))
        else:
            build = await self._get_build(parent, "lastSuccessfulBuild")
        selected = select_assets(parent, self._build_assets(build))
        return await download_assets(self._client, parent, selected, "jenkins")


def _built_revision(build: dict[str, Any]) -> str | None:
    for action in build.get("actions", []):
        if not isinstance(action, dict):
            continue
        revision = action.get("lastBuiltRevision")
        if isinstance(revision, dict) and revision.get("SHA1"):
            return str(revision["SHA1"])
    return None
