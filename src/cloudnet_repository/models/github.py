"""GitHub API and webhook payload models."""

from pydantic import BaseModel, ConfigDict, Field

from cloudnet_repository.models.release import ReleaseAsset, ReleaseInfo


class GitHubAsset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    browser_download_url: str


class GitHubRelease(BaseModel):
    """Release object as returned by the REST API and embedded in release events."""

    model_config = ConfigDict(extra="ignore")

    id: int
    tag_name: str
    name: str | None = None
    target_commitish: str | None = None
    html_url: str | None = None
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    assets: list[GitHubAsset] = Field(default_factory=list)

    def to_release_info(self) -> ReleaseInfo:
        # target_commitish is a branch name unless the release was cut from a sha
        commitish = self.target_commitish
        is_sha = commitish is not None and len(commitish) == 40 and _is_hex(commitish)
        return ReleaseInfo(
            release_id=str(self.id),
            tag=self.tag_name,
            name=self.name,
            commit=commitish if is_sha else None,
            branch=None if is_sha else commitish,
            url=self.html_url,
            body=self.body,
            assets=tuple(
                ReleaseAsset(name=asset.name, url=asset.browser_download_url)
                for asset in self.assets
            ),
        )


class GitHubRepository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    full_name: str


class GitHubReleaseEvent(BaseModel):
    """Body of a `release` webhook delivery."""

    model_config = ConfigDict(extra="ignore")

    action: str
    release: GitHubRelease
    repository: GitHubRepository


def _is_hex(value: str) -> bool:
    return all(char in "0123456789abcdefABCDEF" for char in value)
