"""Resolution of artifact requests to files inside the archive."""

import logging
from pathlib import Path

from cloudnet_repository.context import ServerContext
from cloudnet_repository.errors import (
    ArtifactNotFoundError,
    ForbiddenPathError,
    VersionNotFoundError,
)
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.paths import resolve_within, split_relative_path

logger = logging.getLogger(__name__)

LATEST = "latest"


class ArtifactResolver:
    """Maps `<kind>/<selector>/<path>` requests onto the archive tree.

    The selector is a version name or "latest", looked up in the registry on
    every call. The resolved file always lies inside the directory of the
    requested kind within the resolved version.
    """

    def __init__(self, ctx: ServerContext) -> None:
        self._ctx = ctx

    async def resolve_version(self, parent: str, selector: str) -> CloudNetVersion:
        """Resolve a version name or "latest" for a parent.

        Raises:
            VersionNotFoundError: If the parent or version is unknown
        """
        if self._ctx.config.parent(parent) is None:
            raise VersionNotFoundError(parent, selector)
        if selector == LATEST:
            version = await self._ctx.registry.latest(parent)
        else:
            version = await self._ctx.registry.get(parent, selector)
        if version is None:
            raise VersionNotFoundError(parent, selector)
        return version

    async def resolve(self, parent: str, kind: str, selector: str, sub_path: str) -> Path:
        """Resolve a request to an existing file.

        Args:
            parent: Parent version name
            kind: Configured artifact kind (e.g. "versions" or "docs")
            selector: Version name or "latest"
            sub_path: Path below the kind directory; empty for the default file

        Returns:
            Absolute path of the file to serve

        Raises:
            ForbiddenPathError: If sub_path is absolute or leaves the version directory
            VersionNotFoundError: If the parent, kind or version is unknown
            ArtifactNotFoundError: If no such file exists
        """
        artifact_kind = self._ctx.config.kinds.get(kind)
        if artifact_kind is None:
            raise VersionNotFoundError(parent, selector)
        if split_relative_path(sub_path) is None:
            logger.warning("Rejected path %r for %s/%s/%s", sub_path, parent, kind, selector)
            raise ForbiddenPathError(sub_path)

        version = await self.resolve_version(parent, selector)
        base = self._ctx.config.archive_dir / version.parent / version.name
        if artifact_kind.directory:
            base = base / artifact_kind.directory

        candidate = resolve_within(base, sub_path or artifact_kind.default_file)
        if candidate is None:
            logger.warning("Rejected escaping path %r for %s/%s", sub_path, parent, version.name)
            raise ForbiddenPathError(sub_path)
        if candidate.is_dir():
            candidate = resolve_within(candidate, artifact_kind.default_file)
            if candidate is None:
                raise ForbiddenPathError(sub_path)
        if not candidate.is_file():
            raise ArtifactNotFoundError(f"{kind}/{version.name}/{sub_path}")
        return candidate
