"""Release installation: upstream artifacts to archive tree and registry record."""

import asyncio
import hashlib
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.context import ServerContext
from cloudnet_repository.errors import (
    InvalidVersionNameError,
    NoNewReleaseError,
    UnsafeArtifactPathError,
    VersionAlreadyExistsError,
)
from cloudnet_repository.models.release import LoadedArtifact, ReleaseInfo
from cloudnet_repository.models.version import CloudNetVersion, VersionFile
from cloudnet_repository.paths import is_safe_segment, split_relative_path
from cloudnet_repository.services.artifact_server import LATEST

logger = logging.getLogger(__name__)

STAGING_DIR_NAME = ".staging"
HASH_CHUNK_SIZE = 1024 * 1024


class ReleaseArchiver:
    """Builds the on-disk tree and registry record of a release exactly once.

    Versions live in `<archive_dir>/<parent>/<name>/`. Files are assembled in
    `<archive_dir>/.staging/` and renamed into place, so a partial tree is
    never visible under the final path. Installs for the same parent are
    serialized by the registry's install lock, which also covers archivers in
    other processes; installs for different parents run concurrently.
    """

    def __init__(self, ctx: ServerContext) -> None:
        """Create ReleaseArchiver with server context.

        Args:
            ctx: Server context with injected dependencies
        """
        self._ctx = ctx

    @property
    def archive_dir(self) -> Path:
        return self._ctx.config.archive_dir

    @property
    def staging_dir(self) -> Path:
        return self.archive_dir / STAGING_DIR_NAME

    def version_dir(self, parent: str, name: str) -> Path:
        return self.archive_dir / parent / name

    async def install_latest_release(
        self, parent: ParentVersion, release: ReleaseInfo | None = None
    ) -> CloudNetVersion:
        """Install the newest release of a parent.

        Args:
            parent: Parent version to install for
            release: Release identity from a webhook event; when None the
                parent's loader is asked for its latest release

        Returns:
            The registered version

        Raises:
            NoNewReleaseError: If the release is already registered
            InvalidVersionNameError: If the tag is not a safe directory name or is "latest"
            UpstreamUnavailableError: If the upstream cannot be reached
            ArtifactMissingError: If an expected artifact is absent
            OSError: For filesystem failures; nothing is registered
        """
        loader = self._ctx.loader_for(parent)
        if release is None:
            release = await loader.latest_release(parent)
        name = release.tag
        if not is_safe_segment(name) or name == LATEST:
            raise InvalidVersionNameError(name)

        if await self._ctx.registry.get(parent.name, name) is not None:
            raise NoNewReleaseError(parent.name, name)

        artifacts = await loader.fetch(parent, release)
        logger.info("Fetched %d artifacts for %s/%s", len(artifacts), parent.name, name)
        try:
            version = await self._install_locked(parent, release, artifacts)
        finally:
            for artifact in artifacts:
                artifact.discard()

        logger.info("Installed %s/%s with %d files", parent.name, name, len(version.files))
        failed = await self._ctx.publishers.publish(parent, version)
        if failed:
            logger.warning("Publishing %s/%s failed for: %s", parent.name, name, ", ".join(failed))
        return version

    async def _install_locked(
        self, parent: ParentVersion, release: ReleaseInfo, artifacts: list[LoadedArtifact]
    ) -> CloudNetVersion:
        name = release.tag
        async with self._ctx.registry.install_lock(parent.name):
            # Another archiver may have installed the release while we were fetching
            if await self._ctx.registry.get(parent.name, name) is not None:
                raise NoNewReleaseError(parent.name, name)

            files = await asyncio.to_thread(self._materialize, parent.name, name, artifacts)
            version = CloudNetVersion(
                parent=parent.name,
                name=name,
                commit=release.commit,
                release_id=release.release_id,
                created_at=self._ctx.time.now(),
                files=files,
                url=release.url,
                release_notes=release.body,
            )
            try:
                await self._ctx.registry.register(version)
            except VersionAlreadyExistsError as err:
                # The tree now belongs to the registered record
                raise NoNewReleaseError(parent.name, name) from err
            except Exception:
                await asyncio.to_thread(
                    shutil.rmtree, self.version_dir(parent.name, name), ignore_errors=True
                )
                raise
        return version

    def _materialize(
        self, parent: str, name: str, artifacts: list[LoadedArtifact]
    ) -> tuple[VersionFile, ...]:
        """Write artifacts to staging and move the tree into its final place.

        Must run under the parent's install lock, after the registry confirmed
        that (parent, name) is not registered.
        """
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f"{parent}-{name}-", dir=self.staging_dir))
        try:
            for artifact in artifacts:
                if artifact.extract:
                    _extract_zip(staging, artifact)
                else:
                    _write_file(staging, artifact)
            files = describe_tree(staging)

            final = self.version_dir(parent, name)
            final.parent.mkdir(parents=True, exist_ok=True)
            if final.exists():
                # Left behind by an install that died before registering
                logger.warning("Replacing unregistered version directory %s", final)
                stale = Path(tempfile.mkdtemp(prefix=f"{parent}-{name}-stale-", dir=self.staging_dir))
                final.rename(stale / name)
                staging.rename(final)
                shutil.rmtree(stale, ignore_errors=True)
            else:
                staging.rename(final)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        return files


def _target_path(root: Path, relative: str) -> Path:
    parts = split_relative_path(relative)
    if not parts:
        raise UnsafeArtifactPathError(relative)
    return root.joinpath(*parts)


def _write_file(staging: Path, artifact: LoadedArtifact) -> None:
    path = _target_path(staging, artifact.name)
    path.parent.mkdir(parents=True, exist_ok=True)
    with artifact.open() as source, path.open("wb") as sink:
        shutil.copyfileobj(source, sink)


def _extract_zip(staging: Path, artifact: LoadedArtifact) -> None:
    target = _target_path(staging, artifact.name)
    with artifact.open() as source, zipfile.ZipFile(source) as archive:
        for member in archive.infolist():
            if member.is_dir():
                continue
            parts = split_relative_path(member.filename)
            if not parts:
                raise UnsafeArtifactPathError(f"{artifact.source}:{member.filename}")
            destination = target.joinpath(*parts)
            destination.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(member) as source, destination.open("wb") as sink:
                shutil.copyfileobj(source, sink)


def describe_tree(root: Path) -> tuple[VersionFile, ...]:
    """Size and SHA-256 of every file below root, ordered by relative path."""
    files: list[VersionFile] = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        digest = hashlib.sha256()
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
        files.append(
            VersionFile(
                path=path.relative_to(root).as_posix(),
                size=path.stat().st_size,
                sha256=digest.hexdigest(),
            )
        )
    return tuple(files)
