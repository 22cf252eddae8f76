"""Transient descriptors of upstream releases and their downloaded artifacts."""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file attached to an upstream release or build."""

    name: str
    url: str


@dataclass(frozen=True)
class ReleaseInfo:
    """Identity of an upstream release.

    Produced either by a loader in polling mode or decoded from a webhook
    event. Never persisted; the archiver turns it into a CloudNetVersion.
    """

    release_id: str
    tag: str
    name: str | None = None
    commit: str | None = None
    branch: str | None = None
    url: str | None = None
    body: str | None = None
    assets: tuple[ReleaseAsset, ...] = ()
    # Jenkins build number when the identity was read from a build
    build: int | None = None


@dataclass(frozen=True)
class LoadedArtifact:
    """Artifact content fetched from upstream.

    name is the mapped, canonical path inside the version directory and
    source the upstream name it was selected from. Downloads are spooled to
    a temporary file at path; data holds content that is already in memory.
    """

    name: str
    source: str
    data: bytes = b""
    extract: bool = False
    path: Path | None = None

    def open(self) -> BinaryIO:
        if self.path is not None:
            return self.path.open("rb")
        return io.BytesIO(self.data)

    def discard(self) -> None:
        """Remove the spooled download, if any."""
        if self.path is not None:
            self.path.unlink(missing_ok=True)
