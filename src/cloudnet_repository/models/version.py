"""Installed version records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class VersionFile:
    """One archived file, relative to the version directory."""

    path: str
    size: int
    sha256: str


@dataclass(frozen=True)
class CloudNetVersion:
    """A release installed into the archive.

    Identified by (parent, name). Records are immutable once registered.
    """

    parent: str
    name: str
    commit: str | None
    release_id: str
    created_at: datetime
    files: tuple[VersionFile, ...]
    url: str | None = None
    release_notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent": self.parent,
            "name": self.name,
            "commit": self.commit,
            "release_id": self.release_id,
            "created_at": self.created_at.isoformat(),
            "url": self.url,
            "release_notes": self.release_notes,
            "files": [
                {"path": file.path, "size": file.size, "sha256": file.sha256} for file in self.files
            ],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "CloudNetVersion":
        return CloudNetVersion(
            parent=data["parent"],
            name=data["name"],
            commit=data.get("commit"),
            release_id=str(data["release_id"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            files=tuple(
                VersionFile(path=item["path"], size=int(item["size"]), sha256=item["sha256"])
                for item in data.get("files", [])
            ),
            url=data.get("url"),
            release_notes=data.get("release_notes"),
        )
