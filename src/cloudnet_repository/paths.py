"""Path validation helpers shared by the archiver and the artifact server."""

import re
from pathlib import Path, PurePosixPath

_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")


def is_safe_segment(name: str) -> bool:
    """Check that name can be used as a single directory or file name."""
    return bool(_SAFE_SEGMENT.match(name)) and ".." not in name


def split_relative_path(path: str) -> tuple[str, ...] | None:
    """Split a client or config supplied relative path into its segments.

    Returns None if the path is absolute, contains backslashes or NUL bytes,
    or has any parent-directory segment. Empty and "." segments are dropped.
    """
    if "\\" in path or "\x00" in path:
        return None
    pure = PurePosixPath(path)
    if pure.is_absolute():
        return None
    parts = tuple(part for part in path.split("/") if part not in ("", "."))
    if ".." in parts:
        return None
    return parts


def resolve_within(base: Path, relative: str) -> Path | None:
    """Resolve relative against base, returning None if the result escapes base.

    Symlinks are followed before the containment check.
    """
    parts = split_relative_path(relative)
    if parts is None:
        return None
    root = base.resolve()
    candidate = root.joinpath(*parts).resolve()
    if not candidate.is_relative_to(root):
        return None
    return candidate
