"""Repository configuration data structures and loading.

Configuration is read once from a TOML file at startup into immutable
dataclasses and stored in the ServerContext. A few deployment-specific
values can be overridden through CLOUDNET_REPO_* environment variables.
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from cloudnet_repository.paths import is_safe_segment, split_relative_path

DEFAULT_CONFIG_PATH = "config.toml"
LOADERS = ("github", "jenkins")


@dataclass(frozen=True)
class ArtifactFileMapping:
    """Rule translating an upstream artifact into its on-disk name.

    pattern is a glob matched against the artifact's upstream path and its
    base name. When extract is set the artifact is treated as a zip archive
    and unpacked into the target directory.
    """

    pattern: str
    target: str
    extract: bool = False
    required: bool = False


@dataclass(frozen=True)
class ParentVersion:
    """A product line whose releases are archived independently."""

    name: str
    repository: str
    branch: str | None = None
    loader: str = "github"
    jenkins_url: str | None = None
    jenkins_job: str | None = None
    mappings: tuple[ArtifactFileMapping, ...] = ()


@dataclass(frozen=True)
class ArtifactKind:
    """A servable view of a version tree (e.g. the binaries or the docs)."""

    name: str
    directory: str
    default_file: str


DEFAULT_KINDS: dict[str, ArtifactKind] = {
    "versions": ArtifactKind(name="versions", directory="", default_file="CloudNet.zip"),
    "docs": ArtifactKind(name="docs", directory="docs", default_file="index.html"),
}


@dataclass(frozen=True)
class RepositoryConfig:
    """Immutable repository configuration."""

    parents: tuple[ParentVersion, ...]
    archive_dir: Path = Path("archive")
    publishers_dir: Path = Path("publishers")
    log_dir: Path | None = None
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    api_enabled: bool = True
    redis_url: str = "redis://localhost:6379/0"
    github_api_url: str = "https://api.github.com"
    github_token: str | None = None
    webhook_secret: str | None = None
    poll_interval: float = 0.0
    http_timeout: float = 30.0
    default_parent: str | None = None
    kinds: Mapping[str, ArtifactKind] = field(default_factory=lambda: dict(DEFAULT_KINDS))

    def parent(self, name: str) -> ParentVersion | None:
        for parent in self.parents:
            if parent.name == name:
                return parent
        return None

    def default_parent_version(self) -> ParentVersion | None:
        """Parent served by the unprefixed /versions, /docs and /api/versions routes."""
        if self.default_parent is not None:
            return self.parent(self.default_parent)
        if self.parents:
            return self.parents[0]
        return None

    @staticmethod
    def load(path: Path) -> "RepositoryConfig":
        """Load configuration from a TOML file and apply environment overrides.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is malformed or misses required fields
        """
        if not path.exists():
            raise FileNotFoundError(f"Config not found at {path}")
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        config = parse_config(data, base_dir=path.parent)
        return config.with_env_overrides(os.environ)

    def with_env_overrides(self, env: Mapping[str, str]) -> "RepositoryConfig":
        """Return a copy with CLOUDNET_REPO_* environment values applied."""
        updates: dict[str, Any] = {}
        if "CLOUDNET_REPO_HOST" in env:
            updates["host"] = env["CLOUDNET_REPO_HOST"]
        if "CLOUDNET_REPO_PORT" in env:
            updates["port"] = int(env["CLOUDNET_REPO_PORT"])
        if "CLOUDNET_REPO_REDIS_URL" in env:
            updates["redis_url"] = env["CLOUDNET_REPO_REDIS_URL"]
        if "CLOUDNET_REPO_WEBHOOK_SECRET" in env:
            updates["webhook_secret"] = env["CLOUDNET_REPO_WEBHOOK_SECRET"]
        if "CLOUDNET_REPO_GITHUB_TOKEN" in env:
            updates["github_token"] = env["CLOUDNET_REPO_GITHUB_TOKEN"]
        if "CLOUDNET_REPO_DEBUG" in env:
            updates["debug"] = env["CLOUDNET_REPO_DEBUG"].lower() == "true"
        return replace(self, **updates)


def config_path_from_env() -> Path:
    return Path(os.environ.get("CLOUDNET_REPO_CONFIG", DEFAULT_CONFIG_PATH))


def parse_config(data: Mapping[str, Any], base_dir: Path) -> RepositoryConfig:
    """Build a RepositoryConfig from parsed TOML data.

    Relative directories are resolved against base_dir.
    """
    server = data.get("server", {})
    if not isinstance(server, dict):
        raise ValueError("'server' must be a table")

    fallback_mappings = tuple(_parse_mapping(item) for item in data.get("mappings", []))

    parents_data = data.get("parents", [])
    if not parents_data:
        raise ValueError("At least one [[parents]] entry is required")
    parents = tuple(_parse_parent(item, fallback_mappings) for item in parents_data)

    names = [parent.name for parent in parents]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate parent names in {names}")

    kinds = dict(DEFAULT_KINDS)
    for kind_name, kind_data in data.get("kinds", {}).items():
        kinds[kind_name] = _parse_kind(kind_name, kind_data)

    default_parent = server.get("default_parent")
    if default_parent is not None and default_parent not in names:
        raise ValueError(f"'default_parent' {default_parent!r} is not a configured parent")

    log_dir = server.get("log_dir")
    webhook_secret = server.get("webhook_secret") or None
    github_token = server.get("github_token") or None

    return RepositoryConfig(
        parents=parents,
        archive_dir=_resolve_dir(base_dir, server.get("archive_dir", "archive")),
        publishers_dir=_resolve_dir(base_dir, server.get("publishers_dir", "publishers")),
        log_dir=_resolve_dir(base_dir, log_dir) if log_dir else None,
        host=str(server.get("host", "0.0.0.0")),
        port=int(server.get("port", 8080)),
        debug=bool(server.get("debug", False)),
        api_enabled=bool(server.get("api_enabled", True)),
        redis_url=str(server.get("redis_url", "redis://localhost:6379/0")),
        github_api_url=str(server.get("github_api_url", "https://api.github.com")).rstrip("/"),
        github_token=github_token,
        webhook_secret=webhook_secret,
        poll_interval=float(server.get("poll_interval", 0.0)),
        http_timeout=float(server.get("http_timeout", 30.0)),
        default_parent=default_parent,
        kinds=kinds,
    )


def _resolve_dir(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def _parse_mapping(data: Mapping[str, Any]) -> ArtifactFileMapping:
    pattern = data.get("pattern")
    target = data.get("target")
    if not pattern or not target:
        raise ValueError(f"Mapping requires 'pattern' and 'target': {dict(data)}")
    parts = split_relative_path(target)
    if not parts:
        raise ValueError(f"Mapping target {target!r} must be a relative path inside the version")
    return ArtifactFileMapping(
        pattern=str(pattern),
        target="/".join(parts),
        extract=bool(data.get("extract", False)),
        required=bool(data.get("required", False)),
    )


def _parse_parent(
    data: Mapping[str, Any], fallback_mappings: tuple[ArtifactFileMapping, ...]
) -> ParentVersion:
    name = data.get("name")
    if not name or not is_safe_segment(name):
        raise ValueError(f"Parent name {name!r} must be a plain directory name")
    repository = data.get("repository")
    if not repository or "/" not in repository:
        raise ValueError(f"Parent {name!r} requires 'repository' as owner/repo")

    loader = str(data.get("loader", "github"))
    if loader not in LOADERS:
        raise ValueError(f"Parent {name!r} has unknown loader {loader!r}, expected one of {LOADERS}")
    if loader == "jenkins" and not (data.get("jenkins_url") and data.get("jenkins_job")):
        raise ValueError(f"Parent {name!r} uses jenkins but misses 'jenkins_url' or 'jenkins_job'")

    mappings = tuple(_parse_mapping(item) for item in data.get("mappings", []))
    return ParentVersion(
        name=name,
        repository=repository,
        branch=data.get("branch"),
        loader=loader,
        jenkins_url=str(data["jenkins_url"]).rstrip("/") if data.get("jenkins_url") else None,
        jenkins_job=data.get("jenkins_job"),
        mappings=mappings or fallback_mappings,
    )


def _parse_kind(name: str, data: Mapping[str, Any]) -> ArtifactKind:
    base = DEFAULT_KINDS.get(name)
    directory = str(data.get("directory", base.directory if base else ""))
    default_file = str(data.get("default_file", base.default_file if base else "index.html"))
    if directory and not split_relative_path(directory):
        raise ValueError(f"Kind {name!r} directory {directory!r} must be a relative path")
    return ArtifactKind(name=name, directory=directory, default_file=default_file)
