"""Exceptions raised by the release pipeline and the artifact server."""


class RepositoryError(Exception):
    """Base class for all expected repository failures."""


class UpstreamUnavailableError(RepositoryError):
    """Raised when the upstream CI or VCS cannot be reached."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Upstream {source} unavailable: {reason}")


class ArtifactMissingError(RepositoryError):
    """Raised when an expected artifact is absent upstream."""

    def __init__(self, parent: str, artifact: str) -> None:
        self.parent = parent
        self.artifact = artifact
        super().__init__(f"Artifact {artifact} missing for {parent}")


class VersionAlreadyExistsError(RepositoryError):
    """Raised when registering a (parent, name) pair that is already present."""

    def __init__(self, parent: str, name: str) -> None:
        self.parent = parent
        self.name = name
        super().__init__(f"Version {parent}/{name} is already registered")


class NoNewReleaseError(RepositoryError):
    """Raised when the newest upstream release is already installed."""

    def __init__(self, parent: str, name: str) -> None:
        self.parent = parent
        self.name = name
        super().__init__(f"No new release for {parent}: {name} is already installed")


class InvalidVersionNameError(RepositoryError):
    """Raised when a release tag cannot be used as a directory name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid version name: {name!r}")


class UnsafeArtifactPathError(RepositoryError):
    """Raised when an artifact or archive member would escape its target directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Unsafe artifact path: {path!r}")


class InvalidSignatureError(RepositoryError):
    """Raised when a webhook body does not match its signature header."""


class NotFoundError(RepositoryError):
    """Base class for lookups that resolve to nothing."""


class VersionNotFoundError(NotFoundError):
    def __init__(self, parent: str, selector: str) -> None:
        self.parent = parent
        self.selector = selector
        super().__init__(f"Version {parent}/{selector} not found")


class ArtifactNotFoundError(NotFoundError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Artifact {path} not found")


class ForbiddenPathError(RepositoryError):
    """Raised when a requested path leaves the version directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Forbidden path: {path!r}")


class EndpointPublishError(RepositoryError):
    """Raised by a publish endpoint when delivery fails."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Publisher {endpoint} failed: {reason}")
