"""Read-only listing API."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from cloudnet_repository.context import ServerContext
from cloudnet_repository.errors import VersionNotFoundError
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.services.artifact_server import ArtifactResolver


class VersionFileResponse(BaseModel):
    path: str
    size: int
    sha256: str


class VersionResponse(BaseModel):
    """Full record of one installed version."""

    parent: str
    name: str
    commit: str | None
    release_id: str
    created_at: str
    url: str | None
    release_notes: str | None
    files: list[VersionFileResponse]

    @classmethod
    def from_version(cls, version: CloudNetVersion) -> "VersionResponse":
        return cls(
            parent=version.parent,
            name=version.name,
            commit=version.commit,
            release_id=version.release_id,
            created_at=version.created_at.isoformat(),
            url=version.url,
            release_notes=version.release_notes,
            files=[
                VersionFileResponse(path=file.path, size=file.size, sha256=file.sha256)
                for file in version.files
            ],
        )


class VersionListResponse(BaseModel):
    versions: list[str]


class ParentListResponse(BaseModel):
    parents: list[str]


def get_context(request: Request) -> ServerContext:
    """Get ServerContext from app state."""
    return request.app.state.context


def get_resolver(request: Request) -> ArtifactResolver:
    return request.app.state.resolver


def require_api(request: Request) -> None:
    if not get_context(request).config.api_enabled:
        raise HTTPException(status_code=503, detail="API currently not available")


def default_parent_name(ctx: ServerContext) -> str:
    parent = ctx.config.default_parent_version()
    if parent is None:
        raise HTTPException(status_code=404, detail="No parent versions configured")
    return parent.name


router = APIRouter(prefix="/api", tags=["api"])
guarded = APIRouter(dependencies=[Depends(require_api)])


@router.get("")
async def api_status(request: Request) -> dict[str, bool]:
    """Report whether the listing API is enabled."""
    return {"available": get_context(request).config.api_enabled}


async def _list_versions(ctx: ServerContext, parent: str) -> VersionListResponse:
    if ctx.config.parent(parent) is None:
        raise HTTPException(status_code=404, detail=f"Parent {parent} not found")
    versions = await ctx.registry.list_versions(parent)
    return VersionListResponse(versions=[version.name for version in versions])


async def _get_version(resolver: ArtifactResolver, parent: str, version: str) -> VersionResponse:
    try:
        record = await resolver.resolve_version(parent, version)
    except VersionNotFoundError as err:
        raise HTTPException(status_code=404, detail=f"Version {version} not found") from err
    return VersionResponse.from_version(record)


@guarded.get("/versions", response_model=VersionListResponse)
async def list_default_versions(request: Request) -> VersionListResponse:
    """List version names of the default parent, in registration order."""
    ctx = get_context(request)
    return await _list_versions(ctx, default_parent_name(ctx))


@guarded.get("/versions/{version}", response_model=VersionResponse)
async def get_default_version(request: Request, version: str) -> VersionResponse:
    """Get one version of the default parent; "latest" is accepted."""
    ctx = get_context(request)
    return await _get_version(get_resolver(request), default_parent_name(ctx), version)


@guarded.get("/parents", response_model=ParentListResponse)
async def list_parents(request: Request) -> ParentListResponse:
    return ParentListResponse(parents=[parent.name for parent in get_context(request).config.parents])


@guarded.get("/parents/{parent}/versions", response_model=VersionListResponse)
async def list_parent_versions(request: Request, parent: str) -> VersionListResponse:
    return await _list_versions(get_context(request), parent)


@guarded.get("/parents/{parent}/versions/{version}", response_model=VersionResponse)
async def get_parent_version(request: Request, parent: str, version: str) -> VersionResponse:
    return await _get_version(get_resolver(request), parent, version)


router.include_router(guarded)
