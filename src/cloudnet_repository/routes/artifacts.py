"""Artifact downloads from the archive tree."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from cloudnet_repository.errors import ForbiddenPathError, NotFoundError
from cloudnet_repository.routes.api import default_parent_name, get_context, get_resolver

router = APIRouter(tags=["artifacts"])


async def _serve(request: Request, parent: str, kind: str, version: str, path: str) -> FileResponse:
    resolver = get_resolver(request)
    try:
        file_path = await resolver.resolve(parent, kind, version, path)
    except ForbiddenPathError as err:
        raise HTTPException(status_code=403, detail="Forbidden") from err
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail="Not found") from err
    return FileResponse(file_path, filename=file_path.name if kind == "versions" else None)


@router.get("/parents/{parent}/{kind}/{version}")
async def parent_artifact_default(request: Request, parent: str, kind: str, version: str) -> FileResponse:
    return await _serve(request, parent, kind, version, "")


@router.get("/parents/{parent}/{kind}/{version}/{path:path}")
async def parent_artifact(
    request: Request, parent: str, kind: str, version: str, path: str
) -> FileResponse:
    """Serve a file of any parent's version."""
    return await _serve(request, parent, kind, version, path)


@router.get("/{kind}/{version}")
async def artifact_default(request: Request, kind: str, version: str) -> FileResponse:
    ctx = get_context(request)
    return await _serve(request, default_parent_name(ctx), kind, version, "")


@router.get("/{kind}/{version}/{path:path}")
async def artifact(request: Request, kind: str, version: str, path: str) -> FileResponse:
    """Serve a file of the default parent, e.g. /versions/latest/CloudNet.zip."""
    ctx = get_context(request)
    return await _serve(request, default_parent_name(ctx), kind, version, path)
