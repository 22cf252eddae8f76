"""HTTP helpers shared by the real loaders."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import httpx

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import ArtifactMissingError, UpstreamUnavailableError
from cloudnet_repository.mapping import MappedAsset
from cloudnet_repository.models.release import LoadedArtifact

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    source: str,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET a JSON document, translating transport and server errors."""
    try:
        response = await client.get(url, headers=headers)
    except httpx.HTTPError as err:
        raise UpstreamUnavailableError(source, f"{type(err).__name__} for {url}") from err
    if response.status_code >= 400:
        raise UpstreamUnavailableError(source, f"HTTP {response.status_code} for {url}")
    try:
        return response.json()
    except ValueError as err:
        raise UpstreamUnavailableError(source, f"invalid JSON from {url}") from err


async def download_assets(
    client: httpx.AsyncClient,
    parent: ParentVersion,
    selected: list[MappedAsset],
    source: str,
    headers: dict[str, str] | None = None,
) -> list[LoadedArtifact]:
    """Download every selected asset in order, streaming each to a temporary file.

    The caller owns the returned files and removes them with
    LoadedArtifact.discard(). On failure, files already written are removed.

    Raises:
        ArtifactMissingError: If an asset URL answers 404
        UpstreamUnavailableError: For transport errors and other failures
    """
    artifacts: list[LoadedArtifact] = []
    try:
        for item in selected:
            logger.debug("Downloading %s for %s from %s", item.asset.name, parent.name, item.asset.url)
            path = await _download_to_file(client, parent, item, source, headers)
            artifacts.append(
                LoadedArtifact(
                    name=item.mapping.target,
                    source=item.asset.name,
                    extract=item.mapping.extract,
                    path=path,
                )
            )
    except BaseException:
        for artifact in artifacts:
            artifact.discard()
        raise
    return artifacts


async def _download_to_file(
    client: httpx.AsyncClient,
    parent: ParentVersion,
    item: MappedAsset,
    source: str,
    headers: dict[str, str] | None,
) -> Path:
    url = item.asset.url
    fd, name = tempfile.mkstemp(prefix="cloudnet-download-")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as sink:
            async with client.stream("GET", url, headers=headers) as response:
                if response.status_code == 404:
                    raise ArtifactMissingError(parent.name, item.asset.name)
                if response.status_code >= 400:
                    raise UpstreamUnavailableError(source, f"HTTP {response.status_code} for {url}")
                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    sink.write(chunk)
    except httpx.HTTPError as err:
        path.unlink(missing_ok=True)
        raise UpstreamUnavailableError(source, f"{type(err).__name__} for {url}") from err
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path
