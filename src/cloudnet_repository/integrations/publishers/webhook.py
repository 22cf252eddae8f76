"""Generic JSON webhook publisher."""

import json
from pathlib import Path
from typing import Any

import httpx

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import EndpointPublishError
from cloudnet_repository.integrations.publishers.abc import UpdatePublisher, load_endpoint_config
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.signatures import compute_signature

DEFAULT_CONFIG: dict[str, Any] = {"urls": [], "secret": ""}
SIGNATURE_HEADER = "X-CloudNet-Signature-256"


class JsonWebhookPublisher(UpdatePublisher):
    """POSTs the version record to every configured URL.

    When a secret is configured the body is signed the same way GitHub signs
    its deliveries, in the X-CloudNet-Signature-256 header.
    """

    name = "webhook"

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._urls: list[str] = []
        self._secret: str | None = None

    def initialize(self, config_path: Path) -> bool:
        config = load_endpoint_config(config_path, DEFAULT_CONFIG)
        if config is None:
            return False
        urls = config.get("urls")
        if not isinstance(urls, list):
            return False
        self._urls = [str(url).strip() for url in urls if str(url).strip()]
        self._secret = str(config.get("secret") or "") or None
        if not self._urls:
            return False
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return True

    async def publish(self, parent: ParentVersion, version: CloudNetVersion) -> None:
        if self._client is None:
            raise EndpointPublishError(self.name, "not initialized")
        body = json.dumps({"event": "version_published", "version": version.to_dict()}).encode()
        headers = {"Content-Type": "application/json"}
        if self._secret:
            headers[SIGNATURE_HEADER] = compute_signature(self._secret, body)

        failures: list[str] = []
        for url in self._urls:
            try:
                response = await self._client.post(url, content=body, headers=headers)
                response.raise_for_status()
            except httpx.HTTPError as err:
                failures.append(f"{url}: {type(err).__name__}")
        if failures:
            raise EndpointPublishError(self.name, ", ".join(failures))

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
