"""Discord webhook publisher."""

from pathlib import Path
from typing import Any

import httpx

from cloudnet_repository.config import ParentVersion
from cloudnet_repository.errors import EndpointPublishError
from cloudnet_repository.integrations.publishers.abc import UpdatePublisher, load_endpoint_config
from cloudnet_repository.models.version import CloudNetVersion

DEFAULT_CONFIG: dict[str, Any] = {
    "webhook_url": "",
    "username": "CloudNet Repository",
    "avatar_url": "",
    "download_base_url": "",
}

MAX_DESCRIPTION = 2000
EMBED_COLOR = 0x2B7BB9


class DiscordPublisher(UpdatePublisher):
    """Posts an embed announcing the release to a Discord webhook."""

    name = "discord"

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._config: dict[str, Any] = {}

    def initialize(self, config_path: Path) -> bool:
        config = load_endpoint_config(config_path, DEFAULT_CONFIG)
        if config is None or not str(config.get("webhook_url") or "").strip():
            return False
        self._config = config
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return True

    def build_payload(self, parent: ParentVersion, version: CloudNetVersion) -> dict[str, Any]:
        notes = (version.release_notes or "").strip()
        if len(notes) > MAX_DESCRIPTION:
            notes = notes[: MAX_DESCRIPTION - 3] + "..."

        fields: list[dict[str, Any]] = []
        if version.commit:
            fields.append({"name": "Commit", "value": f"`{version.commit[:10]}`", "inline": True})
        base_url = str(self._config.get("download_base_url") or "").rstrip("/")
        if version.files:
            lines = []
            for file in version.files[:10]:
                if base_url:
                    lines.append(f"[{file.path}]({base_url}/{version.name}/{file.path})")
                else:
                    lines.append(file.path)
            fields.append({"name": "Files", "value": "\n".join(lines), "inline": False})

        embed: dict[str, Any] = {
            "title": f"{parent.name} {version.name} released",
            "description": notes,
            "color": EMBED_COLOR,
            "timestamp": version.created_at.isoformat(),
            "fields": fields,
        }
        if version.url:
            embed["url"] = version.url

        payload: dict[str, Any] = {"embeds": [embed]}
        username = str(self._config.get("username") or "").strip()
        avatar = str(self._config.get("avatar_url") or "").strip()
        if username:
            payload["username"] = username
        if avatar:
            payload["avatar_url"] = avatar
        return payload

    async def publish(self, parent: ParentVersion, version: CloudNetVersion) -> None:
        if self._client is None:
            raise EndpointPublishError(self.name, "not initialized")
        try:
            response = await self._client.post(
                self._config["webhook_url"], json=self.build_payload(parent, version)
            )
            response.raise_for_status()
        except httpx.HTTPError as err:
            raise EndpointPublishError(self.name, f"{type(err).__name__}: {err}") from err

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
