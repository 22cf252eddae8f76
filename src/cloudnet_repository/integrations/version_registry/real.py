"""Redis-backed version registry implementation."""

import json
from typing import Any

import redis.asyncio as redis
from redis.asyncio.lock import Lock

from cloudnet_repository.errors import VersionAlreadyExistsError
from cloudnet_repository.integrations.version_registry.abc import VersionRegistry
from cloudnet_repository.models.version import CloudNetVersion

# KEYS: versions hash, order list, parents set. ARGV: name, record, parent.
_REGISTER_SCRIPT = """
if redis.call('HSETNX', KEYS[1], ARGV[1], ARGV[2]) == 0 then
    return 0
end
redis.call('RPUSH', KEYS[2], ARGV[1])
redis.call('SADD', KEYS[3], ARGV[3])
return 1
"""


class RedisVersionRegistry(VersionRegistry):
    """Production Redis-backed registry.

    Redis Schema:
    - cloudnet:versions:{parent} - Hash of version name -> JSON record
    - cloudnet:order:{parent} - List of version names in registration order
    - cloudnet:parents - Set of parents with at least one version
    - cloudnet:lock:{parent} - Install lock, expires after LOCK_TIMEOUT seconds

    Registration runs as one Lua script, so the record and its position in
    the order list appear together and an existing record is never replaced.
    """

    PARENTS_KEY = "cloudnet:parents"
    LOCK_TIMEOUT = 600.0

    def __init__(self, redis_url: str) -> None:
        """Create RedisVersionRegistry.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
        """
        self._redis: Any = redis.from_url(redis_url)  # type: ignore[no-untyped-call]
        self._register_script = self._redis.register_script(_REGISTER_SCRIPT)

    async def close(self) -> None:
        await self._redis.aclose()

    def _versions_key(self, parent: str) -> str:
        return f"cloudnet:versions:{parent}"

    def _order_key(self, parent: str) -> str:
        return f"cloudnet:order:{parent}"

    def _decode(self, raw: bytes) -> CloudNetVersion:
        return CloudNetVersion.from_dict(json.loads(raw))

    async def register(self, version: CloudNetVersion) -> None:
        created = await self._register_script(
            keys=[
                self._versions_key(version.parent),
                self._order_key(version.parent),
                self.PARENTS_KEY,
            ],
            args=[version.name, json.dumps(version.to_dict()), version.parent],
        )
        if not created:
            raise VersionAlreadyExistsError(version.parent, version.name)

    async def get(self, parent: str, name: str) -> CloudNetVersion | None:
        raw = await self._redis.hget(self._versions_key(parent), name)
        if raw is None:
            return None
        return self._decode(raw)

    async def latest(self, parent: str) -> CloudNetVersion | None:
        name = await self._redis.lindex(self._order_key(parent), -1)
        if name is None:
            return None
        return await self.get(parent, name.decode())

    async def list_versions(self, parent: str) -> list[CloudNetVersion]:
        names = await self._redis.lrange(self._order_key(parent), 0, -1)
        if not names:
            return []
        records = await self._redis.hmget(self._versions_key(parent), names)
        return [self._decode(raw) for raw in records if raw is not None]

    async def list_all(self) -> list[CloudNetVersion]:
        parents = sorted(raw.decode() for raw in await self._redis.smembers(self.PARENTS_KEY))
        versions: list[CloudNetVersion] = []
        for parent in parents:
            versions.extend(await self.list_versions(parent))
        return versions

    def install_lock(self, parent: str) -> Lock:
        return self._redis.lock(f"cloudnet:lock:{parent}", timeout=self.LOCK_TIMEOUT)
