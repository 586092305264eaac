"""Read-only view of the node registry.

Workers announce themselves in a Redis hash per node type::

    {prefix}:nodes:{node_type}   field = "host:port", value = JSON metadata

This module only reads that hash; how and when workers write or expire their
entries belongs to the registry itself.  Every read is a point-in-time
snapshot: a node may join or leave right after it was observed.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from loguru import logger

from workforge.group_admin.models.enums import RegistryNodeType

if TYPE_CHECKING:
    import redis.asyncio as aioredis


@runtime_checkable
class RegistryView(Protocol):
    """Source of truth for which worker addresses are currently valid."""

    async def live_node_addresses(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> set[str]:
        """Return the ``host:port`` addresses of live nodes of *node_type*."""
        ...

    async def server_maps(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> dict[str, dict]:
        """Return ``host:port`` -> metadata for live nodes of *node_type*."""
        ...


class RedisRegistryView:
    """Registry view backed by the Redis hashes the nodes heartbeat into."""

    def __init__(self, client: aioredis.Redis, prefix: str = "workforge:registry") -> None:
        self._client = client
        self._prefix = prefix

    def _key(self, node_type: RegistryNodeType) -> str:
        return f"{self._prefix}:nodes:{node_type}"

    async def live_node_addresses(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> set[str]:
        fields = await self._client.hkeys(self._key(node_type))
        return {_decode(f) for f in fields}

    async def server_maps(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> dict[str, dict]:
        raw = await self._client.hgetall(self._key(node_type))
        result: dict[str, dict] = {}
        for field, value in raw.items():
            address = _decode(field)
            try:
                meta = json.loads(_decode(value)) if value else {}
            except json.JSONDecodeError:
                logger.warning("Registry: unparsable metadata for {} node {}", node_type, address)
                meta = {}
            result[address] = meta if isinstance(meta, dict) else {"value": meta}
        return result


class StaticRegistryView:
    """Fixed address list, used when no Redis registry is configured."""

    def __init__(self, workers: list[str] | set[str] | None = None, masters: list[str] | set[str] | None = None) -> None:
        self._nodes: dict[RegistryNodeType, dict[str, dict]] = {
            RegistryNodeType.WORKER: {a: {} for a in workers or ()},
            RegistryNodeType.MASTER: {a: {} for a in masters or ()},
        }

    async def live_node_addresses(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> set[str]:
        return set(self._nodes[node_type])

    async def server_maps(self, node_type: RegistryNodeType = RegistryNodeType.WORKER) -> dict[str, dict]:
        return {a: dict(meta) for a, meta in self._nodes[node_type].items()}


def _decode(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value
