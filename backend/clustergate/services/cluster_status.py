from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import structlog

from clustergate.schemas import ClusterSnapshot, NodeCondition, RawObject
from clustergate.services.base import with_deadline
from clustergate.services.control_plane import ControlPlaneClient

logger = structlog.get_logger(__name__)


def is_node_ready(node: RawObject) -> bool:
    """A node is ready when any of its conditions is Ready=True."""
    conditions = (node.get("status") or {}).get("conditions") or []
    return any(_condition(c).is_ready for c in conditions if isinstance(c, dict))


def _condition(raw: RawObject) -> NodeCondition:
    # Malformed conditions count as not ready rather than failing the snapshot.
    return NodeCondition(type=str(raw.get("type") or ""), status=str(raw.get("status") or "Unknown"))


def count_ready_nodes(nodes: Iterable[RawObject]) -> int:
    return sum(1 for node in nodes if is_node_ready(node))


def _items(obj: RawObject) -> list[Any]:
    return list(obj.get("items") or [])


class ClusterStatusAggregator:
    """Read-only cluster queries and the aggregated status snapshot."""

    def __init__(self, control_plane: ControlPlaneClient, default_timeout: float | None = None) -> None:
        self._control_plane = control_plane
        self._default_timeout = default_timeout

    async def get_snapshot(self, timeout: float | None = None) -> ClusterSnapshot:
        return await with_deadline("cluster_status", self._collect_snapshot(), self._timeout(timeout))

    async def list_nodes(self, timeout: float | None = None) -> RawObject:
        return await with_deadline(
            "list_nodes", asyncio.to_thread(self._control_plane.list_nodes), self._timeout(timeout)
        )

    async def list_namespaces(self, timeout: float | None = None) -> RawObject:
        return await with_deadline(
            "list_namespaces", asyncio.to_thread(self._control_plane.list_namespaces), self._timeout(timeout)
        )

    async def _collect_snapshot(self) -> ClusterSnapshot:
        # The version call doubles as the liveness probe, so it goes first.
        # Any failure below propagates: there is no partial snapshot.
        version = await asyncio.to_thread(self._control_plane.get_version)

        nodes = _items(await asyncio.to_thread(self._control_plane.list_nodes))
        namespaces = _items(await asyncio.to_thread(self._control_plane.list_namespaces))

        namespace_names = tuple((ns.get("metadata") or {}).get("name", "") for ns in namespaces)
        snapshot = ClusterSnapshot(
            control_plane_version=version,
            node_count=len(nodes),
            node_ready_count=count_ready_nodes(nodes),
            namespace_count=len(namespace_names),
            namespace_names=namespace_names,
        )
        logger.debug(
            "cluster.snapshot",
            version=version,
            nodes=snapshot.node_count,
            ready=snapshot.node_ready_count,
            namespaces=snapshot.namespace_count,
        )
        return snapshot

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout
