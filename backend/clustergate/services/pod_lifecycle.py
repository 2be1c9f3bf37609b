from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from clustergate.exceptions import ClusterError
from clustergate.schemas import PodSpecRequest, RawObject
from clustergate.services.base import with_deadline
from clustergate.services.control_plane import ControlPlaneClient
from clustergate.services.identity import (
    build_generated_pod_descriptor,
    build_image_patch,
    build_pod_descriptor,
    require_value,
    validate_label_name,
    validate_resource_name,
)

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class PodLifecycleManager:
    """List, create, patch and delete pods on the remote cluster.

    Each call is independent: requests are validated locally, sent once, and
    remote failures are raised as ClusterError subclasses without retrying.
    """

    def __init__(
        self,
        control_plane: ControlPlaneClient,
        *,
        created_by: str = "clustergate",
        default_timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._control_plane = control_plane
        self._created_by = created_by
        self._default_timeout = default_timeout
        self._clock = clock

    async def list_pods(self, namespace: str | None = None, timeout: float | None = None) -> RawObject:
        if namespace:
            validate_resource_name(namespace, "namespace")
        return await self._remote("list_pods", timeout, self._control_plane.list_pods, namespace or None)

    async def get_pod(self, name: str, namespace: str, timeout: float | None = None) -> RawObject:
        validate_resource_name(name, "name")
        validate_resource_name(namespace, "namespace")
        return await self._remote("get_pod", timeout, self._control_plane.get_pod, name, namespace)

    async def create_pod(self, request: PodSpecRequest, timeout: float | None = None) -> RawObject:
        # The pod name doubles as the container name.
        validate_label_name(request.name, "name")
        validate_resource_name(request.namespace, "namespace")
        require_value(request.image, "image")

        descriptor = build_pod_descriptor(request.name, request.namespace, request.image)
        record = await self._remote(
            "create_pod", timeout, self._control_plane.create_pod, request.namespace, descriptor
        )
        logger.info("pods.created", pod=_record_name(record), namespace=request.namespace)
        return record

    async def create_pod_with_generated_name(
        self,
        request: PodSpecRequest,
        container_template: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> RawObject:
        # The prefix is also the app label value and the default container name.
        validate_label_name(request.name, "name")
        validate_resource_name(request.namespace, "namespace")
        if container_template is not None and not container_template.get("image"):
            require_value(request.image, "image")

        descriptor = build_generated_pod_descriptor(
            request.name,
            request.namespace,
            created_by=self._created_by,
            created_at=self._clock(),
            container_template=container_template,
            image=request.image,
        )
        record = await self._remote(
            "create_pod_with_generated_name",
            timeout,
            self._control_plane.create_pod,
            request.namespace,
            descriptor,
        )
        # The cluster owns the final name; report what it assigned.
        logger.info("pods.created_generated", prefix=request.name, pod=_record_name(record), namespace=request.namespace)
        return record

    async def patch_image(
        self,
        name: str,
        namespace: str,
        image: str,
        container: str | None = None,
        timeout: float | None = None,
    ) -> RawObject:
        validate_resource_name(name, "name")
        validate_resource_name(namespace, "namespace")
        require_value(image, "image")
        target = validate_label_name(container, "container") if container else validate_label_name(name, "name")

        patch = build_image_patch(target, image)
        record = await self._remote("patch_image", timeout, self._control_plane.patch_pod, name, namespace, patch)
        logger.info("pods.image_patched", pod=name, namespace=namespace, container=target, image=image)
        return record

    async def delete_pod(
        self,
        name: str,
        namespace: str,
        grace_period_seconds: int | None = None,
        timeout: float | None = None,
    ) -> None:
        validate_resource_name(name, "name")
        validate_resource_name(namespace, "namespace")
        # Acceptance only; termination may still be in progress.
        await self._remote(
            "delete_pod", timeout, self._control_plane.delete_pod, name, namespace, grace_period_seconds
        )
        logger.info("pods.deleted", pod=name, namespace=namespace)

    async def _remote(self, operation: str, timeout: float | None, fn: Callable[..., Any], *args: Any) -> Any:
        effective = timeout if timeout is not None else self._default_timeout
        try:
            return await with_deadline(operation, asyncio.to_thread(fn, *args), effective)
        except ClusterError as exc:
            logger.warning(f"pods.{operation}_error", kind=exc.kind.value, error=exc.message)
            raise


def _record_name(record: RawObject) -> str | None:
    return (record.get("metadata") or {}).get("name")
