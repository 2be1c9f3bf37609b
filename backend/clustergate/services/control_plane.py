from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import structlog
from kubernetes import client, config
from kubernetes.client import ApiClient
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from clustergate.config import Settings
from clustergate.exceptions import RemoteRejected, RemoteUnavailable
from clustergate.schemas import RawObject

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# API server answers that mean "could not serve", not "declined".
_UNAVAILABLE_STATUSES = {502, 503, 504}


class ControlPlaneClient(Protocol):
    """Blocking capabilities the gateway needs from the cluster."""

    def get_version(self) -> str: ...

    def list_nodes(self) -> RawObject: ...

    def list_namespaces(self) -> RawObject: ...

    def list_pods(self, namespace: str | None = None) -> RawObject: ...

    def get_pod(self, name: str, namespace: str) -> RawObject: ...

    def create_pod(self, namespace: str, descriptor: RawObject) -> RawObject: ...

    def patch_pod(self, name: str, namespace: str, patch: RawObject) -> RawObject: ...

    def delete_pod(self, name: str, namespace: str, grace_period_seconds: int | None = None) -> None: ...


def remote_message(exc: ApiException) -> str:
    """Extract the human-readable message from an API server error body."""
    body = getattr(exc, "body", None)
    if body:
        try:
            data = json.loads(body)
        except (TypeError, ValueError):
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        if isinstance(body, str):
            return body
    return exc.reason or f"Kubernetes API error {exc.status}"


class KubernetesControlPlane:
    """ControlPlaneClient backed by the official Kubernetes Python client.

    One instance is shared by every request. It holds no per-request state:
    the underlying ApiClient pools connections and is safe to use from
    worker threads.
    """

    def __init__(self, api_client: ApiClient, request_timeout: float | None = None) -> None:
        self._api_client = api_client
        self._core_v1 = client.CoreV1Api(api_client)
        self._version_api = client.VersionApi(api_client)
        self._request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "KubernetesControlPlane":
        configuration = client.Configuration()
        try:
            if settings.use_in_cluster_config():
                config.load_incluster_config(client_configuration=configuration)
                source = "in-cluster"
            else:
                config.load_kube_config(
                    config_file=settings.kube_config_path,
                    context=settings.kube_context,
                    client_configuration=configuration,
                )
                source = settings.kube_context or "kubeconfig"
        except ConfigException as exc:
            logger.warning("kubernetes.config_missing", error=str(exc))
            raise RemoteUnavailable(f"Cluster credentials unavailable: {exc}") from exc

        logger.info("kubernetes.client_ready", source=source, host=configuration.host)
        return cls(client.ApiClient(configuration), request_timeout=settings.request_timeout_seconds)

    def get_version(self) -> str:
        info = self._call("get_version", self._version_api.get_code)
        return str(getattr(info, "git_version", None) or "unknown")

    def list_nodes(self) -> RawObject:
        return self._serialize(self._call("list_nodes", self._core_v1.list_node))

    def list_namespaces(self) -> RawObject:
        return self._serialize(self._call("list_namespaces", self._core_v1.list_namespace))

    def list_pods(self, namespace: str | None = None) -> RawObject:
        if namespace:
            result = self._call("list_pods", self._core_v1.list_namespaced_pod, namespace)
        else:
            result = self._call("list_pods", self._core_v1.list_pod_for_all_namespaces)
        return self._serialize(result)

    def get_pod(self, name: str, namespace: str) -> RawObject:
        return self._serialize(self._call("get_pod", self._core_v1.read_namespaced_pod, name, namespace))

    def create_pod(self, namespace: str, descriptor: RawObject) -> RawObject:
        return self._serialize(
            self._call("create_pod", self._core_v1.create_namespaced_pod, namespace, descriptor)
        )

    def patch_pod(self, name: str, namespace: str, patch: RawObject) -> RawObject:
        # A dict body is sent as application/strategic-merge-patch+json.
        return self._serialize(
            self._call("patch_pod", self._core_v1.patch_namespaced_pod, name, namespace, patch)
        )

    def delete_pod(self, name: str, namespace: str, grace_period_seconds: int | None = None) -> None:
        body = client.V1DeleteOptions(grace_period_seconds=grace_period_seconds)
        self._call("delete_pod", self._core_v1.delete_namespaced_pod, name, namespace, body=body)

    def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        if self._request_timeout:
            kwargs.setdefault("_request_timeout", self._request_timeout)
        try:
            return fn(*args, **kwargs)
        except ApiException as exc:
            message = remote_message(exc)
            if not exc.status or exc.status in _UNAVAILABLE_STATUSES:
                logger.warning("kubernetes.unavailable", operation=operation, status=exc.status, error=message)
                raise RemoteUnavailable(message) from exc
            logger.info("kubernetes.rejected", operation=operation, status=exc.status, reason=exc.reason)
            raise RemoteRejected(message, remote_status=exc.status, reason=exc.reason) from exc
        except HTTPError as exc:
            logger.warning("kubernetes.transport_error", operation=operation, error=str(exc))
            raise RemoteUnavailable(f"Control plane unreachable: {exc}") from exc
        except OSError as exc:
            logger.warning("kubernetes.transport_error", operation=operation, error=str(exc))
            raise RemoteUnavailable(f"Control plane unreachable: {exc}") from exc

    def _serialize(self, obj: Any) -> RawObject:
        return self._api_client.sanitize_for_serialization(obj)
