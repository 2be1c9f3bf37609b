"""Shared fixtures: an in-memory control plane standing in for the cluster."""

from __future__ import annotations

import copy
import time
import uuid
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from clustergate.dependencies import get_cluster_status_aggregator, get_pod_lifecycle_manager
from clustergate.exceptions import RemoteRejected
from clustergate.main import app
from clustergate.services.cluster_status import ClusterStatusAggregator
from clustergate.services.pod_lifecycle import PodLifecycleManager

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_node(name: str, *conditions: tuple[str, str]) -> dict[str, Any]:
    return {
        "metadata": {"name": name},
        "status": {"conditions": [{"type": t, "status": s} for t, s in conditions]},
    }


def make_namespace(name: str) -> dict[str, Any]:
    return {"metadata": {"name": name}, "status": {"phase": "Active"}}


def make_pod(name: str, namespace: str, containers: list[tuple[str, str]]) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "uid": str(uuid.uuid4())},
        "spec": {
            "restartPolicy": "Always",
            "containers": [{"name": c, "image": i, "imagePullPolicy": "IfNotPresent"} for c, i in containers],
        },
        "status": {"phase": "Running"},
    }


class FakeControlPlane:
    """In-memory ControlPlaneClient with the cluster's naming and merge behavior."""

    def __init__(self) -> None:
        self.version = "v1.29.2"
        self.nodes: list[dict[str, Any]] = []
        self.namespaces: list[dict[str, Any]] = [make_namespace("default")]
        self.pods: dict[tuple[str, str], dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.delay: float = 0.0
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if self.delay:
            time.sleep(self.delay)
        if operation in self.failures:
            raise self.failures[operation]

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    def add_pod(self, pod: dict[str, Any]) -> None:
        md = pod["metadata"]
        self.pods[(md["namespace"], md["name"])] = pod

    def get_version(self) -> str:
        self._enter("get_version")
        return self.version

    def list_nodes(self) -> dict[str, Any]:
        self._enter("list_nodes")
        return {"kind": "NodeList", "apiVersion": "v1", "items": copy.deepcopy(self.nodes)}

    def list_namespaces(self) -> dict[str, Any]:
        self._enter("list_namespaces")
        return {"kind": "NamespaceList", "apiVersion": "v1", "items": copy.deepcopy(self.namespaces)}

    def list_pods(self, namespace: str | None = None) -> dict[str, Any]:
        self._enter("list_pods", namespace)
        items = [copy.deepcopy(p) for (ns, _), p in self.pods.items() if not namespace or ns == namespace]
        return {"kind": "PodList", "apiVersion": "v1", "items": items}

    def get_pod(self, name: str, namespace: str) -> dict[str, Any]:
        self._enter("get_pod", name, namespace)
        return copy.deepcopy(self._existing(name, namespace))

    def create_pod(self, namespace: str, descriptor: dict[str, Any]) -> dict[str, Any]:
        self._enter("create_pod", namespace, descriptor)
        pod = copy.deepcopy(descriptor)
        containers = (pod.get("spec") or {}).get("containers")
        if not containers:
            raise RemoteRejected(
                'Pod "" is invalid: spec.containers: Required value', remote_status=422, reason="Invalid"
            )
        for container in containers:
            if len(container.get("name", "")) > 63 or not container.get("image"):
                raise RemoteRejected(
                    f"Pod is invalid: spec.containers: Invalid value: {container.get('name')!r}",
                    remote_status=422,
                    reason="Invalid",
                )
        md = pod.setdefault("metadata", {})
        if not md.get("name"):
            prefix = md.get("generateName", "")
            md["name"] = prefix + uuid.uuid4().hex[:5]
            while (namespace, md["name"]) in self.pods:
                md["name"] = prefix + uuid.uuid4().hex[:5]
        elif (namespace, md["name"]) in self.pods:
            raise RemoteRejected(
                f'pods "{md["name"]}" already exists', remote_status=409, reason="AlreadyExists"
            )
        md["namespace"] = namespace
        md["uid"] = str(uuid.uuid4())
        pod.setdefault("status", {"phase": "Pending"})
        self.pods[(namespace, md["name"])] = pod
        return copy.deepcopy(pod)

    def patch_pod(self, name: str, namespace: str, patch: dict[str, Any]) -> dict[str, Any]:
        self._enter("patch_pod", name, namespace, patch)
        pod = self._existing(name, namespace)
        containers = pod["spec"]["containers"]
        for change in patch.get("spec", {}).get("containers", []):
            target = next((c for c in containers if c["name"] == change["name"]), None)
            if target is None:
                raise RemoteRejected(
                    f'Pod "{name}" is invalid: spec.containers: Forbidden: pod updates may not add or remove containers',
                    remote_status=422,
                    reason="Invalid",
                )
            target.update(change)
        return copy.deepcopy(pod)

    def delete_pod(self, name: str, namespace: str, grace_period_seconds: int | None = None) -> None:
        self._enter("delete_pod", name, namespace, grace_period_seconds)
        self._existing(name, namespace)
        del self.pods[(namespace, name)]

    def _existing(self, name: str, namespace: str) -> dict[str, Any]:
        try:
            return self.pods[(namespace, name)]
        except KeyError:
            raise RemoteRejected(f'pods "{name}" not found', remote_status=404, reason="NotFound") from None


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def aggregator(control_plane: FakeControlPlane) -> ClusterStatusAggregator:
    return ClusterStatusAggregator(control_plane, default_timeout=5)


@pytest.fixture
def manager(control_plane: FakeControlPlane) -> PodLifecycleManager:
    return PodLifecycleManager(control_plane, created_by="tester", default_timeout=5, clock=lambda: FIXED_NOW)


@pytest.fixture
def api_client(aggregator: ClusterStatusAggregator, manager: PodLifecycleManager):
    app.dependency_overrides[get_cluster_status_aggregator] = lambda: aggregator
    app.dependency_overrides[get_pod_lifecycle_manager] = lambda: manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
