from functools import lru_cache

from clustergate.config import get_settings
from clustergate.services.cluster_status import ClusterStatusAggregator
from clustergate.services.control_plane import ControlPlaneClient, KubernetesControlPlane
from clustergate.services.pod_lifecycle import PodLifecycleManager


@lru_cache(maxsize=1)
def _get_control_plane() -> KubernetesControlPlane:
    return KubernetesControlPlane.from_settings(get_settings())


def get_control_plane() -> ControlPlaneClient:
    return _get_control_plane()


@lru_cache(maxsize=1)
def _get_cluster_status_aggregator() -> ClusterStatusAggregator:
    return ClusterStatusAggregator(get_control_plane(), default_timeout=get_settings().request_timeout_seconds)


def get_cluster_status_aggregator() -> ClusterStatusAggregator:
    return _get_cluster_status_aggregator()


@lru_cache(maxsize=1)
def _get_pod_lifecycle_manager() -> PodLifecycleManager:
    settings = get_settings()
    return PodLifecycleManager(
        get_control_plane(),
        created_by=settings.created_by,
        default_timeout=settings.request_timeout_seconds,
    )


def get_pod_lifecycle_manager() -> PodLifecycleManager:
    return _get_pod_lifecycle_manager()
