from .cluster_status import ClusterStatusAggregator, count_ready_nodes, is_node_ready
from .control_plane import ControlPlaneClient, KubernetesControlPlane
from .pod_lifecycle import PodLifecycleManager

__all__ = [
    "ClusterStatusAggregator",
    "ControlPlaneClient",
    "KubernetesControlPlane",
    "PodLifecycleManager",
    "count_ready_nodes",
    "is_node_ready",
]
