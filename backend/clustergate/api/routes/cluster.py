from fastapi import APIRouter, Depends

from clustergate.dependencies import get_cluster_status_aggregator
from clustergate.schemas import ClusterSnapshot, RawObject
from clustergate.services.cluster_status import ClusterStatusAggregator

router = APIRouter(tags=["cluster"])


@router.get("/cluster/status", response_model=ClusterSnapshot, summary="Cluster version, node and namespace summary")
async def cluster_status(
    aggregator: ClusterStatusAggregator = Depends(get_cluster_status_aggregator),
) -> ClusterSnapshot:
    return await aggregator.get_snapshot()


@router.get("/nodes", summary="Raw node list")
async def list_nodes(aggregator: ClusterStatusAggregator = Depends(get_cluster_status_aggregator)) -> RawObject:
    return await aggregator.list_nodes()


@router.get("/namespaces", summary="Raw namespace list")
async def list_namespaces(aggregator: ClusterStatusAggregator = Depends(get_cluster_status_aggregator)) -> RawObject:
    return await aggregator.list_namespaces()
