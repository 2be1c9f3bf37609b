from fastapi import APIRouter, Depends, Query, Response, status

from clustergate.dependencies import get_pod_lifecycle_manager
from clustergate.schemas import PodGenerateRequest, PodImageUpdate, PodSpecRequest, RawObject
from clustergate.services.pod_lifecycle import PodLifecycleManager

router = APIRouter(prefix="/pods", tags=["pods"])


@router.get("", summary="List pods in all namespaces")
async def list_all_pods(manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager)) -> RawObject:
    return await manager.list_pods()


@router.get("/{namespace}", summary="List pods in a namespace")
async def list_namespaced_pods(
    namespace: str,
    manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager),
) -> RawObject:
    return await manager.list_pods(namespace)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a pod with an exact name")
async def create_pod(
    payload: PodSpecRequest,
    manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager),
) -> RawObject:
    return await manager.create_pod(payload)


@router.post(
    "/generate",
    status_code=status.HTTP_201_CREATED,
    summary="Create a pod whose name the cluster generates from the given prefix",
)
async def create_generated_pod(
    payload: PodGenerateRequest,
    manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager),
) -> RawObject:
    return await manager.create_pod_with_generated_name(payload, container_template=payload.container_template)


@router.put("/{name}/{namespace}", summary="Patch a container image in place")
async def patch_pod_image(
    name: str,
    namespace: str,
    payload: PodImageUpdate,
    manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager),
) -> RawObject:
    return await manager.patch_image(name, namespace, payload.image, container=payload.container)


@router.delete(
    "/{name}/{namespace}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a pod",
)
async def delete_pod(
    name: str,
    namespace: str,
    grace_period_seconds: int | None = Query(default=None, ge=0),
    manager: PodLifecycleManager = Depends(get_pod_lifecycle_manager),
) -> Response:
    await manager.delete_pod(name, namespace, grace_period_seconds=grace_period_seconds)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
