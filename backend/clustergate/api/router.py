from fastapi import APIRouter

from clustergate.api.routes import cluster, pods

api_router = APIRouter(prefix="/api")
api_router.include_router(cluster.router)
api_router.include_router(pods.router)
