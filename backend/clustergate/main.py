import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router
from .config import get_settings
from .core.logging import get_logger, setup_logging
from .core.request_context import request_id_var
from .exceptions import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger(__name__)
    settings = get_settings()
    logger.info(
        "clustergate starting: env=%s in_cluster=%s timeout=%ss",
        settings.app_env,
        settings.use_in_cluster_config(),
        settings.request_timeout_seconds,
    )
    yield
    logger.info("clustergate stopped")


# Logging is configured before the app so import-time loggers pick it up
setup_logging()

app = FastAPI(
    title="clustergate",
    description="Kubernetes cluster status and pod lifecycle gateway",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
