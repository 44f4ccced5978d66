"""
FastAPI 主入口
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from wedding_api.config import get_settings
from wedding_api.routers import track, visitors
from wedding_api.services.visitor_store import build_visitor_store
from wedding_api.utils.cors import PreflightCORSMiddleware
from wedding_api.utils.metrics import IN_PROGRESS, REQUEST_COUNT, REQUEST_LATENCY, get_route_name
from wedding_api.utils.request_context import JsonFormatter, RequestIdFilter, request_id_ctx_var
from wedding_api.utils.security import verify_admin_token

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings.validate_secrets()
    app.state.visitor_store = build_visitor_store(settings)
    logger.info(
        "Visitor tracking started (mode=%s, storage=%s)",
        settings.deployment_mode,
        app.state.visitor_store.tag,
    )
    yield
    client = getattr(app.state.visitor_store, "client", None)
    if client is not None:
        await client.aclose()


app = FastAPI(
    title="Wedding Invite API",
    description="婚礼请柬访客追踪服务",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal Server Error"},
    )


@app.middleware("http")
async def request_context_middleware(request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    token = request_id_ctx_var.set(request_id)
    response = None
    start = time.perf_counter()
    if settings.metrics_enabled:
        IN_PROGRESS.inc()

    try:
        response = await call_next(request)
        return response
    finally:
        duration = time.perf_counter() - start
        path = get_route_name(request.scope)
        status_code = response.status_code if response else 500
        if settings.metrics_enabled:
            REQUEST_COUNT.labels(request.method, path, str(status_code)).inc()
            REQUEST_LATENCY.labels(request.method, path).observe(duration)
            IN_PROGRESS.dec()
        request_id_ctx_var.reset(token)
        if response is not None:
            response.headers["X-Request-ID"] = request_id


# 请柬页面部署在任意域名下，允许所有来源
app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    # 回显预检请求的头，Content-Type / Authorization 之外的也放行
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(track.router, prefix="/api", tags=["访问上报"])
app.include_router(visitors.router, prefix="/api", tags=["访客管理"])


@app.get("/api/health")
async def health_check():
    """健康检查端点"""
    return {
        "status": "ok",
        "service": "wedding-invite-api",
        "version": "1.0.0",
    }


@app.get("/metrics", dependencies=[Depends(verify_admin_token)])
async def metrics():
    """Prometheus 指标端点（需要管理口令）"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.setLevel(settings.log_level)
        logger.propagate = False


def init_sentry() -> None:
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[FastApiIntegration()],
            traces_sample_rate=settings.sentry_traces_sample_rate,
        )


configure_logging()
init_sentry()
