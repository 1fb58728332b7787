# app/transport/http_app.py
"""
HTTP surface of the resolution gateway.

Public endpoints:
1. POST /api/media/resolve    - URL -> ResolutionResult (200, or 400 InvalidUrl)
2. POST /api/profile/resolve  - username -> ProfileResult
3. GET  /health               - liveness
4. GET  /metrics              - provider attempt counters and latencies

"No provider could resolve this" is a normal 200 response carrying
status=allProvidersFailed; only caller mistakes (400) and service
defects (500) use error statuses.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, TypeVar

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, validate_or_warn
from app.core.resolver.errors import GatewayError, InvalidRequest
from app.core.resolver.orchestrator import FallbackChain, FallbackOrchestrator
from app.core.resolver.service import ResolutionService
from app.infra.http_client import close_all_sessions
from app.infra.logging_config import setup_logging, get_logger
from app.infra.metrics import MetricsCollector, ResolverMetrics
from app.infra.providers.registry import build_media_providers, build_profile_providers
from app.transport.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
)
from app.transport.schemas import (
    MediaResolveIn,
    ProfileOut,
    ProfileResolveIn,
    ResolutionOut,
)

logger = get_logger(__name__)

T = TypeVar("T")

_DISCONNECT_POLL_SECONDS = 0.25


# ============================================================================
# SERVICE WIRING
# ============================================================================

def build_service(settings: Settings, metrics: ResolverMetrics) -> ResolutionService:
    """Construct the resolution service and its provider chains from settings."""
    chain = FallbackChain(
        timeout=settings.provider_timeout_seconds,
        mode=settings.orchestrator_mode,
        metrics=metrics,
    )
    # Profile lookups always run sequentially
    profile_chain = FallbackChain(
        timeout=settings.provider_timeout_seconds,
        mode="sequential",
        metrics=metrics,
    )
    orchestrator = FallbackOrchestrator(build_media_providers(settings), chain)

    return ResolutionService(
        orchestrator=orchestrator,
        profile_providers=build_profile_providers(settings),
        profile_chain=profile_chain,
        metrics=metrics,
        max_url_length=settings.max_url_length,
    )


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_service(request: Request) -> ResolutionService:
    """Get resolution service from app state"""
    return request.app.state.service


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


class ClientDisconnected(Exception):
    """Caller went away before the resolution finished."""


async def run_until_disconnect(request: Request, work: Awaitable[T]) -> T:
    """
    Await ``work`` while watching the client connection.

    If the caller disconnects, the task is cancelled so the in-flight
    provider call is abandoned instead of running to completion.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(
                    "Client disconnected, cancelling resolution",
                    extra={"request_id": _request_id(request)},
                )
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


# ============================================================================
# ROUTES
# ============================================================================

router = APIRouter()


@router.get("/health")
def health():
    """
    Basic health check - PUBLIC endpoint.
    Used by load balancers, monitoring, etc.
    """
    return {"status": "ok"}


@router.get("/metrics")
def metrics(request: Request):
    """Provider attempt counters and latency histograms."""
    return request.app.state.metrics.collector.get_metrics()


@router.post("/api/media/resolve")
async def resolve_media(payload: MediaResolveIn, request: Request):
    """
    Resolve a post/reel/story/highlight URL to direct media pointers.

    Callers must branch on ``status``: notFound and allProvidersFailed
    are expected outcomes, returned with HTTP 200.
    """
    service = get_service(request)
    result = await run_until_disconnect(
        request,
        service.resolve_media(payload.url, payload.kind_hint, request_id=_request_id(request)),
    )
    return ResolutionOut.from_domain(result).model_dump(mode="json", by_alias=True)


@router.post("/api/profile/resolve")
async def resolve_profile(payload: ProfileResolveIn, request: Request):
    """Profile metadata; falls back to an unverified placeholder, never 404."""
    service = get_service(request)
    profile = await run_until_disconnect(
        request,
        service.resolve_profile(payload.username, request_id=_request_id(request)),
    )
    return ProfileOut.from_domain(profile).model_dump(mode="json", by_alias=True)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

async def gateway_error_handler(request: Request, exc: GatewayError):
    """Map typed gateway errors to their HTTP status"""
    if exc.status_code >= 500:
        logger.error(
            f"Internal error: {exc.detail}",
            extra={"request_id": _request_id(request)},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "request_id": _request_id(request)},
        )

    logger.info(f"Rejected request: {exc.code}: {exc.detail}", extra={"request_id": _request_id(request)})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed body -> 400 InvalidRequest"""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=InvalidRequest.status_code,
        content={"error": InvalidRequest.code, "detail": problems},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with appropriate logging"""
    if exc.status_code >= 500:
        logger.error(f"Server error: {exc.detail}", extra={"status_code": exc.status_code})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


async def client_disconnected_handler(request: Request, exc: ClientDisconnected):
    # Nobody is listening; nginx-style 499 keeps access logs honest
    return JSONResponse(status_code=499, content={"error": "ClientClosedRequest"})


# ============================================================================
# CREATE APP
# ============================================================================

@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""
    settings: Settings = fastapi_app.state.settings
    logger.info(
        f"Starting resolution gateway: env={settings.app_env}, "
        f"mode={settings.orchestrator_mode}, timeout={settings.provider_timeout_seconds}s"
    )

    yield

    # SHUTDOWN
    logger.info("Shutting down application")
    await close_all_sessions()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    service: ResolutionService | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit configuration; read from the environment when omitted.
        service: Pre-built service (tests inject fakes here); built from
            settings when omitted.
    """
    settings = settings or Settings()

    setup_logging(
        level=settings.log_level,
        use_json=settings.is_production,
    )
    for warning in validate_or_warn(settings):
        logger.warning(f"[config] {warning}")

    metrics_ = ResolverMetrics(MetricsCollector())
    if service is None:
        service = build_service(settings, metrics_)
    else:
        metrics_ = service.metrics

    fastapi_app = FastAPI(
        title="Media Resolution Gateway",
        description="Resolves social media URLs to canonical downloadable media descriptors",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    fastapi_app.state.settings = settings
    fastapi_app.state.service = service
    fastapi_app.state.metrics = metrics_

    # CORS - widget frontends call this API from the browser
    if settings.is_production or settings.is_staging:
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins if settings.allowed_origins != ["*"] else [],
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Request-ID"],
        )
    else:
        # More permissive in dev
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    fastapi_app.add_middleware(
        SecurityHeadersMiddleware,
        hsts=settings.is_production or settings.is_staging,
    )
    fastapi_app.add_middleware(ErrorHandlingMiddleware)
    fastapi_app.add_middleware(RequestLoggingMiddleware, enabled=settings.enable_request_logging)
    fastapi_app.add_middleware(RequestIDMiddleware)

    fastapi_app.add_exception_handler(GatewayError, gateway_error_handler)
    fastapi_app.add_exception_handler(RequestValidationError, validation_error_handler)
    fastapi_app.add_exception_handler(HTTPException, http_exception_handler)
    fastapi_app.add_exception_handler(ClientDisconnected, client_disconnected_handler)

    fastapi_app.include_router(router)
    return fastapi_app
