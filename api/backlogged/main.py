"""Backlogged API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backlogged.access.policy import AccessPolicyResolver
from backlogged.comments.router import router as comments_router
from backlogged.comments.service import CommentService, create_comment_store
from backlogged.config import Settings, get_settings
from backlogged.core.context import get_request_id
from backlogged.core.database import init_async_cassandra, shutdown_async_cassandra
from backlogged.core.errors import DomainError, ErrorKind, InternalError
from backlogged.core.logging import configure_structlog, get_logger
from backlogged.core.middleware import RequestContextMiddleware
from backlogged.core.redis import RateLimiter, RateWindow, init_redis, shutdown_redis
from backlogged.follows.router import router as follows_router
from backlogged.follows.service import FollowGraph
from backlogged.health import router as health_router
from backlogged.playlists.router import router as playlists_router
from backlogged.playlists.service import PlaylistService, create_playlist_store
from backlogged.reviews.router import router as reviews_router
from backlogged.reviews.service import ReviewService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


_KIND_BY_STATUS = {
    status.HTTP_401_UNAUTHORIZED: ErrorKind.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorKind.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorKind.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorKind.CONFLICT,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorKind.VALIDATION,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorKind.RATE_LIMITED,
}


class AppState:
    """Application state container."""

    cassandra_session: Any = None
    follow_graph: FollowGraph | None = None
    review_service: ReviewService | None = None
    comment_service: CommentService | None = None
    playlist_service: PlaylistService | None = None


app_state = AppState()


def build_services(
    session: Any, settings: Settings, redis_client: Any = None
) -> dict[str, Any]:
    """Wire the follow graph, access policy and resource services."""
    keyspace = settings.cassandra_keyspace

    follow_graph = FollowGraph(session=session, keyspace=keyspace)
    policy = AccessPolicyResolver(follow_exists=follow_graph.exists)

    review_service = ReviewService(
        session=session,
        keyspace=keyspace,
        policy=policy,
        scan_limit=settings.store_scan_limit,
    )

    limiter = RateLimiter(
        redis_client,
        prefix="comments",
        windows=[
            RateWindow("minute", 60, settings.comments_per_minute),
            RateWindow("hour", 3600, settings.comments_per_hour),
        ],
    )
    comment_service = CommentService(
        session=session,
        keyspace=keyspace,
        store=create_comment_store(
            session,
            keyspace,
            scan_limit=settings.store_scan_limit,
            cas_max_attempts=settings.store_cas_max_attempts,
        ),
        reviews=review_service,
        policy=policy,
        limiter=limiter,
        max_length=settings.comment_max_length,
        admin_override=settings.access_admin_override_comments,
    )

    playlist_service = PlaylistService(
        session=session,
        keyspace=keyspace,
        store=create_playlist_store(
            session,
            keyspace,
            scan_limit=settings.store_scan_limit,
            cas_max_attempts=settings.store_cas_max_attempts,
        ),
        policy=policy,
        follows=follow_graph,
        admin_override=settings.access_admin_override_playlists,
    )

    return {
        "follow_graph": follow_graph,
        "review_service": review_service,
        "comment_service": comment_service,
        "playlist_service": playlist_service,
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - comment rate limiting disabled",
        )

    # Initialize Cassandra (async)
    try:
        app_state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        services = build_services(app_state.cassandra_session, settings, redis_client)
        for name, service in services.items():
            setattr(app_state, name, service)
            # Also set on app.state for dependency injection via request.app.state
            setattr(app.state, name, service)
        logger.info("services_initialized", services=sorted(services))
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def error_body(
    kind: ErrorKind,
    code: str,
    message: str,
    status_code: int,
    request_id: str | None,
) -> dict[str, Any]:
    """Error envelope shared by every handler."""
    return {
        "error": True,
        "kind": kind.value,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": request_id,
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering tracebacks
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Backlogged - game reviews, comment threads and playlists",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> ORJSONResponse:
        """Render an expected failure with its kind and code."""
        logger.info(
            "domain_error",
            kind=exc.kind.value,
            code=exc.code,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_body(
                exc.kind,
                exc.code,
                exc.message,
                exc.status_code,
                _get_request_id_safe(request),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        kind = _KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_body(
                kind,
                kind.value,
                message,
                exc.status_code,
                _get_request_id_safe(request),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors; field details are safe to expose."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        content = error_body(
            ErrorKind.VALIDATION,
            "invalid_input",
            "Validation error",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            _get_request_id_safe(request),
        )
        content["details"] = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: log everything, expose nothing."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        error = InternalError()
        return ORJSONResponse(
            status_code=error.status_code,
            content=error_body(
                error.kind,
                error.code,
                error.message,
                error.status_code,
                _get_request_id_safe(request),
            ),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(follows_router)
    app.include_router(reviews_router)
    app.include_router(comments_router)
    app.include_router(playlists_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Backlogged API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
