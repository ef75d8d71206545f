"""
Things API: FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the route table once, installs the request
       pipeline, registers exception handlers and mounts the routers.
Who:   uvicorn (`uvicorn thingsapi.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Pipeline:                                          │
    │  ┌──────────┐ ┌──────────┐ ┌────────┐ ┌──────────┐  │
    │  │  Req ID  │→│ Logging  │→│ Format │→│   Auth   │  │
    │  └──────────┘ └──────────┘ └────────┘ └──────────┘  │
    │                                                     │
    │  Routes (from app.state.route_table):               │
    │  ┌────────────────┐ ┌─────────────┐ ┌────────────┐  │
    │  │ /api/things... │ │ /api/routes │ │ GET /health│  │
    │  └────────────────┘ └─────────────┘ └────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ Validation→422 │ NotFound→404 │ Auth→401 │ 500│  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from thingsapi import __version__
from thingsapi.config import Settings, settings as default_settings
from thingsapi.database import attach_database, create_schema, dispose_engine
from thingsapi.exceptions import (
    DatabaseError,
    NotFoundError,
    ThingsAPIError,
    UnauthorizedError,
    UnsupportedFormatError,
    ValidationError,
    validation_messages,
)
from thingsapi.middleware.format import FormatSuffixMiddleware, require_supported_format
from thingsapi.middleware.logging import RequestLoggingMiddleware
from thingsapi.middleware.request_id import RequestIDMiddleware, request_id_var
from thingsapi.routes import health
from thingsapi.routes.route_map import build_route_map_router
from thingsapi.routes.things import build_things_router
from thingsapi.routing import RouteTable, resource_routes
from thingsapi.security import authenticate

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again or contact support."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, optional schema creation, route table summary.
    Shutdown: dispose the database engine.
    """
    config: Settings = app.state.settings
    setup_logging(config)
    logger.info("Things API %s starting up...", __version__)

    if config.auto_create_schema:
        await create_schema(app.state.engine)
        logger.info("Database schema ensured")

    for route in app.state.route_table:
        logger.debug("%-16s %-6s %s", route.name, route.verb, route.pattern)
    logger.info(
        "Serving %d routes under %s (authentication %s)",
        len(app.state.route_table),
        config.api_namespace,
        "enabled" if config.auth_enabled else "disabled",
    )

    yield

    logger.info("Things API shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers (error mapping)
# ══════════════════════════════════════════════════════════════════════════

def error_body(error: Any) -> Dict[str, Any]:
    return {"error": error, "request_id": request_id_var.get("")}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and `{"error": ...}` bodies.

    Handler hierarchy:
        ValidationError         → 422 (field-level messages)
        RequestValidationError  → 422 (field-level messages)
        NotFoundError           → 404
        UnauthorizedError       → 401 + WWW-Authenticate
        UnsupportedFormatError  → 406
        DatabaseError           → 500 (generic message)
        ThingsAPIError (base)   → its status_code
        HTTPException           → its status (unknown path, wrong method)
        Exception (fallback)    → 500 (generic message)

    Internal details stay in the logs, never in a response.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation failed: %s", request_id_var.get(""), exc.errors)
        return JSONResponse(status_code=422, content=error_body(exc.errors))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        messages = validation_messages(exc.errors())
        logger.warning("[%s] Invalid request: %s", request_id_var.get(""), messages)
        return JSONResponse(status_code=422, content=error_body(messages))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=error_body(exc.message))

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return JSONResponse(
            status_code=401,
            content=error_body(exc.message),
            headers={"WWW-Authenticate": f'Token realm="{exc.realm}"'},
        )

    @app.exception_handler(UnsupportedFormatError)
    async def handle_unsupported_format(request: Request, exc: UnsupportedFormatError):
        return JSONResponse(status_code=406, content=error_body(exc.message))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body("An internal error occurred. Please try again later."),
        )

    @app.exception_handler(ThingsAPIError)
    async def handle_app_error(request: Request, exc: ThingsAPIError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=error_body(GENERIC_SERVER_ERROR))


# ══════════════════════════════════════════════════════════════════════════
# Request Pipeline
# ══════════════════════════════════════════════════════════════════════════

def install_pipeline(app: FastAPI, config: Settings) -> None:
    """
    Add the middleware chain. Execution order is the reverse of addition:
    RequestID → Logging → FormatSuffix → GZip → CORS → routing.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Location"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(FormatSuffixMiddleware, namespace=config.api_namespace)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_route_table(config: Settings) -> RouteTable:
    return resource_routes(
        "things",
        namespace=config.api_namespace,
        form_actions=config.form_actions,
    )


def create_app(
    config: Optional[Settings] = None,
    route_table: Optional[RouteTable] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config:       Settings instance; defaults to the module singleton.
                      The app's engine and sessions are built from it.
        route_table:  Prebuilt route table; defaults to the `things` table
                      for `config.api_namespace`
    """
    config = config or default_settings
    route_table = route_table if route_table is not None else build_route_table(config)

    app = FastAPI(
        title="Things API",
        description="Namespaced JSON API for the `things` resource.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.route_table = route_table
    attach_database(app.state, config)

    install_pipeline(app, config)
    register_exception_handlers(app)

    # Order matters: authentication runs before format negotiation
    guarded = [Depends(authenticate), Depends(require_supported_format)]
    app.include_router(build_things_router(route_table, dependencies=guarded))
    app.include_router(build_route_map_router(config.api_namespace, dependencies=guarded))
    app.include_router(health.router)

    return app


app = create_app()
