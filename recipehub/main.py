# RecipeHub API Main Entry Point
import logging
import sys
import time
import traceback
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import AuthClient
from .db import init_engine, init_session_factory
from .errors import ApiError
from .responses import format_error
from .routers.ready import router as ready_router
from .routers.recipes import router as recipes_router
from .routers.tags import router as tags_router
from .settings import Settings, load_settings

logger = logging.getLogger("recipehub")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    debug = settings.is_development

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(exc.message, exc.status_code, exc.detail, debug=debug),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=format_error("Invalid request", 400, jsonable_encoder(exc.errors()), debug=debug),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(message, exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=format_error(
                "Internal server error", 500,
                "".join(traceback.format_exception(exc)), debug=debug,
            ),
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.auth_client.aclose()

    app = FastAPI(title="RecipeHub API", version="1.0.0", lifespan=lifespan)

    engine = init_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = init_session_factory(engine)
    app.state.auth_client = AuthClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.auth_timeout_seconds,
    )

    # Rate limiter (per-IP)
    app.state.limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} -> {status_code} ({elapsed_ms:.1f}ms)")

    _register_exception_handlers(app, settings)

    app.include_router(ready_router, tags=["ready"])
    app.include_router(recipes_router)
    app.include_router(tags_router)

    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run("recipehub.main:create_app", factory=True, host="0.0.0.0", port=settings.port)
