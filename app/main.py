# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.auth import router as auth_router
from app.api.favorites import router as favorites_router
from app.api.health import router as health_router
from app.api.market import router as market_router

from app.config.logging_config import setup_logging
from app.config.settings import get_settings
from app.db import session as db_session
from app.db import models  # noqa: F401  registers tables on Base.metadata
from app.errors import AppError

logger = logging.getLogger("coin_tracker.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with db_session.engine.begin() as conn:
        await conn.run_sync(db_session.Base.metadata.create_all)
    logger.info("database ready")
    yield
    await db_session.engine.dispose()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed | %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={
            "message": message,
            "error": {"code": "validation_error", "message": message, "details": {"errors": errors}},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path, exc_info=exc)
    message = "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"message": message, "error": {"code": "internal_error", "message": message}},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def create_app() -> FastAPI:
    setup_logging()
    settings = get_settings()

    app = FastAPI(title="Coin Tracker API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(market_router)
    app.include_router(auth_router)
    app.include_router(favorites_router)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Coin tracker is running"}

    return app


app = create_app()
