"""
Chat widget proxy: FastAPI entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from chatwidget.config import settings
from chatwidget.logging_config import setup_logging
from chatwidget.middleware.error_handler import (
    global_exception_handler,
    validation_exception_handler,
)
from chatwidget.middleware.logging_middleware import logging_middleware

# ── Routes ───────────────────────────────────────────────
from chatwidget.routes.chat import router as chat_router
from chatwidget.routes.diagnostics import router as diagnostics_router
from chatwidget.routes.assistants import router as assistants_router


# ── Lifespan ─────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Forwarding chat requests to {settings.CHAT_API_URL}")
    yield
    logger.info("Shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Chat widget proxy and integration diagnostics API",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error handling & logging ─────────────────────────
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.middleware("http")(global_exception_handler)
    app.middleware("http")(logging_middleware)

    # ── Register Routers ────────────────────────────────
    app.include_router(chat_router)
    app.include_router(diagnostics_router)
    app.include_router(assistants_router)

    # ── Health Check ─────────────────────────────────────
    @app.get("/api/health", tags=["health"])
    async def health():
        return {
            "status": "ok",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


setup_logging()
app = create_app()


def run(host: str = None, port: int = None, reload: bool = None) -> None:
    import uvicorn
    uvicorn.run(
        "chatwidget.main:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=settings.DEBUG if reload is None else reload,
        log_level="info",
    )


# ── Run ──────────────────────────────────────────────────
if __name__ == "__main__":
    run()
