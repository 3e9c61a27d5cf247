"""
ChatFurioso - Main FastAPI Application
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .api import chat_router, register_exception_handlers
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .storage.database import init_db

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)
    init_db()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Generation model: {settings.gemini_model}")
    logger.info(f"History window: {settings.max_history_turns} turns")
    logger.info(f"Log level: {settings.log_level.upper()}")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; every chat message will fail with 503")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="FURIA Esports fan chatbot backed by Google Gemini",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added after CORS so it wraps the whole stack
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(chat_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Bem-vindo ao ChatFurioso! VAMO FURIA!"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "model": settings.gemini_model,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "furia_chat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
