"""
TaskChat - Main Application

Conversational task dispatcher: chat messages in, task-store mutations and
replies out, with a per-user conversation transcript.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskchat.config import settings
from taskchat.database import database
from taskchat.chat import chat_router
from taskchat.chat.router import get_inference_client, set_inference_client
from taskchat.conversations import ConversationService, ConversationCleanupScheduler
from taskchat.conversations.repository import ConversationRepository
from taskchat.security import validate_security_config, validate_inference_config

import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: Validate configuration
    validate_security_config()
    set_inference_client(validate_inference_config())
    # Startup: Connect to MongoDB
    await database.connect()
    await database.ensure_indexes()

    # Startup: Start expired conversation sweep
    conversation_repository = ConversationRepository(database.get_database())
    scheduler = ConversationCleanupScheduler(ConversationService(conversation_repository))
    await scheduler.start()

    yield

    # Shutdown: Stop scheduler
    await scheduler.stop()
    # Shutdown: Release the inference client's connection pool
    client = get_inference_client()
    if client is not None:
        await client.close()
        set_inference_client(None)
    # Shutdown: Disconnect from MongoDB
    await database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Natural-language task management over chat",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS configuration - allow client origins
# Configure via CORS_ORIGINS environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-Id"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the service status and version information.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


app.include_router(chat_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taskchat.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
