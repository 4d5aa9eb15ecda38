"""
FastAPI application entry point for DocFlow.

Serves user accounts, document storage and the document ingestion
pipeline. All /api routes except auth registration/login and the
ingestion status webhook require a bearer token.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docflow.api.routes import auth
from docflow.api.routes import documents
from docflow.api.routes import health
from docflow.api.routes import ingestion
from docflow.api.routes import users
from docflow.config.settings import get_settings
from docflow.ingestion.jobs.executor import get_job_executor

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SHUTDOWN_DRAIN_TIMEOUT_SECONDS = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting DocFlow API")
    settings = get_settings()

    # Database connectivity check - surface misconfigurations in deploy logs
    if not settings.database_url:
        logger.error(
            "DATABASE_URL is not set. All database-backed endpoints will return 503."
        )
        app.state.database_configured = False
    else:
        # Mask credentials for safe logging
        masked = settings.database_url.split("@")[-1]
        logger.info("DATABASE_URL configured", extra={"host_db": masked})
        app.state.database_configured = True

    if not settings.ingestion_webhook_secret:
        logger.error(
            "INGESTION_WEBHOOK_SECRET is not set. Ingestion status webhooks will return 503."
        )

    yield

    # Shutdown
    executor = get_job_executor()
    if executor.pending_count:
        logger.info(
            "Waiting for running ingestion jobs",
            extra={"pending": executor.pending_count},
        )
        await executor.drain(timeout=SHUTDOWN_DRAIN_TIMEOUT_SECONDS)
    logger.info("Shutting down DocFlow API")


# Create FastAPI app
app = FastAPI(
    title="DocFlow API",
    description="Document storage and processing pipeline",
    version="1.0.0",
    lifespan=lifespan
)

cors_origins = get_settings().cors_origins or ["http://localhost:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include health route (bypasses authentication)
app.include_router(health.router)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(documents.router)
app.include_router(ingestion.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
