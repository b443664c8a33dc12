"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify DB connectivity (postgres backend only).
  • On shutdown: dispose the engine cleanly.

Routers:
  • /client                — client portal (token-authenticated)
  • /contact, /testimonials, /past-projects — public site
  • /admin/...             — admin dashboard (X-Admin-Email allow-list)
  • /health                — shallow liveness probe
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import engine, ping_database
from app.routers import client, contact, feedback, media, past_projects, projects, tokens

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    if settings.STORE_BACKEND == "memory":
        logger.warning("Using the in-memory document store — data is lost on restart")
    else:
        try:
            await ping_database()
            logger.info("Database connection verified ✓")
        except Exception:
            logger.warning(
                "Could not reach the database on startup. "
                "The app will start, but requests will fail until the DB is available."
            )

    yield  # ← application runs here

    await engine.dispose()
    logger.info("Database engine disposed ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Client portal and admin API — project access tokens, status "
        "updates, feedback, contact requests and the past-projects gallery."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public
app.include_router(client.router, prefix="/client")
app.include_router(contact.public_router)
app.include_router(feedback.public_router)
app.include_router(past_projects.public_router)

# Admin
app.include_router(projects.router, prefix="/admin/projects")
app.include_router(tokens.router, prefix="/admin/tokens")
app.include_router(feedback.router, prefix="/admin/feedback")
app.include_router(contact.router, prefix="/admin/contact-requests")
app.include_router(past_projects.router, prefix="/admin/past-projects")
app.include_router(media.router, prefix="/admin/media")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
