# merch_hub/main.py
# Merch Hub API - vendor CSV imports + SKU reconciliation
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from merch_hub.settings import settings
from merch_hub.database import init_db, close_db, check_db_health, create_tables, get_database_url
from merch_hub.routers.imports import router as imports_router

# ---------------------------------------------------------
# Logging setup
# ---------------------------------------------------------
from merch_hub.logging_setup import setup_logging
setup_logging(settings)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# ---------------------------------------------------------
# Lifespan: Database init/cleanup
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await init_db()
    if get_database_url().startswith("sqlite"):
        # local runs have no migrations
        await create_tables()
    logger.info("Database initialized")
    yield
    await close_db()
    logger.info("Database connections closed")


# ---------------------------------------------------------
# FastAPI app + CORS
# ---------------------------------------------------------
app = FastAPI(
    title="Merch Hub API",
    version=VERSION,
    description="Merchandise & tour inventory - vendor imports and SKU reconciliation",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(imports_router)


# ---------------------------------------------------------
# Endpoints
# ---------------------------------------------------------
@app.get("/health")
async def health():
    """Health check endpoint with database status."""
    result = {"status": "ok", "version": VERSION}
    db_health = await check_db_health()
    result["database"] = db_health
    if db_health.get("status") != "healthy":
        result["status"] = "degraded"
    return result
