"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

# main.py is at src/api/main.py, src is 2 levels up
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.config import get_settings
from api.routes import auth, health
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import create_mongodb_client
from adapter.mongodb.indexes import ensure_all_indexes

settings = get_settings()

setup_structured_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "Qrafty API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: one pooled MongoDB client for the whole process."""
    client = create_mongodb_client(settings.MONGO_URL)
    app.state.mongo_client = client
    if client:
        if ensure_all_indexes(client[settings.MONGODB_DATABASE]):
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")
    else:
        logger.warning("MongoDB unavailable, skipping index creation")

    logger.info(
        "Google OAuth configured: %s", "yes" if settings.google_configured else "no",
    )

    yield  # App runs here

    if client:
        client.close()
    app.state.mongo_client = None


app = FastAPI(
    title=SERVICE_NAME,
    description="Identity and session API for Qrafty QR profiles",
    version=VERSION,
    lifespan=lifespan,
)

# Session cookies require credentials, which browsers refuse with a wildcard
# origin, so only explicit origins are allowed.
cors_origins = settings.cors_origins
logger.info(f"CORS configured with origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(auth.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 4000))
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        access_log=False  # Access logs would carry OAuth codes in query strings
    )
