# ibdpal backend api
# fastapi app with async mongodb: disease activity, targets, and medication adherence

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ibdpal.config import settings
from ibdpal.services.db import db
from ibdpal.routers import adherence, disease_activity, targets

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close connection."""
    logger.info("Starting IBDPal backend...")
    await db.connect()
    logger.info("IBDPal backend ready")
    yield
    logger.info("Shutting down IBDPal backend...")
    await db.close()


app = FastAPI(
    title="IBDPal API",
    description="Clinical scoring API for IBDPal: disease activity, evidence-based targets, medication adherence",
    version="0.1.0",
    lifespan=lifespan,
)

# cors - allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(disease_activity.router)
app.include_router(targets.router)
app.include_router(adherence.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "ibdpal-api"}
