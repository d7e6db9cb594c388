"""
FastAPI app assembly: logging, middleware, router wiring and the startup hook.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from workhaven.db.database import init_db
from workhaven.api.spots import router as spots_router
from workhaven.api.ratings import router as ratings_router
from workhaven.api.photos import router as photos_router
from workhaven.api.imports import router as imports_router
from workhaven.api.sync import router as sync_router
from workhaven.api.discovery import router as discovery_router
from workhaven.api.notifications import router as notifications_router
from workhaven.api.reset import router as reset_router
from workhaven.api.geocoding import router as geocoding_router
from workhaven.api.support import router as support_router
from workhaven.utils.feature_flags import auto_import_enabled
from workhaven.workers.startup_import import schedule_startup_import


@asynccontextmanager
async def lifespan(app: FastAPI):
    # PersistenceInitError propagates and aborts startup
    init_db()
    if auto_import_enabled():
        schedule_startup_import()
    else:
        logger.info("Automatic seed import disabled")
    yield


app = FastAPI(
    title="WorkHaven Service",
    description="API for curating work-friendly spots: import, ratings, search, sync and discovery.",
    version="1.0.0",
    lifespan=lifespan,
)

_default_origins = "http://localhost,http://localhost:3000,http://localhost:8000"
origins = [o.strip() for o in os.getenv("WORKHAVEN_CORS_ORIGINS", _default_origins).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(spots_router)
app.include_router(ratings_router)
app.include_router(photos_router)
app.include_router(imports_router)
app.include_router(sync_router)
app.include_router(discovery_router)
app.include_router(notifications_router)
app.include_router(reset_router)
app.include_router(geocoding_router)
app.include_router(support_router)
