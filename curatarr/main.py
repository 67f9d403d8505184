from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from curatarr.database import init_db
from curatarr.routers import config_router, media_server_router, rules_router
from curatarr.scheduler import get_next_run_time, start_scheduler, stop_scheduler, schedule_log_retention
from curatarr.config import load_settings_from_db, runtime_settings, settings
from curatarr.version import __version__

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    await load_settings_from_db()
    start_scheduler()
    schedule_log_retention(settings.log_retention_hour, settings.log_retention_minute)
    yield
    # Shutdown
    stop_scheduler()


app = FastAPI(title="Curatarr", version=__version__, lifespan=lifespan)

# Include routers
app.include_router(config_router, prefix="/config", tags=["config"])
app.include_router(media_server_router, prefix="/api/media-server", tags=["media-server"])
app.include_router(rules_router, prefix="/api/rules", tags=["rules"])


@app.get("/")
async def home():
    """Service status."""
    next_run = get_next_run_time()
    return {
        "name": "Curatarr",
        "version": __version__,
        "media_server_type": runtime_settings.media_server_type,
        "next_log_retention": next_run.isoformat() if next_run else None
    }
