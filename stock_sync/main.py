# stock_sync/main.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from stock_sync import __version__
from stock_sync.core.config import Settings, get_settings
from stock_sync.core.logging_config import configure_logging
from stock_sync.core.security import require_auth
from stock_sync.database import create_tables
from stock_sync.routes import health, sync
from stock_sync.scheduler import create_scheduler, make_sync_job

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, init_db: bool = True) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_db:
            try:
                await create_tables(settings=settings)
                logger.info("Database tables are in place")
            except Exception as e:
                logger.error(f"Could not initialise database tables: {e}. Sync runs may fail until the database is reachable")

        scheduler = create_scheduler(settings, make_sync_job(settings, app.state.run_lock))
        scheduler.start()
        app.state.scheduler = scheduler
        try:
            yield  # This is where the app runs
        finally:
            scheduler.shutdown(wait=False)

    app = FastAPI(title="Stock Sync Service", version=__version__, lifespan=lifespan)
    app.state.run_lock = asyncio.Lock()
    app.state.background_tasks = set()

    app.include_router(health.router)  # Health check should be accessible without auth
    app.include_router(sync.router, dependencies=[require_auth()])

    @app.get("/")
    async def root():
        return {
            "service": "Stock Sync Service",
            "version": __version__,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "apiHealth": "/health/api",
                "syncManual": "/sync/manual",
                "syncRetrospective": "/sync/retrospective",
                "syncStatus": "/sync/status"
            }
        }

    return app


configure_logging()
app = create_app()
