import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from stock_sync.core.config import Settings, get_settings
from stock_sync.dependencies import get_db
from stock_sync.services.sync_runner import build_client

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Service and database connectivity check"""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.error(f"Database connection check failed: {str(e)}")
        database = "disconnected"

    return {
        "status": "ok",
        "database": database,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/health/api")
async def api_health(settings: Settings = Depends(get_settings)):
    """Check that the stock API answers with the configured credentials"""
    available = await build_client(settings).health_check()
    return {
        "status": "ok" if available else "unavailable",
        "api": settings.STOCK_API_URL,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
