from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_metrics
from app.logging_config import get_logger
from app.services.metrics_service import MetricsCollector

logger = get_logger("system")

router = APIRouter()

API_VERSION = "2.0.0"


@router.get("/")
async def root():
    return {
        "success": True,
        "message": "Welcome to ရွှေအိုး Pharmacy Backend API! 🏪",
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "welcome": "/",
            "health": "/health",
            "metrics": "/metrics",
            "webhook": "/webhook",
            "realtime": "/ws",
        },
        "features": [
            "Viber Bot Integration",
            "Realtime admin channel",
            "Bilingual Support (Myanmar/English)",
            "Performance Monitoring",
            "Rate Limiting",
        ],
    }


def check_database(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


@router.get("/health")
def health(db: Session = Depends(get_db), metrics: MetricsCollector = Depends(get_metrics)):
    return {
        "status": "ok",
        "database": "connected" if check_database(db) else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "metrics": metrics.get_metrics(),
    }


@router.get("/metrics")
async def metrics_snapshot(metrics: MetricsCollector = Depends(get_metrics)):
    return {"success": True, **metrics.get_metrics()}
