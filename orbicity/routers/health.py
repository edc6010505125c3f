"""
Health Endpoints

/health          process is up
/health/live     liveness probe
/health/ready    readiness probe, 503 until the database answers
/health/detailed database latency plus channel sync status
"""

from datetime import datetime, timedelta, timezone
import time

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text, func
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models.channel_integration import ChannelIntegration, SyncConflict, ConflictStatus

router = APIRouter(prefix="/health", tags=["Health"])

VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_db_health(db: Session) -> dict:
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "down", "error": str(e)[:100]}
    return {
        "status": "up",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "dialect": db.bind.dialect.name
    }


def get_channel_sync_health(db: Session) -> dict:
    """
    Degraded when an active integration's last sync failed, or when the
    periodic runner is on and a feed has not synced for three intervals.
    """
    active = ChannelIntegration.is_active == True
    total = db.query(func.count(ChannelIntegration.id)).filter(active).scalar()
    failing = db.query(func.count(ChannelIntegration.id)).filter(
        active, ChannelIntegration.last_sync_error.isnot(None)
    ).scalar()
    open_conflicts = db.query(func.count(SyncConflict.id)).filter(
        SyncConflict.status == ConflictStatus.OPEN.value
    ).scalar()

    stale = 0
    if settings.channel_sync_enabled:
        cutoff = datetime.utcnow() - timedelta(seconds=3 * settings.channel_sync_interval_seconds)
        stale = db.query(func.count(ChannelIntegration.id)).filter(
            active,
            (ChannelIntegration.last_synced_at.is_(None)) | (ChannelIntegration.last_synced_at < cutoff)
        ).scalar()

    return {
        "status": "degraded" if failing or stale else "up",
        "periodic_sync_enabled": settings.channel_sync_enabled,
        "active_integrations": total,
        "failing_integrations": failing,
        "stale_integrations": stale,
        "open_conflicts": open_conflicts
    }


@router.get("")
@router.get("/")
async def health():
    return {"status": "healthy", "version": VERSION, "timestamp": _now()}


@router.get("/live")
async def liveness():
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    database = get_db_health(db)
    if database["status"] != "up":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "reason": "database_unavailable", "timestamp": _now()}
        )
    return {"status": "ready", "timestamp": _now()}


@router.get("/detailed")
def detailed(db: Session = Depends(get_db)):
    checks = {"database": get_db_health(db)}

    if checks["database"]["status"] == "down":
        overall = "unhealthy"
    else:
        checks["channel_sync"] = get_channel_sync_health(db)
        overall = "degraded" if checks["channel_sync"]["status"] == "degraded" else "healthy"

    return {
        "status": overall,
        "version": VERSION,
        "environment": settings.environment,
        "timestamp": _now(),
        "checks": checks
    }
