"""
StaffSense - Health Check Router
Provides API and roster database health status endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone

from staffsense.database import get_db
from staffsense.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check for API and roster database.

    Returns:
        - API status
        - Database connection status
        - Current timestamp
        - Environment info
    """
    try:
        db.execute(text("SELECT 1")).fetchone()
        db_status = "healthy"
        db_message = "Roster database reachable"
    except Exception as e:
        db_status = "unhealthy"
        db_message = str(e)

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "service": "staffsense-api",
        "version": settings.app_version,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": {
                "status": db_status,
                "message": db_message
            }
        }
    }


@router.get("/health/db")
async def database_health(db: Session = Depends(get_db)):
    """
    Roster table row counts.
    """
    try:
        tables = ["employees", "projects", "assignments"]
        counts = {}

        for table in tables:
            counts[table] = db.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()

        return {
            "status": "healthy",
            "tables": counts,
            "total_records": sum(counts.values())
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
