"""
Health check endpoint handler.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from core.database import check_database

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    Checks database connectivity; returns 503 when the database is unreachable.
    """
    database_ok = await check_database()
    health_status = {
        "status": "healthy" if database_ok else "unhealthy",
        "services": {
            "database": {"status": "healthy" if database_ok else "unhealthy"},
        },
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=health_status)
