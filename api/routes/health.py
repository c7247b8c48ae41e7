"""Health check and utility routes"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
import logging

from domain.models import check_database_ready

router = APIRouter(tags=["Health"])
logger = logging.getLogger("feedersync.api.health")


@router.get("/health-check")
def health_check():
    """Basic health check endpoint"""
    return {"status": "ok", "service": "FeederSync"}


@router.get("/health-check/database")
def database_health(request: Request):
    """Whether the store answers queries"""
    try:
        check_database_ready(request.app.state.engine)
        return {"status": "ok", "database": "ready"}
    except Exception as e:
        logger.exception("Database readiness check failed")
        return JSONResponse(
            status_code=503, content={"status": "error", "database": "unavailable", "error": str(e)}
        )
