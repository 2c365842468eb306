"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from adapter.mongodb.connection import ping
from api.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request, settings: Settings = Depends(get_settings)):
    """Health check endpoint with dependency status.

    Reports only whether Google credentials are present, never their values.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "googleOAuthConfigured": settings.google_configured,
        "googleEnv": {
            "hasClientId": bool(settings.GOOGLE_CLIENT_ID),
            "hasClientSecret": bool(settings.GOOGLE_CLIENT_SECRET),
            "hasRedirectUrl": bool(settings.GOOGLE_REDIRECT_URL),
        },
        "services": {}
    }

    mongo_client = getattr(request.app.state, "mongo_client", None)
    if ping(mongo_client):
        health_status["services"]["mongodb"] = {
            "status": "healthy",
            "message": "Connection successful"
        }
        status_code = status.HTTP_200_OK
    else:
        health_status["services"]["mongodb"] = {
            "status": "unhealthy",
            "message": "Connection failed or not configured"
        }
        health_status["status"] = "degraded"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        content=health_status,
        status_code=status_code
    )
