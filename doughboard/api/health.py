"""
Health check and status endpoints
"""
from fastapi import APIRouter
from datetime import datetime
from doughboard.config import get_settings
from doughboard.connectors import PROVIDERS
from doughboard import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Get system status"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "ad_platforms": list(PROVIDERS),
        "shopify_api_version": settings.shopify_api_version,
        "timestamp": datetime.utcnow().isoformat()
    }
