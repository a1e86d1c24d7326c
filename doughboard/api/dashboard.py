"""
Profit Dashboard API

Endpoints for order metrics and the composed profit dashboard.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from doughboard.api.deps import get_shop_session
from doughboard.connectors.shopify import ShopifyAPIError
from doughboard.models.base import get_db
from doughboard.models.store import ShopSession
from doughboard.services.dashboard_service import ALLOWED_WINDOWS, DashboardService
from doughboard.utils.logger import log

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


def _check_days(days: int):
    if days not in ALLOWED_WINDOWS:
        raise HTTPException(
            status_code=400,
            detail=f"days must be one of {', '.join(str(d) for d in ALLOWED_WINDOWS)}"
        )


@router.get("")
async def get_dashboard(
    days: int = Query(30, description="Trailing window: 7, 30 or 90 days"),
    session: ShopSession = Depends(get_shop_session),
    service: DashboardService = Depends(get_dashboard_service),
):
    """
    Order metrics for the window

    Returns revenue, COGS, gross profit, new vs returning customer revenue,
    order count and average order value.
    """
    _check_days(days)
    try:
        metrics = await service.get_metrics(session, days)
        return metrics.to_dict()
    except ShopifyAPIError as e:
        log.error(f"Dashboard API error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=502, detail="Failed to fetch dashboard data")
    except Exception as e:
        log.error(f"Dashboard API error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard data")


@router.get("/summary")
async def get_dashboard_summary(
    days: int = Query(30, description="Trailing window: 7, 30 or 90 days"),
    session: ShopSession = Depends(get_shop_session),
    service: DashboardService = Depends(get_dashboard_service),
):
    """
    Complete profit dashboard

    Returns:
    - Order metrics
    - Ad spend total and per-platform breakdown
    - Net profit and margin after ad spend
    - Customer mix and chart data
    """
    _check_days(days)
    try:
        return await service.get_summary(session, days)
    except ShopifyAPIError as e:
        log.error(f"Dashboard summary error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=502, detail="Failed to fetch dashboard data")
    except Exception as e:
        log.error(f"Dashboard summary error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard data")
