"""
Ad Spend API

Ad spend totals for a date range and management of linked ad accounts.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from doughboard.api.deps import get_shop_session
from doughboard.connectors import PROVIDERS
from doughboard.models.base import get_db
from doughboard.models.store import AdAccount, ShopSession
from doughboard.services.ad_spend_service import AdSpendService
from doughboard.services.dashboard_service import default_ad_spend_range
from doughboard.utils.helpers import parse_date_param
from doughboard.utils.logger import log

router = APIRouter(prefix="/api", tags=["ads"])


class AdAccountCreate(BaseModel):
    platform: str
    account_id: str = Field(..., alias="accountId", min_length=1)
    access_token: str = Field(..., alias="accessToken", min_length=1)

    model_config = {"populate_by_name": True}

    @field_validator("platform")
    @classmethod
    def check_platform(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in PROVIDERS:
            raise ValueError(f"platform must be one of: {', '.join(PROVIDERS)}")
        return value


def get_ad_spend_service(db: Session = Depends(get_db)) -> AdSpendService:
    return AdSpendService(db)


@router.get("/ad-spend")
async def get_ad_spend(
    start_date: Optional[str] = Query(None, alias="startDate", description="ISO date or datetime"),
    end_date: Optional[str] = Query(None, alias="endDate", description="ISO date or datetime"),
    session: ShopSession = Depends(get_shop_session),
    service: AdSpendService = Depends(get_ad_spend_service),
):
    """
    Ad spend across every linked account

    Defaults to the last 30 days. A platform whose API fails contributes 0
    rather than failing the request.
    """
    try:
        start = parse_date_param(start_date)
        end = parse_date_param(end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    default_start, default_end = default_ad_spend_range()
    start = start or default_start
    end = end or default_end
    if start > end:
        raise HTTPException(status_code=400, detail="startDate must be on or before endDate")

    try:
        summary = await service.get_summary(session.shop, start, end)
        return summary.to_dict()
    except Exception as e:
        log.error(f"Ad spend API error for {session.shop}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch ad spend data")


@router.get("/ad-accounts")
def list_ad_accounts(
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """Linked ad accounts (access tokens are never returned)"""
    accounts = db.query(AdAccount).filter(AdAccount.shop == session.shop).order_by(AdAccount.id).all()
    return {
        "accounts": [a.to_dict() for a in accounts],
        "count": len(accounts),
    }


@router.post("/ad-accounts", status_code=201)
def link_ad_account(
    payload: AdAccountCreate,
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """Link an ad account to the shop"""
    account = AdAccount(
        shop=session.shop,
        platform=payload.platform,
        account_id=payload.account_id.strip(),
        access_token=payload.access_token,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Ad account is already linked")

    db.refresh(account)
    log.info(f"Linked {account.platform} account {account.account_id} for {session.shop}")
    return account.to_dict()


@router.delete("/ad-accounts/{account_id}")
def unlink_ad_account(
    account_id: int,
    session: ShopSession = Depends(get_shop_session),
    db: Session = Depends(get_db),
):
    """Unlink an ad account"""
    account = db.query(AdAccount).filter(
        AdAccount.id == account_id,
        AdAccount.shop == session.shop
    ).first()
    if not account:
        raise HTTPException(status_code=404, detail="Ad account not found")

    db.delete(account)
    db.commit()
    log.info(f"Unlinked {account.platform} account {account.account_id} for {session.shop}")
    return {"success": True}
