"""
Shared API dependencies
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from doughboard.models.base import get_db
from doughboard.models.store import ShopSession


def normalize_shop(shop: str) -> str:
    return shop.strip().lower().replace("https://", "").replace("http://", "").rstrip("/")


def get_shop_session(
    shop: Optional[str] = Query(None, description="Shop domain, e.g. my-store.myshopify.com"),
    x_shopify_shop_domain: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> ShopSession:
    """
    Resolve the installed shop for the request

    The embedded app passes the shop as ?shop=; server-to-server callers can
    use the X-Shopify-Shop-Domain header.
    """
    shop_domain = shop or x_shopify_shop_domain
    if not shop_domain:
        raise HTTPException(status_code=401, detail="Missing shop")

    session = db.query(ShopSession).filter(ShopSession.shop == normalize_shop(shop_domain)).first()
    if not session:
        raise HTTPException(status_code=401, detail="Shop is not installed")

    return session
