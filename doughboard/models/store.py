"""
Store Data Models

Per-shop state owned by the persistence layer:
- Offline Admin API sessions (one per installed shop)
- COGS settings (default percentage + per-SKU unit costs)
- Linked advertising accounts
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, Text, UniqueConstraint
from datetime import datetime
from decimal import Decimal
from typing import Dict

from doughboard.models.base import Base
from doughboard.utils.helpers import to_decimal


class ShopSession(Base):
    """
    Offline Shopify Admin API session

    Written by the app install flow; read to call the Admin API on behalf
    of the shop.
    """
    __tablename__ = "shop_sessions"

    id = Column(Integer, primary_key=True, index=True)
    shop = Column(String, unique=True, index=True, nullable=False)  # e.g. "my-store.myshopify.com"
    access_token = Column(String, nullable=False)
    scope = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class StoreSettings(Base):
    """
    COGS settings for a shop

    custom_cogs maps SKU -> unit cost. Costs are kept as decimal strings so
    an uploaded "1.50" reads back as exactly Decimal("1.50").
    """
    __tablename__ = "store_settings"

    id = Column(Integer, primary_key=True, index=True)
    shop = Column(String, unique=True, index=True, nullable=False)

    default_cogs_percentage = Column(Numeric(5, 2), nullable=False, default=30)  # 0-100
    custom_cogs = Column(JSON, nullable=False, default=dict)  # {"SKU-1": "12.50", ...}

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_custom_cogs(self) -> Dict[str, Decimal]:
        """Parsed SKU -> unit cost mapping (unparseable entries dropped)"""
        parsed = {}
        for sku, cost in (self.custom_cogs or {}).items():
            value = to_decimal(cost, default=None)
            if value is not None:
                parsed[sku] = value
        return parsed

    def to_dict(self) -> Dict:
        return {
            "shop": self.shop,
            "defaultCOGSPercentage": float(self.default_cogs_percentage or 0),
            "customCOGS": {sku: float(cost) for sku, cost in self.get_custom_cogs().items()},
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class AdAccount(Base):
    """
    Linked advertising account

    platform is one of the registered ad spend providers ("meta", "google").
    """
    __tablename__ = "ad_accounts"
    __table_args__ = (
        UniqueConstraint("shop", "platform", "account_id", name="uq_ad_account_shop_platform_account"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shop = Column(String, index=True, nullable=False)
    platform = Column(String, index=True, nullable=False)
    account_id = Column(String, nullable=False)
    access_token = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> Dict:
        """Public representation (never includes the access token)"""
        return {
            "id": self.id,
            "platform": self.platform,
            "accountId": self.account_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
