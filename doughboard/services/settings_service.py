"""
Store Settings Service

Reads and upserts a shop's COGS settings.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Mapping, Optional

from sqlalchemy.orm import Session

from doughboard.config import get_settings
from doughboard.models.store import StoreSettings
from doughboard.utils.helpers import to_decimal
from doughboard.utils.logger import log


def serialize_cogs(custom_cogs: Optional[Mapping[str, object]]) -> Dict[str, str]:
    """Store unit costs as exact decimal strings, dropping unparseable ones"""
    serialized = {}
    for sku, cost in (custom_cogs or {}).items():
        value = to_decimal(cost, default=None)
        if sku and value is not None:
            serialized[str(sku)] = str(value)
    return serialized


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_settings(self, shop: str) -> Optional[StoreSettings]:
        return self.db.query(StoreSettings).filter(StoreSettings.shop == shop).first()

    def get_or_default(self, shop: str) -> Dict:
        """Stored settings as a response dict, or defaults for a new shop"""
        record = self.get_settings(shop)
        if record:
            return record.to_dict()
        return {
            "shop": shop,
            "defaultCOGSPercentage": get_settings().default_cogs_percentage,
            "customCOGS": {},
            "updatedAt": None,
        }

    def save_settings(
        self,
        shop: str,
        default_cogs_percentage: Optional[Decimal] = None,
        custom_cogs: Optional[Mapping[str, object]] = None,
    ) -> StoreSettings:
        """
        Upsert settings for a shop

        Args:
            shop: Shop domain
            default_cogs_percentage: 0-100; None keeps the stored value
                (or the configured default for a new shop)
            custom_cogs: SKU -> unit cost; None keeps the stored mapping
                (or {} for a new shop)
        """
        record = self.get_settings(shop)

        if record is None:
            record = StoreSettings(
                shop=shop,
                default_cogs_percentage=to_decimal(get_settings().default_cogs_percentage),
                custom_cogs={},
            )
            self.db.add(record)

        if default_cogs_percentage is not None:
            record.default_cogs_percentage = to_decimal(default_cogs_percentage)
        if custom_cogs is not None:
            record.custom_cogs = serialize_cogs(custom_cogs)
        record.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(record)

        log.info(
            f"Saved settings for {shop}: default {record.default_cogs_percentage}%, "
            f"{len(record.custom_cogs or {})} SKU costs"
        )
        return record
