"""
Data connectors

Ad spend providers are registered by platform key; registry order is the
order platforms appear in the dashboard breakdown.
"""
from typing import Dict, Optional, Type

from doughboard.connectors.base import AdSpendProvider, AdPlatformError, DailySpend, SpendResult
from doughboard.connectors.google_ads import GoogleAdsProvider
from doughboard.connectors.meta_ads import MetaAdsProvider
from doughboard.connectors.shopify import ShopifyAPIError, ShopifyOrdersClient

PROVIDERS: Dict[str, Type[AdSpendProvider]] = {
    MetaAdsProvider.platform: MetaAdsProvider,
    GoogleAdsProvider.platform: GoogleAdsProvider,
}


def get_provider(platform: str) -> Optional[AdSpendProvider]:
    """Instantiate the provider for a platform key, or None if unsupported"""
    provider_cls = PROVIDERS.get((platform or "").lower())
    return provider_cls() if provider_cls else None


__all__ = [
    "AdSpendProvider",
    "AdPlatformError",
    "DailySpend",
    "SpendResult",
    "GoogleAdsProvider",
    "MetaAdsProvider",
    "ShopifyAPIError",
    "ShopifyOrdersClient",
    "PROVIDERS",
    "get_provider",
]
