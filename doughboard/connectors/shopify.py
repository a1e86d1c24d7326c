"""
Shopify Orders Client

Reads orders from the Shopify Admin REST API for the dashboard window.
Nothing is persisted: every dashboard load works on a fresh snapshot.
"""
import httpx
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from doughboard.config import get_settings
from doughboard.utils.logger import log


class ShopifyAPIError(Exception):
    """Raised when the Admin API cannot return the requested orders"""


class ShopifyOrdersClient:
    """
    Client for GET /admin/api/{version}/orders.json

    Follows cursor pagination through the Link header.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Shopify client

        Args:
            shop: Shop domain (e.g., "your-store.myshopify.com")
            access_token: Offline Admin API access token
            api_version: API version to use (defaults to settings)
            transport: Optional httpx transport (used by tests)
        """
        settings = get_settings()

        self.shop = shop.replace('https://', '').replace('http://', '').rstrip('/')
        self.access_token = access_token
        self.api_version = api_version or settings.shopify_api_version
        self.base_url = f"https://{self.shop}/admin/api/{self.api_version}"
        self.page_limit = settings.shopify_page_limit
        self.timeout = settings.shopify_timeout_seconds
        self._transport = transport

    async def fetch_orders(self, start_date: datetime, end_date: datetime) -> List[Dict[str, Any]]:
        """
        Fetch every order created in [start_date, end_date]

        Args:
            start_date: Window start (naive values are UTC)
            end_date: Window end (naive values are UTC)

        Returns:
            Raw Shopify order resources

        Raises:
            ShopifyAPIError: on any non-200 response or transport error
        """
        log.info(f"Fetching Shopify orders for {self.shop} from {start_date} to {end_date}")

        url: Optional[str] = f"{self.base_url}/orders.json"
        params: Optional[Dict[str, Any]] = {
            "status": "any",  # open, closed and cancelled
            "created_at_min": self._format_timestamp(start_date),
            "created_at_max": self._format_timestamp(end_date),
            "limit": self.page_limit,
        }
        orders: List[Dict[str, Any]] = []

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                while url:
                    response = await client.get(url, params=params, headers=self._get_headers())

                    if response.status_code != 200:
                        raise ShopifyAPIError(
                            f"Error fetching orders: {response.status_code} - {response.text[:200]}"
                        )

                    orders.extend(response.json().get("orders", []))

                    # Params are in the URL for subsequent pages
                    url = self._get_next_page_url(response.headers.get("Link"))
                    params = None
        except httpx.HTTPError as e:
            raise ShopifyAPIError(f"Shopify request failed: {str(e)}") from e

        log.info(f"Fetched {len(orders)} orders for {self.shop}")
        return orders

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for Shopify API requests"""
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json"
        }

    @staticmethod
    def _format_timestamp(value: datetime) -> str:
        """ISO 8601 with an explicit offset; naive values are taken as UTC"""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    @staticmethod
    def _get_next_page_url(link_header: Optional[str]) -> Optional[str]:
        """
        Parse next page URL from Link header

        Example: <https://shop/admin/api/2023-10/orders.json?page_info=abc>; rel="next"
        """
        if not link_header:
            return None

        for link in link_header.split(","):
            parts = link.split(";")
            if len(parts) < 2:
                continue
            if 'rel="next"' in parts[1]:
                return parts[0].strip().strip("<>")

        return None
