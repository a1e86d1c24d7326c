"""
Google Ads Provider

Reads daily account cost from the Google Ads REST API (searchStream).
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict

from doughboard.config import get_settings
from doughboard.connectors.base import AdPlatformError, AdSpendProvider, DailySpend, SpendResult
from doughboard.utils.helpers import ZERO, to_decimal

MICROS = Decimal("1000000")

SPEND_QUERY = """
    SELECT segments.date, metrics.cost_micros
    FROM customer
    WHERE segments.date BETWEEN '{start}' AND '{end}'
"""


class GoogleAdsProvider(AdSpendProvider):
    """
    Spend via POST /{version}/customers/{customer_id}/googleAds:searchStream

    The stored access token is an OAuth2 bearer token; the developer token
    (and manager login customer id, if any) come from settings.
    """

    platform = "google"
    display_name = "Google"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = get_settings()
        self.base_url = f"{self.settings.google_ads_base_url.rstrip('/')}/{self.settings.google_ads_api_version}"

    def _get_headers(self, access_token: str) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "developer-token": self.settings.google_ads_developer_token,
            "Content-Type": "application/json",
        }
        if self.settings.google_ads_login_customer_id:
            headers["login-customer-id"] = self.settings.google_ads_login_customer_id.replace("-", "")
        return headers

    async def fetch_spend(self, account_id: str, access_token: str, start_date: date, end_date: date) -> SpendResult:
        if not self.settings.google_ads_developer_token:
            raise AdPlatformError("GOOGLE_ADS_DEVELOPER_TOKEN is not configured")

        customer_id = str(account_id).replace("-", "")
        url = f"{self.base_url}/customers/{customer_id}/googleAds:searchStream"
        query = SPEND_QUERY.format(start=start_date.isoformat(), end=end_date.isoformat())

        async with self._client() as client:
            response = await client.post(url, json={"query": query}, headers=self._get_headers(access_token))
            self._raise_for_status(response, "Google")
            batches = response.json()

        if not isinstance(batches, list):
            raise AdPlatformError(f"Unexpected Google Ads payload: {str(batches)[:200]}")

        # Rows are per day, but a stream may split one day across batches
        by_day: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for batch in batches:
            for row in batch.get("results", []):
                day = (row.get("segments") or {}).get("date")
                if not day:
                    continue
                cost_micros = to_decimal((row.get("metrics") or {}).get("costMicros"))
                by_day[day] += cost_micros / MICROS

        daily = [DailySpend(date=day, spend=spend) for day, spend in sorted(by_day.items())]
        return SpendResult.from_daily(daily)
