"""
Meta Ads Provider

Reads account spend from the Meta Marketing (Graph) API insights edge.
"""
import json
from datetime import date
from typing import List

from doughboard.config import get_settings
from doughboard.connectors.base import AdPlatformError, AdSpendProvider, DailySpend, SpendResult
from doughboard.utils.helpers import to_decimal


class MetaAdsProvider(AdSpendProvider):
    """
    Spend via GET /{version}/act_{account_id}/insights

    One row per day (time_increment=1); pages are followed through
    paging.next until exhausted.
    """

    platform = "meta"
    display_name = "Meta"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        settings = get_settings()
        self.base_url = f"{settings.meta_graph_base_url.rstrip('/')}/{settings.meta_graph_api_version}"

    def _insights_url(self, account_id: str) -> str:
        account_id = str(account_id)
        if not account_id.startswith("act_"):
            account_id = f"act_{account_id}"
        return f"{self.base_url}/{account_id}/insights"

    async def fetch_spend(self, account_id: str, access_token: str, start_date: date, end_date: date) -> SpendResult:
        url = self._insights_url(account_id)
        params = {
            "access_token": access_token,
            "fields": "spend",
            "level": "account",
            "time_increment": 1,
            "time_range": json.dumps({
                "since": start_date.isoformat(),
                "until": end_date.isoformat()
            }),
        }

        daily: List[DailySpend] = []

        async with self._client() as client:
            while url:
                response = await client.get(url, params=params)
                self._raise_for_status(response, "Meta")

                payload = response.json()
                if "data" not in payload:
                    raise AdPlatformError(f"Unexpected Meta insights payload: {str(payload)[:200]}")

                for row in payload["data"]:
                    daily.append(DailySpend(
                        date=row.get("date_start") or start_date.isoformat(),
                        spend=to_decimal(row.get("spend")),
                    ))

                # Next page URL already carries every query parameter
                url = (payload.get("paging") or {}).get("next")
                params = None

        return SpendResult.from_daily(daily)
