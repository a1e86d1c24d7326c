"""
Base Ad Spend Provider

Every advertising platform integration implements this interface.
Provides the shared contract, timeout handling and per-call failure isolation.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from doughboard.config import get_settings
from doughboard.utils.helpers import ZERO, money
from doughboard.utils.logger import log


@dataclass(frozen=True)
class DailySpend:
    date: str  # YYYY-MM-DD
    spend: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "spend": money(self.spend)}


@dataclass(frozen=True)
class SpendResult:
    """Spend returned by a single external read"""
    total: Decimal = ZERO
    daily: List[DailySpend] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "SpendResult":
        return cls()

    @classmethod
    def from_daily(cls, daily: List[DailySpend]) -> "SpendResult":
        return cls(total=sum((d.spend for d in daily), ZERO), daily=daily)


class AdSpendProvider(ABC):
    """
    Base class for ad platform spend readers

    Subclasses implement fetch_spend(); callers use get_spend(), which never
    raises: a failed read is logged and replaced by SpendResult.empty() so one
    platform can't block or corrupt another.
    """

    #: Platform key stored on AdAccount.platform
    platform: str = ""
    #: Label shown in the dashboard breakdown
    display_name: str = ""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize provider

        Args:
            timeout: Per-request timeout in seconds (defaults to settings)
            transport: Optional httpx transport (used by tests)
        """
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.ad_platform_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @abstractmethod
    async def fetch_spend(self, account_id: str, access_token: str, start_date: date, end_date: date) -> SpendResult:
        """
        Read spend for one account over [start_date, end_date]

        May raise on any network, auth or payload error.
        """
        pass

    async def get_spend(self, account_id: str, access_token: str, start_date: date, end_date: date) -> SpendResult:
        """Read spend, degrading to an empty result on failure"""
        try:
            result = await self.fetch_spend(account_id, access_token, start_date, end_date)
            log.info(f"{self.display_name} spend for {account_id}: {result.total} over {len(result.daily)} days")
            return result
        except Exception as e:
            log.error(f"{self.display_name} Ads API error for account {account_id}: {type(e).__name__}: {str(e)}")
            return SpendResult.empty()

    @staticmethod
    def _raise_for_status(response: httpx.Response, platform: str):
        if response.status_code == 429:
            raise AdPlatformError(f"{platform} rate limited (429)")
        if response.status_code in (401, 403):
            raise AdPlatformError(f"{platform} rejected credentials ({response.status_code})")
        if response.status_code != 200:
            raise AdPlatformError(f"{platform} returned {response.status_code}: {response.text[:200]}")


class AdPlatformError(Exception):
    """Raised by providers when a platform responds with an error"""
