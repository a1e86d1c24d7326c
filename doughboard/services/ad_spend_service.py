"""
Ad Spend Aggregation Service

Sums spend across every linked ad account for a date range.
Answers: "How much did I spend on ads, and where?"

One external read is issued per account, all concurrently. Each read is
isolated: a failure becomes a zero result for that call only, so the
aggregate always completes.
"""
import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from doughboard.connectors import PROVIDERS, AdSpendProvider, SpendResult
from doughboard.models.store import AdAccount
from doughboard.utils.helpers import ZERO, money
from doughboard.utils.logger import log


@dataclass
class PlatformSpend:
    platform: str  # display label, e.g. "Meta"
    total: Decimal = ZERO
    daily: Dict[str, Decimal] = field(default_factory=dict)
    accounts: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, account_id: str, result: SpendResult):
        self.total += result.total
        for day in result.daily:
            self.daily[day.date] = self.daily.get(day.date, ZERO) + day.spend
        self.accounts.append({"accountId": account_id, "total": result.total})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "total": money(self.total),
            "daily": [{"date": d, "spend": money(s)} for d, s in sorted(self.daily.items())],
            "accounts": [{"accountId": a["accountId"], "total": money(a["total"])} for a in self.accounts],
        }


@dataclass
class AdSpendSummary:
    total_ad_spend: Decimal = ZERO
    breakdown: List[PlatformSpend] = field(default_factory=list)

    def platform_total(self, platform: str) -> Decimal:
        for entry in self.breakdown:
            if entry.platform.lower() == platform.lower():
                return entry.total
        return ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalAdSpend": money(self.total_ad_spend),
            "breakdown": [entry.to_dict() for entry in self.breakdown],
        }


class AdSpendService:
    """Service for aggregating ad spend across platforms"""

    def __init__(self, db: Optional[Session] = None, providers: Optional[Dict[str, AdSpendProvider]] = None):
        """
        Args:
            db: Database session (only needed for get_accounts/get_summary)
            providers: Platform key -> provider instance. Defaults to one
                instance of every registered provider.
        """
        self.db = db
        if providers is None:
            providers = {key: provider_cls() for key, provider_cls in PROVIDERS.items()}
        self.providers = providers

    def get_accounts(self, shop: str) -> List[AdAccount]:
        return self.db.query(AdAccount).filter(AdAccount.shop == shop).order_by(AdAccount.id).all()

    async def get_summary(self, shop: str, start_date: date, end_date: date) -> AdSpendSummary:
        """Aggregate spend for every account linked to a shop"""
        return await self.aggregate(self.get_accounts(shop), start_date, end_date)

    async def aggregate(self, accounts: Iterable[Any], start_date: date, end_date: date) -> AdSpendSummary:
        """
        Aggregate spend for the given accounts

        Args:
            accounts: Objects with platform, account_id and access_token
            start_date: First day (inclusive)
            end_date: Last day (inclusive)

        Returns:
            AdSpendSummary with one breakdown entry per platform that has
            at least one account, in provider registry order
        """
        by_platform: Dict[str, List[Any]] = defaultdict(list)
        for account in accounts:
            platform = (account.platform or "").lower()
            if platform not in self.providers:
                log.warning(f"Skipping ad account {account.account_id}: unsupported platform '{account.platform}'")
                continue
            by_platform[platform].append(account)

        if not by_platform:
            return AdSpendSummary()

        log.info(
            f"Fetching ad spend {start_date} to {end_date} for "
            + ", ".join(f"{len(a)} {p}" for p, a in by_platform.items())
        )

        calls = []
        for platform, platform_accounts in by_platform.items():
            provider = self.providers[platform]
            for account in platform_accounts:
                calls.append((platform, account, provider.get_spend(
                    account.account_id, account.access_token, start_date, end_date
                )))

        results = await asyncio.gather(*(call for _, _, call in calls), return_exceptions=True)

        summary = AdSpendSummary()
        entries: Dict[str, PlatformSpend] = {}
        for platform in self.providers:
            if platform in by_platform:
                entries[platform] = PlatformSpend(platform=self.providers[platform].display_name)

        for (platform, account, _), result in zip(calls, results):
            if isinstance(result, BaseException):
                # get_spend() already isolates failures; this guards custom providers
                log.error(f"Ad spend read failed for {platform} account {account.account_id}: {str(result)}")
                result = SpendResult.empty()
            entries[platform].add(account.account_id, result)

        summary.breakdown = list(entries.values())
        summary.total_ad_spend = sum((entry.total for entry in summary.breakdown), ZERO)

        log.info(f"Ad spend total: {summary.total_ad_spend} across {len(summary.breakdown)} platforms")
        return summary
