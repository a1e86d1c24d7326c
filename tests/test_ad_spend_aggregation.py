"""
Ad spend aggregation tests.

Guards against:
1. One platform's API failure zeroing or blocking another platform
2. Breakdown entries appearing for platforms with no linked accounts
3. Unknown platforms crashing the aggregate
"""
import asyncio
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from doughboard.connectors.base import AdSpendProvider, DailySpend, SpendResult
from doughboard.services.ad_spend_service import AdSpendService

START = date(2024, 3, 1)
END = date(2024, 3, 2)


@dataclass
class Account:
    platform: str
    account_id: str
    access_token: str = "token"


class FixedProvider(AdSpendProvider):
    """Returns canned spend per account id"""

    def __init__(self, platform, display_name, spend_by_account):
        super().__init__(timeout=1)
        self.platform = platform
        self.display_name = display_name
        self.spend_by_account = spend_by_account
        self.calls = []

    async def fetch_spend(self, account_id, access_token, start_date, end_date):
        self.calls.append((account_id, start_date, end_date))
        daily = [DailySpend(date=d, spend=Decimal(s)) for d, s in self.spend_by_account[account_id]]
        return SpendResult.from_daily(daily)


class FailingProvider(AdSpendProvider):
    def __init__(self, platform, display_name):
        super().__init__(timeout=1)
        self.platform = platform
        self.display_name = display_name

    async def fetch_spend(self, account_id, access_token, start_date, end_date):
        raise ConnectionError("upstream unavailable")


def _run(coro):
    return asyncio.run(coro)


def _meta():
    return FixedProvider("meta", "Meta", {
        "111": [("2024-03-01", "10.00"), ("2024-03-02", "5.50")],
        "222": [("2024-03-02", "4.50")],
    })


def _google():
    return FixedProvider("google", "Google", {
        "9990001111": [("2024-03-01", "20.25")],
    })


def test_sums_accounts_per_platform_and_overall():
    service = AdSpendService(providers={"meta": _meta(), "google": _google()})
    accounts = [Account("meta", "111"), Account("google", "9990001111"), Account("meta", "222")]

    summary = _run(service.aggregate(accounts, START, END))

    assert summary.total_ad_spend == Decimal("40.25")
    assert [entry.platform for entry in summary.breakdown] == ["Meta", "Google"]
    assert summary.platform_total("Meta") == Decimal("20.00")
    assert summary.platform_total("Google") == Decimal("20.25")

    meta = summary.to_dict()["breakdown"][0]
    assert meta["daily"] == [
        {"date": "2024-03-01", "spend": 10.0},
        {"date": "2024-03-02", "spend": 10.0},
    ]
    assert [a["accountId"] for a in meta["accounts"]] == ["111", "222"]


def test_failed_platform_does_not_affect_the_other():
    service = AdSpendService(providers={
        "meta": FailingProvider("meta", "Meta"),
        "google": _google(),
    })
    accounts = [Account("meta", "111"), Account("google", "9990001111")]

    summary = _run(service.aggregate(accounts, START, END))

    assert summary.platform_total("Meta") == Decimal("0")
    assert summary.platform_total("Google") == Decimal("20.25")
    assert summary.total_ad_spend == Decimal("20.25")

    meta = summary.to_dict()["breakdown"][0]
    assert meta == {
        "platform": "Meta",
        "total": 0.0,
        "daily": [],
        "accounts": [{"accountId": "111", "total": 0.0}],
    }


def test_failure_is_isolated_per_call_within_a_platform():
    class OneBadAccount(FixedProvider):
        async def fetch_spend(self, account_id, access_token, start_date, end_date):
            if account_id == "222":
                raise TimeoutError("read timed out")
            return await super().fetch_spend(account_id, access_token, start_date, end_date)

    provider = OneBadAccount("meta", "Meta", _meta().spend_by_account)
    service = AdSpendService(providers={"meta": provider})

    summary = _run(service.aggregate([Account("meta", "111"), Account("meta", "222")], START, END))

    assert summary.total_ad_spend == Decimal("15.50")


def test_get_spend_never_raises():
    provider = FailingProvider("meta", "Meta")
    result = _run(provider.get_spend("111", "token", START, END))
    assert result == SpendResult.empty()
    assert result.total == 0
    assert result.daily == []


def test_platforms_without_accounts_are_omitted():
    service = AdSpendService(providers={"meta": _meta(), "google": _google()})
    summary = _run(service.aggregate([Account("google", "9990001111")], START, END))
    assert [entry.platform for entry in summary.breakdown] == ["Google"]


def test_no_accounts_gives_empty_summary():
    service = AdSpendService(providers={"meta": _meta()})
    summary = _run(service.aggregate([], START, END))
    assert summary.to_dict() == {"totalAdSpend": 0.0, "breakdown": []}


def test_unknown_platform_is_skipped():
    meta = _meta()
    service = AdSpendService(providers={"meta": meta})
    accounts = [Account("tiktok", "555"), Account("META", "111")]

    summary = _run(service.aggregate(accounts, START, END))

    assert summary.total_ad_spend == Decimal("15.50")
    assert meta.calls == [("111", START, END)]


def test_default_providers_cover_meta_and_google():
    service = AdSpendService()
    assert set(service.providers) == {"meta", "google"}
    assert service.providers["meta"].display_name == "Meta"
    assert service.providers["google"].display_name == "Google"
