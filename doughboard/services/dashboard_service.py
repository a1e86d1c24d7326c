"""
Dashboard Service

Composes the profit dashboard for a shop:
- Order metrics (revenue, COGS, gross profit, customer mix)
- Ad spend across linked platforms
- Net profit and margin after ad spend

Orders and ad spend are fetched concurrently; they feed disjoint parts of
the result and are only merged at the end.
"""
import asyncio
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from doughboard.config import get_settings
from doughboard.connectors.shopify import ShopifyOrdersClient
from doughboard.models.store import ShopSession
from doughboard.services.ad_spend_service import AdSpendService, AdSpendSummary
from doughboard.services.order_metrics import (
    CogsSettings,
    DashboardMetrics,
    Order,
    calculate_dashboard_metrics,
)
from doughboard.services.settings_service import SettingsService
from doughboard.utils.helpers import ZERO, money, safe_divide
from doughboard.utils.logger import log

HUNDRED = Decimal("100")
ALLOWED_WINDOWS = (7, 30, 90)


def calculate_net_profit(metrics: DashboardMetrics, ad_spend: Optional[AdSpendSummary]) -> Decimal:
    total_ad_spend = ad_spend.total_ad_spend if ad_spend else ZERO
    return metrics.gross_profit - total_ad_spend


def calculate_profit_margin(metrics: DashboardMetrics, ad_spend: Optional[AdSpendSummary]) -> Decimal:
    """Net profit as a % of revenue, one decimal place (0 without revenue)"""
    if not metrics.total_revenue:
        return ZERO
    margin = calculate_net_profit(metrics, ad_spend) / metrics.total_revenue * HUNDRED
    return margin.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def build_chart_data(metrics: DashboardMetrics, ad_spend: Optional[AdSpendSummary]) -> List[Dict[str, Any]]:
    total_ad_spend = ad_spend.total_ad_spend if ad_spend else ZERO
    return [
        {"name": "Revenue", "value": money(metrics.total_revenue)},
        {"name": "COGS", "value": money(metrics.total_cogs)},
        {"name": "Ad Spend", "value": money(total_ad_spend)},
        {"name": "Net Profit", "value": money(calculate_net_profit(metrics, ad_spend))},
    ]


def compose_summary(
    metrics: DashboardMetrics,
    ad_spend: Optional[AdSpendSummary],
    days: int,
    has_ad_accounts: bool,
) -> Dict[str, Any]:
    """Merge order metrics and ad spend into the dashboard payload"""
    ad_spend = ad_spend or AdSpendSummary()
    margin = calculate_profit_margin(metrics, ad_spend)

    return {
        "days": days,
        "metrics": metrics.to_dict(),
        "adSpend": ad_spend.to_dict(),
        "netProfit": money(calculate_net_profit(metrics, ad_spend)),
        "profitMargin": float(margin),
        "marginHealthy": margin >= Decimal(str(get_settings().healthy_margin_pct)),
        "customerMix": {
            "newPct": money(safe_divide(metrics.new_customer_revenue * HUNDRED, metrics.total_revenue)),
            "returningPct": money(safe_divide(metrics.returning_customer_revenue * HUNDRED, metrics.total_revenue)),
        },
        "platformTotals": {
            "meta": money(ad_spend.platform_total("Meta")),
            "google": money(ad_spend.platform_total("Google")),
        },
        "hasAdAccounts": has_ad_accounts,
        "chart": build_chart_data(metrics, ad_spend),
    }


def window_for_days(days: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Trailing window of `days` whole UTC calendar days ending now

    Starts at midnight UTC so the order window covers the same dates as the
    inclusive ad spend range `start.date()..end.date()`. Both ends are
    timezone-aware; Shopify reads offset-less timestamps in shop time.
    """
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    end = end.astimezone(timezone.utc)
    first_day = end.date() - timedelta(days=days - 1)
    start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
    return start, end


class DashboardService:
    """Service for building a shop's profit dashboard"""

    def __init__(self, db: Session, ad_spend_service: Optional[AdSpendService] = None, orders_client=None):
        """
        Args:
            db: Database session
            ad_spend_service: Override for the ad spend aggregator (tests)
            orders_client: Override for the Shopify client (tests); anything
                with an async fetch_orders(start, end)
        """
        self.db = db
        self.settings_service = SettingsService(db)
        self.ad_spend_service = ad_spend_service or AdSpendService(db)
        self._orders_client = orders_client

    def _get_orders_client(self, session: ShopSession):
        if self._orders_client is not None:
            return self._orders_client
        return ShopifyOrdersClient(session.shop, session.access_token)

    async def fetch_orders(self, session: ShopSession, start: datetime, end: datetime) -> List[Order]:
        """Fetch and snapshot orders, oldest first"""
        raw_orders = await self._get_orders_client(session).fetch_orders(start, end)
        orders = [Order.from_shopify(payload) for payload in raw_orders]
        # Stable sort: orders without created_at keep their relative position
        orders.sort(key=lambda o: o.created_at or "")
        return orders

    async def get_metrics(self, session: ShopSession, days: int) -> DashboardMetrics:
        """Order metrics for the trailing window"""
        start, end = window_for_days(days)
        return await self._metrics_for_window(session, start, end)

    async def _metrics_for_window(self, session: ShopSession, start: datetime, end: datetime) -> DashboardMetrics:
        orders = await self.fetch_orders(session, start, end)
        cogs_settings = CogsSettings.from_record(self.settings_service.get_settings(session.shop))
        return calculate_dashboard_metrics(orders, cogs_settings)

    async def get_summary(self, session: ShopSession, days: int) -> Dict[str, Any]:
        """
        Full dashboard for the trailing window

        Shopify errors propagate; ad spend failures are already degraded to
        zero inside the aggregator.
        """
        log.info(f"Building {days}-day dashboard for {session.shop}")

        start, end = window_for_days(days)
        accounts = self.ad_spend_service.get_accounts(session.shop)

        metrics, ad_spend = await asyncio.gather(
            self._metrics_for_window(session, start, end),
            self.ad_spend_service.aggregate(accounts, start.date(), end.date()),
        )

        summary = compose_summary(metrics, ad_spend, days, has_ad_accounts=bool(accounts))
        log.info(
            f"Dashboard for {session.shop}: revenue {metrics.total_revenue}, "
            f"net profit {summary['netProfit']}, margin {summary['profitMargin']}%"
        )
        return summary


def default_ad_spend_range(days: Optional[int] = None) -> Tuple[date, date]:
    start, end = window_for_days(days or get_settings().dashboard_default_days)
    return start.date(), end.date()
