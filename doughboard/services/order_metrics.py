"""
Order Metrics Service

Turns a window of Shopify orders plus the shop's COGS settings into the
dashboard's headline numbers:
- Revenue and order count
- Cost of goods sold (per-SKU cost, else default % of price)
- Gross profit
- New vs returning customer revenue
- Average order value

Customer classification depends on the order sequence: the first order seen
for an email is "new", every later one is "returning". Callers must pass
orders in the order they want classified (Shopify returns newest first, so
DashboardService sorts by created_at before calling).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from doughboard.utils.helpers import ZERO, money, safe_divide, to_decimal, to_quantity

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineItem:
    sku: Optional[str]
    quantity: int
    price: Decimal

    @classmethod
    def from_shopify(cls, payload: Mapping[str, Any]) -> "LineItem":
        sku = str(payload.get("sku") or "").strip()
        return cls(
            sku=sku or None,
            quantity=to_quantity(payload.get("quantity")),
            price=to_decimal(payload.get("price")),
        )


@dataclass(frozen=True)
class Order:
    id: Any
    total_price: Decimal
    email: Optional[str] = None
    created_at: Optional[str] = None
    line_items: List[LineItem] = field(default_factory=list)

    @classmethod
    def from_shopify(cls, payload: Mapping[str, Any]) -> "Order":
        """Build a snapshot from a Shopify REST order resource"""
        return cls(
            id=payload.get("id"),
            total_price=to_decimal(payload.get("total_price")),
            email=payload.get("email") or None,
            created_at=payload.get("created_at"),
            line_items=[LineItem.from_shopify(item) for item in payload.get("line_items") or []],
        )


@dataclass(frozen=True)
class CogsSettings:
    """COGS inputs for the aggregator, detached from the database row"""
    default_cogs_percentage: Decimal = ZERO
    custom_cogs: Mapping[str, Decimal] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record) -> Optional["CogsSettings"]:
        """Build from a StoreSettings row (None passes through)"""
        if record is None:
            return None
        return cls(
            default_cogs_percentage=to_decimal(record.default_cogs_percentage),
            custom_cogs=record.get_custom_cogs(),
        )


@dataclass
class DashboardMetrics:
    total_revenue: Decimal = ZERO
    total_cogs: Decimal = ZERO
    gross_profit: Decimal = ZERO
    new_customer_revenue: Decimal = ZERO
    returning_customer_revenue: Decimal = ZERO
    order_count: int = 0
    average_order_value: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRevenue": money(self.total_revenue),
            "totalCOGS": money(self.total_cogs),
            "grossProfit": money(self.gross_profit),
            "newCustomerRevenue": money(self.new_customer_revenue),
            "returningCustomerRevenue": money(self.returning_customer_revenue),
            "orderCount": self.order_count,
            "averageOrderValue": money(self.average_order_value),
        }


def resolve_unit_cogs(item: LineItem, settings: Optional[CogsSettings]) -> Decimal:
    """
    Unit cost for a line item

    Priority: exact SKU match in custom_cogs, else price * default % / 100,
    else 0.
    """
    if settings is None:
        return ZERO

    if item.sku is not None and item.sku in settings.custom_cogs:
        return to_decimal(settings.custom_cogs[item.sku])

    percentage = to_decimal(settings.default_cogs_percentage)
    if percentage:
        return item.price * percentage / HUNDRED

    return ZERO


def calculate_order_cogs(order: Order, settings: Optional[CogsSettings]) -> Decimal:
    return sum(
        (resolve_unit_cogs(item, settings) * item.quantity for item in order.line_items),
        ZERO,
    )


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    normalized = email.strip().casefold()
    return normalized or None


def calculate_dashboard_metrics(
    orders: Iterable[Order],
    settings: Optional[CogsSettings] = None,
    seen_customers: Optional[Set[str]] = None,
) -> DashboardMetrics:
    """
    Fold orders into DashboardMetrics in a single pass

    Args:
        orders: Order snapshots, in classification order
        settings: COGS settings (None -> every unit costs 0)
        seen_customers: Emails already counted as customers. The set is
            copied, never mutated, so the caller's state is unchanged.

    Returns:
        DashboardMetrics
    """
    seen = set(seen_customers or ())
    metrics = DashboardMetrics()

    for order in orders:
        revenue = order.total_price
        metrics.total_revenue += revenue
        metrics.total_cogs += calculate_order_cogs(order, settings)
        metrics.order_count += 1

        email = _normalize_email(order.email)
        if email is None:
            continue
        if email in seen:
            metrics.returning_customer_revenue += revenue
        else:
            metrics.new_customer_revenue += revenue
            seen.add(email)

    metrics.gross_profit = metrics.total_revenue - metrics.total_cogs
    metrics.average_order_value = safe_divide(metrics.total_revenue, Decimal(metrics.order_count))

    return metrics
