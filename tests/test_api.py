"""
HTTP API tests.

Shopify and the ad platforms are replaced with in-process fakes; the
database is the temporary SQLite file set up in conftest.
"""
from decimal import Decimal

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from doughboard.api import ad_spend as ad_spend_api
from doughboard.api import dashboard as dashboard_api
from doughboard.connectors.base import AdSpendProvider, DailySpend, SpendResult
from doughboard.connectors.shopify import ShopifyAPIError
from doughboard.main import app
from doughboard.models.base import get_db
from doughboard.services.ad_spend_service import AdSpendService
from doughboard.services.dashboard_service import DashboardService

SHOP = "dough-test.myshopify.com"

# Newest first, the way the Admin API returns them
SHOPIFY_ORDERS = [
    {
        "id": 3, "created_at": "2024-03-05T10:00:00-05:00", "email": "ana@example.com",
        "total_price": "50.00",
        "line_items": [{"sku": None, "quantity": 1, "price": "50.00"}],
    },
    {
        "id": 2, "created_at": "2024-03-03T10:00:00-05:00", "email": None,
        "total_price": "50.00",
        "line_items": [{"sku": "Y", "quantity": 1, "price": "50.00"}],
    },
    {
        "id": 1, "created_at": "2024-03-01T10:00:00-05:00", "email": "ana@example.com",
        "total_price": "100.00",
        "line_items": [{"sku": "X", "quantity": 2, "price": "50.00"}],
    },
]


class FakeOrdersClient:
    def __init__(self, orders=None, error=None):
        self.orders = orders or []
        self.error = error

    async def fetch_orders(self, start_date, end_date):
        if self.error:
            raise self.error
        return list(self.orders)


class FakeMeta(AdSpendProvider):
    platform = "meta"
    display_name = "Meta"

    async def fetch_spend(self, account_id, access_token, start_date, end_date):
        return SpendResult.from_daily([DailySpend(date="2024-03-01", spend=Decimal("30.00"))])


class BrokenGoogle(AdSpendProvider):
    platform = "google"
    display_name = "Google"

    async def fetch_spend(self, account_id, access_token, start_date, end_date):
        raise ConnectionError("Google Ads unavailable")


def _fake_ad_spend_service(db):
    return AdSpendService(db, providers={"meta": FakeMeta(), "google": BrokenGoogle()})


@pytest.fixture
def client(shop_session):
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_orders(orders_client):
    def override(db: Session = Depends(get_db)):
        return DashboardService(db, ad_spend_service=_fake_ad_spend_service(db), orders_client=orders_client)
    app.dependency_overrides[dashboard_api.get_dashboard_service] = override


def _use_fake_ad_platforms():
    def override(db: Session = Depends(get_db)):
        return _fake_ad_spend_service(db)
    app.dependency_overrides[ad_spend_api.get_ad_spend_service] = override


def _link(client, platform, account_id):
    response = client.post(
        f"/api/ad-accounts?shop={SHOP}",
        json={"platform": platform, "accountId": account_id, "accessToken": "secret-token"},
    )
    assert response.status_code == 201
    return response.json()


# ---------------------------------------------------------------------------
# Shop resolution
# ---------------------------------------------------------------------------

def test_unknown_shop_is_rejected(client):
    assert client.get("/api/settings?shop=other.myshopify.com").status_code == 401
    assert client.get("/api/settings").status_code == 401


def test_shop_header_is_accepted(client):
    response = client.get("/api/settings", headers={"X-Shopify-Shop-Domain": SHOP})
    assert response.status_code == 200
    assert response.json()["shop"] == SHOP


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def test_dashboard_metrics(client):
    client.post(f"/api/settings?shop={SHOP}", json={"defaultCOGSPercentage": 30, "customCOGS": {"X": 10}})
    _use_orders(FakeOrdersClient(SHOPIFY_ORDERS))

    response = client.get(f"/api/dashboard?shop={SHOP}&days=30")

    assert response.status_code == 200
    data = response.json()
    assert data["totalRevenue"] == 200.0
    assert data["totalCOGS"] == 50.0
    assert data["grossProfit"] == 150.0
    # Oldest order first: #1 new, #3 returning, #2 has no email
    assert data["newCustomerRevenue"] == 100.0
    assert data["returningCustomerRevenue"] == 50.0
    assert data["orderCount"] == 3
    assert data["averageOrderValue"] == pytest.approx(66.6667, abs=1e-3)


def test_dashboard_summary_combines_orders_and_ad_spend(client):
    client.post(f"/api/settings?shop={SHOP}", json={"defaultCOGSPercentage": 30, "customCOGS": {"X": 10}})
    _link(client, "meta", "111")
    _link(client, "google", "222-333-4444")
    _use_orders(FakeOrdersClient(SHOPIFY_ORDERS))

    response = client.get(f"/api/dashboard/summary?shop={SHOP}")

    assert response.status_code == 200
    data = response.json()
    assert data["days"] == 30
    assert data["adSpend"]["totalAdSpend"] == 30.0
    assert [b["platform"] for b in data["adSpend"]["breakdown"]] == ["Meta", "Google"]
    assert data["platformTotals"] == {"meta": 30.0, "google": 0.0}
    assert data["netProfit"] == 120.0
    assert data["profitMargin"] == 60.0
    assert data["marginHealthy"] is True
    assert data["hasAdAccounts"] is True
    assert data["customerMix"] == {"newPct": 50.0, "returningPct": 25.0}
    assert data["chart"] == [
        {"name": "Revenue", "value": 200.0},
        {"name": "COGS", "value": 50.0},
        {"name": "Ad Spend", "value": 30.0},
        {"name": "Net Profit", "value": 120.0},
    ]


def test_dashboard_summary_without_orders(client):
    _use_orders(FakeOrdersClient([]))

    data = client.get(f"/api/dashboard/summary?shop={SHOP}&days=7").json()

    assert data["metrics"]["averageOrderValue"] == 0.0
    assert data["profitMargin"] == 0.0
    assert data["hasAdAccounts"] is False
    assert data["customerMix"] == {"newPct": 0.0, "returningPct": 0.0}


def test_dashboard_shopify_failure_is_502(client):
    _use_orders(FakeOrdersClient(error=ShopifyAPIError("Error fetching orders: 401")))
    response = client.get(f"/api/dashboard?shop={SHOP}")
    assert response.status_code == 502
    assert response.json() == {"detail": "Failed to fetch dashboard data"}


def test_dashboard_rejects_unsupported_window(client):
    _use_orders(FakeOrdersClient([]))
    assert client.get(f"/api/dashboard?shop={SHOP}&days=14").status_code == 400


# ---------------------------------------------------------------------------
# Ad spend
# ---------------------------------------------------------------------------

def test_ad_spend_isolates_failing_platform(client):
    _link(client, "meta", "111")
    _link(client, "google", "222")
    _use_fake_ad_platforms()

    response = client.get(
        f"/api/ad-spend?shop={SHOP}&startDate=2024-03-01T00:00:00.000Z&endDate=2024-03-31T23:59:59.000Z"
    )

    assert response.status_code == 200
    data = response.json()
    assert data["totalAdSpend"] == 30.0
    google = next(b for b in data["breakdown"] if b["platform"] == "Google")
    assert google["total"] == 0.0
    assert google["daily"] == []


def test_ad_spend_rejects_inverted_range(client):
    _use_fake_ad_platforms()
    response = client.get(f"/api/ad-spend?shop={SHOP}&startDate=2024-04-01&endDate=2024-03-01")
    assert response.status_code == 400


def test_ad_spend_rejects_bad_date(client):
    _use_fake_ad_platforms()
    response = client.get(f"/api/ad-spend?shop={SHOP}&startDate=yesterday")
    assert response.status_code == 400


def test_ad_accounts_never_expose_tokens(client):
    _link(client, "meta", "111")

    data = client.get(f"/api/ad-accounts?shop={SHOP}").json()

    assert data["count"] == 1
    assert data["accounts"][0]["platform"] == "meta"
    assert data["accounts"][0]["accountId"] == "111"
    assert "accessToken" not in data["accounts"][0]
    assert "secret-token" not in str(data)


def test_ad_account_validation_and_duplicates(client):
    bad = client.post(
        f"/api/ad-accounts?shop={SHOP}",
        json={"platform": "tiktok", "accountId": "1", "accessToken": "t"},
    )
    assert bad.status_code == 422

    _link(client, "meta", "111")
    duplicate = client.post(
        f"/api/ad-accounts?shop={SHOP}",
        json={"platform": "meta", "accountId": "111", "accessToken": "t"},
    )
    assert duplicate.status_code == 409


def test_unlink_ad_account(client):
    account = _link(client, "google", "222")

    assert client.delete(f"/api/ad-accounts/{account['id']}?shop={SHOP}").json() == {"success": True}
    assert client.get(f"/api/ad-accounts?shop={SHOP}").json()["count"] == 0
    assert client.delete(f"/api/ad-accounts/{account['id']}?shop={SHOP}").status_code == 404


# ---------------------------------------------------------------------------
# Settings and COGS upload
# ---------------------------------------------------------------------------

def test_settings_round_trip(client):
    saved = client.post(
        f"/api/settings?shop={SHOP}",
        json={"defaultCOGSPercentage": 35.5, "customCOGS": {"MUG-01": "1.50"}},
    )
    assert saved.status_code == 200

    data = client.get(f"/api/settings?shop={SHOP}").json()
    assert data["defaultCOGSPercentage"] == 35.5
    assert data["customCOGS"] == {"MUG-01": 1.5}


@pytest.mark.parametrize("percentage", [-1, 100.01, 150])
def test_settings_percentage_out_of_range(client, percentage):
    response = client.post(f"/api/settings?shop={SHOP}", json={"defaultCOGSPercentage": percentage})
    assert response.status_code == 422


def test_upload_cogs(client):
    response = client.post(
        f"/api/upload-cogs?shop={SHOP}",
        files={"cogsFile": ("costs.csv", b"\xef\xbb\xbfSku,cogs\nX,1.50\n,2.00\nY,abc\n", "text/csv")},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "itemsProcessed": 1, "skipped": 2}
    assert client.get(f"/api/settings?shop={SHOP}").json()["customCOGS"] == {"X": 1.5}


def test_upload_cogs_without_required_columns(client):
    response = client.post(
        f"/api/upload-cogs?shop={SHOP}",
        files={"cogsFile": ("costs.csv", b"Product,Cost\nX,1.50\n", "text/csv")},
    )
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Shell
# ---------------------------------------------------------------------------

def test_health_and_embedded_headers(client):
    response = client.get(f"/health?shop={SHOP}")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["content-security-policy"] == (
        f"frame-ancestors https://{SHOP} https://admin.shopify.com;"
    )
    assert response.headers["x-robots-tag"] == "noindex, nofollow"


def test_csp_denies_framing_for_unknown_origin(client):
    response = client.get("/health?shop=evil.example.com")
    assert response.headers["content-security-policy"] == "frame-ancestors 'none';"
