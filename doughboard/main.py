"""
Doughboard
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from doughboard.config import get_settings
from doughboard.utils.logger import log
from doughboard import __version__

# Import routers
from doughboard.api import health, dashboard, ad_spend, store_settings
from doughboard.middleware.security_middleware import SecurityMiddleware

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    try:
        from doughboard.models.base import init_db
        init_db()
        log.info("Database initialized")
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    yield

    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Profit dashboard for Shopify stores

    Combines:
    - Shopify orders (revenue, new vs returning customers)
    - Cost of goods sold (default % or per-SKU costs from CSV)
    - Ad spend from Meta and Google Ads

    into gross profit, net profit and margin.
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["https://admin.shopify.com"],
    allow_origin_regex=r"https://[a-z0-9\-]+\.myshopify\.com",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Security middleware (CSP frame-ancestors, Basic Auth gate, X-Robots-Tag, Cache-Control)
app.add_middleware(SecurityMiddleware)

app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(dashboard.router)
app.include_router(ad_spend.router)
app.include_router(store_settings.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


@app.get("/")
async def root():
    """API index"""
    return {
        "name": settings.app_name,
        "version": __version__,
        "endpoints": {
            "dashboard": "GET /api/dashboard?days=30",
            "dashboard_summary": "GET /api/dashboard/summary?days=30",
            "ad_spend": "GET /api/ad-spend?startDate=&endDate=",
            "ad_accounts": "GET|POST /api/ad-accounts",
            "ad_account_unlink": "DELETE /api/ad-accounts/{id}",
            "settings": "GET|POST /api/settings",
            "upload_cogs": "POST /api/upload-cogs",
            "health": "GET /health",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "doughboard.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=settings.api_workers if not settings.debug else 1
    )
