"""
Configuration management for Doughboard
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Doughboard"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_workers: int = 2

    # Database
    database_url: str = "sqlite:///./doughboard.db"

    # Shopify
    shopify_api_version: str = "2023-10"
    shopify_page_limit: int = 250  # Max orders per page
    shopify_timeout_seconds: float = 30.0

    # COGS
    default_cogs_percentage: float = 30.0  # Used for new shops and CSV-only imports

    # Dashboard
    dashboard_default_days: int = 30
    healthy_margin_pct: float = 20.0

    # Ad platforms
    ad_platform_timeout_seconds: float = 15.0

    # Meta Marketing API
    meta_graph_api_version: str = "v18.0"
    meta_graph_base_url: str = "https://graph.facebook.com"

    # Google Ads REST API
    google_ads_api_version: str = "v16"
    google_ads_base_url: str = "https://googleads.googleapis.com"
    google_ads_developer_token: str = ""
    google_ads_login_customer_id: Optional[str] = None

    # Dashboard Basic Auth (gate for the whole app)
    dash_user: str = ""
    dash_pass: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
