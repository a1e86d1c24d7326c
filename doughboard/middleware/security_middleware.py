"""Security middleware: embedded-app CSP, Basic Auth gate, anti-crawl headers, cache control."""
import base64
import re
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from doughboard.config import get_settings

# Paths exempt from Basic Auth
OPEN_PATHS = ("/health", "/robots.txt")

SHOP_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9\-]*\.myshopify\.com$")


def frame_ancestors(shop: str) -> str:
    """CSP frame-ancestors for an embedded app: the shop admin only"""
    if shop and SHOP_DOMAIN_RE.match(shop.lower()):
        return f"frame-ancestors https://{shop.lower()} https://admin.shopify.com;"
    return "frame-ancestors 'none';"


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        path = request.url.path

        # --- Basic Auth gate (skip for /health and /robots.txt) ---
        if settings.dash_user and settings.dash_pass:
            if not any(path.startswith(p) for p in OPEN_PATHS):
                if not self._check_basic_auth(request, settings):
                    return Response(
                        content="Unauthorized",
                        status_code=401,
                        headers={"WWW-Authenticate": 'Basic realm="Doughboard"'},
                    )

        response: Response = await call_next(request)

        # --- Only the shop's admin may frame the app ---
        shop = request.query_params.get("shop") or request.headers.get("x-shopify-shop-domain", "")
        response.headers["Content-Security-Policy"] = frame_ancestors(shop)

        # --- Anti-crawl header on every response ---
        response.headers["X-Robots-Tag"] = "noindex, nofollow"

        # --- Cache-Control ---
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            # Profit data is per-shop and changes with every order
            response.headers["Cache-Control"] = "private, no-cache"

        return response

    @staticmethod
    def _check_basic_auth(request: Request, settings) -> bool:
        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Basic "):
            return False
        try:
            decoded = base64.b64decode(auth_header[6:]).decode("utf-8")
            user, password = decoded.split(":", 1)
        except Exception:
            return False
        user_ok = secrets.compare_digest(user, settings.dash_user)
        pass_ok = secrets.compare_digest(password, settings.dash_pass)
        return user_ok and pass_ok
