"""
Response hardening for the signal API.

Every response is JSON that must not be framed, sniffed or stored by a
shared cache, since a paid signal replayed from a proxy is a free signal.
The interactive docs (debug only) need scripts and styles from a CDN and
get a looser content policy.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store",
}

DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")
DOCS_CSP = (
    "default-src 'self'; img-src 'self' data: https:; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the API header set to every response.

    Headers a route already set are kept, so a handler can opt out of a
    single value without disabling the middleware.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        headers = dict(API_HEADERS)
        if request.url.path.startswith(DOCS_PATHS):
            headers["Content-Security-Policy"] = DOCS_CSP
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
