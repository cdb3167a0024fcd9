"""Request filtering and security header middleware."""

from collections.abc import Iterable
from typing import Protocol

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from taskshift.core.logging import get_logger

logger = get_logger("core.middleware")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HSTS_HEADER = "max-age=15552000; includeSubDomains"


class IpBlocklist(Protocol):
    """Lookup deciding whether a client address is refused."""

    def is_blocked(self, ip: str) -> bool: ...


class StaticIpBlocklist:
    """Blocklist backed by a fixed set of addresses, usually from settings."""

    def __init__(self, ips: Iterable[str] = ()) -> None:
        self._ips = frozenset(ip.strip() for ip in ips if ip.strip())

    def is_blocked(self, ip: str) -> bool:
        return ip in self._ips

    def __len__(self) -> int:
        return len(self._ips)


class IpFilterMiddleware(BaseHTTPMiddleware):
    """Reject requests from addresses the app's blocklist refuses.

    The blocklist is read from ``request.app.state.ip_blocklist`` on every
    request so it can be replaced at runtime or in tests.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        blocklist: IpBlocklist | None = getattr(request.app.state, "ip_blocklist", None)
        client_ip = request.client.host if request.client else None

        if blocklist is not None and client_ip and blocklist.is_blocked(client_ip):
            logger.warning("request_blocked", ip=client_ip, path=request.url.path)
            return JSONResponse(
                status_code=403,
                content={"success": False, "message": "Access denied"},
            )

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    def __init__(self, app, *, hsts: bool = False) -> None:  # noqa: ANN001
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        if self.hsts:
            response.headers["Strict-Transport-Security"] = HSTS_HEADER
        return response
