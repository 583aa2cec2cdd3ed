"""Redis-backed rate limiting for the public lead-capture endpoints."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from functools import lru_cache
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network, ip_address, ip_network
from typing import Callable, Iterable, Protocol, runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from core import settings


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


ENQUIRY_PATH_PREFIX = "/api/v1/enquiries"
SESSION_PATH_PREFIX = "/api/v1/sessions"
FORWARDED_CLIENT_KEY_HEADER = "x-rate-limit-client"
FORWARDED_CLIENT_SIGNATURE_HEADER = "x-rate-limit-signature"
FORWARDED_CLIENT_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{16,128}$")
FORWARDED_CLIENT_SIGNATURE_PATTERN = re.compile(r"^[0-9a-f]{64}$")
logger = logging.getLogger(__name__)


@lru_cache
def _trusted_proxy_networks() -> tuple[IPv4Network | IPv6Network, ...]:
    networks: list[IPv4Network | IPv6Network] = []
    for cidr in settings.rate_limit_trusted_proxies:
        try:
            networks.append(ip_network(cidr, strict=False))
        except ValueError as exc:  # pragma: no cover - invalid configuration
            raise ValueError(f"Invalid CIDR in RATE_LIMIT_TRUSTED_PROXIES: {cidr}") from exc
    return tuple(networks)


def _first_valid_ip(header_value: str) -> str | None:
    for candidate in header_value.split(","):
        ip_candidate = candidate.strip()
        if not ip_candidate:
            continue
        try:
            ip_address(ip_candidate)
        except ValueError:
            continue
        return ip_candidate
    return None


def _forwarded_client_ip(request: Request) -> str | None:
    for header in settings.rate_limit_ip_headers:
        value = request.headers.get(header)
        if value:
            forwarded_ip = _first_valid_ip(value)
            if forwarded_ip:
                return forwarded_ip
    return None


def sign_client_key(client_key: str, secret: str | None = None) -> str:
    """HMAC signature a trusted edge proxy attaches to a forwarded client key."""
    key = (secret if secret is not None else settings.rate_limit_proxy_secret).strip()
    return hmac.new(key.encode("utf-8"), client_key.encode("utf-8"), hashlib.sha256).hexdigest()


def _signed_client_key(request: Request) -> str | None:
    if not settings.rate_limit_proxy_secret.strip():
        return None

    client_key = request.headers.get(FORWARDED_CLIENT_KEY_HEADER, "").strip()
    if not FORWARDED_CLIENT_KEY_PATTERN.fullmatch(client_key):
        return None

    signature = request.headers.get(FORWARDED_CLIENT_SIGNATURE_HEADER, "").strip().lower()
    if not FORWARDED_CLIENT_SIGNATURE_PATTERN.fullmatch(signature):
        return None
    if not hmac.compare_digest(signature, sign_client_key(client_key)):
        return None
    return client_key


def _remote_ip(request: Request) -> tuple[str | None, IPv4Address | IPv6Address | None]:
    host = request.client.host if request.client else None
    if not host:
        return None, None
    try:
        return host, ip_address(host)
    except ValueError:
        return host, None


def default_client_identifier(request: Request) -> str:
    """Resolve a stable visitor identifier for rate limiting."""
    signed_key = _signed_client_key(request)
    if signed_key is not None:
        return f"proxy:{signed_key}"

    remote_host, remote_ip = _remote_ip(request)
    # Forwarded IP headers are only honoured from configured proxy networks.
    if remote_ip is not None and any(remote_ip in net for net in _trusted_proxy_networks()):
        forwarded_ip = _forwarded_client_ip(request)
        if forwarded_ip:
            return forwarded_ip

    return remote_host or "anonymous"


def rate_limit_bucket(path: str) -> str:
    """Group paths so session polling does not spend the enquiry budget."""
    if _has_prefix(path, ENQUIRY_PATH_PREFIX):
        return "enquiries"
    if _has_prefix(path, SESSION_PATH_PREFIX):
        return "sessions"
    return "default"


class RateLimiter:
    """Fixed-window request counter stored in Redis."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = "homelead:rate-limit",
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return self.limit > 0 and self.window_seconds > 0

    async def allow(self, key: str) -> bool:
        """Return True when the request should be allowed, False if limited."""
        if not self.enabled:
            return True

        window = int(time.time()) // self.window_seconds
        redis_key = f"{self.prefix}:{key}:{window}"

        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count <= self.limit


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide rate limiter, creating it on first use."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Override the cached rate limiter (primarily for tests)."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Throttle lead-capture traffic per visitor and per endpoint group.

    Enquiry submissions fail closed with 503 when the limiter backend is
    down; every other path fails open.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        exempt_paths: Iterable[str] | None = None,
        client_identifier: Callable[[Request], str] | None = None,
    ) -> None:
        super().__init__(app)
        self._limiter: RateLimiter | None = None
        self.limiter_factory = limiter_factory
        self.exempt_paths = set(exempt_paths or ())
        self.client_identifier = client_identifier or default_client_identifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        path = request.url.path
        if path in self.exempt_paths:
            return await call_next(request)

        fail_closed = _has_prefix(path, ENQUIRY_PATH_PREFIX)
        override = getattr(request.app.state, "rate_limiter_override", None)
        limiter = override if override is not None else self._get_limiter()
        if limiter is None:
            return _unavailable() if fail_closed else await call_next(request)

        client_key = self.client_identifier(request) or "anonymous"
        try:
            is_allowed = await limiter.allow(f"{rate_limit_bucket(path)}:{client_key}")
        except Exception as limiter_error:
            logger.warning(
                "Rate limiter unavailable",
                extra={"path": path},
                exc_info=limiter_error,
            )
            return _unavailable() if fail_closed else await call_next(request)

        if not is_allowed:
            return JSONResponse(
                {"detail": "Too Many Requests"},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(limiter.window_seconds)},
            )
        return await call_next(request)

    def _get_limiter(self) -> RateLimiter | None:
        if self._limiter is None:
            try:
                self._limiter = self.limiter_factory()
            except Exception as factory_error:  # pragma: no cover - misconfiguration
                logger.warning("Failed to build rate limiter", exc_info=factory_error)
                self._limiter = None
        return self._limiter


def _unavailable() -> JSONResponse:
    return JSONResponse(
        {"detail": "Service unavailable"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


def _has_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(f"{prefix}/")
