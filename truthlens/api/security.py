"""
Caller authentication and rate limiting.

Browsers send the public anon key; backend jobs send the service key. Both
authenticate, only anon traffic is rate limited.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from truthlens.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def client_ip(request: Request) -> str:
    direct = request.client.host if request.client else "unknown"
    if not settings.trust_proxy:
        return direct
    # The proxy appends the peer it saw; earlier hops are caller-supplied
    forwarded = request.headers.get("X-Forwarded-For", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    return hops[-1] if hops else direct


async def verify_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    """
    Require `Authorization: Bearer <anon key | service key>`.

    With neither key configured (development) every request is let through.
    The accepted token is kept on `request.state.token` for the rate limiter.
    """
    accepted = settings.accepted_tokens
    if not accepted:
        if settings.is_production:
            logger.warning("No anon or service key configured in production mode!")
        return None

    token = credentials.credentials if credentials else None
    if not token:
        logger.warning(f"Missing bearer token from {client_ip(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token. Provide an Authorization: Bearer <key> header.",
            headers=BEARER_CHALLENGE,
        )
    if token not in accepted:
        logger.warning(f"Invalid bearer token from {client_ip(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token.",
            headers=BEARER_CHALLENGE,
        )

    request.state.token = token
    return token


class RateLimiter:
    """Sliding-window limiter held in process memory (one window per key)."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._hits)

    def _sweep(self, now: float, window: int):
        # Forget callers whose newest hit has left the window
        if now - self._last_sweep < window:
            return
        self._last_sweep = now
        for key in [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= window]:
            del self._hits[key]

    def hit(self, key: str, limit: int, window: int) -> Tuple[bool, int]:
        """Record a request if the window has room. Returns (allowed, remaining)."""
        with self._lock:
            now = self._clock()
            self._sweep(now, window)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= window:
                hits.popleft()
            if len(hits) >= limit:
                return False, 0
            hits.append(now)
            return True, limit - len(hits)

    def retry_after(self, key: str, window: int) -> int:
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return 0
            return max(1, int(window - (self._clock() - hits[0])) + 1)

    def reset(self):
        with self._lock:
            self._hits.clear()
            self._last_sweep = 0.0


rate_limiter = RateLimiter()


def check_rate_limit(request: Request):
    """Per-IP limit on the model-backed routes; service-key callers are exempt."""
    limit = settings.rate_limit_requests
    if not limit:
        return
    token = getattr(request.state, "token", None)
    if token and token == settings.service_key:
        return

    key = client_ip(request)
    allowed, remaining = rate_limiter.hit(key, limit, settings.rate_limit_window)
    request.state.rate_limit_limit = limit
    request.state.rate_limit_remaining = remaining

    if not allowed:
        retry_after = rate_limiter.retry_after(key, settings.rate_limit_window)
        logger.warning(f"Rate limit exceeded for {key}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )
