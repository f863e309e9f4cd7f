"""
Rate limiting for the credential endpoints.

In-memory sliding window limiter keyed by client IP. Login and registration
share one limiter so that password guessing and account spraying are
throttled together.

Note: state is per process; several replicas each keep their own window.
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, Request, status

from .config import settings
from .logging_config import get_logger
from .metrics import track_rate_limit_hit

logger = get_logger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for a rate limit rule."""

    max_requests: int
    window_seconds: int
    block_duration_seconds: int = 0  # 0 = no block, only enforce the window


@dataclass
class ClientState:
    """State tracking for a single client."""

    requests: List[float] = field(default_factory=list)
    blocked_until: float = 0.0


class RateLimiter:
    """
    In-memory rate limiter with sliding window algorithm.

    Attributes:
        config: Rate limit configuration
        trust_forwarded_for: Key clients by the first X-Forwarded-For hop
            instead of the socket peer. Only safe behind a proxy that
            overwrites the header.
    """

    def __init__(self, config: RateLimitConfig, trust_forwarded_for: bool = False) -> None:
        self.config = config
        self.trust_forwarded_for = trust_forwarded_for
        self._clients: Dict[str, ClientState] = defaultdict(ClientState)
        self._lock = Lock()
        self._last_cleanup = time.time()
        self._cleanup_interval = 60.0

    def _cleanup_old_entries(self, now: float) -> None:
        """Forget clients with no activity in the window and no active block."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        cutoff = now - self.config.window_seconds

        expired_clients = [
            ip
            for ip, state in self._clients.items()
            if (not state.requests or state.requests[-1] < cutoff) and state.blocked_until < now
        ]
        for ip in expired_clients:
            del self._clients[ip]

        if expired_clients:
            logger.debug(f"Cleaned up {len(expired_clients)} expired rate limit entries")

    def _get_client_ip(self, request: Request) -> str:
        if self.trust_forwarded_for:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    def check_rate_limit(self, request: Request) -> Tuple[bool, Optional[int]]:
        """
        Check if request is within rate limit.

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        client_ip = self._get_client_ip(request)
        now = time.time()

        with self._lock:
            self._cleanup_old_entries(now)
            state = self._clients[client_ip]

            if state.blocked_until > now:
                return False, int(state.blocked_until - now) + 1

            window_start = now - self.config.window_seconds
            state.requests = [ts for ts in state.requests if ts > window_start]

            if len(state.requests) >= self.config.max_requests:
                if self.config.block_duration_seconds > 0:
                    state.blocked_until = now + self.config.block_duration_seconds
                    retry_after = self.config.block_duration_seconds
                else:
                    retry_after = int(state.requests[0] - window_start) + 1

                logger.warning(
                    "Rate limit exceeded",
                    extra={
                        "extra_fields": {
                            "client_ip": client_ip,
                            "requests_in_window": len(state.requests),
                            "retry_after_seconds": retry_after,
                        }
                    },
                )
                return False, retry_after

            state.requests.append(now)
            return True, None

    def reset(self) -> None:
        """Forget every client."""
        with self._lock:
            self._clients.clear()


# Login and registration: 5 attempts per minute, 5 minute block on exceed
credentials_rate_limiter = RateLimiter(
    RateLimitConfig(
        max_requests=5,
        window_seconds=60,
        block_duration_seconds=300,
    ),
    trust_forwarded_for=settings.TRUST_FORWARDED_FOR,
)


def check_credentials_rate_limit(request: Request) -> None:
    """
    FastAPI dependency guarding login and registration.

    Raises:
        HTTPException: 429 Too Many Requests if limit exceeded
    """
    is_allowed, retry_after = credentials_rate_limiter.check_rate_limit(request)

    if not is_allowed:
        track_rate_limit_hit(request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )
