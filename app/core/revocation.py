"""
Session revocation registry - tokens invalidated by logout.
Challenge: Reject a logged-out token before its natural expiry; bounded memory.
Design: Created once by the app factory and handed to the auth gate via app.state.
Entries live only as long as the token itself would (after exp the JWT check rejects it anyway).
"""

import logging
import threading
import time
from datetime import datetime, timezone

from redis.asyncio import Redis

from app.config import Settings

logger = logging.getLogger(__name__)

# Key prefix for revoked tokens in Redis
REVOKED_PREFIX = "revoked:"


def _ttl_seconds(expires_at: datetime | None) -> int | None:
    """Remaining lifetime of a token, or None if it has no known expiry."""
    if expires_at is None:
        return None
    return max(0, int((expires_at - datetime.now(timezone.utc)).total_seconds()))


class RevocationRegistry:
    """Interface consulted by the authentication gate."""

    async def revoke(self, token: str, expires_at: datetime | None = None) -> None:
        raise NotImplementedError

    async def is_revoked(self, token: str) -> bool:
        raise NotImplementedError


class InMemoryRevocationRegistry(RevocationRegistry):
    """Lock-guarded token -> deadline map. Lost on restart."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, float | None] = {}

    def _prune(self, now: float) -> None:
        expired = [t for t, deadline in self._entries.items() if deadline is not None and deadline <= now]
        for token in expired:
            del self._entries[token]

    async def revoke(self, token: str, expires_at: datetime | None = None) -> None:
        ttl = _ttl_seconds(expires_at)
        now = time.monotonic()
        with self._lock:
            self._prune(now)
            if token in self._entries:
                return
            self._entries[token] = None if ttl is None else now + ttl

    async def is_revoked(self, token: str) -> bool:
        now = time.monotonic()
        with self._lock:
            if token not in self._entries:
                return False
            deadline = self._entries[token]
            return deadline is None or deadline > now

    def __len__(self) -> int:
        with self._lock:
            self._prune(time.monotonic())
            return len(self._entries)


class RedisRevocationRegistry(RevocationRegistry):
    """Shared across worker processes; Redis expires entries with the token."""

    def __init__(self, client: Redis):
        self.client = client

    async def revoke(self, token: str, expires_at: datetime | None = None) -> None:
        key = REVOKED_PREFIX + token
        ttl = _ttl_seconds(expires_at)
        if ttl is None:
            await self.client.set(key, "1")
        elif ttl > 0:
            await self.client.setex(key, ttl, "1")

    async def is_revoked(self, token: str) -> bool:
        return bool(await self.client.exists(REVOKED_PREFIX + token))


def build_revocation_registry(settings: Settings) -> RevocationRegistry:
    """Pick the backend from settings. Called once per app instance."""
    if settings.revocation_backend == "redis":
        logger.info("Using Redis revocation registry")
        client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        return RedisRevocationRegistry(client)
    return InMemoryRevocationRegistry()
