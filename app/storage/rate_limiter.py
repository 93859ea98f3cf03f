"""Per-user sliding-window rate limiting backed by the key-value store."""

import logging

from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "rate_limit:"


class RateLimiter:
    """Per-user rate limiter with sliding window."""

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = 10,
        window_seconds: int = 60,
    ) -> None:
        """Initialize rate limiter.

        Args:
            store: Key-value store that holds the request timestamps.
            max_requests: Maximum requests allowed per window.
            window_seconds: Time window in seconds.
        """
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def check_rate_limit(self, user_id: int) -> bool:
        """Check if user is within rate limit and count this request.

        Drops timestamps outside the window. A rejected request is not
        recorded. Storage failures allow the request through.

        Args:
            user_id: User identifier.

        Returns:
            True if request is allowed, False if rate limit exceeded.
        """
        key = f"{RATE_LIMIT_KEY_PREFIX}{user_id}"
        try:
            now = self.store.now()
            window_start = now - self.window_seconds
            timestamps = [t for t in (self.store.get(key) or []) if t > window_start]

            if len(timestamps) >= self.max_requests:
                logger.info(
                    "Rate limit exceeded for user=%s (count=%d in window)",
                    user_id,
                    len(timestamps),
                )
                return False

            timestamps.append(now)
            self.store.put(key, timestamps, ttl_seconds=self.window_seconds)
            return True
        except Exception as e:
            logger.warning("Rate limiter storage error for user=%s, allowing: %s", user_id, e)
            return True

    def reset(self, user_id: int) -> None:
        """Forget all recorded requests for a user."""
        self.store.delete(f"{RATE_LIMIT_KEY_PREFIX}{user_id}")
