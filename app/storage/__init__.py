"""Keyed storage: sessions and rate-limit windows."""

from app.storage.kv_store import KeyValueStore, StorageError
from app.storage.rate_limiter import RateLimiter
from app.storage.session_store import SessionStore, UnknownSessionError

__all__ = [
    "KeyValueStore",
    "RateLimiter",
    "SessionStore",
    "StorageError",
    "UnknownSessionError",
]
