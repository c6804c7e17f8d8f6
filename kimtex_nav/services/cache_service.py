"""
Query Cache — cache-aside storage for directory lookups.

Provides:
  - Department list cache
  - Per-user role / permission caches
  - Per-user invalidation (used when the session identity changes)

Uses Redis in production (via REDIS_URL), falls back to a simple
in-memory dict for development/testing. One ``QueryCache`` is created by
the app factory and stored in ``app.extensions["query_cache"]``; callers
receive it explicitly instead of reaching for a module global.
"""

import json
import logging
import threading
import time

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300   # 5 minutes


# ── In-memory fallback ───────────────────────────────────────────────────

class MemoryBackend:
    """Simple dict cache for dev/testing."""

    def __init__(self):
        self._store: dict = {}  # key → (value_json, expire_ts)
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            val, expires = entry
            if expires and time.time() > expires:
                self._store.pop(key, None)
                return None
            return val

    def setex(self, key, ttl_seconds, value):
        with self._lock:
            self._store[key] = (value, time.time() + ttl_seconds)

    def delete(self, *keys):
        with self._lock:
            for k in keys:
                self._store.pop(k, None)

    def flushdb(self):
        with self._lock:
            self._store.clear()

    def ping(self):
        return True


def create_backend(redis_url=None):
    """Connect to Redis, or fall back to in-memory."""
    if redis_url and not redis_url.startswith("memory://"):
        try:
            import redis as _redis
            backend = _redis.from_url(redis_url, decode_responses=True)
            backend.ping()
            logger.info("Cache: using Redis at %s", redis_url.split("@")[-1])
            return backend
        except Exception as exc:
            logger.warning("Redis unavailable (%s) — falling back to memory cache", exc)
    return MemoryBackend()


# ── Key builders ─────────────────────────────────────────────────────────

DEPARTMENTS_KEY = "departments"


def roles_key(user_id):
    return f"roles:{user_id}"


def perms_key(user_id):
    return f"perms:{user_id}"


# ═══════════════════════════════════════════════════════════════
# QueryCache
# ═══════════════════════════════════════════════════════════════

class QueryCache:
    """JSON cache-aside over a Redis-compatible backend."""

    def __init__(self, backend=None, ttl=DEFAULT_TTL):
        self.backend = backend if backend is not None else MemoryBackend()
        self.ttl = ttl

    @classmethod
    def from_app(cls, app):
        return cls(
            create_backend(app.config.get("REDIS_URL")),
            ttl=app.config.get("NAV_CACHE_TTL", DEFAULT_TTL),
        )

    def get(self, key):
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None

    def set(self, key, value, ttl=None):
        self.backend.setex(key, ttl or self.ttl, json.dumps(value))

    def get_or_load(self, key, loader, ttl=None):
        """Return the cached value for *key*; on a miss call *loader* and cache it."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def delete(self, *keys):
        if keys:
            self.backend.delete(*keys)

    def invalidate_user(self, user_id):
        """Remove cached roles and permissions for one user."""
        self.delete(roles_key(user_id), perms_key(user_id))
        logger.debug("Cache invalidated for user %s", user_id)

    def clear(self):
        """Flush entire cache (use sparingly — mainly for testing)."""
        self.backend.flushdb()

    def health_check(self):
        """Return cache backend status."""
        try:
            self.backend.ping()
            backend_type = "memory" if isinstance(self.backend, MemoryBackend) else "redis"
            return {"status": "ok", "backend": backend_type}
        except Exception as exc:
            return {"status": "error", "detail": str(exc)}
