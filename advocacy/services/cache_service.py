"""
Cache Service — shared backend for resolved access decisions.

Uses Redis when ``REDIS_URL`` points at a Redis server, so every worker
process sees the same entries and an invalidation after an admin write
reaches all of them.  With ``memory://`` (development, testing) a bounded
in-process dict stands in.

Values are JSON strings; keys expire on their own TTL.
"""

import json
import logging
import time
from fnmatch import fnmatchcase

import redis
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"
MAX_MEMORY_ENTRIES = 10_000


# ── In-memory backend ────────────────────────────────────────────────────

class MemoryBackend:
    """Bounded dict cache with the subset of the Redis API used here."""

    def __init__(self, max_entries: int = MAX_MEMORY_ENTRIES):
        self.max_entries = max_entries
        self._store: dict[str, tuple[str, float]] = {}  # key → (value, expire_ts)

    def __len__(self):
        return len(self._store)

    def get(self, key):
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires = entry
        if time.time() > expires:
            self._store.pop(key, None)
            return None
        return value

    def setex(self, key, ttl_seconds, value):
        self._store.pop(key, None)
        if len(self._store) >= self.max_entries:
            self._evict()
        self._store[key] = (value, time.time() + ttl_seconds)

    def _evict(self):
        now = time.time()
        for k in [k for k, (_, expires) in self._store.items() if expires < now]:
            del self._store[k]
        # Still full: drop the oldest writes first
        while len(self._store) >= self.max_entries:
            del self._store[next(iter(self._store))]

    def delete(self, *keys):
        for k in keys:
            self._store.pop(k, None)

    def scan_iter(self, match="*"):
        return [k for k in list(self._store) if fnmatchcase(k, match)]

    def flushdb(self):
        self._store.clear()

    def ping(self):
        return True


# ── Backend selection ────────────────────────────────────────────────────

_backends: dict = {}  # url → backend


def _redis_url() -> str:
    if has_app_context():
        return current_app.config.get("REDIS_URL") or MEMORY_URL
    return MEMORY_URL


def get_backend():
    """Redis client for the configured URL, or the shared memory backend."""
    url = _redis_url()
    backend = _backends.get(url)
    if backend is not None:
        return backend

    if url.startswith(MEMORY_URL):
        backend = MemoryBackend()
    else:
        try:
            backend = redis.from_url(url, decode_responses=True)
            backend.ping()
            logger.info("Cache: using Redis at %s", url.split("@")[-1])
        except redis.RedisError as exc:
            logger.warning("Redis unavailable (%s), falling back to memory cache", exc)
            backend = MemoryBackend()
    _backends[url] = backend
    return backend


# ── Access decisions ─────────────────────────────────────────────────────

def _access_key(user_id, role, space):
    return f"access:{user_id}:{role}:{space}"


def get_cached_decision(user_id, role, space) -> dict | None:
    """Cached global decision, or None on a miss or backend error."""
    try:
        raw = get_backend().get(_access_key(user_id, role, space))
    except redis.RedisError as exc:
        logger.warning("Access cache read failed: %s", exc)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None


def set_cached_decision(user_id, role, space, decision: dict, ttl: int) -> None:
    try:
        get_backend().setex(_access_key(user_id, role, space), ttl, json.dumps(decision))
    except redis.RedisError as exc:
        logger.warning("Access cache write failed: %s", exc)


def _delete_matching(pattern: str) -> None:
    backend = get_backend()
    try:
        keys = list(backend.scan_iter(match=pattern))
        if keys:
            backend.delete(*keys)
    except redis.RedisError as exc:
        logger.error("Access cache invalidation failed for %s: %s", pattern, exc)


def invalidate_user_decisions(user_id: str) -> None:
    """Drop every cached decision for one user, in every worker."""
    _delete_matching(f"access:{user_id}:*")


def invalidate_all_decisions() -> None:
    _delete_matching("access:*")


def cached_decision_count() -> int:
    backend = get_backend()
    return sum(1 for _ in backend.scan_iter(match="access:*"))
