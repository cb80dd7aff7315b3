"""
Hybrid in-memory + Redis rate limiting for the login endpoint
Counts attempts per client IP; Redis is only used when REDIS_URL is set
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import REDIS_URL

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None
redis_unavailable = False

# In-memory cache for rate limiting
# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

# Configuration
MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds
last_cleanup_time = 0


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.
    Returns None when REDIS_URL is unset or the server could not be reached.
    """
    global redis_client, redis_unavailable

    if redis_client is not None or redis_unavailable or not REDIS_URL:
        return redis_client

    # Mask password in URL for logging
    if "@" in REDIS_URL:
        url_parts = REDIS_URL.split("@")
        protocol = url_parts[0].split(":")[0]
        masked_url = f"{protocol}:****@{url_parts[1]}"
    else:
        masked_url = "****"
    logger.info(f"📡 Using Redis URL connection: {masked_url}")

    try:
        client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
        redis_client = client
        logger.info("Redis connected successfully")
    except redis.RedisError as e:
        redis_unavailable = True
        logger.error(f"❌ Failed to connect to Redis: {str(e)}")
        logger.warning("⚠️ Falling back to in-memory rate limiting")

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def reset_rate_limits():
    """Forget every counter held in memory"""
    with cache_lock:
        memory_cache.clear()


def _load_entry(key: str, window_seconds: int, client: Optional[redis.Redis], current_time: int) -> dict:
    """Get or create the cache entry for `key`; caller holds cache_lock"""
    entry = memory_cache.get(key)
    if entry is None:
        entry = {"count": 0, "reset_time": current_time + window_seconds, "last_redis_sync": current_time}
        if client is not None:
            try:
                redis_count = client.get(key)
                redis_ttl = client.ttl(key)
                if redis_count and redis_ttl > 0:
                    entry = {
                        "count": int(redis_count),
                        "reset_time": current_time + redis_ttl,
                        "last_redis_sync": current_time,
                    }
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
        memory_cache[key] = entry

    if current_time >= entry["reset_time"]:
        entry["count"] = 0
        entry["reset_time"] = current_time + window_seconds
        entry["last_redis_sync"] = 0

    return entry


def _sync_to_redis(key: str, entry: dict, client: Optional[redis.Redis], current_time: int, force: bool = False):
    """Push the memory count to Redis; caller holds cache_lock"""
    if client is None:
        return
    # Sync to Redis periodically (not on every request!)
    if not force and current_time - entry.get("last_redis_sync", 0) < MEMORY_CACHE_SYNC_INTERVAL:
        return
    try:
        client.set(key, entry["count"], ex=max(1, entry["reset_time"] - current_time))
        entry["last_redis_sync"] = current_time
        logger.debug(f"📡 Synced {key} to Redis: {entry['count']}")
    except redis.RedisError as e:
        logger.warning(f"⚠️ Failed to sync to Redis: {e}")


def check_rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """
    Check the counter for `key` and count one hit when it is under `limit`.
    The check and the increment share one lock acquisition.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    cleanup_expired_cache()
    client = get_redis_client()
    current_time = int(time.time())
    with cache_lock:
        entry = _load_entry(key, window_seconds, client, current_time)
        ttl = max(0, entry["reset_time"] - current_time)
        if entry["count"] >= limit:
            return False, entry["count"], ttl

        entry["count"] += 1
        _sync_to_redis(key, entry, client, current_time)
        return True, entry["count"], ttl


def release_hit(key: str) -> int:
    """Give back one hit counted by check_rate_limit and return the new count"""
    client = get_redis_client()
    current_time = int(time.time())
    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None or current_time >= entry["reset_time"]:
            return 0
        entry["count"] = max(0, entry["count"] - 1)
        _sync_to_redis(key, entry, client, current_time, force=True)
        return entry["count"]


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency.

    Every admitted request counts as one hit. Routes that only want to
    count failures give the hit back with the returned dependency's
    `release(request)` once the request has succeeded.

    Example usage:
        login_limiter = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")

        @router.post("/login")
        async def login(request: Request, _: None = Depends(login_limiter)):
            ...
            login_limiter.release(request)
    """

    def key_for(request: Request) -> str:
        return f"{key_prefix}:{client_ip(request)}"

    async def rate_limiter(request: Request):
        key = key_for(request)
        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds)
        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Too many attempts. Try again in {ttl} seconds.",
                    "retry_after": ttl,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
                headers={"Retry-After": str(ttl)},
            )
        logger.debug(f"✅ Rate limit OK for {key} - {current_count}/{limit}")

    def release(request: Request) -> int:
        return release_hit(key_for(request))

    rate_limiter.release = release
    return rate_limiter
