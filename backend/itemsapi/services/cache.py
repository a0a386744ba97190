"""
Items API — Response Cache
===========================

What:  Key-addressed cache of complete HTTP responses with TTL expiry.
Why:   The single-item read path answers repeated requests for the same id
       without a store round-trip. Keys are canonical request URLs.
How:   Responses are frozen into CachedResponse (status, body bytes, headers)
       so a hit can be replayed verbatim, Cache-Control header included.
       The TTL of an entry comes from the response's own
       `Cache-Control: max-age`, falling back to the cache's default TTL.

Backends:
    - ResponseCache (abstract): get / put / delete contract
    - MemoryResponseCache: in-process dict with expiry timestamps
    - RedisResponseCache:  shared entries in Redis, expiry by SETEX

    MemoryResponseCache is per-process: with several uvicorn workers each
    worker keeps its own entries, and a delete only invalidates the entry in
    the worker that served it. Set CACHE_URL to a redis:// URL to share one
    cache between workers; response_cache_from_settings() picks the backend.
"""

import base64
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import redis.asyncio as redis
from starlette.responses import Response

from itemsapi.config import Settings

logger = logging.getLogger(__name__)

_MAX_AGE_RE = re.compile(r"(?:^|,)\s*max-age\s*=\s*(\d+)", re.IGNORECASE)

# Recomputed by Starlette when the response is rebuilt
_HOP_HEADERS = {"content-length"}


@dataclass(frozen=True)
class CachedResponse:
    """An immutable snapshot of a response suitable for replay."""

    status_code: int
    body: bytes
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @classmethod
    def from_response(cls, response: Response) -> "CachedResponse":
        headers = tuple(
            (name, value)
            for name, value in response.headers.items()
            if name.lower() not in _HOP_HEADERS
        )
        return cls(status_code=response.status_code, body=bytes(response.body), headers=headers)

    def to_response(self) -> Response:
        response = Response(content=self.body, status_code=self.status_code)
        for name, value in self.headers:
            response.headers[name] = value
        return response

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def max_age(self) -> Optional[int]:
        """Seconds from `Cache-Control: max-age`, or None when absent."""
        cache_control = self.header("Cache-Control")
        if not cache_control:
            return None
        match = _MAX_AGE_RE.search(cache_control)
        return int(match.group(1)) if match else None

    def dumps(self) -> str:
        """JSON form for out-of-process backends; the body is base64."""
        return json.dumps(
            {
                "status_code": self.status_code,
                "body": base64.b64encode(self.body).decode("ascii"),
                "headers": [list(pair) for pair in self.headers],
            }
        )

    @classmethod
    def loads(cls, raw: str) -> "CachedResponse":
        data = json.loads(raw)
        return cls(
            status_code=data["status_code"],
            body=base64.b64decode(data["body"]),
            headers=tuple((name, value) for name, value in data["headers"]),
        )


def resolve_ttl(entry: CachedResponse, ttl: Optional[int], default_ttl: int) -> int:
    """Explicit ttl, else the entry's max-age, else the backend default."""
    if ttl is not None:
        return ttl
    return entry.max_age if entry.max_age is not None else default_ttl


class ResponseCache(ABC):
    """Key-addressed response cache with TTL support."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedResponse]:
        """Return the live entry for `key`, or None on miss/expiry."""
        ...

    @abstractmethod
    async def put(self, key: str, entry: CachedResponse, ttl: Optional[int] = None) -> None:
        """Store `entry` under `key`; `ttl` overrides the entry's max-age."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove `key`; returns whether an entry was present."""
        ...

    async def close(self) -> None:
        """Release backend connections."""
        return None


class MemoryResponseCache(ResponseCache):
    """
    In-process TTL cache.

    Args:
        default_ttl: Seconds to keep entries whose response carries no max-age.
        clock:       Monotonic time source; injectable for expiry tests.
    """

    purge_threshold = 1024

    def __init__(self, default_ttl: int = 30, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, CachedResponse]] = {}

    async def get(self, key: str) -> Optional[CachedResponse]:
        item = self._entries.get(key)
        if item is None:
            logger.debug("cache miss: %s", key)
            return None
        expires_at, entry = item
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("cache expired: %s", key)
            return None
        logger.debug("cache hit: %s", key)
        return entry

    async def put(self, key: str, entry: CachedResponse, ttl: Optional[int] = None) -> None:
        ttl = resolve_ttl(entry, ttl, self.default_ttl)
        if ttl <= 0:
            # max-age=0 means "do not store"
            self._entries.pop(key, None)
            return
        self._entries[key] = (self._clock() + ttl, entry)
        logger.debug("cache put: %s (ttl=%ds)", key, ttl)

        # Entries that are never read again would otherwise stay forever
        if len(self._entries) > self.purge_threshold:
            removed = self.purge_expired()
            if removed:
                logger.debug("Purged %d expired cache entries", removed)

    async def delete(self, key: str) -> bool:
        deleted = self._entries.pop(key, None) is not None
        logger.debug("cache delete: %s (deleted=%s)", key, deleted)
        return deleted

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired: List[str] = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisResponseCache(ResponseCache):
    """
    Cache shared by every worker through Redis.

    Entries are stored as CachedResponse.dumps() under `prefix + key` with
    SETEX, so Redis expires them; a delete from any worker is seen by all.

    Args:
        client:      redis.asyncio client created with decode_responses=True.
        default_ttl: Seconds for entries whose response carries no max-age.
        prefix:      Namespace for this service's keys.
    """

    def __init__(self, client: "redis.Redis", default_ttl: int = 30, prefix: str = "itemsapi:response:"):
        self.client = client
        self.default_ttl = default_ttl
        self.prefix = prefix

    def _name(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[CachedResponse]:
        raw = await self.client.get(self._name(key))
        if raw is None:
            logger.debug("cache miss: %s", key)
            return None
        logger.debug("cache hit: %s", key)
        return CachedResponse.loads(raw)

    async def put(self, key: str, entry: CachedResponse, ttl: Optional[int] = None) -> None:
        ttl = resolve_ttl(entry, ttl, self.default_ttl)
        if ttl <= 0:
            await self.client.delete(self._name(key))
            return
        await self.client.setex(self._name(key), ttl, entry.dumps())
        logger.debug("cache put: %s (ttl=%ds)", key, ttl)

    async def delete(self, key: str) -> bool:
        deleted = bool(await self.client.delete(self._name(key)))
        logger.debug("cache delete: %s (deleted=%s)", key, deleted)
        return deleted

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Redis cache connection closed")


async def response_cache_from_settings(config: Settings) -> ResponseCache:
    """
    Build the cache named by `config.cache_url`.

    No URL → MemoryResponseCache. A redis:// URL → RedisResponseCache, unless
    the server does not answer PING, in which case the in-process cache is
    used and a warning logged.
    """
    if not config.cache_url:
        logger.info("Using in-process response cache")
        return MemoryResponseCache(default_ttl=config.cache_ttl_seconds)

    client = redis.from_url(
        config.cache_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=5,
        socket_connect_timeout=5,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.warning("Redis cache unreachable, using in-process cache: %s", e)
        await client.aclose()
        return MemoryResponseCache(default_ttl=config.cache_ttl_seconds)

    logger.info("Using Redis response cache")
    return RedisResponseCache(client, default_ttl=config.cache_ttl_seconds)
