"""
Memoizing cache for slow, rarely-changing async lookups.

A cached function reads its entry from a ``CacheStore`` and classifies it:

- FRESH: age within ``max_age``; returned as is.
- STALE: age within ``max_age + stale_while_revalidate``; returned as is while
  a detached task recomputes and overwrites the entry.
- MISS: absent, too old, or rejected by ``should_revalidate``; recomputed
  before returning.

Losing the store only costs a recomputation, so stores never raise on
unreadable data; they report the entry as absent.
"""
import asyncio
import functools
import hashlib
import json
import os
import time
from dataclasses import asdict, dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Set

import aiofiles
import aiofiles.os
from application_sdk.observability.logger_adaptor import get_logger

from latest_tag.config import CACHE_BACKEND, CACHE_DIR

logger = get_logger(__name__)


class Freshness(Enum):
    FRESH = "fresh"
    STALE = "stale"
    MISS = "miss"


@dataclass
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    max_age: float
    stale_while_revalidate: float = 0.0

    def age(self, now: float) -> float:
        return now - self.stored_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            key=data["key"],
            value=data["value"],
            stored_at=float(data["stored_at"]),
            max_age=float(data["max_age"]),
            stale_while_revalidate=float(data.get("stale_while_revalidate") or 0.0),
        )


def classify(
    entry: Optional[CacheEntry],
    now: float,
    should_revalidate: Optional[Callable[[Any], bool]] = None,
    max_age: Optional[float] = None,
    stale_while_revalidate: Optional[float] = None,
) -> Freshness:
    """
    Windows (seconds) default to the policy stored with the entry; a caller
    passing its current policy overrides them.
    """
    if entry is None:
        return Freshness.MISS
    if should_revalidate is not None and should_revalidate(entry.value):
        return Freshness.MISS
    if max_age is None:
        max_age = entry.max_age
    if stale_while_revalidate is None:
        stale_while_revalidate = entry.stale_while_revalidate
    age = entry.age(now)
    if age <= max_age:
        return Freshness.FRESH
    if age <= max_age + stale_while_revalidate:
        return Freshness.STALE
    return Freshness.MISS


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[CacheEntry]:
        ...

    async def set(self, entry: CacheEntry) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemoryCacheStore:
    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FileCacheStore:
    """One JSON document per key under ``directory``; keys are hashed into file names."""

    def __init__(self, directory: str = CACHE_DIR):
        self.directory = directory
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode()).hexdigest()
        return os.path.join(self.directory, f"{digest}.json")

    async def get(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        try:
            async with aiofiles.open(path, "r") as f:
                data = json.loads(await f.read())
            entry = CacheEntry.from_dict(data)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry", exc_info=e, extra={"cache_key": key, "path": path})
            return None
        if entry.key != key:
            return None
        return entry

    async def set(self, entry: CacheEntry) -> None:
        path = self._path(entry.key)
        tmp_path = f"{path}.tmp"
        try:
            async with aiofiles.open(tmp_path, "w") as f:
                await f.write(json.dumps(entry.to_dict(), default=str))
            await aiofiles.os.replace(tmp_path, path)
        except Exception:
            try:
                await aiofiles.os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise

    async def delete(self, key: str) -> None:
        try:
            await aiofiles.os.remove(self._path(key))
        except FileNotFoundError:
            pass

    async def clear(self) -> None:
        for name in await aiofiles.os.listdir(self.directory):
            if name.endswith(".json"):
                try:
                    await aiofiles.os.remove(os.path.join(self.directory, name))
                except FileNotFoundError:
                    pass


def build_store(backend: str = CACHE_BACKEND, directory: str = CACHE_DIR) -> CacheStore:
    if backend == "memory":
        return MemoryCacheStore()
    if backend == "file":
        return FileCacheStore(directory)
    raise ValueError(f"Unknown cache backend: {backend!r}")


_default_store: Optional[CacheStore] = None


def get_default_store() -> CacheStore:
    """Process-wide store shared by every cached function that isn't given one."""
    global _default_store
    if _default_store is None:
        _default_store = build_store()
    return _default_store


def _default_cache_key(func: Callable[..., Any]) -> Callable[..., str]:
    def cache_key(*args: Any) -> str:
        return f"{func.__module__}.{func.__qualname__}:{json.dumps(args, sort_keys=True, default=str)}"
    return cache_key


class CachedFunction:
    def __init__(
        self,
        func: Callable[..., Awaitable[Any]],
        *,
        max_age: timedelta,
        stale_while_revalidate: Optional[timedelta] = None,
        should_revalidate: Optional[Callable[[Any], bool]] = None,
        cache_key: Optional[Callable[..., str]] = None,
        store: Optional[CacheStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.func = func
        self.max_age = max_age
        self.stale_while_revalidate = stale_while_revalidate
        self.should_revalidate = should_revalidate
        self.cache_key = cache_key or _default_cache_key(func)
        self._store = store
        self.clock = clock
        self._revalidations: Set["asyncio.Task[Any]"] = set()
        functools.update_wrapper(self, func)

    @property
    def store(self) -> CacheStore:
        return self._store if self._store is not None else get_default_store()

    @property
    def _max_age_seconds(self) -> float:
        return self.max_age.total_seconds()

    @property
    def _stale_while_revalidate_seconds(self) -> float:
        return self.stale_while_revalidate.total_seconds() if self.stale_while_revalidate else 0.0

    async def __call__(self, *args: Any) -> Any:
        key = self.cache_key(*args)
        entry = await self.store.get(key)
        freshness = classify(
            entry,
            self.clock(),
            self.should_revalidate,
            max_age=self._max_age_seconds,
            stale_while_revalidate=self._stale_while_revalidate_seconds,
        )

        if freshness is Freshness.FRESH:
            logger.debug(f"Cache hit for {key}")
            return entry.value

        if freshness is Freshness.STALE:
            logger.debug(f"Serving stale value for {key} while revalidating")
            task = asyncio.create_task(self._revalidate(key, args))
            self._revalidations.add(task)
            task.add_done_callback(self._revalidations.discard)
            return entry.value

        logger.debug(f"Cache miss for {key}")
        return await self._compute(key, args)

    async def fresh(self, *args: Any) -> Any:
        """Recompute and store, ignoring whatever is cached."""
        return await self._compute(self.cache_key(*args), args)

    async def wait_for_revalidations(self) -> None:
        if self._revalidations:
            await asyncio.gather(*list(self._revalidations))

    async def _compute(self, key: str, args: tuple) -> Any:
        value = await self.func(*args)
        entry = CacheEntry(
            key=key,
            value=value,
            stored_at=self.clock(),
            max_age=self._max_age_seconds,
            stale_while_revalidate=self._stale_while_revalidate_seconds,
        )
        # an unwritable store only costs the next call a recomputation
        try:
            await self.store.set(entry)
        except Exception as e:
            logger.warning(f"Could not store cache entry for {key}", exc_info=e, extra={"cache_key": key})
        return value

    async def _revalidate(self, key: str, args: tuple) -> None:
        # the caller already has the stale value; failures only cost freshness
        try:
            await self._compute(key, args)
            logger.debug(f"Revalidated {key}")
        except Exception as e:
            logger.warning(f"Background revalidation failed for {key}", exc_info=e, extra={"cache_key": key})


def cached_function(
    *,
    max_age: timedelta,
    stale_while_revalidate: Optional[timedelta] = None,
    should_revalidate: Optional[Callable[[Any], bool]] = None,
    cache_key: Optional[Callable[..., str]] = None,
    store: Optional[CacheStore] = None,
    clock: Callable[[], float] = time.time,
) -> Callable[[Callable[..., Awaitable[Any]]], CachedFunction]:
    """
    Memoize an async function in a cache store.

    ``cache_key`` receives the call arguments and must encode everything the
    result depends on. ``should_revalidate`` receives a stored value and
    returns True when it can no longer be trusted (e.g. an older shape).
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> CachedFunction:
        return CachedFunction(
            func,
            max_age=max_age,
            stale_while_revalidate=stale_while_revalidate,
            should_revalidate=should_revalidate,
            cache_key=cache_key,
            store=store,
            clock=clock,
        )
    return decorator
