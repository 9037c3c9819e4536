from __future__ import annotations

import abc
import hashlib
import logging
import threading
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from keepfresh._core._headers import Vary
from keepfresh._core.models import CacheEntry, Request
from keepfresh._lfu_cache import LFUCache

logger = logging.getLogger("keepfresh.core.storages")

DEFAULT_PORTS = {"http": 80, "https": 443}

__all__ = ("BaseStorage", "InMemoryStorage", "generate_key", "normalize_url", "variant_selector")


def normalize_url(url: str) -> str:
    """
    Canonical form of a request URI for use in cache keys.

    Lower-cases scheme and host, drops the default port, the userinfo and
    the fragment, and turns an empty path into "/".

    Examples:
        >>> normalize_url("HTTP://Example.COM:80?a=1#top")
        'http://example.com/?a=1'
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"

    try:
        port = parts.port
    except ValueError:
        port = None

    netloc = host if port is None or DEFAULT_PORTS.get(scheme) == port else f"{host}:{port}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def variant_selector(request: Request, entry: CacheEntry) -> str:
    """
    Identifies the stored variant of a URI that `request` selects.

    Built from the request values of every header named by the entry's
    Vary field, in Vary order. An entry without Vary has a single variant,
    the empty selector.
    """
    vary = Vary.from_values(entry.headers.get_list("vary"))
    return "&".join(
        f"{quote(name)}={quote(', '.join(request.headers.get_list(name)))}" for name in vary.values
    )


def generate_key(method: str, url: str, vary_selector: str = "") -> str:
    """
    Cache key of a (method, normalized URI, variant selector) triple.

    Uses blake2b, falling back to sha256 where FIPS mode disables blake2.
    """
    key_parts = [method.upper().encode("ascii"), normalize_url(url).encode("utf-8"), vary_selector.encode("utf-8")]

    try:
        hasher = hashlib.blake2b(digest_size=16, usedforsecurity=False)
    except (ValueError, TypeError, AttributeError):
        hasher = hashlib.sha256(usedforsecurity=False)

    for part in key_parts:
        hasher.update(part)
        hasher.update(b"\x00")
    return hasher.hexdigest()


class BaseStorage(abc.ABC):
    """A key to entry store. Writers race on a key; the last write wins."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        raise NotImplementedError()

    @abc.abstractmethod
    def put(self, key: str, entry: CacheEntry) -> None:
        raise NotImplementedError()

    @abc.abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError()


class InMemoryStorage(BaseStorage):
    """
    Process-local storage that keeps at most `capacity` entries.

    When full, the least frequently used entry is dropped. All operations
    are serialized by a lock, so one instance can back several threads.
    """

    def __init__(self, capacity: int = 128) -> None:
        self._cache: LFUCache[str, CacheEntry] = LFUCache(capacity=capacity)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            try:
                return self._cache.get(key)
            except KeyError:
                return None

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._cache.put(key, entry)
        logger.debug(f"Stored the entry for the key {key}.")

    def remove(self, key: str) -> None:
        with self._lock:
            self._cache.remove_key(key)
        logger.debug(f"Removed the entry for the key {key}.")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
