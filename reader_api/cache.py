from typing import Callable, Optional
from urllib.parse import unquote_plus, urlsplit, urlunsplit
import math, threading, time

from cachetools import TTLCache

from . import config
from .schemas import ReaderResponse

TRACKING_PARAMS = frozenset(["utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content"])


def _is_tracking(pair: str) -> bool:
    key = unquote_plus(pair.split("=", 1)[0]).lower()
    return key in TRACKING_PARAMS or key.startswith("utm_")


def normalize_cache_key(url: str) -> str:
    """ the request URL minus utm_* tracking parameters """
    try:
        parts = urlsplit(url)
        # kept pairs stay byte-for-byte as given
        query = "&".join(p for p in parts.query.split("&") if p and not _is_tracking(p))
        return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
    except ValueError:
        return str(url)


class ResponseCache:
    """
    Process-wide TTL map of NormalizedCacheKey -> ReaderResponse. Entries
    are replaced whole, never patched; expired ones vanish on lookup or on
    sweep(). No size bound.
    """

    def __init__(self, ttl: float = config.CACHE_TTL, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._data: TTLCache = TTLCache(maxsize=math.inf, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ReaderResponse]:
        with self._lock:
            self._data.expire()
            return self._data.get(key)

    def set(self, key: str, value: ReaderResponse) -> None:
        with self._lock:
            self._data[key] = value

    def sweep(self) -> int:
        """ drop expired entries; returns how many remain """
        with self._lock:
            self._data.expire()
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            self._data.expire()
            return len(self._data)
