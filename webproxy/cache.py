# webproxy/cache.py
"""
Process-wide response cache shared by every connection handler.

Entries are keyed by the request target exactly as the client sent it and
are replaced wholesale on every successful fetch; nothing is ever evicted.
Only lookup() and store() take the lock. The freshness check talks to the
origin without holding it, so a slow origin never blocks other handlers.
"""

from __future__ import annotations

import itertools
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from .errors import CacheRevalidationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedEntry:
    url: str
    last_modified: str
    storage_path: str
    is_text: bool
    text_body: bytes = b""


class CacheStore:
    """Thread-safe URL -> CachedEntry map plus the cache-file name counter."""

    def __init__(self, cache_dir=".", connect_timeout=20.0):
        self.cache_dir = cache_dir
        self.connect_timeout = connect_timeout
        self._entries: Dict[str, CachedEntry] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, url):
        with self._lock:
            return url in self._entries

    def lookup(self, url) -> Optional[CachedEntry]:
        with self._lock:
            return self._entries.get(url)

    def store(self, url, entry: CachedEntry):
        with self._lock:
            self._entries[url] = entry
        logger.debug(f"Cached {url} ({'text' if entry.is_text else 'binary'}, file {entry.storage_path})")

    def next_storage_path(self) -> str:
        """Allocate a unique '<N>.cache' path under the cache directory."""
        with self._lock:
            number = next(self._counter)
        return os.path.join(self.cache_dir, f"{number}.cache")

    def is_fresh(self, entry: CachedEntry) -> bool:
        """
        Ask the origin whether entry is still current.

        Sends a conditional GET for entry.url carrying If-Modified-Since;
        only a 304 answer counts as fresh. Any failure means stale, so the
        caller re-fetches instead of serving something unverified.
        """
        try:
            status = self._revalidate(entry)
        except CacheRevalidationFailure as e:
            logger.warning(f"Freshness check failed for {entry.url}: {e}")
            return False
        logger.debug(f"Freshness check for {entry.url} -> {status}")
        return status == 304

    def _revalidate(self, entry: CachedEntry) -> int:
        timeout = (self.connect_timeout, self.connect_timeout)
        try:
            with requests.Session() as session:
                # Never route the check back through a proxy from the environment
                session.trust_env = False
                response = session.get(
                    entry.url,
                    headers={"If-Modified-Since": entry.last_modified},
                    timeout=timeout,
                    allow_redirects=False,
                    stream=True,
                )
                response.close()
                return response.status_code
        except (requests.RequestException, ValueError) as e:
            raise CacheRevalidationFailure(str(e)) from e
