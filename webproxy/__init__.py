# webproxy/__init__.py
"""
Censoring Web Proxy Package

This package contains the forwarding proxy core that:
- Accepts client connections, one thread per connection
- Forwards each request verbatim to the origin named by its Host header
- Streams binary responses through and censors textual ones
- Caches every response by URL and revalidates it with If-Modified-Since

Main Components:
- server.py: Accept loop and command line entry point
- handler.py: Per-connection request handling
- pipeline.py: Origin response streaming, censorship and cache population
- cache.py: Shared, thread-safe response cache
- origin.py: Upstream connection setup and 502 responses
"""

from .cache import CacheStore, CachedEntry
from .config import ProxyConfig, load_censored_words
from .errors import (
    ProxyError,
    MalformedRequest,
    OriginUnreachable,
    OriginReadFailure,
    CacheRevalidationFailure,
    LocalIOFailure,
)
from .handler import ConnectionHandler
from .origin import OriginConnector
from .pipeline import ResponsePipeline, STATE_DELIVERED, STATE_ABORTED
from .server import CensorProxyServer

__version__ = "1.0.0"
__author__ = "Censor Proxy Team"
__description__ = "Censoring, caching HTTP forward proxy"

# Export main classes for external use
__all__ = [
    'CensorProxyServer',
    'ConnectionHandler',
    'ResponsePipeline',
    'STATE_DELIVERED',
    'STATE_ABORTED',
    'OriginConnector',
    'CacheStore',
    'CachedEntry',
    'ProxyConfig',
    'load_censored_words',
    'ProxyError',
    'MalformedRequest',
    'OriginUnreachable',
    'OriginReadFailure',
    'CacheRevalidationFailure',
    'LocalIOFailure',
]
