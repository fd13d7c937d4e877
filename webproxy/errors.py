# webproxy/errors.py
"""
Error kinds raised inside a connection handler.

None of these escape the handler thread. Only OriginUnreachable becomes
visible to the client (as a 502); the rest end in a closed connection.
"""


class ProxyError(Exception):
    """Base class for proxy failures scoped to one connection."""


class MalformedRequest(ProxyError, ValueError):
    """Request line or Host header could not be parsed."""


class OriginUnreachable(ProxyError):
    """DNS, connect or connect-timeout failure towards the origin."""


class OriginReadFailure(ProxyError):
    """Hard I/O error while reading the origin's response."""


class CacheRevalidationFailure(ProxyError):
    """The conditional request used for a freshness check failed."""


class LocalIOFailure(ProxyError):
    """A cache file could not be written or read."""
