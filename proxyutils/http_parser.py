# proxyutils/http_parser.py
"""
Minimal HTTP message parsing for the proxy.

Only what the proxy needs is extracted: the request target (cache key),
the Host header (where to connect), and whether a response should be
treated as censorable text.
"""

import re
from email.utils import formatdate

DEFAULT_HTTP_PORT = 80

_LINE_SPLIT = re.compile(r'\r?\n')
_HEADER_SPLIT = re.compile(r':\s+')


class MalformedAddress(ValueError):
    """Raised when a Host value cannot be turned into host and port."""


def _header_fields(text):
    """Yield (name, value) for every line that looks like a header."""
    for line in _LINE_SPLIT.split(text):
        parts = _HEADER_SPLIT.split(line, maxsplit=1)
        if len(parts) == 2:
            yield parts[0], parts[1]


def parse_request_target(request_text):
    """
    Extract the request target from the request line.

    Args:
        request_text: Decoded request

    Returns:
        str: The target (e.g. 'http://example.com/' or '/'), or None when
        the first line is not exactly 'METHOD TARGET VERSION'
    """
    first_line = _LINE_SPLIT.split(request_text, maxsplit=1)[0]
    fields = first_line.split()
    if len(fields) != 3:
        return None
    return fields[1]


def extract_host_header(request_text):
    """
    Return the raw value of the Host header ('host' or 'host:port').

    Header names are matched case-insensitively; an empty string is
    returned when there is no Host header.
    """
    for name, value in _header_fields(request_text):
        if name.lower() == 'host':
            return value.strip()
    return ''


def split_host_port(address):
    """
    Split 'host[:port]' on the first colon.

    Args:
        address: Value of a Host header

    Returns:
        tuple: (host, port) with port defaulting to 80

    Raises:
        MalformedAddress: Port is not a number in 0-65535
    """
    host, sep, port_text = address.partition(':')
    if not sep:
        return host, DEFAULT_HTTP_PORT
    try:
        port = int(port_text)
    except ValueError:
        raise MalformedAddress(f"Invalid port in address: {address!r}") from None
    if not 0 <= port <= 65535:
        raise MalformedAddress(f"Port out of range in address: {address!r}")
    return host, port


def classify_content_type(header_text):
    """
    Decide whether a response is censorable text.

    A Content-Type containing 'text/' marks the response as text, but any
    header whose name contains 'encoding' with a value containing 'gzip'
    forces it to binary: compressed bytes must never be rewritten.

    Args:
        header_text: Decoded header block of the response

    Returns:
        bool: True if the body should be buffered and censored
    """
    is_text = False
    for name, value in _header_fields(header_text):
        name = name.lower()
        if name == 'content-type':
            is_text = 'text/' in value.lower()
        elif 'encoding' in name and 'gzip' in value.lower():
            return False
    return is_text


def format_http_date(timestamp=None):
    """Return timestamp (default: now) as an RFC 1123 date in GMT."""
    return formatdate(timestamp, usegmt=True)
