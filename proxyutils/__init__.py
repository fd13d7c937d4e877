# proxyutils/__init__.py
"""
Utils package for the censoring web proxy.

This package provides the byte- and header-level helpers used by the
proxy core: locating the header boundary, censoring response bodies,
parsing requests and classifying responses, plus socket helpers.
"""

from .protocol import (
    BUFFER_SIZE,
    HEADER_TERMINATOR,
    BAD_GATEWAY_RESPONSE,
    create_tcp_connection,
    close_connection,
    format_http_message,
)
from .scanner import (
    CENSOR_REPLACEMENT,
    find_header_boundary,
    replace_all,
    censor_response,
)
from .http_parser import (
    DEFAULT_HTTP_PORT,
    MalformedAddress,
    parse_request_target,
    extract_host_header,
    split_host_port,
    classify_content_type,
    format_http_date,
)

# Package metadata
__version__ = "1.0.0"
__author__ = "Censor Proxy Team"
__description__ = "Byte scanning and HTTP parsing helpers for the censoring web proxy"

__all__ = [
    'BUFFER_SIZE',
    'HEADER_TERMINATOR',
    'BAD_GATEWAY_RESPONSE',
    'create_tcp_connection',
    'close_connection',
    'format_http_message',
    'CENSOR_REPLACEMENT',
    'find_header_boundary',
    'replace_all',
    'censor_response',
    'DEFAULT_HTTP_PORT',
    'MalformedAddress',
    'parse_request_target',
    'extract_host_header',
    'split_host_port',
    'classify_content_type',
    'format_http_date',
]
