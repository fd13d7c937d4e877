# proxyutils/protocol.py
"""
Wire-level constants and socket helpers shared by the proxy core.

The proxy speaks plain HTTP/1.0-style exchanges: one request per TCP
connection, relayed verbatim, with the connection closed once the
response has been delivered.
"""

import socket
import logging

# Size of a single read from the client or the origin
BUFFER_SIZE = 8192

# Marks the end of an HTTP header block
HEADER_TERMINATOR = b'\r\n\r\n'

# Sent to the client when the origin cannot be reached
BAD_GATEWAY_RESPONSE = (
    b'HTTP/1.0 502 Bad Gateway\r\n'
    b'\r\n'
    b'502 Error: Cannot reach server.\r\n'
    b'\r\n'
)

logger = logging.getLogger(__name__)


def create_tcp_connection(host, port, connect_timeout=20.0, read_timeout=1.0):
    """
    Open a TCP connection to host:port.

    The connect timeout bounds name resolution and the handshake; the read
    timeout is installed on the socket before it is handed back, so every
    subsequent recv() is bounded by it.

    Args:
        host: Target hostname/IP
        port: Target port
        connect_timeout: Seconds allowed for establishing the connection
        read_timeout: Seconds allowed for each read on the connected socket

    Returns:
        socket: Connected socket

    Raises:
        OSError: DNS failure, refused connection or connect timeout
    """
    sock = socket.create_connection((host, port), timeout=connect_timeout)
    sock.settimeout(read_timeout)
    logger.debug(f"Connected to {host}:{port}")
    return sock


def close_connection(sock):
    """
    Safely close a socket connection.

    Args:
        sock: Socket to close (None is ignored)
    """
    if sock is None:
        return
    try:
        sock.close()
    except OSError as e:
        logger.debug(f"Error closing connection: {e}")


def format_http_message(data, max_length=200):
    """
    Format HTTP message for logging (truncate if too long).

    Args:
        data: HTTP message bytes
        max_length: Maximum length to display

    Returns:
        str: Formatted message for logging
    """
    decoded = data.decode('utf-8', errors='replace')
    if len(decoded) > max_length:
        return decoded[:max_length] + '...'
    return decoded
