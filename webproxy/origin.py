# webproxy/origin.py
"""
Origin Connector - opens the upstream TCP connection for a request.

The Host header decides where to connect (port 80 unless given). A failure
of any kind is answered with the literal 502 response, which is the only
error a client ever gets to see from this proxy.
"""

import logging

from proxyutils.protocol import (
    BAD_GATEWAY_RESPONSE,
    create_tcp_connection,
    close_connection,
)
from proxyutils.http_parser import (
    MalformedAddress,
    extract_host_header,
    split_host_port,
)

from .errors import MalformedRequest, OriginUnreachable

logger = logging.getLogger(__name__)


class OriginConnector:
    """Creates origin connections with bounded connect and read timeouts."""

    def __init__(self, connect_timeout=20.0, read_timeout=1.0):
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    def resolve_address(self, request_text):
        """Return (host, port) for the request's Host header."""
        address = extract_host_header(request_text)
        try:
            host, port = split_host_port(address)
        except MalformedAddress as e:
            raise MalformedRequest(str(e)) from e
        if not host:
            raise MalformedRequest("Request has no Host header")
        return host, port

    def connect(self, host, port):
        """
        Open a connection to host:port.

        Raises:
            OriginUnreachable: DNS failure, refused connection or timeout
        """
        try:
            return create_tcp_connection(
                host, port,
                connect_timeout=self.connect_timeout,
                read_timeout=self.read_timeout,
            )
        except OSError as e:
            raise OriginUnreachable(f"Cannot reach {host}:{port}: {e}") from e

    def connect_for_request(self, request_text):
        """Resolve the request's origin and connect to it."""
        try:
            host, port = self.resolve_address(request_text)
        except MalformedRequest as e:
            raise OriginUnreachable(str(e)) from e
        logger.info(f"Connecting to remote server {host} at port {port}")
        return self.connect(host, port)

    def open_or_reject(self, client_socket, request_text, connection_id="-"):
        """
        Connect to the request's origin, or send the 502 and close the client.

        Returns:
            socket: Origin connection, or None if the client was rejected
        """
        try:
            return self.connect_for_request(request_text)
        except OriginUnreachable as e:
            logger.error(f"[{connection_id}] {e}; sending 502 and closing socket")
            send_bad_gateway(client_socket, connection_id)
            return None


def send_bad_gateway(client_socket, connection_id="-"):
    """Write the literal 502 response to the client and close it."""
    try:
        client_socket.sendall(BAD_GATEWAY_RESPONSE)
    except OSError as e:
        logger.warning(f"[{connection_id}] Could not deliver 502: {e}")
    finally:
        close_connection(client_socket)
