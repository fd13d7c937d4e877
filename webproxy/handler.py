# webproxy/handler.py
"""
Connection Handler - serves one accepted client connection end to end.

read request -> drop if blank -> serve from cache if fresh -> connect to
origin (502 on failure) -> forward request verbatim -> run the response
pipeline -> close.
"""

import logging

from proxyutils.protocol import BUFFER_SIZE, close_connection, format_http_message
from proxyutils.scanner import censor_response
from proxyutils.http_parser import parse_request_target

from .errors import LocalIOFailure
from .origin import OriginConnector
from .pipeline import ResponsePipeline, STATE_ABORTED

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Handles a single client connection on its own thread."""

    def __init__(self, client_socket, address, cache_store, censored_words=(),
                 connector=None, buffer_size=BUFFER_SIZE, max_idle_attempts=20):
        self.client_socket = client_socket
        self.connection_id = f"{address[0]}:{address[1]}"
        self.cache_store = cache_store
        self.censored_words = list(censored_words)
        self.connector = connector or OriginConnector()
        self.buffer_size = buffer_size
        self.max_idle_attempts = max_idle_attempts
        self.origin_socket = None

    def handle(self):
        """Thread entry point; never raises."""
        logger.info(f"Received a connection from {self.connection_id}")
        try:
            self.process()
        except Exception as e:
            logger.error(f"[{self.connection_id}] Error handling connection: {e}")
        finally:
            close_connection(self.origin_socket)
            close_connection(self.client_socket)
            logger.debug(f"[{self.connection_id}] Connection closed")

    def process(self):
        request = self.read_request()
        request_text = request.decode('utf-8', errors='replace')
        if not request_text.strip():
            logger.info(f"[{self.connection_id}] Blank request detected, closing client socket")
            return

        url = parse_request_target(request_text)
        if url is None:
            logger.warning(f"[{self.connection_id}] Malformed request line, bypassing cache")
        else:
            logger.info(f"[{self.connection_id}] Processing {url}")
            if self.serve_from_cache(url):
                return

        self.origin_socket = self.connector.open_or_reject(
            self.client_socket, request_text, self.connection_id
        )
        if self.origin_socket is None:
            return

        logger.debug(f"[{self.connection_id}] Forwarding request: {format_http_message(request)}")
        self.origin_socket.sendall(request)

        pipeline = ResponsePipeline(
            self.client_socket,
            self.origin_socket,
            self.cache_store,
            url,
            censored_words=self.censored_words,
            buffer_size=self.buffer_size,
            max_idle_attempts=self.max_idle_attempts,
            connection_id=self.connection_id,
        )
        if pipeline.run() == STATE_ABORTED:
            logger.warning(f"[{self.connection_id}] Response delivery aborted")

    def read_request(self):
        """Single read of at most one buffer; longer requests are truncated."""
        try:
            return self.client_socket.recv(self.buffer_size)
        except OSError as e:
            logger.warning(f"[{self.connection_id}] Failed to read request from client: {e}")
            return b''

    def serve_from_cache(self, url):
        """
        Replay a cached response for url if the origin confirms it is fresh.

        Returns:
            bool: True if the client has been answered from the cache
        """
        entry = self.cache_store.lookup(url)
        if entry is None:
            return False
        if not self.cache_store.is_fresh(entry):
            logger.info(f"[{self.connection_id}] Cached copy of {url} is stale")
            return False

        if entry.is_text:
            logger.info(f"[{self.connection_id}] Sending cached text response")
            self.client_socket.sendall(censor_response(entry.text_body, self.censored_words))
            return True

        try:
            self.replay_file(entry.storage_path)
        except LocalIOFailure as e:
            logger.warning(f"[{self.connection_id}] {e}; fetching from origin instead")
            return False
        return True

    def replay_file(self, path):
        try:
            cache_file = open(path, 'rb')
        except OSError as e:
            raise LocalIOFailure(f"Cannot open cache file {path}: {e}") from e

        logger.info(f"[{self.connection_id}] Sending cached response from {path}")
        with cache_file:
            while True:
                try:
                    chunk = cache_file.read(self.buffer_size)
                except OSError as e:
                    # The client already has part of the response
                    logger.warning(f"[{self.connection_id}] Cannot read cache file {path}: {e}")
                    return
                if not chunk:
                    return
                self.client_socket.sendall(chunk)
