# webproxy/pipeline.py
"""
Response Pipeline - drains the origin and delivers the response.

The first chunk read from the origin decides, once, how the rest of the
response is handled:

1. Binary: every chunk is forwarded to the client as soon as it is read
2. Text: chunks are buffered in memory, censored at the end, and written
   to the client in a single write

Either way the raw bytes are also written to a '<N>.cache' file, and a
CachedEntry is stored once the origin has been drained.
"""

import os
import socket
import logging

from proxyutils.protocol import BUFFER_SIZE, format_http_message
from proxyutils.scanner import find_header_boundary, censor_response
from proxyutils.http_parser import classify_content_type, format_http_date

from .cache import CachedEntry
from .errors import OriginReadFailure

# Terminal states
STATE_DELIVERED = 'DELIVERED'
STATE_ABORTED = 'ABORTED'

logger = logging.getLogger(__name__)


class ResponsePipeline:
    """Streams one origin response to the client and into the cache."""

    def __init__(self, client_socket, origin_socket, cache_store, url,
                 censored_words=(), buffer_size=BUFFER_SIZE,
                 max_idle_attempts=20, connection_id='-'):
        self.client_socket = client_socket
        self.origin_socket = origin_socket
        self.cache_store = cache_store
        self.url = url
        self.censored_words = list(censored_words)
        self.buffer_size = buffer_size
        self.max_idle_attempts = max_idle_attempts
        self.connection_id = connection_id

        self.is_text = None
        self.bytes_read = 0
        self.text_buffer = bytearray()
        self.storage_path = cache_store.next_storage_path()
        self._storage_file = None
        self._storage_failed = False

    def run(self):
        """
        Drain the origin, deliver the response and populate the cache.

        Returns:
            str: STATE_DELIVERED or STATE_ABORTED
        """
        try:
            self._drain()
        except OriginReadFailure as e:
            logger.error(f"[{self.connection_id}] {e}")
            self._discard_storage()
            return STATE_ABORTED
        except OSError as e:
            logger.warning(f"[{self.connection_id}] Client went away while streaming: {e}")
            self._discard_storage()
            return STATE_ABORTED

        self._close_storage()
        if self.bytes_read == 0:
            logger.warning(f"[{self.connection_id}] No response from origin, dropping connection")
            self._discard_storage()
            return STATE_ABORTED

        try:
            self._finalize()
        except OSError as e:
            logger.warning(f"[{self.connection_id}] Failed to send response to client: {e}")
            return STATE_ABORTED
        return STATE_DELIVERED

    def _drain(self):
        idle_attempts = 0
        while True:
            try:
                chunk = self.origin_socket.recv(self.buffer_size)
            except socket.timeout:
                if self.bytes_read > 0:
                    # Origin went quiet after sending, treat as end of response
                    logger.debug(f"[{self.connection_id}] Origin idle after {self.bytes_read} bytes")
                    return
                idle_attempts += 1
                if idle_attempts >= self.max_idle_attempts:
                    logger.debug(f"[{self.connection_id}] Origin idle after {idle_attempts} attempts")
                    return
                continue
            except OSError as e:
                raise OriginReadFailure(f"Failed to read from origin: {e}") from e

            if not chunk:
                return
            self._consume(chunk)

    def _consume(self, chunk):
        self.bytes_read += len(chunk)
        if self.is_text is None:
            self.is_text = self._classify(chunk)
            logger.debug(f"[{self.connection_id}] Response headers: {format_http_message(chunk)}")
            logger.info(f"[{self.connection_id}] Response classified as {'text' if self.is_text else 'binary'}")

        self._persist(chunk)
        if self.is_text:
            self.text_buffer += chunk
        else:
            self.client_socket.sendall(chunk)

    @staticmethod
    def _classify(chunk):
        boundary = find_header_boundary(chunk)
        header_text = chunk[:boundary + 1].decode('iso-8859-1')
        return classify_content_type(header_text)

    def _finalize(self):
        if self.is_text:
            censored = censor_response(bytes(self.text_buffer), self.censored_words)
            self.client_socket.sendall(censored)

        if self.url is None:
            logger.debug(f"[{self.connection_id}] No request target, response not cached")
            self._discard_storage()
        elif self._storage_failed and not self.is_text:
            logger.warning(f"[{self.connection_id}] Cache file incomplete, {self.url} not cached")
            self._discard_storage()
        else:
            # Text replays from memory, so a failed file write only drops the disk copy
            if self._storage_failed:
                self._discard_storage()
            entry = CachedEntry(
                url=self.url,
                last_modified=format_http_date(),
                storage_path="" if self._storage_failed else self.storage_path,
                is_text=self.is_text,
                text_body=bytes(self.text_buffer) if self.is_text else b'',
            )
            self.cache_store.store(self.url, entry)
        logger.info(f"[{self.connection_id}] Delivered {self.bytes_read} bytes")

    def _persist(self, chunk):
        if self._storage_failed:
            return
        try:
            if self._storage_file is None:
                self._storage_file = open(self.storage_path, 'wb')
            self._storage_file.write(chunk)
            self._storage_file.flush()
        except OSError as e:
            # Client delivery carries on without the on-disk copy
            logger.warning(f"[{self.connection_id}] Cannot write cache file {self.storage_path}: {e}")
            self._storage_failed = True
            self._close_storage()

    def _close_storage(self):
        if self._storage_file is None:
            return
        try:
            self._storage_file.close()
        except OSError as e:
            logger.warning(f"[{self.connection_id}] Cannot close cache file {self.storage_path}: {e}")
            self._storage_failed = True
        self._storage_file = None

    def _discard_storage(self):
        self._close_storage()
        try:
            os.remove(self.storage_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"[{self.connection_id}] Cannot remove {self.storage_path}: {e}")
