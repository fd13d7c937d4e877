"""
In-process origin server and raw-socket helpers for the proxy tests.
"""

import socket
import threading
import time
import socketserver


TEXT_RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\nhello world"
NOT_MODIFIED_RESPONSE = b"HTTP/1.1 304 Not Modified\r\n\r\n"
CENSORED_WORDS = ["world", "Secret"]


class OriginHandler(socketserver.BaseRequestHandler):
    """Reads one request and answers with whatever the origin is set up to send."""

    def handle(self):
        origin = self.server.origin
        self.request.settimeout(5)
        data = b""
        try:
            while b"\r\n\r\n" not in data:
                chunk = self.request.recv(8192)
                if not chunk:
                    break
                data += chunk
        except OSError:
            return

        origin.record(data)

        if b"if-modified-since" in data.lower():
            self.request.sendall(origin.revalidation_response)
            return

        if origin.silent:
            origin.release.wait(timeout=10)
            return

        if origin.first_byte_delay:
            time.sleep(origin.first_byte_delay)

        chunks = origin.response
        if isinstance(chunks, bytes):
            chunks = [chunks]
        for chunk in chunks:
            self.request.sendall(chunk)

        if origin.hold_open:
            origin.release.wait(timeout=10)


class OriginServer:
    """Test origin that records every request it receives."""

    def __init__(self):
        self.response = TEXT_RESPONSE
        self.revalidation_response = NOT_MODIFIED_RESPONSE
        self.first_byte_delay = 0
        self.hold_open = False
        self.silent = False
        self.release = threading.Event()
        self.requests = []
        self._lock = threading.Lock()

        self._server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), OriginHandler)
        self._server.daemon_threads = True
        self._server.origin = self
        self.port = self._server.server_address[1]
        self._thread = None

    def start(self):
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self):
        self.release.set()
        self._server.shutdown()
        self._server.server_close()

    def record(self, data):
        with self._lock:
            self.requests.append(data)

    @property
    def host(self):
        return f"127.0.0.1:{self.port}"

    def url(self, path="/"):
        return f"http://{self.host}{path}"

    @property
    def full_fetches(self):
        with self._lock:
            return [r for r in self.requests if b"if-modified-since" not in r.lower()]

    @property
    def revalidations(self):
        with self._lock:
            return [r for r in self.requests if b"if-modified-since" in r.lower()]


def build_request(origin, path="/", target=None):
    """Proxy-style GET for path on origin (absolute target by default)."""
    target = target if target is not None else origin.url(path)
    return f"GET {target} HTTP/1.0\r\nHost: {origin.host}\r\n\r\n".encode()


def send_through_proxy(proxy, payload, timeout=10):
    """Send raw bytes to the proxy and read until it closes the connection."""
    with socket.create_connection(proxy.server_address, timeout=timeout) as sock:
        sock.sendall(payload)
        received = b""
        while True:
            chunk = sock.recv(8192)
            if not chunk:
                return received
            received += chunk


def unused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


