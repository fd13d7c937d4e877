#!/usr/bin/env python3
"""
Censoring Web Proxy Server - relays client requests to origin servers,
censors textual responses and caches responses by URL.

This server:
1. Listens on the configured port (8080 by default) for proxy requests
2. Spawns one thread per accepted connection, no pooling
3. Answers from the cache when the origin confirms the copy is fresh
4. Otherwise forwards the request verbatim to the origin named by Host
5. Streams binary responses straight through, buffers and censors text
6. Answers with a 502 when the origin cannot be reached
"""

import os
import sys
import socket
import signal
import logging
import argparse
import threading

from .cache import CacheStore
from .config import ProxyConfig, load_censored_words
from .handler import ConnectionHandler
from .origin import OriginConnector

logger = logging.getLogger(__name__)


class CensorProxyServer:
    """
    Accept loop for the censoring proxy.

    Owns the cache store and the censored word list and shares them with
    every connection handler.
    """

    def __init__(self, config=None, censored_words=(), cache_store=None):
        self.config = config or ProxyConfig()
        self.censored_words = list(censored_words)
        self.cache_store = cache_store or CacheStore(
            cache_dir=self.config.cache_dir,
            connect_timeout=self.config.connect_timeout,
        )
        self.connector = OriginConnector(
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
        )
        self.server_socket = None
        self.running = False

    @property
    def server_address(self):
        """(host, port) actually bound; useful when port 0 was requested."""
        return self.server_socket.getsockname()[:2]

    def bind(self):
        """Create the listening socket."""
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.server_socket.bind((self.config.host, self.config.port))
            self.server_socket.listen(socket.SOMAXCONN)
        except OSError:
            self.server_socket.close()
            raise
        self.running = True
        host, port = self.server_address
        logger.info(f"Listening on {host}:{port}...")

    def start(self):
        """Bind and serve until stop() is called."""
        self.bind()
        self.serve_forever()

    def serve_forever(self):
        """Accept connections and hand each one to its own thread."""
        while self.running:
            try:
                client_socket, address = self.server_socket.accept()
            except OSError as e:
                if self.running:
                    logger.error(f"Error accepting connection: {e}")
                    continue
                break

            handler = ConnectionHandler(
                client_socket,
                address,
                self.cache_store,
                censored_words=self.censored_words,
                connector=self.connector,
                buffer_size=self.config.buffer_size,
                max_idle_attempts=self.config.max_idle_attempts,
            )
            thread = threading.Thread(
                target=handler.handle,
                name=f"proxy-{address[0]}:{address[1]}",
                daemon=True,
            )
            thread.start()

    def stop(self):
        """Close the listening socket; in-flight handlers are left to finish."""
        if not self.running and self.server_socket is None:
            return
        logger.info("Closing the server socket...")
        self.running = False
        if self.server_socket is not None:
            try:
                # Wakes up a thread blocked in accept()
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()
            self.server_socket = None


def port_number(value):
    """argparse type for a TCP port in 0-65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Port number must be an integer.") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError("Port number must be within the range of 0 - 65535.")
    return port


def build_parser():
    parser = argparse.ArgumentParser(
        description='Censoring, caching HTTP forward proxy',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 8080
  %(prog)s --port 8080 --censor-file censor.txt --cache-dir /tmp/proxy-cache

Test with curl:
  curl -x http://localhost:8080 http://example.com/
        """
    )

    parser.add_argument(
        'listen_port',
        nargs='?',
        type=port_number,
        help='Port to listen on (overrides --port)'
    )

    parser.add_argument(
        '--host',
        default=os.getenv('PROXY_HOST', '0.0.0.0'),
        help='Address to bind (default: 0.0.0.0, env: PROXY_HOST)'
    )

    parser.add_argument(
        '--port',
        type=port_number,
        default=os.getenv('PROXY_PORT', '8080'),
        help='Port to listen on (default: 8080, env: PROXY_PORT)'
    )

    parser.add_argument(
        '--censor-file',
        default=os.getenv('CENSOR_FILE', 'censor.txt'),
        help='File with one censored word per line (default: censor.txt, env: CENSOR_FILE)'
    )

    parser.add_argument(
        '--cache-dir',
        default=os.getenv('CACHE_DIR', '.'),
        help='Directory for <N>.cache files (default: current directory, env: CACHE_DIR)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'INFO'),
        help='Set logging level (default: INFO, env: LOG_LEVEL)'
    )

    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Only log warnings and errors'
    )

    return parser


def parse_config(argv=None):
    """Build a ProxyConfig from the command line and environment."""
    args = build_parser().parse_args(argv)
    return ProxyConfig(
        host=args.host,
        port=args.listen_port if args.listen_port is not None else args.port,
        censor_file=args.censor_file,
        cache_dir=args.cache_dir,
        log_level='WARNING' if args.quiet else args.log_level,
    )


# Global server instance for signal handling
server_instance = None


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}")
    if server_instance:
        server_instance.stop()


def main(argv=None):
    """Main function."""
    global server_instance

    config = parse_config(argv)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    os.makedirs(config.cache_dir, exist_ok=True)
    censored_words = load_censored_words(config.censor_file)
    server_instance = CensorProxyServer(config, censored_words)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        server_instance.bind()
    except OSError as e:
        logger.error(f"Failed to listen on port {config.port}: {e}")
        sys.exit(1)

    try:
        server_instance.serve_forever()
    finally:
        server_instance.stop()


if __name__ == "__main__":
    main()
