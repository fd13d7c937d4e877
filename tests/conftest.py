"""
Shared fixtures: an in-process origin server and a live proxy.
"""

import threading

import pytest

from webproxy import CensorProxyServer, ProxyConfig

from .helpers import CENSORED_WORDS, OriginServer


@pytest.fixture
def origin():
    server = OriginServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def proxy_config(tmp_path):
    return ProxyConfig(
        host="127.0.0.1",
        port=0,
        cache_dir=str(tmp_path),
        connect_timeout=2.0,
        read_timeout=0.2,
        max_idle_attempts=5,
    )


@pytest.fixture
def proxy(proxy_config):
    server = CensorProxyServer(proxy_config, censored_words=CENSORED_WORDS)
    server.bind()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.stop()
