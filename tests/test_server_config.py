"""
Test Server Config - command line parsing, censor list loading and the
listening socket lifecycle.
"""

import socket

import pytest

from webproxy.config import ProxyConfig, load_censored_words
from webproxy.server import CensorProxyServer, parse_config


class TestParseConfig:

    def test_defaults(self, monkeypatch):
        for name in ('PROXY_HOST', 'PROXY_PORT', 'CENSOR_FILE', 'CACHE_DIR', 'LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)

        config = parse_config([])
        assert config == ProxyConfig()

    def test_positional_port_overrides_option(self):
        config = parse_config(['9000', '--port', '8000'])
        assert config.port == 9000

    def test_port_option(self):
        assert parse_config(['--port', '8123']).port == 8123

    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv('PROXY_PORT', '8555')
        monkeypatch.setenv('CENSOR_FILE', '/tmp/words.txt')
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')

        config = parse_config([])
        assert config.port == 8555
        assert config.censor_file == '/tmp/words.txt'
        assert config.log_level == 'DEBUG'

    @pytest.mark.parametrize('port', ['http', '-1', '65536'])
    def test_invalid_port_exits(self, port):
        with pytest.raises(SystemExit) as excinfo:
            parse_config([port])
        assert excinfo.value.code == 2

    def test_quiet_sets_warning_level(self):
        assert parse_config(['--quiet']).log_level == 'WARNING'


class TestLoadCensoredWords:

    def test_reads_words_in_order(self, tmp_path):
        path = tmp_path / 'censor.txt'
        path.write_text("world\n  Secret \n\nbadword\n", encoding='utf-8')
        assert load_censored_words(str(path)) == ['world', 'Secret', 'badword']

    def test_missing_file_means_no_censorship(self, tmp_path):
        assert load_censored_words(str(tmp_path / 'nope.txt')) == []


class TestServerLifecycle:

    def test_bind_ephemeral_port_and_stop(self, tmp_path):
        server = CensorProxyServer(ProxyConfig(host='127.0.0.1', port=0, cache_dir=str(tmp_path)))
        server.bind()
        host, port = server.server_address
        assert host == '127.0.0.1'
        assert port > 0

        server.stop()
        assert server.server_socket is None
        with pytest.raises(OSError):
            socket.create_connection((host, port), timeout=1).close()

    def test_bind_failure_raises(self, tmp_path):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(('127.0.0.1', 0))
            taken.listen(1)
            port = taken.getsockname()[1]

            server = CensorProxyServer(ProxyConfig(host='127.0.0.1', port=port, cache_dir=str(tmp_path)))
            with pytest.raises(OSError):
                server.bind()

    def test_server_shares_one_cache_store(self, tmp_path):
        config = ProxyConfig(host='127.0.0.1', port=0, cache_dir=str(tmp_path), connect_timeout=3.0)
        server = CensorProxyServer(config, censored_words=['world'])
        assert server.cache_store.cache_dir == str(tmp_path)
        assert server.cache_store.connect_timeout == 3.0
        assert server.connector.read_timeout == config.read_timeout
