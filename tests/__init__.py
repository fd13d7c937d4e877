# tests/__init__.py
"""
Test Suite for the Censoring Web Proxy

Test Modules:
- test_scanner.py: Header boundary detection and byte-level censorship
- test_http_parser.py: Request target, Host header and response classification
- test_cache.py: Cache store concurrency, storage files and freshness checks
- test_pipeline.py: Response pipeline states over socket pairs
- test_proxy_scenarios.py: End-to-end runs through a live proxy and origin
- test_server_config.py: Command line parsing and censor list loading

Usage:
    # Run all tests
    pytest tests/

    # Run specific test module
    pytest tests/test_proxy_scenarios.py -v

Test Environment:
- Origin and proxy both run in-process on ephemeral 127.0.0.1 ports
- No external network access is needed
"""

__all__ = []
