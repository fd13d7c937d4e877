# webproxy/config.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from proxyutils.protocol import BUFFER_SIZE

logger = logging.getLogger(__name__)


@dataclass
class ProxyConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    censor_file: str = "censor.txt"
    cache_dir: str = "."
    buffer_size: int = BUFFER_SIZE
    connect_timeout: float = 20.0
    read_timeout: float = 1.0
    max_idle_attempts: int = 20
    log_level: str = "INFO"


def load_censored_words(path: str) -> List[str]:
    """Read one censored word per line; a missing file means no censorship."""
    words_path = Path(path)
    try:
        content = words_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"No censor list loaded from {words_path}: {e}")
        return []
    words = [line.strip() for line in content.splitlines()]
    words = [word for word in words if word]
    logger.info(f"Loaded {len(words)} censored word(s) from {words_path}")
    return words
