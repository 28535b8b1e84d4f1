from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


DEFAULT_AVITO_URL = (
    "https://www.avito.ru/chelyabinsk/kvartiry/sdam/na_dlitelnyy_srok-ASgBAgICAkSSA8gQ8AeQUg"
    "?context=H4sIAAAAAAAA_wEjANz_YToxOntzOjg6ImZyb21QYWdlIjtzOjc6ImNhdGFsb2ciO312FITcIwAAAA"
    "&district=16"
)
DEFAULT_ORIGIN = "https://www.avito.ru"


def load_env(path: Optional[str] = None) -> None:
    """Populate ``os.environ`` from a ``.env`` file if one exists."""
    load_dotenv(path)


def env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    return value if value else default


def env_int(name: str, default: int) -> int:
    try:
        return int(env_str(name, str(default)))
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    try:
        return float(env_str(name, str(default)))
    except ValueError:
        return default


def env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if not raw:
        return default
    raw = raw.strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


@dataclass
class RedisConfig:
    host: str = field(default_factory=lambda: env_str("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: env_int("REDIS_PORT", 6379))
    password: Optional[str] = field(default_factory=lambda: os.environ.get("REDIS_PASSWORD") or None)
    db: int = field(default_factory=lambda: env_int("REDIS_DB", 0))
    # full URL wins over the individual settings when present
    url: Optional[str] = field(default_factory=lambda: os.environ.get("REDIS_URL") or None)


@dataclass
class BrowserConfig:
    headless: bool = field(default_factory=lambda: env_bool("HEADLESS", True))
    timeout_secs: float = field(default_factory=lambda: env_float("TIMEOUT", 30.0))
    binary: Optional[str] = field(default_factory=lambda: os.environ.get("CHROME_BIN") or None)


@dataclass
class ParserConfig:
    base_url: str = field(default_factory=lambda: env_str("AVITO_URL", DEFAULT_AVITO_URL))
    origin: str = field(default_factory=lambda: env_str("AVITO_ORIGIN", DEFAULT_ORIGIN))
    retry_delay_secs: float = field(default_factory=lambda: env_float("DELAY_BETWEEN_REQUESTS", 2.0))
    page_delay_secs: float = field(default_factory=lambda: env_float("PAGE_DELAY", 2.0))
    cycle_delay_secs: float = field(default_factory=lambda: env_float("CYCLE_DELAY", 60.0))
    # settle delays after the load event; client-side rendering fills the DOM late
    check_settle_secs: float = 2.0
    fetch_settle_secs: float = 3.0
    inspect_settle_secs: float = 5.0
    max_pages: int = 50
    max_failed_checks: int = 10
    retry_attempts: int = 3


@dataclass
class AgentConfig:
    redis: RedisConfig = field(default_factory=RedisConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    log_level: str = field(default_factory=lambda: env_str("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.environ.get("LOG_FILE") or None)
