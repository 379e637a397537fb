from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass

from searchdump.core.exceptions import ConfigError

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d)\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}
DEFAULT_KEEP_ALIVE_MINUTES = 2


def env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {v!r}")


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return float(v)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {v!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def parse_duration(value: str) -> float:
    """Parse an Elasticsearch time unit such as ``2m`` or ``90s`` into seconds."""
    m = _DURATION_RE.match(value or "")
    if not m:
        raise ConfigError(f"invalid duration: {value!r}")
    return int(m.group(1)) * _DURATION_UNITS[m.group(2)]


def backoff_delay(attempt: int) -> int:
    """Seconds to wait before retry number ``attempt`` (1-based)."""
    return int(round(math.e ** attempt))


def worst_case_backoff(max_retries: int) -> int:
    return sum(backoff_delay(a) for a in range(1, max_retries + 1))


def worst_case_gap(max_retries: int, connect_timeout: float, read_timeout: float) -> float:
    """Longest time between two successful page requests on one cursor.

    Every attempt may run into both timeouts, and every retry adds its backoff.
    """
    return worst_case_backoff(max_retries) + (max_retries + 1) * (connect_timeout + read_timeout)


@dataclass(frozen=True)
class S3Settings:
    access_key: str | None = None
    secret_access_key: str | None = None
    endpoint: str | None = None
    region: str = "eu-central-1"
    force_path_style: bool = False


@dataclass(frozen=True)
class Settings:
    from_url: str = ""
    from_type: str = "search"
    to_url: str = ""
    to_type: str = ""

    # Search source
    index_filter: str = ""
    page_size: int = 50
    max_retries: int = 2
    # Empty means derived from the worst-case gap, see keep_alive().
    scroll_keep_alive: str = ""
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    user_agent: str = "searchdump/0.1"

    log_level: str = "INFO"

    s3: S3Settings = S3Settings()

    def validate(self) -> "Settings":
        if not self.from_url:
            raise ConfigError("Missing source URL (--from / SEARCHDUMP_FROM).")
        if not self.to_url and self.to_type:
            raise ConfigError("Missing destination URL (--to / SEARCHDUMP_TO).")
        if self.page_size <= 0:
            raise ConfigError(f"page size must be positive, got {self.page_size}")
        if self.max_retries < 0:
            raise ConfigError(f"max retries must not be negative, got {self.max_retries}")

        # The scroll must outlive the longest gap between two page requests.
        keep_alive = parse_duration(self.keep_alive())
        worst_gap = self.worst_case_gap()
        if keep_alive <= worst_gap:
            raise ConfigError(
                f"scroll keep-alive {self.scroll_keep_alive} is shorter than the worst-case "
                f"gap between page requests ({worst_gap:.0f}s); raise it or lower max retries"
            )
        return self

    def worst_case_gap(self) -> float:
        return worst_case_gap(self.max_retries, self.connect_timeout, self.read_timeout)

    def keep_alive(self) -> str:
        """Scroll keep-alive to send, in Elasticsearch time units."""
        if self.scroll_keep_alive:
            return self.scroll_keep_alive
        minutes = max(DEFAULT_KEEP_ALIVE_MINUTES, int(self.worst_case_gap() // 60) + 1)
        return f"{minutes}m"


def load_settings() -> Settings:
    return Settings(
        from_url=env("SEARCHDUMP_FROM", "") or "",
        from_type=env("SEARCHDUMP_FROM_TYPE", "search") or "search",
        to_url=env("SEARCHDUMP_TO", "") or "",
        to_type=env("SEARCHDUMP_TO_TYPE", "") or "",
        index_filter=env("SEARCHDUMP_SEARCH_INDEX_FILTER", "") or "",
        page_size=_env_int("SEARCHDUMP_SEARCH_SIZE", 50),
        max_retries=_env_int("SEARCHDUMP_MAX_RETRIES", 2),
        scroll_keep_alive=env("SEARCHDUMP_SCROLL_KEEP_ALIVE", "") or "",
        connect_timeout=_env_float("SEARCHDUMP_CONNECT_TIMEOUT", 10.0),
        read_timeout=_env_float("SEARCHDUMP_READ_TIMEOUT", 30.0),
        log_level=(env("SEARCHDUMP_LOG_LEVEL", "INFO") or "INFO").upper(),
        s3=S3Settings(
            access_key=env("SEARCHDUMP_S3_ACCESS_KEY"),
            secret_access_key=env("SEARCHDUMP_S3_SECRET_ACCESS_KEY"),
            endpoint=env("SEARCHDUMP_S3_ENDPOINT"),
            region=env("SEARCHDUMP_S3_REGION", "eu-central-1") or "eu-central-1",
            force_path_style=_env_bool("SEARCHDUMP_S3_FORCE_PATH_STYLE"),
        ),
    )
