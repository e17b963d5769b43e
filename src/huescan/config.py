"""
Central configuration knobs for huescan.

Defaults match the public color API's comfortable load: ten starting samples
and twenty probes in flight. Override by passing keyword args to ``Config``
or through ``HUESCAN_*`` environment variables via ``config_from_env``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from huescan.logging.logger import LogLevel

MIN_STARTING_SAMPLES = 3


@dataclass(slots=True)
class Config:
    """Runtime parameters for the oracle client, discovery engine and caches."""

    api_base_url: str = "https://www.thecolorapi.com"
    starting_samples: int = 10
    concurrency_limit: int = 20  # HTTP/2 allows more; 20 keeps the public API happy
    request_timeout_seconds: float = 10.0

    default_saturation: int = 100
    default_lightness: int = 50

    cache_path: str = ".huescan/cache"
    log_path: str = ".huescan/logs"

    # Minimum level printed by the default StdOutLogger
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {self.concurrency_limit}")
        if self.request_timeout_seconds <= 0:
            raise ValueError(f"request_timeout_seconds must be positive, got {self.request_timeout_seconds}")
        for name in ("default_saturation", "default_lightness"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within 0-100, got {value}")
        # Fewer than 3 samples would leave no interior point between 0 and 359
        if self.starting_samples < MIN_STARTING_SAMPLES:
            self.starting_samples = MIN_STARTING_SAMPLES
        LogLevel.parse(self.log_level)
        self.api_base_url = self.api_base_url.rstrip("/")


DEFAULT_CONFIG = Config()


def config_from_env(
    prefix: str = "HUESCAN_",
    *,
    environ: Mapping[str, str] | None = None,
    base_config: Config | None = None,
) -> Config:
    """
    Build a ``Config`` from environment variables.

    Recognised variables (with the default prefix): ``HUESCAN_API_BASE_URL``,
    ``HUESCAN_STARTING_SAMPLES``, ``HUESCAN_CONCURRENCY_LIMIT``,
    ``HUESCAN_REQUEST_TIMEOUT``, ``HUESCAN_CACHE_PATH``, ``HUESCAN_LOG_PATH``
    and ``HUESCAN_LOG_LEVEL``. Unset variables keep the value from
    ``base_config`` (or the defaults).
    """
    env = os.environ if environ is None else environ
    base = base_config or Config()

    def _get(name: str) -> str | None:
        raw = env.get(prefix + name)
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    api_base_url = _get("API_BASE_URL") or base.api_base_url
    samples = _get("STARTING_SAMPLES")
    limit = _get("CONCURRENCY_LIMIT")
    timeout = _get("REQUEST_TIMEOUT")

    return Config(
        api_base_url=api_base_url,
        starting_samples=int(samples) if samples is not None else base.starting_samples,
        concurrency_limit=int(limit) if limit is not None else base.concurrency_limit,
        request_timeout_seconds=float(timeout) if timeout is not None else base.request_timeout_seconds,
        default_saturation=base.default_saturation,
        default_lightness=base.default_lightness,
        cache_path=_get("CACHE_PATH") or base.cache_path,
        log_path=_get("LOG_PATH") or base.log_path,
        log_level=_get("LOG_LEVEL") or base.log_level,
    )
