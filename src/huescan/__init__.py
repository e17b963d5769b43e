"""
huescan package initialization.

This package finds every distinct named color along the hue circle for a
saturation/lightness pair, using concurrent sampling plus recursive bisection
against a remote color-naming API, with a cache in front.
"""

from .cache import DiskCache, MemoryCache, SwatchCache, swatches_key  # noqa: F401
from .client import fetch_at  # noqa: F401
from .concurrency import CancellationToken, ConcurrencyLimiter  # noqa: F401
from .config import DEFAULT_CONFIG, Config, config_from_env  # noqa: F401
from .discovery import ColorDiscovery, discover_colors, get_sample_hues  # noqa: F401
from .errors import CancellationError, HueScanError, OracleError, StorageError  # noqa: F401
from .interfaces import RGB, ColorPoint, SwatchResult, SwatchStats  # noqa: F401
from .metrics import Metrics  # noqa: F401
from .oracle import ColorApiOracle, ColorOracle  # noqa: F401
from .swatches import LoggingNotifier, Notifier, SwatchService, insert_sorted  # noqa: F401
