"""
Counters for huescan runs.

Tracks oracle usage, cache effectiveness and discovery outcomes so callers can
check how many network round-trips a palette actually cost.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Metrics:
    """
    Aggregated counters across discoveries sharing this object.

    Tracks:
    - Oracle calls, failures and latency
    - Cache hit/miss/write counts and storage failures
    - Discovery outcomes and colors found
    """

    # Oracle
    oracle_calls: int = 0
    oracle_errors: int = 0
    oracle_latency_sum: float = 0.0
    concurrent_probes_peak: int = 0

    # Cache
    cache_hits: int = 0
    cache_misses: int = 0
    cache_writes: int = 0
    storage_errors: int = 0

    # Discoveries
    discoveries_started: int = 0
    discoveries_completed: int = 0
    discoveries_cancelled: int = 0
    discoveries_failed: int = 0
    colors_found: int = 0
    discovery_durations: list[float] = field(default_factory=list)

    def record_oracle_call(self, latency: float, *, failed: bool = False) -> None:
        self.oracle_calls += 1
        self.oracle_latency_sum += latency
        if failed:
            self.oracle_errors += 1

    def record_concurrency(self, inflight: int) -> None:
        if inflight > self.concurrent_probes_peak:
            self.concurrent_probes_peak = inflight

    def record_cache_lookup(self, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def record_cache_write(self) -> None:
        self.cache_writes += 1

    def record_storage_error(self) -> None:
        self.storage_errors += 1

    def record_discovery_start(self) -> None:
        self.discoveries_started += 1

    def record_discovery_end(self, outcome: str, duration: float, colors: int) -> None:
        """Record a finished discovery; ``outcome`` is completed, cancelled or failed."""
        if outcome == "completed":
            self.discoveries_completed += 1
        elif outcome == "cancelled":
            self.discoveries_cancelled += 1
        elif outcome == "failed":
            self.discoveries_failed += 1
        else:
            raise ValueError(f"Unknown discovery outcome: {outcome!r}")
        self.colors_found += colors
        self.discovery_durations.append(duration)

    @property
    def cache_hit_rate(self) -> float:
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total if total else 0.0

    @property
    def avg_oracle_latency(self) -> float:
        return self.oracle_latency_sum / self.oracle_calls if self.oracle_calls else 0.0

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict view for logging."""
        return {
            "oracle_calls": self.oracle_calls,
            "oracle_errors": self.oracle_errors,
            "avg_oracle_latency": round(self.avg_oracle_latency, 4),
            "concurrent_probes_peak": self.concurrent_probes_peak,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": round(self.cache_hit_rate, 4),
            "cache_writes": self.cache_writes,
            "storage_errors": self.storage_errors,
            "discoveries_started": self.discoveries_started,
            "discoveries_completed": self.discoveries_completed,
            "discoveries_cancelled": self.discoveries_cancelled,
            "discoveries_failed": self.discoveries_failed,
            "colors_found": self.colors_found,
        }
