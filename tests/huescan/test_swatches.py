"""Tests for SwatchService: cache gate, supersede and error surfacing."""

import asyncio

import pytest

from huescan.cache import DiskCache, MemoryCache, swatches_key
from huescan.config import Config
from huescan.discovery import ColorDiscovery
from huescan.errors import StorageError
from huescan.logging_utils import build_logger
from huescan.metrics import Metrics
from huescan.swatches import LoggingNotifier, SwatchService, insert_sorted


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, message, color="success"):
        self.messages.append((color, message))

    def notify_success(self, message):
        self.notify(message, "success")

    def notify_error(self, message):
        self.notify(message, "error")


class BrokenCache:
    """Cache whose reads and/or writes always fail."""

    def __init__(self, fail_get=True, fail_set=True):
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.inner = MemoryCache()

    async def get(self, key):
        if self.fail_get:
            raise StorageError("disk on fire", key=key)
        return await self.inner.get(key)

    async def set(self, key, swatches):
        if self.fail_set:
            raise StorageError("disk full", key=key)
        await self.inner.set(key, swatches)

    async def remove(self, key):
        await self.inner.remove(key)


class FailingEventLogger:
    async def log(self, event_type, payload):
        raise OSError("log volume unavailable")


def _three_regions(hue):
    if hue < 100:
        return "Red"
    if hue < 200:
        return "Green"
    return "Blue"


def _service(oracle, quiet_logger, cache=None, notifier=None, **kwargs):
    config = Config(starting_samples=5, concurrency_limit=4)
    discovery = ColorDiscovery(oracle, config=config, metrics=Metrics(), logger=quiet_logger)
    return SwatchService(discovery, cache if cache is not None else MemoryCache(), notifier=notifier, **kwargs)


def test_insert_sorted_keeps_hue_order(make_color):
    swatches = []
    for hue in (180, 20, 300, 90, 20):
        insert_sorted(swatches, make_color(hue, f"c{hue}"))

    assert [s.hue for s in swatches] == [20, 20, 90, 180, 300]


@pytest.mark.asyncio
async def test_cache_hit_skips_discovery(fake_oracle, make_color, quiet_logger):
    cache = MemoryCache()
    cached = [make_color(0, "Red"), make_color(120, "Green"), make_color(240, "Blue")]
    await cache.set(swatches_key(100, 50), cached)
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger, cache)

    result = await service.fetch_swatches(100, 50)

    assert list(result.swatches) == cached
    assert result.stats.cached is True
    assert result.stats.total == 3
    assert oracle.calls == []
    assert service.metrics.cache_hits == 1


@pytest.mark.asyncio
async def test_miss_runs_discovery_and_caches_observed_collection(fake_oracle, quiet_logger):
    cache = MemoryCache()
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger, cache)
    observed = []

    result = await service.fetch_swatches(100, 50, on_swatch=lambda color, swatches: observed.append(swatches))

    assert result.ok
    assert result.stats.cached is False
    assert result.names == ["Red", "Green", "Blue"]
    # Every intermediate view the caller saw was sorted by hue
    for snapshot in observed:
        assert [s.hue for s in snapshot] == sorted(s.hue for s in snapshot)
    stored = await cache.get(swatches_key(100, 50))
    assert stored == list(observed[-1]) == list(result.swatches)
    assert service.metrics.cache_misses == 1
    assert service.metrics.cache_writes == 1


@pytest.mark.asyncio
async def test_second_request_served_from_cache(fake_oracle, quiet_logger):
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger)

    first = await service.fetch_swatches(100, 50)
    calls_after_first = len(oracle.calls)
    second = await service.fetch_swatches(100, 50)

    assert second.stats.cached is True
    assert second.swatches == first.swatches
    assert len(oracle.calls) == calls_after_first


@pytest.mark.asyncio
async def test_defaults_used_when_no_values_given(fake_oracle, quiet_logger):
    seen = set()

    def namer(hue):
        return "Uniform"

    oracle = fake_oracle(namer)
    original_call = oracle.__call__

    async def spy(hue, saturation, lightness):
        seen.add((saturation, lightness))
        return await original_call(hue, saturation, lightness)

    service = _service(spy, quiet_logger)
    result = await service.fetch_swatches()

    assert (result.saturation, result.lightness) == (100, 50)
    assert seen == {(100, 50)}


@pytest.mark.asyncio
async def test_oracle_failure_notifies_and_keeps_partial_results(fake_oracle, quiet_logger):
    cache = MemoryCache()
    notifier = RecordingNotifier()
    oracle = fake_oracle(lambda hue: "A" if hue < 180 else "B", fail_hues={135})
    service = _service(oracle, quiet_logger, cache, notifier)

    result = await service.fetch_swatches(100, 50)

    assert not result.ok
    assert result.error.startswith("Failed to fetch swatches: Color API error: 500")
    assert result.names == ["A", "B"]
    assert notifier.messages == [("error", result.error)]
    assert swatches_key(100, 50) not in cache
    assert service.metrics.discoveries_failed == 1


@pytest.mark.asyncio
async def test_same_key_request_supersedes_previous(fake_oracle, quiet_logger):
    cache = MemoryCache()
    notifier = RecordingNotifier()
    oracle = fake_oracle(_three_regions, delay=0.01)
    service = _service(oracle, quiet_logger, cache, notifier)

    first = asyncio.create_task(service.fetch_swatches(100, 50))
    await asyncio.sleep(0.005)
    second = await service.fetch_swatches(100, 50)
    first_result = await first

    assert first_result.cancelled is True
    assert second.ok
    assert second.names == ["Red", "Green", "Blue"]
    # Cancellations stay silent
    assert notifier.messages == []
    assert service.in_flight == []


@pytest.mark.asyncio
async def test_different_keys_run_independently(fake_oracle, quiet_logger):
    oracle = fake_oracle(_three_regions, delay=0.005)
    service = _service(oracle, quiet_logger)

    a, b = await asyncio.gather(service.fetch_swatches(100, 50), service.fetch_swatches(80, 40))

    assert a.ok and b.ok
    assert a.names == b.names == ["Red", "Green", "Blue"]
    assert service.metrics.discoveries_completed == 2


@pytest.mark.asyncio
async def test_cancel_and_cleanup(fake_oracle, quiet_logger):
    oracle = fake_oracle(_three_regions, delay=10.0)
    cache = MemoryCache()
    service = _service(oracle, quiet_logger, cache)

    a = asyncio.create_task(service.fetch_swatches(100, 50))
    b = asyncio.create_task(service.fetch_swatches(50, 50))
    await asyncio.sleep(0.01)
    assert sorted(service.in_flight) == ["swatches:100:50", "swatches:50:50"]

    assert service.cancel(100, 50) is True
    assert service.cancel(1, 1) is False
    service.cleanup()

    results = await asyncio.wait_for(asyncio.gather(a, b), timeout=1)
    assert all(r.cancelled for r in results)
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_storage_read_failure_treated_as_miss(fake_oracle, quiet_logger):
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger, BrokenCache(fail_get=True, fail_set=False))

    result = await service.fetch_swatches(100, 50)

    assert result.ok
    assert result.stats.cached is False
    assert len(oracle.calls) > 0
    assert service.metrics.storage_errors == 1


@pytest.mark.asyncio
async def test_storage_write_failure_is_absorbed(fake_oracle, quiet_logger):
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger, BrokenCache(fail_get=False, fail_set=True))

    result = await service.fetch_swatches(100, 50)

    assert result.ok
    assert result.names == ["Red", "Green", "Blue"]
    assert service.metrics.storage_errors == 1
    assert service.metrics.cache_writes == 0


@pytest.mark.asyncio
async def test_event_logger_records_lifecycle(fake_oracle, quiet_logger, tmp_path):
    events = build_logger(str(tmp_path / "logs"), "swatches")
    oracle = fake_oracle(_three_regions)
    service = _service(oracle, quiet_logger, event_logger=events)

    await service.fetch_swatches(100, 50)
    await service.fetch_swatches(100, 50)

    kinds = [e["event"] for e in events.read_events()]
    assert kinds == ["discovery_start", "discovery_done", "cache_hit"]
    assert events.read_events()[1]["total"] == 3


def test_logging_notifier_routes_to_sink(quiet_logger):
    notifier = LoggingNotifier(quiet_logger)

    notifier.notify_error("boom")
    notifier.notify_success("done")

    assert [level.name for _, level in quiet_logger.messages] == ["ERROR", "INFO"]


@pytest.mark.asyncio
async def test_from_config_uses_configured_paths(fake_oracle, quiet_logger, tmp_path):
    config = Config(
        starting_samples=5,
        cache_path=str(tmp_path / "cache"),
        log_path=str(tmp_path / "logs"),
    )
    service = SwatchService.from_config(fake_oracle(_three_regions), config, logger=quiet_logger)

    result = await service.fetch_swatches(100, 50)

    assert result.ok
    assert isinstance(service.cache, DiskCache)
    assert (tmp_path / "cache" / "swatches_100_50.json").exists()
    assert service.event_logger.path == tmp_path / "logs" / "swatches.jsonl"
    assert [e["event"] for e in service.event_logger.read_events()] == ["discovery_start", "discovery_done"]


def test_default_cache_lives_at_config_cache_path(fake_oracle, quiet_logger, tmp_path):
    config = Config(cache_path=str(tmp_path / "swatch-cache"))
    discovery = ColorDiscovery(fake_oracle(_three_regions), config=config, logger=quiet_logger)

    service = SwatchService(discovery)

    assert isinstance(service.cache, DiskCache)
    assert service.cache.cache_dir == tmp_path / "swatch-cache"


@pytest.mark.asyncio
async def test_event_log_failure_does_not_replace_result(fake_oracle, quiet_logger):
    notifier = RecordingNotifier()
    oracle = fake_oracle(lambda hue: "A" if hue < 180 else "B", fail_hues={135})
    service = _service(oracle, quiet_logger, notifier=notifier, event_logger=FailingEventLogger())

    result = await service.fetch_swatches(100, 50)

    assert result.error.startswith("Failed to fetch swatches")
    assert result.names == ["A", "B"]
    assert notifier.messages == [("error", result.error)]


@pytest.mark.asyncio
async def test_event_log_failure_on_success_still_caches(fake_oracle, quiet_logger):
    cache = MemoryCache()
    service = _service(fake_oracle(_three_regions), quiet_logger, cache, event_logger=FailingEventLogger())

    result = await service.fetch_swatches(100, 50)

    assert result.ok
    assert swatches_key(100, 50) in cache
