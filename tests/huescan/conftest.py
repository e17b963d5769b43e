"""
Shared fixtures for huescan tests: color factories and scripted fake oracles.
"""

import asyncio
from typing import Callable, Iterable, Optional

import pytest

from huescan.config import Config
from huescan.errors import OracleError
from huescan.interfaces import RGB, ColorPoint
from huescan.logging.logger import LogLevel


def _make_color(hue: int, name: str) -> ColorPoint:
    return ColorPoint(hue=hue, name=name, hex=f"#{hue:06x}", rgb=RGB(r=hue % 256, g=0, b=0))


class FakeOracle:
    """Names hues with ``namer`` and records every call it receives."""

    def __init__(
        self,
        namer: Callable[[int], str],
        *,
        delay: float = 0.0,
        delays: Optional[dict[int, float]] = None,
        fail_hues: Iterable[int] = (),
    ) -> None:
        self.namer = namer
        self.delay = delay
        self.delays = dict(delays or {})
        self.fail_hues = set(fail_hues)
        self.calls: list[int] = []
        self.aborted: list[int] = []
        self.inflight = 0
        self.max_inflight = 0
        self.on_call: Optional[Callable[[int], None]] = None

    async def __call__(self, hue: int, saturation: int, lightness: int) -> ColorPoint:
        self.calls.append(hue)
        if self.on_call is not None:
            self.on_call(hue)
        self.inflight += 1
        self.max_inflight = max(self.max_inflight, self.inflight)
        try:
            delay = self.delays.get(hue, self.delay)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.aborted.append(hue)
            raise
        finally:
            self.inflight -= 1
        if hue in self.fail_hues:
            raise OracleError(f"Color API error: 500 at hue {hue}", status_code=500, hue=hue)
        return _make_color(hue, self.namer(hue))


class QuietLogger:
    def __init__(self) -> None:
        self.messages: list[tuple[str, LogLevel]] = []

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self.messages.append((message, level))


@pytest.fixture
def make_color():
    return _make_color


@pytest.fixture
def fake_oracle():
    """Factory building a ``FakeOracle``; call it with a naming function."""
    return FakeOracle


@pytest.fixture
def quiet_logger():
    return QuietLogger()


@pytest.fixture
def five_sample_config():
    """Samples hues 0, 90, 180, 269, 359."""
    return Config(starting_samples=5, concurrency_limit=2)
