"""
Oracle client adapter: one hue probe routed through the shared limiter.
"""

from __future__ import annotations

import asyncio

from .concurrency import CancellationToken, ConcurrencyLimiter
from .errors import CancellationError
from .interfaces import ColorPoint
from .oracle import ColorOracle


async def fetch_at(
    hue: int,
    saturation: int,
    lightness: int,
    limiter: ConcurrencyLimiter,
    token: CancellationToken | None,
    oracle: ColorOracle,
) -> ColorPoint:
    """
    Look up ``hue`` through ``limiter``.

    Fails fast with ``CancellationError`` when ``token`` is already cancelled,
    and aborts the in-flight oracle call if it is cancelled mid-request.
    """
    if token is None:
        return await limiter.run(lambda: oracle(hue, saturation, lightness))

    token.raise_if_cancelled()

    async def _probe() -> ColorPoint:
        # The token may have fired while this probe sat in the limiter queue
        token.raise_if_cancelled()
        call = asyncio.ensure_future(oracle(hue, saturation, lightness))
        watcher = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({call, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            if not call.done():
                call.cancel()
                await asyncio.gather(call, return_exceptions=True)
        if call.cancelled():
            raise CancellationError(token.reason or f"Probe at hue {hue} cancelled")
        return call.result()

    return await limiter.run(_probe)
