"""
Color-naming oracle backed by thecolorapi.com.

The oracle maps one HSL point to a human-readable name plus hex/RGB values.
Any coroutine function with the ``ColorOracle`` signature can stand in for
``ColorApiOracle`` (tests use small in-memory fakes).
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

from .config import Config, DEFAULT_CONFIG
from .errors import OracleError
from .interfaces import RGB, ColorPoint


class ColorOracle(Protocol):
    async def __call__(self, hue: int, saturation: int, lightness: int) -> ColorPoint: ...


def hsl_param(hue: int, saturation: int, lightness: int) -> str:
    """Value for the ``hsl`` query parameter, e.g. ``"210,100%,50%"``."""
    return f"{hue},{saturation}%,{lightness}%"


def parse_color_response(hue: int, payload: Any) -> ColorPoint:
    """Convert a ``/id`` response body into a ``ColorPoint``."""
    if not isinstance(payload, Mapping):
        raise OracleError(f"Malformed color API response for hue {hue}: expected an object", hue=hue)
    try:
        rgb = payload["rgb"]
        return ColorPoint(
            hue=hue,
            name=str(payload["name"]["value"]),
            hex=str(payload["hex"]["value"]),
            rgb=RGB(r=int(rgb["r"]), g=int(rgb["g"]), b=int(rgb["b"])),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise OracleError(f"Malformed color API response for hue {hue}: {exc!r}", hue=hue) from exc


class ColorApiOracle:
    """
    Async HTTP client for ``GET {base_url}/id?hsl=h,s%,l%``.

    Pass an existing ``httpx.AsyncClient`` to share a connection pool; otherwise
    one is created and closed by ``aclose`` / ``async with``.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.config.request_timeout_seconds))

    async def __call__(self, hue: int, saturation: int, lightness: int) -> ColorPoint:
        return await self.lookup_color(hue, saturation, lightness)

    async def lookup_color(self, hue: int, saturation: int, lightness: int) -> ColorPoint:
        url = f"{self.config.api_base_url}/id"
        params = {"hsl": hsl_param(hue, saturation, lightness)}
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise OracleError(f"Color API request failed: {type(exc).__name__}: {exc}", hue=hue) from exc

        if not response.is_success:
            raise OracleError(f"Color API error: {response.status_code}", status_code=response.status_code, hue=hue)

        try:
            payload = response.json()
        except ValueError as exc:
            raise OracleError(f"Color API returned invalid JSON for hue {hue}", hue=hue) from exc
        return parse_color_response(hue, payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ColorApiOracle":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
