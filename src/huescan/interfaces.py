"""
Core data contracts shared across huescan modules.

These dataclasses are the values passed between the oracle, the discovery
engine, the cache and callers, keeping the rest of the system loosely coupled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

    def to_dict(self) -> Dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass(frozen=True)
class ColorPoint:
    """A named sample on the hue axis, as reported by the oracle."""

    hue: int
    name: str
    hex: str
    rgb: RGB

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation used by the caches."""
        return {
            "hue": self.hue,
            "name": self.name,
            "hex": self.hex,
            "rgb": self.rgb.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ColorPoint":
        """Rebuild a point from ``to_dict`` output; raises KeyError/TypeError/ValueError on bad input."""
        rgb = data["rgb"]
        return cls(
            hue=int(data["hue"]),
            name=str(data["name"]),
            hex=str(data["hex"]),
            rgb=RGB(r=int(rgb["r"]), g=int(rgb["g"]), b=int(rgb["b"])),
        )


@dataclass(frozen=True)
class SwatchStats:
    total: int = 0
    cached: bool = False


@dataclass(frozen=True)
class SwatchResult:
    """
    Outcome of one swatch request.

    ``swatches`` is always sorted by hue. On cancellation or failure it holds
    whatever was found before the request stopped.
    """

    saturation: int
    lightness: int
    swatches: Tuple[ColorPoint, ...] = ()
    stats: SwatchStats = field(default_factory=SwatchStats)
    cancelled: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.cancelled and self.error is None

    @property
    def names(self) -> list[str]:
        return [swatch.name for swatch in self.swatches]
