from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

RGB = tuple[int, int, int]
FloatRGB = tuple[float, float, float]


@dataclass(frozen=True)
class CatalogColor:
    name: str
    rgb: RGB
    code: str | None = None

    @property
    def r(self) -> int:
        return self.rgb[0]

    @property
    def g(self) -> int:
        return self.rgb[1]

    @property
    def b(self) -> int:
        return self.rgb[2]

    @property
    def hex(self) -> str:
        return f"#{self.rgb[0]:02X}{self.rgb[1]:02X}{self.rgb[2]:02X}"

    @property
    def css(self) -> str:
        return f"rgb({self.rgb[0]}, {self.rgb[1]}, {self.rgb[2]})"


@dataclass(frozen=True)
class TargetColor:
    """A query color in OKLCH: lightness 0..1, chroma >= 0, hue in degrees."""

    l: float
    c: float
    h: float

    @property
    def css(self) -> str:
        return f"oklch({self.l * 100:.1f}% {self.c:.3f} {self.h:.1f})"

    def to_dict(self) -> dict[str, float]:
        return {"l": float(self.l), "c": float(self.c), "h": float(self.h)}


@dataclass(frozen=True)
class CandidateRecord:
    color: CatalogColor
    fast_distance: float
    order: int
    # position of the color in its catalog
    index: int


@dataclass(frozen=True)
class RankedCandidate:
    candidate: CandidateRecord
    distance: float


@dataclass(frozen=True)
class MatchResult:
    name: str
    rgb: str
    r: int
    g: int
    b: int
    hex: str
    distance: float
    quality: str
    quality_label: str
    quality_icon: str
    quality_color: str
    quality_description: str
    similarity: float
    match_percentage: float

    @property
    def delta_e(self) -> float:
        return self.distance

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "rgb": self.rgb,
            "r": self.r,
            "g": self.g,
            "b": self.b,
            "hex": self.hex,
            "distance": float(self.distance),
            "deltaE": float(self.distance),
            "quality": self.quality,
            "qualityLabel": self.quality_label,
            "qualityIcon": self.quality_icon,
            "qualityColor": self.quality_color,
            "qualityDescription": self.quality_description,
            "similarity": float(self.similarity),
            "matchPercentage": float(self.match_percentage),
        }


@dataclass(frozen=True)
class MatchReport:
    target: TargetColor | None
    target_rgb: FloatRGB | None
    results: list[MatchResult]
    strategy: str
    filter_size: int
    catalog_size: int
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid_target(self) -> bool:
        return self.target_rgb is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": None if self.target is None else self.target.to_dict(),
            "target_rgb": (
                None if self.target_rgb is None else [float(v) for v in self.target_rgb]
            ),
            "strategy": self.strategy,
            "filter_size": int(self.filter_size),
            "catalog_size": int(self.catalog_size),
            "results": [result.to_dict() for result in self.results],
            "warnings": list(self.warnings),
        }
