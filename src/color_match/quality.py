from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from .models import MatchResult, RankedCandidate

SIMILARITY_ZERO_AT = 10.0
MATCH_PERCENTAGE_ZERO_AT = 5.0


@dataclass(frozen=True)
class QualityTier:
    key: str
    max_distance: float
    label: str
    description: str
    icon: str
    color: str


# Tolerances follow common print-proofing practice (ISO 13655 style bands).
DEFAULT_TIERS: tuple[QualityTier, ...] = (
    QualityTier(
        key="EXCELLENT",
        max_distance=1.0,
        label="Excellent Match",
        description="Imperceptible difference - suitable for luxury brands and proofing",
        icon="🎯",
        color="#22c55e",
    ),
    QualityTier(
        key="GOOD",
        max_distance=2.0,
        label="Good Match",
        description="Perceptible only under close observation - professional standard",
        icon="✅",
        color="#84cc16",
    ),
    QualityTier(
        key="ACCEPTABLE",
        max_distance=3.0,
        label="Acceptable Match",
        description="Standard professional tolerance - suitable for most applications",
        icon="⚠️",
        color="#eab308",
    ),
    QualityTier(
        key="FAIR",
        max_distance=5.0,
        label="Fair Match",
        description="Noticeable difference - acceptable for less critical work",
        icon="⚡",
        color="#f97316",
    ),
    QualityTier(
        key="POOR",
        max_distance=math.inf,
        label="Poor Match",
        description="Very noticeable difference - not recommended",
        icon="❌",
        color="#ef4444",
    ),
)


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


def similarity_score(distance: float) -> float:
    return _clamp_percentage((1.0 - distance / SIMILARITY_ZERO_AT) * 100.0)


def match_percentage(distance: float) -> float:
    return _clamp_percentage(100.0 - (distance / MATCH_PERCENTAGE_ZERO_AT) * 100.0)


class QualityTable:
    """Ordered, contiguous distance bands with presentation metadata.

    Tiers are checked in order and the first one whose inclusive upper bound
    covers the distance wins. The last tier must be unbounded so every
    non-negative distance is classified.
    """

    def __init__(self, tiers: Iterable[QualityTier] = DEFAULT_TIERS) -> None:
        self._tiers = tuple(tiers)
        if not self._tiers:
            raise ValueError("quality table must contain at least one tier")

        previous = -math.inf
        for tier in self._tiers:
            if math.isnan(tier.max_distance) or tier.max_distance <= previous:
                raise ValueError(
                    f"tier '{tier.key}' bound {tier.max_distance} must be greater "
                    f"than the previous bound {previous}"
                )
            previous = tier.max_distance
        if not math.isinf(self._tiers[-1].max_distance):
            raise ValueError(
                f"last tier '{self._tiers[-1].key}' must have an unbounded upper limit"
            )

        keys = [tier.key for tier in self._tiers]
        if len(set(keys)) != len(keys):
            raise ValueError(f"quality tier keys must be unique: {keys}")

    @property
    def tiers(self) -> tuple[QualityTier, ...]:
        return self._tiers

    def __getitem__(self, key: str) -> QualityTier:
        for tier in self._tiers:
            if tier.key == key:
                return tier
        raise KeyError(key)

    def classify(self, distance: float) -> QualityTier:
        if math.isnan(distance) or distance < 0:
            raise ValueError(f"distance must be a non-negative number, got {distance}")
        for tier in self._tiers:
            if distance <= tier.max_distance:
                return tier
        return self._tiers[-1]

    def annotate(self, ranked: RankedCandidate) -> MatchResult:
        color = ranked.candidate.color
        distance = float(ranked.distance)
        tier = self.classify(distance)
        return MatchResult(
            name=color.name,
            rgb=color.css,
            r=color.r,
            g=color.g,
            b=color.b,
            hex=color.hex,
            distance=distance,
            quality=tier.key,
            quality_label=tier.label,
            quality_icon=tier.icon,
            quality_color=tier.color,
            quality_description=tier.description,
            similarity=similarity_score(distance),
            match_percentage=match_percentage(distance),
        )


DEFAULT_QUALITY_TABLE = QualityTable(DEFAULT_TIERS)
