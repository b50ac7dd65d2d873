from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from . import colorimetry
from .catalog import Catalog
from .models import CandidateRecord, FloatRGB, RankedCandidate

logger = logging.getLogger(__name__)


class MetricStrategy(str, Enum):
    FAST = "fast"
    PRECISE = "precise"


@dataclass(frozen=True)
class RerankOutcome:
    ranked: list[RankedCandidate]
    excluded: int = 0


def rerank(
    target_rgb: FloatRGB,
    candidates: list[CandidateRecord],
    count: int,
    strategy: MetricStrategy = MetricStrategy.PRECISE,
    catalog: Catalog | None = None,
) -> RerankOutcome:
    """Order candidates by the strategy's distance and keep the best ``count``.

    Pass the catalog the candidates came from to reuse its cached CIELAB
    coordinates; otherwise they are converted from the candidates' RGB.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if count == 0 or not candidates:
        return RerankOutcome(ranked=[])

    if strategy is MetricStrategy.FAST:
        scored = [(candidate, candidate.fast_distance) for candidate in candidates]
    else:
        scored = _precise_scores(target_rgb, candidates, catalog)

    kept = [(candidate, distance) for candidate, distance in scored if math.isfinite(distance)]
    excluded = len(scored) - len(kept)
    if excluded:
        logger.warning("excluded %d candidates with undefined distance", excluded)

    kept.sort(key=lambda item: (item[1], item[0].order))
    ranked = [
        RankedCandidate(candidate=candidate, distance=float(distance))
        for candidate, distance in kept[:count]
    ]
    return RerankOutcome(ranked=ranked, excluded=excluded)


def _precise_scores(
    target_rgb: FloatRGB,
    candidates: list[CandidateRecord],
    catalog: Catalog | None = None,
) -> list[tuple[CandidateRecord, float]]:
    target_lab = colorimetry.to_precise_space(np.asarray(target_rgb, dtype=np.float64))
    if catalog is not None:
        candidate_lab = catalog.precise_coords[[c.index for c in candidates]]
    else:
        candidate_rgb = colorimetry.rgb8_to_unit([c.color.rgb for c in candidates])
        candidate_lab = colorimetry.to_precise_space(candidate_rgb)
    distances = np.asarray(
        colorimetry.precise_distance(target_lab, candidate_lab), dtype=np.float64
    ).reshape(-1)
    return [
        (candidate, float(distance))
        for candidate, distance in zip(candidates, distances)
    ]
