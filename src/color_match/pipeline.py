from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from . import colorimetry
from .catalog import Catalog
from .config import MatchSettings
from .models import CatalogColor, MatchReport, MatchResult, TargetColor
from .prefilter import prefilter, resolve_filter_size
from .quality import DEFAULT_QUALITY_TABLE, QualityTable
from .rerank import MetricStrategy, rerank

logger = logging.getLogger(__name__)

TargetLike = TargetColor | Mapping[str, float] | Sequence[float]
CatalogLike = Catalog | Iterable[Mapping[str, object] | CatalogColor]


@dataclass(frozen=True)
class MatchOptions:
    use_fast_mode: bool = False
    filter_size: int | None = None

    @property
    def strategy(self) -> MetricStrategy:
        return MetricStrategy.FAST if self.use_fast_mode else MetricStrategy.PRECISE


def coerce_target(target: TargetLike) -> TargetColor | None:
    if isinstance(target, TargetColor):
        return target
    try:
        if isinstance(target, Mapping):
            return TargetColor(
                l=float(target["l"]), c=float(target["c"]), h=float(target["h"])
            )
        l, c, h = target
        return TargetColor(l=float(l), c=float(c), h=float(h))
    except (KeyError, TypeError, ValueError):
        return None


def coerce_catalog(catalog: CatalogLike) -> Catalog:
    if isinstance(catalog, Catalog):
        return catalog
    return Catalog.from_records(catalog)


class ColorMatchPipeline:
    def __init__(
        self,
        settings: MatchSettings | None = None,
        quality_table: QualityTable | None = None,
    ) -> None:
        self.settings = settings or MatchSettings()
        self.quality_table = quality_table or DEFAULT_QUALITY_TABLE

    def match(
        self,
        target: TargetLike,
        catalog: CatalogLike,
        count: int | None = None,
        options: MatchOptions | None = None,
    ) -> MatchReport:
        options = options or MatchOptions()
        count = self.settings.default_count if count is None else count
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")

        started = time.perf_counter()
        catalog = coerce_catalog(catalog)
        filter_size = resolve_filter_size(
            options.filter_size, len(catalog), self.settings.default_filter_size
        )
        warnings: list[str] = []

        target_color = coerce_target(target)
        target_rgb = None
        if target_color is not None:
            target_rgb = colorimetry.oklch_to_rgb(
                target_color.l, target_color.c, target_color.h
            )
        if target_rgb is None:
            logger.warning("invalid target color %r, no matches computed", target)
            return MatchReport(
                target=target_color,
                target_rgb=None,
                results=[],
                strategy=options.strategy.value,
                filter_size=filter_size,
                catalog_size=len(catalog),
                warnings=["invalid_target"],
            )

        if len(catalog) == 0:
            warnings.append("empty_catalog")

        candidates = prefilter(target_rgb, catalog, filter_size)
        outcome = rerank(target_rgb, candidates, count, options.strategy, catalog=catalog)
        if outcome.excluded:
            warnings.append("degenerate_candidates")

        results = [self.quality_table.annotate(ranked) for ranked in outcome.ranked]
        logger.debug(
            "matched %s against %d colors (%s, filter=%d) in %.3f ms",
            target_color.css,
            len(catalog),
            options.strategy.value,
            filter_size,
            (time.perf_counter() - started) * 1000.0,
        )
        return MatchReport(
            target=target_color,
            target_rgb=target_rgb,
            results=results,
            strategy=options.strategy.value,
            filter_size=filter_size,
            catalog_size=len(catalog),
            warnings=warnings,
        )

    def find_nearest_colors(
        self,
        target: TargetLike,
        catalog: CatalogLike,
        count: int | None = None,
        options: MatchOptions | None = None,
    ) -> list[MatchResult]:
        return self.match(target, catalog, count=count, options=options).results


_DEFAULT_PIPELINE = ColorMatchPipeline()


def find_nearest_colors(
    target: TargetLike,
    catalog: CatalogLike,
    count: int = 5,
    options: MatchOptions | None = None,
) -> list[MatchResult]:
    """Return the ``count`` catalog colors closest to ``target``, best first.

    An unusable target yields an empty list (use
    :meth:`ColorMatchPipeline.match` to see the ``invalid_target`` warning).
    """
    return _DEFAULT_PIPELINE.find_nearest_colors(target, catalog, count=count, options=options)
