from __future__ import annotations

import numpy as np

from . import colorimetry
from .catalog import Catalog
from .models import CandidateRecord, FloatRGB

DEFAULT_FILTER_SIZE = 50


def resolve_filter_size(
    filter_size: int | None,
    catalog_size: int,
    default_size: int = DEFAULT_FILTER_SIZE,
) -> int:
    if filter_size is None:
        return min(default_size, catalog_size)
    if filter_size < 0:
        raise ValueError(f"filter_size must be >= 0, got {filter_size}")
    return min(int(filter_size), catalog_size)


def prefilter(
    target_rgb: FloatRGB,
    catalog: Catalog,
    filter_size: int | None = None,
    default_size: int = DEFAULT_FILTER_SIZE,
) -> list[CandidateRecord]:
    """Narrow the catalog to the closest entries by OKLab distance.

    This is a recall/cost trade-off: OKLab distance is much cheaper than
    CIEDE2000 and keeps the true nearest neighbours near the top, but it is
    not an exact guarantee.
    """
    size = resolve_filter_size(filter_size, len(catalog), default_size)
    if size == 0:
        return []

    target_oklab = colorimetry.to_fast_space(np.asarray(target_rgb, dtype=np.float64))
    distances = np.asarray(
        colorimetry.cheap_distance(catalog.fast_coords, target_oklab), dtype=np.float64
    )
    # Stable sort keeps catalog order for equal distances.
    ordered = np.argsort(distances, kind="stable")[:size]

    return [
        CandidateRecord(
            color=catalog[int(idx)],
            fast_distance=float(distances[int(idx)]),
            order=position,
            index=int(idx),
        )
        for position, idx in enumerate(ordered)
    ]
