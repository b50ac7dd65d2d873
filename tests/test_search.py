from __future__ import annotations

import numpy as np
import pytest

from color_match import colorimetry
from color_match.catalog import Catalog
from color_match.models import CandidateRecord, CatalogColor
from color_match.prefilter import DEFAULT_FILTER_SIZE, prefilter, resolve_filter_size
from color_match.rerank import MetricStrategy, rerank

RED_RGB = (1.0, 0.0, 0.0)


def _gray_ramp(size: int) -> Catalog:
    return Catalog(
        CatalogColor(name=f"gray-{i}", rgb=(i % 256, i % 256, i % 256)) for i in range(size)
    )


def _primaries() -> Catalog:
    return Catalog(
        [
            CatalogColor(name="Blue", rgb=(0, 0, 255)),
            CatalogColor(name="Red", rgb=(255, 0, 0)),
            CatalogColor(name="Green", rgb=(0, 255, 0)),
            CatalogColor(name="Dark Red", rgb=(139, 0, 0)),
        ]
    )


def test_resolve_filter_size():
    assert resolve_filter_size(None, 2000) == DEFAULT_FILTER_SIZE
    assert resolve_filter_size(None, 7) == 7
    assert resolve_filter_size(10, 7) == 7
    assert resolve_filter_size(3, 7) == 3
    assert resolve_filter_size(None, 100, default_size=80) == 80
    with pytest.raises(ValueError):
        resolve_filter_size(-1, 10)


def test_prefilter_orders_by_cheap_distance_and_truncates():
    catalog = _gray_ramp(200)
    target = (0.5, 0.5, 0.5)

    candidates = prefilter(target, catalog)

    assert len(candidates) == DEFAULT_FILTER_SIZE
    distances = [candidate.fast_distance for candidate in candidates]
    assert distances == sorted(distances)
    assert candidates[0].color.name in {"gray-127", "gray-128"}
    assert [candidate.order for candidate in candidates] == list(range(len(candidates)))


def test_prefilter_distances_match_colorimetry():
    catalog = _primaries()

    candidates = prefilter(RED_RGB, catalog, filter_size=2)

    assert [candidate.color.name for candidate in candidates] == ["Red", "Dark Red"]
    expected = colorimetry.cheap_distance(
        colorimetry.to_fast_space(colorimetry.rgb8_to_unit((139, 0, 0))),
        colorimetry.to_fast_space(np.asarray(RED_RGB)),
    )
    assert candidates[0].fast_distance == pytest.approx(0.0, abs=1e-12)
    assert candidates[1].fast_distance == pytest.approx(expected)


def test_prefilter_ties_keep_catalog_order():
    catalog = Catalog(
        [
            CatalogColor(name="twin-a", rgb=(10, 20, 30)),
            CatalogColor(name="other", rgb=(200, 200, 200)),
            CatalogColor(name="twin-b", rgb=(10, 20, 30)),
            CatalogColor(name="twin-c", rgb=(10, 20, 30)),
        ]
    )

    candidates = prefilter(colorimetry.rgb8_to_unit((10, 20, 30)), catalog)

    assert [candidate.color.name for candidate in candidates[:3]] == [
        "twin-a",
        "twin-b",
        "twin-c",
    ]


def test_prefilter_handles_empty_catalog_and_zero_size():
    assert prefilter(RED_RGB, Catalog([])) == []
    assert prefilter(RED_RGB, _primaries(), filter_size=0) == []


def test_rerank_fast_strategy_reuses_prefilter_distance(monkeypatch):
    candidates = prefilter(RED_RGB, _primaries())

    def _boom(*args, **kwargs):
        raise AssertionError("fast mode must not touch the precise space")

    monkeypatch.setattr(colorimetry, "to_precise_space", _boom)
    outcome = rerank(RED_RGB, candidates, count=4, strategy=MetricStrategy.FAST)

    assert [item.distance for item in outcome.ranked] == [
        candidate.fast_distance for candidate in candidates
    ]


def test_rerank_precise_strategy_orders_by_ciede2000():
    candidates = prefilter(RED_RGB, _primaries())

    outcome = rerank(RED_RGB, candidates, count=4, strategy=MetricStrategy.PRECISE)

    distances = [item.distance for item in outcome.ranked]
    assert distances == sorted(distances)
    assert outcome.ranked[0].candidate.color.name == "Red"
    assert distances[0] == pytest.approx(0.0, abs=1e-6)
    assert outcome.excluded == 0


def test_rerank_count_bounds():
    candidates = prefilter(RED_RGB, _primaries(), filter_size=2)

    assert rerank(RED_RGB, candidates, count=0).ranked == []
    assert len(rerank(RED_RGB, candidates, count=10).ranked) == 2
    assert rerank(RED_RGB, [], count=3).ranked == []
    with pytest.raises(ValueError):
        rerank(RED_RGB, candidates, count=-1)


def test_rerank_ties_keep_prefilter_order():
    twin = CatalogColor(name="twin", rgb=(0, 0, 0))
    candidates = [
        CandidateRecord(
            color=CatalogColor(name=f"twin-{i}", rgb=twin.rgb),
            fast_distance=0.5,
            order=i,
            index=i,
        )
        for i in range(5)
    ]

    for strategy in MetricStrategy:
        outcome = rerank((0.2, 0.2, 0.2), candidates, count=5, strategy=strategy)
        assert [item.candidate.color.name for item in outcome.ranked] == [
            f"twin-{i}" for i in range(5)
        ]


def test_rerank_excludes_degenerate_candidates(monkeypatch):
    candidates = prefilter(RED_RGB, _primaries())

    def _fake_precise(a, b):
        return np.array([np.nan, 3.0, 1.0, np.inf])

    monkeypatch.setattr(colorimetry, "precise_distance", _fake_precise)
    outcome = rerank(RED_RGB, candidates, count=4, strategy=MetricStrategy.PRECISE)

    assert outcome.excluded == 2
    assert [item.distance for item in outcome.ranked] == [1.0, 3.0]
    assert [item.candidate.order for item in outcome.ranked] == [2, 1]


def test_prefilter_carries_catalog_index():
    catalog = _primaries()

    candidates = prefilter(RED_RGB, catalog)

    for candidate in candidates:
        assert catalog[candidate.index] is candidate.color


def test_rerank_reads_cached_catalog_coordinates(monkeypatch):
    catalog = _primaries()
    candidates = prefilter(RED_RGB, catalog)
    expected = rerank(RED_RGB, candidates, count=4, strategy=MetricStrategy.PRECISE)
    assert catalog.precise_coords.shape == (4, 3)

    converted = []
    original = colorimetry.to_precise_space

    def _counting(rgb):
        converted.append(np.shape(rgb))
        return original(rgb)

    monkeypatch.setattr(colorimetry, "to_precise_space", _counting)
    outcome = rerank(
        RED_RGB, candidates, count=4, strategy=MetricStrategy.PRECISE, catalog=catalog
    )

    # only the target is converted; catalog colors come from the cache
    assert converted == [(3,)]
    assert [item.candidate.index for item in outcome.ranked] == [
        item.candidate.index for item in expected.ranked
    ]
    np.testing.assert_allclose(
        [item.distance for item in outcome.ranked],
        [item.distance for item in expected.ranked],
        atol=1e-9,
    )
