from .catalog import Catalog, CatalogError, CatalogRef, load_catalog
from .config import MatchSettings
from .models import CatalogColor, MatchReport, MatchResult, TargetColor
from .pipeline import ColorMatchPipeline, MatchOptions, find_nearest_colors
from .quality import DEFAULT_TIERS, QualityTable, QualityTier
from .rerank import MetricStrategy

__all__ = [
    "Catalog",
    "CatalogColor",
    "CatalogError",
    "CatalogRef",
    "ColorMatchPipeline",
    "DEFAULT_TIERS",
    "MatchOptions",
    "MatchReport",
    "MatchResult",
    "MatchSettings",
    "MetricStrategy",
    "QualityTable",
    "QualityTier",
    "TargetColor",
    "find_nearest_colors",
    "load_catalog",
]
