from __future__ import annotations

import logging
import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from . import colorimetry
from .catalog import Catalog, CatalogError, CatalogRef, load_catalog
from .config import MatchSettings
from .models import TargetColor
from .pipeline import ColorMatchPipeline, MatchOptions

logger = logging.getLogger(__name__)


class MatchRequest(BaseModel):
    l: float = Field(..., ge=0.0, le=1.0, description="OKLCH lightness")
    c: float = Field(..., ge=0.0, description="OKLCH chroma")
    h: float = Field(..., description="OKLCH hue in degrees")
    count: int = Field(default=5, ge=0, le=100, description="Maximum matches to return")
    use_fast_mode: bool = Field(
        default=False,
        description="Rank with OKLab distance only and skip CIEDE2000",
    )
    filter_size: int | None = Field(
        default=None,
        ge=0,
        description="Number of prefilter candidates passed to the reranker",
    )


class MatchItem(BaseModel):
    name: str
    rgb: str
    r: int
    g: int
    b: int
    hex: str
    distance: float
    deltaE: float
    quality: str
    qualityLabel: str
    qualityIcon: str
    qualityColor: str
    qualityDescription: str
    similarity: float
    matchPercentage: float


class MatchResponse(BaseModel):
    target: str
    target_hex: str
    strategy: str
    results: list[MatchItem]
    warnings: list[str]


class HealthResponse(BaseModel):
    status: str
    catalog_size: int


app = FastAPI(
    title="Color Match API",
    version="1.0.0",
    description="Rank reference catalog colors by perceptual distance to an OKLCH color.",
)

# Both resolved on first request.
_settings: MatchSettings | None = None
_catalog_ref = CatalogRef()
_catalog_loaded = False
_load_lock = threading.Lock()


def _get_settings() -> MatchSettings:
    global _settings
    if _settings is None:
        with _load_lock:
            if _settings is None:
                _settings = MatchSettings.from_env()
    return _settings


def _build_pipeline() -> ColorMatchPipeline:
    return ColorMatchPipeline(settings=_get_settings())


def _get_catalog() -> Catalog:
    global _catalog_loaded
    if not _catalog_loaded:
        try:
            settings = _get_settings()
        except ValueError as exc:
            logger.error("invalid settings: %s", exc)
            raise CatalogError(f"invalid settings: {exc}") from exc
        with _load_lock:
            if not _catalog_loaded:
                try:
                    _catalog_ref.swap(load_catalog(settings.catalog_path))
                except CatalogError:
                    logger.exception("failed to load catalog from %s", settings.catalog_path)
                    raise
                _catalog_loaded = True
    return _catalog_ref.get()


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    try:
        catalog = _get_catalog()
    except CatalogError as exc:
        raise HTTPException(status_code=503, detail=f"catalog_unavailable: {exc}") from exc
    return HealthResponse(status="ok", catalog_size=len(catalog))


@app.post("/match", response_model=MatchResponse)
async def match_colors(payload: MatchRequest) -> MatchResponse:
    try:
        catalog = _get_catalog()
    except CatalogError as exc:
        raise HTTPException(status_code=503, detail=f"catalog_unavailable: {exc}") from exc

    pipeline = _build_pipeline()
    target = TargetColor(l=payload.l, c=payload.c, h=payload.h)
    report = await run_in_threadpool(
        pipeline.match,
        target,
        catalog,
        payload.count,
        MatchOptions(use_fast_mode=payload.use_fast_mode, filter_size=payload.filter_size),
    )
    if "invalid_target" in report.warnings:
        raise HTTPException(status_code=422, detail="invalid_target")

    return MatchResponse(
        target=target.css,
        target_hex=colorimetry.oklch_to_hex(target.l, target.c, target.h),
        strategy=report.strategy,
        results=[MatchItem(**result.to_dict()) for result in report.results],
        warnings=report.warnings,
    )
