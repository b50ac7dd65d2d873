"""Settings for the matcher and its command line / HTTP front ends."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "sample_catalog.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MatchSettings:
    """Matcher defaults.

    ``default_filter_size`` is the prefilter size used when a query gives none;
    an explicit ``filter_size`` is not capped by it.
    """

    default_count: int = 5
    default_filter_size: int = 50
    catalog_path: Path = field(default=DEFAULT_CATALOG_PATH)
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.default_count < 0:
            raise ValueError(f"default_count must be >= 0, got {self.default_count}")
        if self.default_filter_size < 0:
            raise ValueError(f"default_filter_size must be >= 0, got {self.default_filter_size}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )

    @classmethod
    def from_env(cls) -> "MatchSettings":
        """Build settings, letting ``COLOR_MATCH_*`` variables override defaults."""
        catalog_path = os.getenv("COLOR_MATCH_CATALOG")
        return cls(
            default_count=_env_int("COLOR_MATCH_DEFAULT_COUNT", cls.default_count),
            default_filter_size=_env_int("COLOR_MATCH_FILTER_SIZE", cls.default_filter_size),
            catalog_path=Path(catalog_path) if catalog_path else DEFAULT_CATALOG_PATH,
            log_level=os.getenv("COLOR_MATCH_LOG_LEVEL", cls.log_level).upper(),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
