from __future__ import annotations

import csv
import json
import logging
import re
import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path

import numpy as np

from . import colorimetry
from .models import RGB, CatalogColor

logger = logging.getLogger(__name__)

_RGB_FUNCTION_PATTERN = re.compile(
    r"^\s*rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)\s*$",
    re.IGNORECASE,
)
_HEX_PATTERN = re.compile(r"^#?[0-9A-Fa-f]{6}$")


class CatalogError(ValueError):
    pass


def parse_rgb(value: object) -> RGB | None:
    """Parse an ``rgb(R, G, B)`` string, ``#RRGGBB`` hex, triple or r/g/b mapping."""
    if isinstance(value, str):
        text = value.strip()
        match = _RGB_FUNCTION_PATTERN.match(text)
        if match:
            return _checked_channels(match.groups())
        if _HEX_PATTERN.match(text):
            normalized = text[1:] if text.startswith("#") else text
            return (
                int(normalized[0:2], 16),
                int(normalized[2:4], 16),
                int(normalized[4:6], 16),
            )
        return None

    if isinstance(value, Mapping):
        normalized_map = {str(key).strip().lower(): item for key, item in value.items()}
        return _checked_channels(
            (normalized_map.get("r"), normalized_map.get("g"), normalized_map.get("b"))
        )

    if isinstance(value, np.ndarray):
        value = value.tolist()

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        if len(value) != 3:
            return None
        return _checked_channels(value)

    return None


def _checked_channels(raw: Iterable[object]) -> RGB | None:
    channels: list[int] = []
    for item in raw:
        if item is None or isinstance(item, bool):
            return None
        if isinstance(item, float):
            if not item.is_integer():
                return None
            item = int(item)
        try:
            channel = int(str(item).strip()) if isinstance(item, str) else int(item)
        except (TypeError, ValueError):
            return None
        if not 0 <= channel <= 255:
            return None
        channels.append(channel)
    if len(channels) != 3:
        return None
    return channels[0], channels[1], channels[2]


def parse_record(raw_record: Mapping[str, object]) -> CatalogColor | None:
    """Build a catalog color from a loosely-shaped record, or ``None`` if unusable."""
    if isinstance(raw_record, CatalogColor):
        return raw_record
    if not isinstance(raw_record, Mapping):
        return None

    normalized: dict[str, object] = {
        str(key).strip().lower(): value
        for key, value in raw_record.items()
        if key is not None
    }

    name = _as_clean_str(normalized.get("name"))
    if not name:
        return None

    rgb: RGB | None = None
    rgb_value = normalized.get("rgb")
    if not _is_blank(rgb_value):
        rgb = parse_rgb(rgb_value)
    else:
        hex_value = _as_clean_str(normalized.get("hex"))
        if hex_value:
            rgb = parse_rgb(hex_value)
        elif not any(_is_blank(normalized.get(channel)) for channel in "rgb"):
            rgb = parse_rgb(normalized)

    if rgb is None:
        return None
    return CatalogColor(name=name, rgb=rgb, code=_as_clean_str(normalized.get("code")))


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_clean_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


class Catalog:
    """Immutable, ordered collection of reference colors.

    Coordinates in both color spaces are computed on first use and cached on
    the instance. The color tuple itself never changes after construction.
    """

    def __init__(
        self,
        colors: Iterable[CatalogColor],
        source: str | None = None,
        dropped: int = 0,
    ) -> None:
        self._colors: tuple[CatalogColor, ...] = tuple(colors)
        self.source = source
        self.dropped = dropped
        self._fast_coords: np.ndarray | None = None
        self._precise_coords: np.ndarray | None = None

    @classmethod
    def from_records(
        cls, records: Iterable[Mapping[str, object] | CatalogColor], source: str | None = None
    ) -> "Catalog":
        colors: list[CatalogColor] = []
        dropped = 0
        for idx, record in enumerate(records):
            parsed = parse_record(record)
            if parsed is None:
                dropped += 1
                logger.debug("dropping unparseable catalog record #%d: %r", idx, record)
                continue
            colors.append(parsed)

        if dropped:
            logger.info(
                "catalog %s: kept %d colors, dropped %d malformed records",
                source or "<memory>",
                len(colors),
                dropped,
            )
        return cls(colors, source=source, dropped=dropped)

    @property
    def colors(self) -> tuple[CatalogColor, ...]:
        return self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[CatalogColor]:
        return iter(self._colors)

    def __getitem__(self, index: int) -> CatalogColor:
        return self._colors[index]

    def __repr__(self) -> str:
        return f"Catalog(size={len(self._colors)}, source={self.source!r})"

    def rgb_matrix(self) -> np.ndarray:
        if not self._colors:
            return np.zeros((0, 3), dtype=np.float64)
        return colorimetry.rgb8_to_unit([color.rgb for color in self._colors])

    @property
    def fast_coords(self) -> np.ndarray:
        if self._fast_coords is None:
            self._fast_coords = colorimetry.to_fast_space(self.rgb_matrix())
        return self._fast_coords

    @property
    def precise_coords(self) -> np.ndarray:
        if self._precise_coords is None:
            matrix = self.rgb_matrix()
            if len(matrix) == 0:
                self._precise_coords = matrix
            else:
                self._precise_coords = colorimetry.to_precise_space(matrix)
        return self._precise_coords


class CatalogRef:
    """Holds the live catalog and replaces it atomically.

    Readers call :meth:`get` once per query and keep using that snapshot, so a
    concurrent :meth:`swap` never changes a query midway.
    """

    def __init__(self, catalog: Catalog | None = None) -> None:
        self._lock = threading.Lock()
        self._catalog = catalog if catalog is not None else Catalog(())

    def get(self) -> Catalog:
        with self._lock:
            return self._catalog

    def swap(self, catalog: Catalog) -> Catalog:
        with self._lock:
            previous, self._catalog = self._catalog, catalog
        logger.info("catalog swapped: %d -> %d colors", len(previous), len(catalog))
        return previous


def load_catalog(path_like: str | Path) -> Catalog:
    path = Path(path_like)
    if not path.exists():
        raise CatalogError(f"catalog file does not exist: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        records = _load_json(path)
    elif suffix == ".csv":
        records = _load_csv(path)
    else:
        raise CatalogError(f"unsupported catalog format '{path.suffix}'. Use .csv or .json")

    catalog = Catalog.from_records(records, source=str(path))
    logger.info("loaded %d catalog colors from %s", len(catalog), path)
    return catalog


def _load_csv(path: Path) -> list[dict[str, object]]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise CatalogError(f"catalog csv has no header: {path}")

        fields = {name.strip().lower() for name in reader.fieldnames if name}
        if "name" not in fields:
            raise CatalogError(f"catalog csv at {path} must have a 'name' column")
        if not ({"rgb", "hex"} & fields or {"r", "g", "b"} <= fields):
            raise CatalogError(
                f"catalog csv at {path} needs an 'rgb', 'hex' or 'r','g','b' columns"
            )
        return [dict(row) for row in reader]


def _load_json(path: Path) -> list[object]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"{path}:{exc.lineno}: invalid json ({exc.msg})") from exc

    if isinstance(payload, dict):
        if "colors" not in payload or not isinstance(payload["colors"], list):
            raise CatalogError(
                f"json catalog at {path} must be a list or include a 'colors' list"
            )
        return payload["colors"]
    if isinstance(payload, list):
        return payload
    raise CatalogError(f"json catalog at {path} must be a list or object with 'colors'")
