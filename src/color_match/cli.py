from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import colorimetry
from .catalog import CatalogError, load_catalog
from .config import LOG_LEVELS, MatchSettings
from .models import TargetColor
from .pipeline import ColorMatchPipeline, MatchOptions


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--l", type=float, required=True, help="OKLCH lightness (0-1).")
    parser.add_argument("--c", type=float, required=True, help="OKLCH chroma (0-0.4 typical).")
    parser.add_argument("--h", type=float, required=True, help="OKLCH hue in degrees.")


def _build_parser(settings: MatchSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="color-match",
        description="Find the closest reference catalog colors to an OKLCH color.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help="Logging level (default: %(default)s).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser(
        "match",
        help="Rank catalog colors by perceptual distance to the target.",
    )
    _add_target_arguments(match)
    match.add_argument(
        "--catalog",
        default=str(settings.catalog_path),
        help="Path to the reference catalog (.json/.csv).",
    )
    match.add_argument(
        "--count",
        type=int,
        default=settings.default_count,
        help="Number of matches to return.",
    )
    match.add_argument(
        "--fast",
        action="store_true",
        help="Rank with OKLab distance only and skip CIEDE2000.",
    )
    match.add_argument(
        "--filter-size",
        type=int,
        default=None,
        help="Number of prefilter candidates passed to the reranker.",
    )
    match.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    convert = subparsers.add_parser(
        "convert",
        help="Print CSS, hex and rgb() forms of an OKLCH color.",
    )
    _add_target_arguments(convert)

    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        settings = MatchSettings.from_env()
    except ValueError as exc:
        print(f"error: invalid environment configuration: {exc}", file=sys.stderr)
        return 1

    parser = _build_parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "match":
        if args.count < 0:
            parser.error("--count must be >= 0")
        if args.filter_size is not None and args.filter_size < 0:
            parser.error("--filter-size must be >= 0")

        try:
            catalog = load_catalog(args.catalog)
        except CatalogError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

        pipeline = ColorMatchPipeline(settings=settings)
        report = pipeline.match(
            TargetColor(l=args.l, c=args.c, h=args.h),
            catalog,
            count=args.count,
            options=MatchOptions(use_fast_mode=args.fast, filter_size=args.filter_size),
        )
        payload = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)

        if args.out:
            output_path = Path(args.out)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(payload + "\n", encoding="utf-8")
        else:
            print(payload)
        return 0

    if args.command == "convert":
        payload = {
            "css": colorimetry.oklch_to_css(args.l, args.c, args.h),
            "hex": colorimetry.oklch_to_hex(args.l, args.c, args.h),
            "rgb": colorimetry.oklch_to_rgb_css(args.l, args.c, args.h),
            "in_gamut": colorimetry.oklch_to_rgb8(args.l, args.c, args.h) is not None,
        }
        print(json.dumps(payload, indent=2))
        return 0

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    sys.exit(main())
