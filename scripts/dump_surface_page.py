#!/usr/bin/env python3
"""Write the map surface HTML to a file for manual inspection.

Open the result under the registered page origin (e.g. serve the directory
on https://localhost) to check that the SDK boots with your JavaScript key.

Usage
-----
::

    export COURIER_KAKAO_JS_KEY="..."
    python scripts/dump_surface_page.py --center 37.5665,126.978 -o map.html
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycourier import Coordinate, CourierConfig, CourierConfigError, build_surface_page  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Render the map surface page for one SDK URL candidate.")
    parser.add_argument("--center", help="Map center as LAT,LNG (default: config default_center)")
    parser.add_argument("--candidate", type=int, default=0, help="Index of the SDK URL candidate to embed")
    parser.add_argument("--target", default="window.ReactNativeWebView", help="JS object exposing postMessage")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = CourierConfig.from_env()
    try:
        urls = config.sdk_urls()
    except CourierConfigError as exc:
        print(f"error: {exc} (set COURIER_KAKAO_JS_KEY)", file=sys.stderr)
        sys.exit(2)

    if args.center:
        lat_text, lng_text = args.center.split(",", 1)
        center = Coordinate(lat=float(lat_text), lng=float(lng_text))
    else:
        center = Coordinate(lat=config.default_center[0], lng=config.default_center[1])

    html = build_surface_page(
        urls[args.candidate],
        center=center,
        level=config.map_level,
        message_target=args.target,
    )
    if args.output:
        Path(args.output).write_text(html, encoding="utf-8")
        print(f"Surface page written to {args.output}", file=sys.stderr)
    else:
        print(html)


if __name__ == "__main__":
    main()
