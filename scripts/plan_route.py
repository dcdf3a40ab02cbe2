#!/usr/bin/env python3
"""Order a list of stops nearest-first and print distances and ETAs.

Stops come from a JSON file (a list of ``{"address", "lat", "lng"}``
objects), from free-text addresses resolved through the geocoders, or both.

Usage
-----
::

    export COURIER_KAKAO_REST_KEY="..."
    python scripts/plan_route.py --origin 37.5665,126.978 --stops stops.json
    python scripts/plan_route.py --origin 37.5665,126.978 --address "서울역" --address "강남역"

Options::

    --origin LAT,LNG     Where the courier starts (required)
    --stops FILE         JSON file with stops
    --address TEXT       Free-text destination; repeatable
    --keep-order         Do not optimize, only compute legs
    --json               Output as machine-readable JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycourier import Alert, Coordinate, CourierConfig, RoutePlanner, format_clock  # noqa: E402
from pycourier.planner import stops_from_records  # noqa: E402


def _parse_origin(value: str) -> Coordinate:
    try:
        lat_text, lng_text = value.split(",", 1)
        return Coordinate(lat=float(lat_text), lng=float(lng_text))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {value!r}") from exc


def _print_alert(alert: Alert) -> None:
    print(f"[{alert.title}] {alert.message}", file=sys.stderr)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Order delivery stops and project arrival times.")
    parser.add_argument("--origin", type=_parse_origin, required=True, help="Start position as LAT,LNG")
    parser.add_argument("--stops", type=Path, help="JSON file with a list of stops")
    parser.add_argument("--address", action="append", default=[], help="Free-text destination (repeatable)")
    parser.add_argument("--keep-order", action="store_true", help="Skip nearest-first optimization")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = CourierConfig.from_env()
    async with RoutePlanner(config, origin=args.origin, on_alert=_print_alert) as planner:
        if args.stops:
            records = json.loads(args.stops.read_text(encoding="utf-8"))
            for stop in stops_from_records(records):
                planner.add_stop(stop)
        for text in args.address:
            candidates = await planner.search(text)
            if candidates:
                planner.add_candidate(candidates[0])

        if not planner.stops:
            print("No stops to plan.", file=sys.stderr)
            sys.exit(1)

        if not args.keep_order:
            planner.optimize()
        legs = planner.legs(datetime.now())

    if args.json_mode:
        payload: list[dict[str, Any]] = [leg.model_dump(mode="json") for leg in legs]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for leg in legs:
        print(
            f"{leg.position:>2}. {leg.stop.address:<40} "
            f"{leg.distance_km:>6.1f} km  (total {leg.cumulative_km:>6.1f} km)  ETA {format_clock(leg.eta)}"
        )


if __name__ == "__main__":
    asyncio.run(main())
