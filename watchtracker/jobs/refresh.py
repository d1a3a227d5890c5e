from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import TextIO

from watchtracker.core.cache import CacheGateway, JsonFileStore
from watchtracker.core.config import Settings, load_settings
from watchtracker.core.errors import RefreshError
from watchtracker.core.models import SIZE_UNKNOWN, AggregatedResult
from watchtracker.core.tracker import WatchTracker

LOGGER = logging.getLogger(__name__)


def run_refresh(
    settings: Settings,
    use_cache: bool = True,
    as_json: bool = False,
    out: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    tracker = WatchTracker.from_settings(settings)
    cache = CacheGateway(JsonFileStore(settings.cache_path)) if use_cache else None

    if cache is not None and not as_json:
        cached = cache.read()
        if cached is not None:
            tracker.restore(cached)
            LOGGER.info("Loaded %s cached watches.", len(cached.records))
            render(cached, out)

    try:
        result = asyncio.run(tracker.refresh())
    except RefreshError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if result is None:
        return 0

    if cache is not None:
        try:
            cache.write(result)
        except OSError as exc:
            LOGGER.error("Failed to save to cache: %s", exc)

    if as_json:
        json.dump(
            {"captured_at": result.captured_at, "records": [record.to_dict() for record in result.records]},
            out,
            indent=2,
            ensure_ascii=False,
        )
        out.write("\n")
    else:
        render(result, out)
    return 0


def render(result: AggregatedResult, out: TextIO) -> None:
    if not result.records:
        out.write("No watches found\nTry refreshing to check for new watches\n")
        return
    for index, record in enumerate(result.records, start=1):
        line = f"{index:>2}. {record.name}  {record.price}"
        if record.size != SIZE_UNKNOWN:
            line += f"  Size: {record.size}"
        out.write(f"{line}  [{record.source}]\n")
    out.write(f"Last updated: {format_update_time(result.captured_at)}\n")


def format_update_time(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%I:%M %p")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch the most recent watches from configured storefronts.")
    parser.add_argument("--demo", action="store_true", help="Use the built-in sample watches instead of live sources.")
    parser.add_argument("--cap", type=int, default=None, help="Maximum number of watches to show.")
    parser.add_argument("--cache-path", type=Path, default=None, help="Location of the JSON cache file.")
    parser.add_argument("--no-cache", action="store_true", help="Neither read nor write the local cache.")
    parser.add_argument("--json", action="store_true", help="Print the refreshed result as JSON.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    settings = load_settings()
    if args.demo:
        settings = replace(settings, demo_mode=True)
    if args.cap is not None and args.cap > 0:
        settings = replace(settings, display_cap=args.cap)
    if args.cache_path is not None:
        settings = replace(settings, cache_path=args.cache_path)
    return run_refresh(settings, use_cache=not args.no_cache, as_json=args.json)


if __name__ == "__main__":
    raise SystemExit(main())
