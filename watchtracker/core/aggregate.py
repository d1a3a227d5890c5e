from __future__ import annotations

import logging
from collections.abc import Sequence

from watchtracker.core.dedupe import dedupe_by_name
from watchtracker.core.errors import NoRecordsError
from watchtracker.core.models import AggregatedResult, ProductRecord, SourceResult, SourceStatus
from watchtracker.core.normalize import now_ms

LOGGER = logging.getLogger(__name__)

DEFAULT_DISPLAY_CAP = 10

NO_DATA_MESSAGE = "No watches found from any source."
BLOCKED_MESSAGE = (
    "No watches found from any source. This may be due to CORS restrictions, "
    "blocked requests or network issues."
)


def aggregate(
    results: Sequence[SourceResult],
    cap: int = DEFAULT_DISPLAY_CAP,
    captured_at: int | None = None,
) -> AggregatedResult:
    """
    Merge per-source results (registry order), drop repeated names, order by
    recency and keep the newest `cap` records.

    An empty outcome is only a success when no source was configured at all.
    """
    merged: list[ProductRecord] = []
    for result in results:
        if result.status is SourceStatus.OK:
            merged.extend(result.records)

    unique = dedupe_by_name(merged)
    # sorted() is stable: equal timestamps keep their input order.
    ordered = sorted(unique, key=lambda record: record.timestamp, reverse=True)
    capped = ordered[: max(cap, 0)]

    if not capped and results:
        blocked = any(result.status is SourceStatus.FAILED for result in results)
        raise NoRecordsError(BLOCKED_MESSAGE if blocked else NO_DATA_MESSAGE, blocked=blocked)

    LOGGER.info("Aggregated merged=%s unique=%s kept=%s", len(merged), len(unique), len(capped))
    return AggregatedResult(
        records=tuple(capped),
        captured_at=captured_at if captured_at is not None else now_ms(),
    )
