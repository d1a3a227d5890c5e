from __future__ import annotations

import json
import logging
from typing import Any

from watchtracker.collectors.base import Extractor
from watchtracker.core.errors import MalformedFeedError
from watchtracker.core.models import ExtractorKind, ProductRecord, RawCandidate, SourceDescriptor
from watchtracker.core.normalize import (
    format_price,
    infer_size,
    normalize_candidate,
    parse_price_value,
)

LOGGER = logging.getLogger(__name__)


class FeedExtractor(Extractor):
    """Storefront JSON feed: {"products": [{"title", "variants": [{"price"}], "created_at"}]}."""

    kind = ExtractorKind.STRUCTURED_FEED

    def extract(self, raw: str, source: SourceDescriptor, captured_at: int | None = None) -> list[ProductRecord]:
        captured = captured_at if captured_at is not None else self.capture_timestamp()
        products = _load_products(raw)

        records: list[ProductRecord] = []
        for entry in products:
            candidate = _candidate_from_entry(entry, size_pattern=source.markup.size_pattern)
            if candidate is None:
                continue
            record = normalize_candidate(candidate, source=source.display_name, captured_at=captured)
            if record is not None:
                records.append(record)
        LOGGER.info("Feed source=%s entries=%s records=%s", source.id, len(products), len(records))
        return records


def _load_products(raw: str) -> list[Any]:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedFeedError(f"Feed is not valid JSON: {exc}") from exc
    products = payload.get("products") if isinstance(payload, dict) else None
    if not isinstance(products, list):
        raise MalformedFeedError("Feed has no 'products' array.")
    return products


def _candidate_from_entry(entry: Any, size_pattern: str) -> RawCandidate | None:
    if not isinstance(entry, dict):
        return None

    title = entry.get("title")
    if not isinstance(title, str) or not title.strip():
        return None

    variants = entry.get("variants")
    if not isinstance(variants, list) or not variants or not isinstance(variants[0], dict):
        return None
    price = parse_price_value(variants[0].get("price"))
    if price is None:
        return None

    created_at = entry.get("created_at")
    return RawCandidate(
        raw_name=title,
        raw_price=format_price(price),
        raw_size=infer_size(title, size_pattern),
        raw_created_at=created_at if isinstance(created_at, str) else None,
    )
