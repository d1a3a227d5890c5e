from __future__ import annotations

import math
import re
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

from watchtracker.core.models import SIZE_UNKNOWN, ProductRecord, RawCandidate

CURRENCY_SYMBOL = "$"
DEFAULT_SIZE_PATTERN = r"(\d+\.?\d*\s*mm)"


def now_ms() -> int:
    return int(time.time() * 1000)


def clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def infer_size(name: str | None, pattern: str = DEFAULT_SIZE_PATTERN) -> str:
    """
    First match of the size pattern inside the name, or the unknown sentinel.
    """
    if not name:
        return SIZE_UNKNOWN
    match = _compile(pattern).search(name)
    if not match:
        return SIZE_UNKNOWN
    return match.group(1) if match.groups() else match.group(0)


def parse_price_value(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite() or parsed < 0:
        return None
    # Exponents past the float range would expand into enormous price strings.
    if not math.isfinite(float(parsed)):
        return None
    return parsed


def format_price(value: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{value:.2f}"


def parse_timestamp_ms(value: Any) -> int | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def strip_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_candidate(candidate: RawCandidate, source: str, captured_at: int) -> ProductRecord | None:
    """
    Names and prices are only trimmed at the ends; extractors that scrape
    markup collapse inner whitespace themselves.
    """
    name = strip_text(candidate.raw_name)
    price = strip_text(candidate.raw_price)
    if not name or not price or not source:
        return None
    size = strip_text(candidate.raw_size) or SIZE_UNKNOWN
    timestamp = parse_timestamp_ms(candidate.raw_created_at)
    return ProductRecord(
        name=name,
        price=price,
        size=size,
        source=source,
        timestamp=timestamp if timestamp is not None else captured_at,
    )


@lru_cache(maxsize=32)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)
