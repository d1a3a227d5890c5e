from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any

SIZE_UNKNOWN = "N/A"
PRICE_UNAVAILABLE = "Price N/A"


class ExtractorKind(str, enum.Enum):
    STRUCTURED_FEED = "feed"
    HEURISTIC_MARKUP = "markup"


class SourceStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    DISABLED = "disabled"


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MarkupProfile:
    # Containers are the union of every selector, in document order.
    container_selectors: tuple[str, ...] = (
        ".product-item",
        ".grid-product",
        ".product-card",
        '[class*="product"]',
    )
    # Name and price selectors are tried one at a time; the first selector that
    # matches inside a container wins, even if a later one matches earlier in the page.
    name_selectors: tuple[str, ...] = (
        ".product-item__title",
        ".product-title",
        ".grid-product__title",
        "h3",
        "h2",
        ".title",
        '[class*="title"]',
    )
    price_selectors: tuple[str, ...] = (".price", ".product-price", '[class*="price"]')
    fallback_link_selector: str = 'a[href*="/products/"]'
    fallback_container_selectors: tuple[str, ...] = ('[class*="product"]', '[class*="item"]', ".grid__item")
    fallback_name_selectors: tuple[str, ...] = ('[class*="title"]', "h3", "h2", ".product-title")
    fallback_price_selectors: tuple[str, ...] = ('[class*="price"]',)
    noise_terms: tuple[str, ...] = ("quick",)
    min_name_length: int = 4
    size_pattern: str = r"(\d+\.?\d*\s*mm)"


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    id: str
    display_name: str
    fetch_target: str
    enabled: bool
    extractor_kind: ExtractorKind
    use_relay: bool = False
    markup: MarkupProfile = field(default_factory=MarkupProfile)


@dataclass(frozen=True, slots=True)
class RawCandidate:
    raw_name: str | None = None
    raw_price: str | None = None
    raw_size: str | None = None
    raw_created_at: str | None = None


@dataclass(frozen=True, slots=True)
class ProductRecord:
    name: str
    price: str
    size: str
    source: str
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ProductRecord:
        text = {}
        for key in ("name", "price", "source"):
            value = payload[key]
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Record field {key!r} must be a non-empty string.")
            text[key] = value
        return cls(
            name=text["name"],
            price=text["price"],
            size=str(payload.get("size") or SIZE_UNKNOWN),
            source=text["source"],
            timestamp=int(payload["timestamp"]),
        )


@dataclass(frozen=True, slots=True)
class AggregatedResult:
    records: tuple[ProductRecord, ...]
    captured_at: int


@dataclass(frozen=True, slots=True)
class SourceResult:
    source_id: str
    status: SourceStatus
    records: tuple[ProductRecord, ...] = ()
    error: str | None = None
