from __future__ import annotations

import logging
from collections.abc import Sequence

from bs4 import BeautifulSoup, Tag

from watchtracker.collectors.base import Extractor
from watchtracker.core.dedupe import dedupe_by_name
from watchtracker.core.models import (
    PRICE_UNAVAILABLE,
    ExtractorKind,
    MarkupProfile,
    ProductRecord,
    RawCandidate,
    SourceDescriptor,
)
from watchtracker.core.normalize import clean_text, infer_size, normalize_candidate

LOGGER = logging.getLogger(__name__)


class MarkupExtractor(Extractor):
    """
    Storefront HTML scraped through selector cascades.

    The primary pass reads every product-like container. When it yields
    nothing, product-page links are walked up to their card instead.
    """

    kind = ExtractorKind.HEURISTIC_MARKUP

    def extract(self, raw: str, source: SourceDescriptor, captured_at: int | None = None) -> list[ProductRecord]:
        captured = captured_at if captured_at is not None else self.capture_timestamp()
        soup = BeautifulSoup(raw or "", "html.parser")
        profile = source.markup

        candidates = self.primary_candidates(soup, profile)
        if not candidates:
            LOGGER.warning("No watches found with primary selectors for source=%s, trying fallback.", source.id)
            candidates = self.fallback_candidates(soup, profile)

        records: list[ProductRecord] = []
        for candidate in candidates:
            record = normalize_candidate(candidate, source=source.display_name, captured_at=captured)
            if record is not None:
                records.append(record)

        # Fallback cards can repeat items already found under another selector.
        unique = dedupe_by_name(records)
        LOGGER.info("Scraped %s watches from %s", len(unique), source.display_name)
        return unique

    def primary_candidates(self, soup: BeautifulSoup, profile: MarkupProfile) -> list[RawCandidate]:
        out: list[RawCandidate] = []
        for container in soup.select(", ".join(profile.container_selectors)):
            name = _first_text(container, profile.name_selectors)
            price = _first_text(container, profile.price_selectors)
            if not name or not price:
                continue
            out.append(
                RawCandidate(
                    raw_name=name,
                    raw_price=price,
                    raw_size=infer_size(name, profile.size_pattern),
                )
            )
        return out

    def fallback_candidates(self, soup: BeautifulSoup, profile: MarkupProfile) -> list[RawCandidate]:
        out: list[RawCandidate] = []
        container_selector = ", ".join(profile.fallback_container_selectors)
        for link in soup.select(profile.fallback_link_selector):
            container = link.css.closest(container_selector)
            if container is None:
                continue

            name = _first_text(container, profile.fallback_name_selectors) or clean_text(link.get_text())
            price = _first_text(container, profile.fallback_price_selectors) or PRICE_UNAVAILABLE
            if not _acceptable_fallback_name(name, profile):
                continue
            out.append(
                RawCandidate(
                    raw_name=name,
                    raw_price=price,
                    raw_size=infer_size(name, profile.size_pattern),
                )
            )
        return out


def _first_text(container: Tag, selectors: Sequence[str]) -> str:
    """Text of the first element matched, trying selectors in order."""
    for selector in selectors:
        element = container.select_one(selector)
        if element is not None:
            return clean_text(element.get_text())
    return ""


def _acceptable_fallback_name(name: str, profile: MarkupProfile) -> bool:
    if not name or len(name) < profile.min_name_length:
        return False
    lowered = name.lower()
    return not any(term.lower() in lowered for term in profile.noise_terms)
