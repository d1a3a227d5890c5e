from __future__ import annotations

from abc import ABC, abstractmethod

from watchtracker.core.models import ExtractorKind, ProductRecord, SourceDescriptor
from watchtracker.core.normalize import now_ms


class Extractor(ABC):
    kind: ExtractorKind

    @abstractmethod
    def extract(self, raw: str, source: SourceDescriptor, captured_at: int | None = None) -> list[ProductRecord]:
        """Turn raw transport output into validated records for one source."""

    def capture_timestamp(self) -> int:
        return now_ms()


def extractor_for(kind: ExtractorKind) -> Extractor:
    # Imported here so the concrete collectors can depend on this module.
    from watchtracker.collectors.feed.collector import FeedExtractor
    from watchtracker.collectors.markup.collector import MarkupExtractor

    extractors: dict[ExtractorKind, type[Extractor]] = {
        ExtractorKind.STRUCTURED_FEED: FeedExtractor,
        ExtractorKind.HEURISTIC_MARKUP: MarkupExtractor,
    }
    try:
        return extractors[kind]()
    except KeyError:
        raise ValueError(f"No extractor registered for kind={kind!r}") from None
