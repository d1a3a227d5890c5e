from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

import httpx

from watchtracker.collectors.base import Extractor, extractor_for
from watchtracker.collectors.transport import Transport
from watchtracker.core.aggregate import DEFAULT_DISPLAY_CAP, aggregate
from watchtracker.core.config import Settings
from watchtracker.core.demo import demo_records
from watchtracker.core.errors import RefreshError, SourceError
from watchtracker.core.models import (
    AggregatedResult,
    ExtractorKind,
    RefreshState,
    SourceDescriptor,
    SourceResult,
    SourceStatus,
)
from watchtracker.core.normalize import now_ms
from watchtracker.core.registry import WATCH_SOURCES

LOGGER = logging.getLogger(__name__)


class WatchTracker:
    """
    Runs refresh cycles over the source registry.

    Sources are fetched one after another in registry order. A refresh
    requested while another one is running is ignored.
    """

    def __init__(
        self,
        sources: Sequence[SourceDescriptor] = WATCH_SOURCES,
        display_cap: int = DEFAULT_DISPLAY_CAP,
        transport: Transport | None = None,
        demo_mode: bool = False,
        extractor_factory: Callable[[ExtractorKind], Extractor] = extractor_for,
    ) -> None:
        self.sources = tuple(sources)
        self.display_cap = display_cap
        self.transport = transport or Transport()
        self.demo_mode = demo_mode
        self.extractor_factory = extractor_factory
        self.state = RefreshState.IDLE
        self.last_result: AggregatedResult | None = None
        self.last_error: RefreshError | None = None
        self.last_source_results: tuple[SourceResult, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient | None = None) -> WatchTracker:
        return cls(
            sources=settings.sources,
            display_cap=settings.display_cap,
            transport=Transport(
                client=client,
                relay_template=settings.relay_template,
                timeout_seconds=settings.timeout_seconds,
            ),
            demo_mode=settings.demo_mode,
        )

    @property
    def is_refreshing(self) -> bool:
        return self.state is RefreshState.REFRESHING

    async def refresh(self) -> AggregatedResult | None:
        if self.is_refreshing:
            LOGGER.info("Refresh already in progress; ignoring trigger.")
            return None

        self.state = RefreshState.REFRESHING
        self.last_error = None
        try:
            captured_at = now_ms()
            if self.demo_mode:
                results = [SourceResult("demo", SourceStatus.OK, tuple(demo_records(captured_at)))]
            else:
                results = [await self._run_source(source) for source in self.sources]
            self.last_source_results = tuple(results)
            result = aggregate(results, cap=self.display_cap, captured_at=captured_at)
        except RefreshError as exc:
            self._fail(exc)
            raise
        except Exception as exc:  # noqa: BLE001
            error = RefreshError(f"Failed to load watches: {exc}")
            self._fail(error)
            raise error from exc

        self.last_result = result
        self.state = RefreshState.SUCCEEDED
        LOGGER.info("Refresh completed. records=%s", len(result.records))
        return result

    def restore(self, cached: AggregatedResult) -> None:
        """Seed the last known result from a cached snapshot."""
        if self.last_result is None:
            self.last_result = cached

    async def _run_source(self, source: SourceDescriptor) -> SourceResult:
        if not source.enabled:
            return SourceResult(source.id, SourceStatus.DISABLED)

        try:
            raw = await self.transport.fetch(source)
            extractor = self.extractor_factory(source.extractor_kind)
            records = extractor.extract(raw, source)
        except SourceError as exc:
            LOGGER.warning("Error scraping %s (%s): %s", source.display_name, exc.kind, exc)
            return SourceResult(source.id, SourceStatus.FAILED, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Collector failed for %s: %s", source.display_name, exc)
            return SourceResult(source.id, SourceStatus.FAILED, error=str(exc))

        LOGGER.info("Source=%s status=ok records=%s", source.id, len(records))
        return SourceResult(source.id, SourceStatus.OK, tuple(records))

    def _fail(self, error: RefreshError) -> None:
        self.last_error = error
        self.state = RefreshState.FAILED
        LOGGER.error("Error refreshing watches: %s", error)
