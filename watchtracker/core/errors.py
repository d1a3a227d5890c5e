from __future__ import annotations


class WatchTrackerError(Exception):
    """Base class for every error raised by the tracker."""


class SourceError(WatchTrackerError):
    """Failure scoped to a single source; absorbed at the per-source boundary."""

    kind = "source"


class TransportError(SourceError):
    kind = "transport"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedFeedError(SourceError):
    kind = "malformed_feed"


class RefreshError(WatchTrackerError):
    """Outcome of a refresh that produced nothing usable."""


class NoRecordsError(RefreshError):
    def __init__(self, message: str, blocked: bool = False) -> None:
        super().__init__(message)
        self.blocked = blocked


class CacheReadError(WatchTrackerError):
    pass
