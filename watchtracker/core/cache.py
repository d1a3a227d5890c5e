from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from watchtracker.core.errors import CacheReadError
from watchtracker.core.models import AggregatedResult, ProductRecord

LOGGER = logging.getLogger(__name__)

RECORDS_KEY = "watchtracker_records"
TIMESTAMP_KEY = "watchtracker_timestamp"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """String slots kept in a single JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def _load(self) -> dict[str, Any]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


class CacheGateway:
    """
    Last successful result set, stored as-is. Not transactional: records are
    written before the timestamp, and either slot missing means no cache.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def read(self) -> AggregatedResult | None:
        try:
            return self._read()
        except CacheReadError as exc:
            LOGGER.warning("Failed to load from cache: %s", exc)
            return None

    def write(self, result: AggregatedResult) -> None:
        payload = json.dumps([record.to_dict() for record in result.records], ensure_ascii=False)
        self.store.set(RECORDS_KEY, payload)
        self.store.set(TIMESTAMP_KEY, str(result.captured_at))

    def clear(self) -> None:
        self.store.delete(RECORDS_KEY)
        self.store.delete(TIMESTAMP_KEY)

    def _read(self) -> AggregatedResult | None:
        raw_records = self.store.get(RECORDS_KEY)
        raw_timestamp = self.store.get(TIMESTAMP_KEY)
        if not raw_records or not raw_timestamp:
            return None
        try:
            items = json.loads(raw_records)
            captured_at = int(raw_timestamp.strip())
        except ValueError as exc:
            raise CacheReadError(str(exc)) from exc
        if not isinstance(items, list):
            raise CacheReadError("Cached records are not a list.")
        try:
            records = tuple(ProductRecord.from_dict(item) for item in items)
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheReadError(f"Cached record is malformed: {exc}") from exc
        return AggregatedResult(records=records, captured_at=captured_at)
