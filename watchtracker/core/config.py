from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from watchtracker.collectors.transport import DEFAULT_RELAY_TEMPLATE
from watchtracker.core.aggregate import DEFAULT_DISPLAY_CAP
from watchtracker.core.models import SourceDescriptor
from watchtracker.core.registry import WATCH_SOURCES, load_registry

DEFAULT_CACHE_PATH = Path.home() / ".cache" / "watchtracker" / "cache.json"


@dataclass(frozen=True, slots=True)
class Settings:
    display_cap: int = DEFAULT_DISPLAY_CAP
    demo_mode: bool = False
    cache_path: Path = DEFAULT_CACHE_PATH
    relay_template: str = DEFAULT_RELAY_TEMPLATE
    timeout_seconds: float | None = None
    sources: tuple[SourceDescriptor, ...] = WATCH_SOURCES


def load_settings() -> Settings:
    cap = _env_int("WATCHTRACKER_MAX_WATCHES", DEFAULT_DISPLAY_CAP)
    sources_file = os.environ.get("WATCHTRACKER_SOURCES_FILE", "").strip()
    cache_path = os.environ.get("WATCHTRACKER_CACHE_PATH", "").strip()
    relay = os.environ.get("WATCHTRACKER_RELAY_URL", "").strip()
    return Settings(
        display_cap=cap if cap > 0 else DEFAULT_DISPLAY_CAP,
        demo_mode=_env_bool("WATCHTRACKER_DEMO_MODE", False),
        cache_path=Path(cache_path).expanduser() if cache_path else DEFAULT_CACHE_PATH,
        relay_template=relay if "{url}" in relay else DEFAULT_RELAY_TEMPLATE,
        timeout_seconds=_env_float("WATCHTRACKER_TIMEOUT_SECONDS"),
        sources=load_registry(sources_file) if sources_file else WATCH_SOURCES,
    )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None
