from __future__ import annotations

import json
import re
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import soupsieve

from watchtracker.core.models import ExtractorKind, MarkupProfile, SourceDescriptor

WATCH_SOURCES: tuple[SourceDescriptor, ...] = (
    SourceDescriptor(
        id="falco",
        display_name="Falco Watches",
        fetch_target="https://falco-watches.com/collections/all",
        enabled=True,
        extractor_kind=ExtractorKind.HEURISTIC_MARKUP,
        use_relay=True,
    ),
    # Same storefront through its public product feed. Off by default: both
    # variants list the same catalogue.
    SourceDescriptor(
        id="falco_feed",
        display_name="Falco Watches",
        fetch_target="https://falco-watches.com/products.json",
        enabled=False,
        extractor_kind=ExtractorKind.STRUCTURED_FEED,
    ),
)

_TUPLE_FIELDS = {f.name for f in fields(MarkupProfile) if f.name.endswith("selectors") or f.name == "noise_terms"}
_SCALAR_FIELDS = {f.name for f in fields(MarkupProfile)} - _TUPLE_FIELDS
_SELECTOR_FIELDS = {name for name in _TUPLE_FIELDS | _SCALAR_FIELDS if "selector" in name}


def load_registry(path: str | Path) -> tuple[SourceDescriptor, ...]:
    """
    Read a JSON list of sources:

        [{"id": "falco", "name": "Falco Watches", "url": "...", "kind": "markup",
          "enabled": true, "relay": true, "markup": {"name_selectors": ["h3"]}}]
    """
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"Cannot read sources file {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise ValueError(f"Sources file {path} must contain a JSON list.")
    return build_registry(payload)


def build_registry(entries: list[Any]) -> tuple[SourceDescriptor, ...]:
    sources: list[SourceDescriptor] = []
    seen: set[str] = set()
    for entry in entries:
        source = _descriptor_from_entry(entry)
        if source.id in seen:
            raise ValueError(f"Duplicate source id: {source.id}")
        seen.add(source.id)
        sources.append(source)
    return tuple(sources)


def enabled_sources(sources: tuple[SourceDescriptor, ...]) -> list[SourceDescriptor]:
    return [source for source in sources if source.enabled]


def _descriptor_from_entry(entry: Any) -> SourceDescriptor:
    if not isinstance(entry, dict):
        raise ValueError(f"Source entry must be an object, got {type(entry).__name__}.")
    source_id = str(entry.get("id") or "").strip()
    url = str(entry.get("url") or "").strip()
    if not source_id or not url:
        raise ValueError("Source entries need both 'id' and 'url'.")
    try:
        kind = ExtractorKind(str(entry.get("kind") or "").strip().lower())
    except ValueError:
        raise ValueError(f"Source {source_id} has unknown kind {entry.get('kind')!r}.") from None

    return SourceDescriptor(
        id=source_id,
        display_name=str(entry.get("name") or source_id).strip(),
        fetch_target=url,
        enabled=bool(entry.get("enabled", True)),
        extractor_kind=kind,
        use_relay=bool(entry.get("relay", False)),
        markup=_profile_from_overrides(entry.get("markup")),
    )


def _profile_from_overrides(overrides: Any) -> MarkupProfile:
    profile = MarkupProfile()
    if not overrides:
        return profile
    if not isinstance(overrides, dict):
        raise ValueError("'markup' overrides must be an object.")
    unknown = set(overrides) - _TUPLE_FIELDS - _SCALAR_FIELDS
    if unknown:
        raise ValueError(f"Unknown markup settings: {', '.join(sorted(unknown))}")

    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key in _TUPLE_FIELDS:
            changes[key] = _string_tuple(key, value)
        elif key == "min_name_length":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError("'min_name_length' must be a non-negative integer.")
            changes[key] = value
        elif isinstance(value, str) and value.strip():
            changes[key] = value
        else:
            raise ValueError(f"'{key}' must be a non-empty string.")

    for key in _SELECTOR_FIELDS & set(changes):
        selectors = changes[key] if isinstance(changes[key], tuple) else (changes[key],)
        for selector in selectors:
            try:
                soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as exc:
                raise ValueError(f"Invalid selector in '{key}': {selector!r} ({exc})") from exc
    if "size_pattern" in changes:
        try:
            re.compile(changes["size_pattern"])
        except re.error as exc:
            raise ValueError(f"Invalid size_pattern {changes['size_pattern']!r}: {exc}") from exc
    return replace(profile, **changes)


def _string_tuple(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) and item.strip() for item in value):
        raise ValueError(f"'{key}' must be a string or a list of non-empty strings.")
    if not value and key != "noise_terms":
        raise ValueError(f"'{key}' needs at least one selector.")
    return tuple(value)
