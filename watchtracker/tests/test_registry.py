import json
from pathlib import Path

import pytest

from watchtracker.core.aggregate import DEFAULT_DISPLAY_CAP
from watchtracker.core.config import DEFAULT_CACHE_PATH, load_settings
from watchtracker.core.models import ExtractorKind, MarkupProfile
from watchtracker.core.registry import WATCH_SOURCES, build_registry, enabled_sources, load_registry


def test_default_registry_has_one_enabled_markup_source():
    enabled = enabled_sources(WATCH_SOURCES)

    assert [source.id for source in enabled] == ["falco"]
    assert enabled[0].extractor_kind is ExtractorKind.HEURISTIC_MARKUP
    assert enabled[0].use_relay is True


def test_build_registry_reads_kinds_and_markup_overrides():
    sources = build_registry(
        [
            {"id": "feed", "name": "Feed Shop", "url": "https://shop.example/products.json", "kind": "feed"},
            {
                "id": "html",
                "url": "https://other.example/watches",
                "kind": "markup",
                "enabled": False,
                "relay": True,
                "markup": {"name_selectors": ".card-name", "noise_terms": ["quick", "sold out"], "min_name_length": 6},
            },
        ]
    )

    feed, html = sources
    assert feed.extractor_kind is ExtractorKind.STRUCTURED_FEED
    assert feed.enabled is True
    assert feed.display_name == "Feed Shop"
    assert html.display_name == "html"
    assert html.enabled is False
    assert html.use_relay is True
    assert html.markup.name_selectors == (".card-name",)
    assert html.markup.noise_terms == ("quick", "sold out")
    assert html.markup.min_name_length == 6
    assert html.markup.price_selectors == MarkupProfile().price_selectors


@pytest.mark.parametrize(
    "entries",
    [
        [{"id": "x", "url": "https://x.example", "kind": "rss"}],
        [{"id": "x", "kind": "feed"}],
        [{"id": "x", "url": "https://x.example", "kind": "feed"}, {"id": "x", "url": "https://y", "kind": "feed"}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"colour": "red"}}],
        ["falco"],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"noise_terms": 5}}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"name_selectors": []}}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"price_selectors": ["div[class="]}}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"fallback_link_selector": "a[href*="}}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"size_pattern": "(\\d+mm"}}],
        [{"id": "x", "url": "https://x.example", "kind": "markup", "markup": {"min_name_length": "four"}}],
    ],
)
def test_build_registry_rejects_invalid_entries(entries):
    with pytest.raises(ValueError):
        build_registry(entries)


def test_load_registry_from_file(tmp_path: Path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([{"id": "feed", "url": "https://shop.example/products.json", "kind": "feed"}]))

    assert [source.id for source in load_registry(path)] == ["feed"]

    path.write_text('{"id": "feed"}')
    with pytest.raises(ValueError):
        load_registry(path)


def test_load_settings_defaults(monkeypatch):
    for name in (
        "WATCHTRACKER_MAX_WATCHES",
        "WATCHTRACKER_DEMO_MODE",
        "WATCHTRACKER_CACHE_PATH",
        "WATCHTRACKER_RELAY_URL",
        "WATCHTRACKER_TIMEOUT_SECONDS",
        "WATCHTRACKER_SOURCES_FILE",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.display_cap == DEFAULT_DISPLAY_CAP
    assert settings.demo_mode is False
    assert settings.cache_path == DEFAULT_CACHE_PATH
    assert settings.timeout_seconds is None
    assert settings.sources == WATCH_SOURCES


def test_load_settings_reads_environment(monkeypatch, tmp_path):
    sources_file = tmp_path / "sources.json"
    sources_file.write_text(json.dumps([{"id": "feed", "url": "https://shop.example/p.json", "kind": "feed"}]))
    monkeypatch.setenv("WATCHTRACKER_MAX_WATCHES", "5")
    monkeypatch.setenv("WATCHTRACKER_DEMO_MODE", "yes")
    monkeypatch.setenv("WATCHTRACKER_CACHE_PATH", str(tmp_path / "c.json"))
    monkeypatch.setenv("WATCHTRACKER_RELAY_URL", "https://relay.example/?u={url}")
    monkeypatch.setenv("WATCHTRACKER_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("WATCHTRACKER_SOURCES_FILE", str(sources_file))

    settings = load_settings()

    assert settings.display_cap == 5
    assert settings.demo_mode is True
    assert settings.cache_path == tmp_path / "c.json"
    assert settings.relay_template == "https://relay.example/?u={url}"
    assert settings.timeout_seconds == 7.5
    assert [source.id for source in settings.sources] == ["feed"]


def test_load_settings_falls_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("WATCHTRACKER_MAX_WATCHES", "0")
    monkeypatch.setenv("WATCHTRACKER_RELAY_URL", "https://relay.example/")
    monkeypatch.setenv("WATCHTRACKER_TIMEOUT_SECONDS", "never")
    monkeypatch.delenv("WATCHTRACKER_SOURCES_FILE", raising=False)

    settings = load_settings()

    assert settings.display_cap == DEFAULT_DISPLAY_CAP
    assert "{url}" in settings.relay_template
    assert settings.timeout_seconds is None
