import io
import json
from dataclasses import replace

from watchtracker.core.cache import CacheGateway, JsonFileStore
from watchtracker.core.config import Settings
from watchtracker.core.registry import WATCH_SOURCES
from watchtracker.jobs.refresh import main, run_refresh


def test_run_refresh_demo_renders_and_writes_cache(tmp_path):
    cache_path = tmp_path / "cache.json"
    out = io.StringIO()

    code = run_refresh(Settings(demo_mode=True, cache_path=cache_path, display_cap=3), out=out)

    assert code == 0
    text = out.getvalue()
    assert "Falco Navigator GMT" in text
    assert "Size: 40mm" in text
    assert "Last updated:" in text
    cached = CacheGateway(JsonFileStore(cache_path)).read()
    assert cached is not None
    assert len(cached.records) == 3


def test_run_refresh_shows_cached_result_before_refreshing(tmp_path):
    cache_path = tmp_path / "cache.json"
    run_refresh(Settings(demo_mode=True, cache_path=cache_path, display_cap=2), out=io.StringIO())
    out = io.StringIO()

    run_refresh(Settings(demo_mode=True, cache_path=cache_path, display_cap=2), out=out)

    assert out.getvalue().count("Last updated:") == 2


def test_run_refresh_reports_total_failure(tmp_path, capsys):
    out = io.StringIO()

    code = run_refresh(Settings(sources=(), cache_path=tmp_path / "c.json"), out=out)
    assert code == 0
    assert "No watches found" in out.getvalue()

    disabled = tuple(replace(source, enabled=False) for source in WATCH_SOURCES)
    code = run_refresh(Settings(sources=disabled, cache_path=tmp_path / "c.json"), out=io.StringIO())

    assert code == 1
    assert "No watches found" in capsys.readouterr().err


def test_main_prints_json(monkeypatch, capsys):
    monkeypatch.delenv("WATCHTRACKER_SOURCES_FILE", raising=False)

    code = main(["--demo", "--no-cache", "--json", "--cap", "4"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["records"]) == 4
    assert set(payload["records"][0]) == {"name", "price", "size", "source", "timestamp"}
