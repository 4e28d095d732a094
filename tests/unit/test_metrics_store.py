"""Testes das métricas de uso em JSON."""

from __future__ import annotations

import json
from pathlib import Path

from iae_bot.infra.metrics_store import DAY_MS, MetricsStore

USER = "5561900002222@s.whatsapp.net"


class TestMetricsStore:
    """Registro, resumo e flush."""

    def test_summary_counts_last_24h(self) -> None:
        now = [1_700_000_000.0]
        metrics = MetricsStore(None, clock=lambda: now[0])
        metrics.record_user(USER)
        metrics.record_user(USER)
        metrics.record_search("bar", -15.79, -47.88, "chopp")
        now[0] += DAY_MS / 1000 + 1
        metrics.record_search("restaurante", None, None, None)

        assert metrics.summary() == {"totalUsers": 1, "totalSearches": 2, "searches24h": 1}

    def test_top_places(self) -> None:
        metrics = MetricsStore(None)
        metrics.record_place_shown("a", "Bar A", "Asa Sul")
        metrics.record_place_shown("b", "Bar B")
        metrics.record_place_shown("b", None, "Asa Norte")
        metrics.record_place_shown(None, "ignorado")

        top = metrics.top_places()

        assert [p["place_id"] for p in top] == ["b", "a"]
        assert top[0] == {"place_id": "b", "name": "Bar B", "vicinity": "Asa Norte", "count": 2}

    def test_flush_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "metrics" / "metrics.json"
        metrics = MetricsStore(path)
        metrics.record_user(USER)
        metrics.record_search("bar", -15.79, -47.88, "")
        metrics.flush()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data["users"]) == [USER]
        assert data["searches"][0]["type"] == "bar"

        reloaded = MetricsStore(path)
        reloaded.load()
        assert reloaded.summary()["totalUsers"] == 1

    def test_flush_skipped_when_clean(self, tmp_path: Path) -> None:
        path = tmp_path / "metrics.json"
        MetricsStore(path).flush()
        assert not path.exists()

    def test_load_tolerates_bad_file(self, tmp_path: Path) -> None:
        path = tmp_path / "metrics.json"
        path.write_text("{not json", encoding="utf-8")
        metrics = MetricsStore(path)
        metrics.load()
        assert metrics.summary() == {"totalUsers": 0, "totalSearches": 0, "searches24h": 0}
