"""Métricas de uso em JSON (usuários, buscas e lugares exibidos).

Registro em memória com flush periódico para arquivo; falhas de escrita
são logadas e nunca interrompem a conversa.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from iae_bot.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

SEARCHES_CAP = 50000
SEARCHES_KEEP = 30000
DAY_MS = 24 * 60 * 60 * 1000


def _empty_state() -> dict[str, Any]:
    return {"users": {}, "searches": [], "placesShown": {}}


def _to_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class MetricsStore:
    """Telemetria fire-and-forget do bot."""

    def __init__(
        self,
        path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path) if path else None
        self._clock = clock
        self._state = _empty_state()
        self._dirty = False

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def load(self) -> None:
        """Lê o arquivo, garantindo as chaves padrão."""
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("metrics_load_failed", extra={"error": str(e)})
            return
        if not isinstance(data, dict):
            return
        state = _empty_state()
        if isinstance(data.get("users"), dict):
            state["users"] = data["users"]
        if isinstance(data.get("searches"), list):
            state["searches"] = data["searches"]
        if isinstance(data.get("placesShown"), dict):
            state["placesShown"] = data["placesShown"]
        self._state = state

    def flush(self) -> None:
        """Grava o estado se houve alteração desde o último flush."""
        if self._path is None or not self._dirty:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._state, ensure_ascii=False), encoding="utf-8")
            self._dirty = False
        except OSError as e:
            logger.warning("metrics_flush_failed", extra={"error": str(e)})

    def record_user(self, user_id: str) -> None:
        now = self._now_ms()
        users = self._state["users"]
        entry = users.get(user_id)
        if entry is None:
            users[user_id] = {"firstSeen": now, "lastSeen": now, "count": 1}
        else:
            entry["lastSeen"] = now
            entry["count"] = entry.get("count", 0) + 1
        self._dirty = True

    def record_search(
        self,
        type: str | None,
        lat: float | None,
        lng: float | None,
        keyword: str | None,
    ) -> None:
        searches = self._state["searches"]
        searches.append({
            "ts": self._now_ms(),
            "type": type or "unknown",
            "lat": _to_float(lat),
            "lng": _to_float(lng),
            "keyword": keyword or "",
        })
        if len(searches) > SEARCHES_CAP:
            self._state["searches"] = searches[-SEARCHES_KEEP:]
        self._dirty = True

    def record_place_shown(
        self,
        place_id: str | None,
        name: str | None = None,
        vicinity: str | None = None,
    ) -> None:
        if not place_id:
            return
        shown = self._state["placesShown"]
        current = shown.get(place_id) or {"name": name or "", "vicinity": vicinity or "", "count": 0}
        current["name"] = name or current.get("name", "")
        current["vicinity"] = vicinity or current.get("vicinity", "")
        current["count"] = current.get("count", 0) + 1
        shown[place_id] = current
        self._dirty = True

    def summary(self) -> dict[str, int]:
        searches = self._state["searches"]
        since = self._now_ms() - DAY_MS
        return {
            "totalUsers": len(self._state["users"]),
            "totalSearches": len(searches),
            "searches24h": sum(1 for s in searches if s.get("ts", 0) >= since),
        }

    def top_places(self, limit: int = 10) -> list[dict[str, Any]]:
        items = [
            {"place_id": pid, "name": info.get("name"), "vicinity": info.get("vicinity"),
             "count": info.get("count", 0)}
            for pid, info in self._state["placesShown"].items()
        ]
        items.sort(key=lambda i: i["count"], reverse=True)
        return items[:limit]
