"""Diretório de patrocinadores carregado de um arquivo JSON.

O arquivo contém uma lista de objetos com ao menos `place_id`; entradas
inválidas são descartadas com log.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from iae_bot.domain.models import Sponsor
from iae_bot.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class SponsorDirectory:
    """Lista somente-leitura de patrocinadores."""

    def __init__(self, sponsors: list[Sponsor] | None = None) -> None:
        self._sponsors: list[Sponsor] = list(sponsors or [])

    @classmethod
    def from_file(cls, path: str | Path | None) -> SponsorDirectory:
        """Carrega o arquivo; ausente ou ilegível → diretório vazio."""
        if not path:
            return cls()
        file_path = Path(path)
        if not file_path.exists():
            logger.info("sponsors_file_missing", extra={"path": str(file_path)})
            return cls()

        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "sponsors_file_unreadable",
                extra={"path": str(file_path), "error": str(e)},
            )
            return cls()

        if not isinstance(raw, list):
            logger.error("sponsors_file_invalid", extra={"path": str(file_path)})
            return cls()

        sponsors: list[Sponsor] = []
        for item in raw:
            if not isinstance(item, dict) or not item.get("place_id"):
                continue
            try:
                sponsors.append(Sponsor.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "sponsor_entry_invalid",
                    extra={"place_id": item.get("place_id"), "error_count": e.error_count()},
                )
        logger.info("sponsors_loaded", extra={"count": len(sponsors)})
        return cls(sponsors)

    def all(self) -> list[Sponsor]:
        return list(self._sponsors)

    def active(self) -> list[Sponsor]:
        return [s for s in self._sponsors if s.active]

    def active_ids(self) -> frozenset[str]:
        return frozenset(s.place_id for s in self._sponsors if s.active)

    def find_active(self, place_id: str | None) -> Sponsor | None:
        """Patrocinador ativo do lugar, se houver."""
        if not place_id:
            return None
        for sponsor in self._sponsors:
            if sponsor.active and sponsor.place_id == place_id:
                return sponsor
        return None
