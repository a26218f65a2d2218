"""Save list read model for browsing stored progress."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from narrative.progression import ProgressRecord

from .storage import ProgressStore, StorageFailure

logger = logging.getLogger(__name__)


@dataclass
class SaveSummary:
    id: str
    route_name: str
    scene_number: int
    last_updated: datetime

    @classmethod
    def of(cls, record: ProgressRecord) -> SaveSummary:
        return cls(
            id=record.id,
            route_name=record.current_route.value,
            scene_number=record.current_scene.value,
            last_updated=record.last_save_time,
        )


@dataclass
class SaveListResult:
    success: bool
    saves: list[SaveSummary] = field(default_factory=list)
    message: str = ""


@dataclass
class SaveLoadResult:
    success: bool
    progress: ProgressRecord | None = None
    message: str = ""


class SaveListService:
    def __init__(self, progress_store: ProgressStore):
        self._progress = progress_store

    async def list_saves(self) -> SaveListResult:
        try:
            records = await self._progress.get_all()
        except StorageFailure as exc:
            logger.warning("Could not list saves: %s", exc)
            return SaveListResult(success=False, message="failed to load save data")
        return SaveListResult(success=True, saves=[SaveSummary.of(r) for r in records])

    async def load_save(self, save_id: str) -> SaveLoadResult:
        try:
            record = await self._progress.find_by_id(save_id)
        except StorageFailure as exc:
            logger.warning("Could not load save %s: %s", save_id, exc)
            return SaveLoadResult(success=False, message="failed to load save data")
        if record is None:
            return SaveLoadResult(success=False, message=f"save data {save_id!r} not found")
        return SaveLoadResult(success=True, progress=record)
