"""Backlog entries: text shown to the player, tagged with route and scene."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from narrative.routes import RouteTag
from narrative.scenes import SceneCounter


@dataclass(frozen=True)
class TextLogEntry:
    id: str
    route: RouteTag
    scene: SceneCounter
    text: str
    timestamp: datetime

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Text log entry text must not be blank")

    @classmethod
    def create(cls, route: RouteTag, scene: SceneCounter, text: str) -> TextLogEntry:
        return cls(
            id=str(uuid.uuid4()),
            route=route,
            scene=scene,
            text=text,
            timestamp=datetime.now(timezone.utc),
        )

    @classmethod
    def restore(cls, id: str, route: str, scene: int, text: str, timestamp: datetime) -> TextLogEntry:
        return cls(
            id=id,
            route=RouteTag.from_value(route),
            scene=SceneCounter.from_value(scene),
            text=text,
            timestamp=timestamp,
        )

    def is_from_route(self, route: RouteTag) -> bool:
        return self.route == route

    def is_from_scene(self, scene: SceneCounter) -> bool:
        return self.scene == scene
