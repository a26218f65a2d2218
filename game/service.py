"""Game service - the operations a game loop or menu calls.

Each call loads the active record, applies one change, and saves it back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from narrative.progression import ProgressRecord
from narrative.routes import RouteCatalog, RouteTag
from narrative.unlock import can_select_route

from .settings import GameSettings
from .storage import ProgressStore, SettingsStore, StorageFailure, TextLogStore
from .textlog import TextLogEntry

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "failed to load save data"
SAVE_FAILED_MESSAGE = "failed to write save data"


@dataclass
class RouteSelection:
    success: bool
    message: str = ""


@dataclass
class SceneAdvance:
    route_cleared: bool
    current_scene: int


@dataclass
class GameState:
    current_route: str
    current_scene: int
    cleared_routes: list[str] = field(default_factory=list)
    true_route_unlocked: bool = False


class GameService:
    """Application-level entry points around the progress core."""

    def __init__(
        self,
        progress_store: ProgressStore,
        settings_store: SettingsStore,
        catalog: RouteCatalog | None = None,
        text_log: TextLogStore | None = None,
    ):
        self._progress = progress_store
        self._settings = settings_store
        self._catalog = catalog or RouteCatalog()
        self._text_log = text_log

    @property
    def catalog(self) -> RouteCatalog:
        return self._catalog

    async def select_route(self, route_name: str) -> RouteSelection:
        """Select a route if the unlock rules allow it, then save."""
        try:
            progress = await self._progress.get_or_create()
            route = RouteTag.from_value(route_name)

            decision = can_select_route(route, progress, self._catalog)
            if not decision:
                logger.info("Route %r denied: %s", route_name, decision.reason)
                return RouteSelection(success=False, message=decision.reason)

        except StorageFailure as exc:
            logger.warning("Route selection failed: %s", exc)
            return RouteSelection(success=False, message=LOAD_FAILED_MESSAGE)

        progress.select_route(route)
        try:
            await self._progress.save(progress)
        except StorageFailure as exc:
            logger.warning("Saving route selection failed: %s", exc)
            return RouteSelection(success=False, message=SAVE_FAILED_MESSAGE)

        logger.info("Route %s selected", route_name)
        return RouteSelection(success=True)

    async def advance_scene(self) -> SceneAdvance:
        progress = await self._progress.get_or_create()
        route_cleared = progress.advance_scene()
        await self._progress.save(progress)
        return SceneAdvance(
            route_cleared=route_cleared,
            current_scene=progress.current_scene.value,
        )

    async def current_state(self) -> GameState:
        progress = await self._progress.get_or_create()
        return _state_of(progress)

    async def record_text(self, text: str) -> TextLogEntry | None:
        """Append a backlog line for the current route and scene."""
        if self._text_log is None:
            return None
        progress = await self._progress.get_or_create()
        entry = TextLogEntry.create(progress.current_route, progress.current_scene, text)
        await self._text_log.save(entry)
        return entry

    async def perform_autosave(self) -> bool:
        """Save the active record if autosave is on. Returns whether it saved."""
        settings = await self._settings.get()
        if not settings.is_auto_save_enabled():
            logger.debug("Autosave skipped: disabled in settings")
            return False

        progress = await self._progress.get_or_create()
        await self._progress.save(progress)
        return True

    async def update_settings(
        self,
        volume: float | None = None,
        text_speed: float | None = None,
        auto_save: bool | None = None,
    ) -> GameSettings:
        settings = await self._settings.get()

        if volume is not None:
            settings = settings.with_volume(volume)
        if text_speed is not None:
            settings = settings.with_text_speed(text_speed)
        if auto_save is not None:
            settings = settings.with_auto_save(auto_save)

        await self._settings.save(settings)
        return settings

    async def get_settings(self) -> GameSettings:
        return await self._settings.get()


def _state_of(progress: ProgressRecord) -> GameState:
    return GameState(
        current_route=progress.current_route.value,
        current_scene=progress.current_scene.value,
        cleared_routes=progress.cleared_route_names(),
        true_route_unlocked=progress.is_true_route_unlocked(),
    )
