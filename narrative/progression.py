"""Progress record: current route, scene position and cleared routes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from .routes import RouteCatalog, RouteTag
from .scenes import SCENES_PER_ROUTE, InvalidSceneNumber, SceneCounter

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def clamp_scene(value: int) -> int:
    """Force a stored scene number into ``[0, SCENES_PER_ROUTE]``."""
    return max(0, min(value, SCENES_PER_ROUTE))


class ProgressRecord:
    """The player's progress through the routes.

    Mutated only through ``select_route`` and ``advance_scene``. The record
    does not check whether a route may be selected; run
    ``narrative.unlock.can_select_route`` first when gating is wanted.

    Not safe for concurrent mutation.
    """

    def __init__(
        self,
        id: str,
        current_route: RouteTag,
        current_scene: SceneCounter,
        cleared_routes: Iterable[RouteTag],
        last_save_time: datetime,
        catalog: RouteCatalog | None = None,
        clock: Clock | None = None,
    ):
        if current_scene.value > SCENES_PER_ROUTE:
            raise InvalidSceneNumber(
                f"Scene {current_scene.value} is past the last scene ({SCENES_PER_ROUTE})"
            )
        self._id = id
        self._current_route = current_route
        self._current_scene = current_scene
        # dict keeps insertion order and dedups by value
        self._cleared: dict[RouteTag, None] = dict.fromkeys(cleared_routes)
        self._last_save_time = _as_utc(last_save_time)
        self._catalog = catalog or RouteCatalog()
        self._clock = clock or _utcnow

    # ── Factories ───────────────────────────────────────────────

    @classmethod
    def create_new(
        cls,
        id: str,
        catalog: RouteCatalog | None = None,
        clock: Clock | None = None,
    ) -> ProgressRecord:
        now = (clock or _utcnow)()
        return cls(
            id,
            RouteTag.empty(),
            SceneCounter.zero(),
            (),
            now,
            catalog=catalog,
            clock=clock,
        )

    @classmethod
    def restore(
        cls,
        id: str,
        current_route: str,
        current_scene: int,
        cleared_routes: Iterable[str],
        saved_at: datetime,
        catalog: RouteCatalog | None = None,
        clock: Clock | None = None,
    ) -> ProgressRecord:
        """Rehydrate a stored record.

        Out-of-range scenes are clamped into ``[0, 100]`` and duplicate cleared
        route names collapse to one entry. This is the only path that tolerates
        bad input; direct construction of a ``SceneCounter`` still validates.
        """
        scene = clamp_scene(current_scene)
        if scene != current_scene:
            logger.debug("Clamped stored scene %s to %s for record %s", current_scene, scene, id)
        unique_names = list(dict.fromkeys(cleared_routes))
        return cls(
            id,
            RouteTag.from_value(current_route),
            SceneCounter.from_value(scene),
            [RouteTag.from_value(name) for name in unique_names],
            saved_at,
            catalog=catalog,
            clock=clock,
        )

    # ── Read-only views ─────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._id

    @property
    def current_route(self) -> RouteTag:
        return self._current_route

    @property
    def current_scene(self) -> SceneCounter:
        return self._current_scene

    @property
    def cleared_routes(self) -> frozenset[RouteTag]:
        return frozenset(self._cleared)

    @property
    def last_save_time(self) -> datetime:
        return self._last_save_time

    @property
    def catalog(self) -> RouteCatalog:
        return self._catalog

    def cleared_route_names(self) -> list[str]:
        return sorted(route.value for route in self._cleared)

    # ── Transitions ─────────────────────────────────────────────

    def select_route(self, route: RouteTag) -> None:
        """Switch to ``route`` at scene 0. Empty routes are ignored."""
        if route.is_empty():
            return
        self._current_route = route
        self._current_scene = SceneCounter.zero()
        self._touch()

    def advance_scene(self) -> bool:
        """Move one scene forward.

        Returns True exactly when this step reaches ``SCENES_PER_ROUTE`` and
        clears the current route. At the terminal scene this does nothing and
        returns False.
        """
        if self._current_scene.value >= SCENES_PER_ROUTE:
            return False

        self._current_scene = self._current_scene.next()
        self._touch()

        if self._current_scene.value == SCENES_PER_ROUTE:
            if self._current_route not in self._cleared:
                self._cleared[self._current_route] = None
                logger.info("Route %s cleared", self._current_route.value or "<empty>")
            return True
        return False

    # ── Queries ─────────────────────────────────────────────────

    def is_true_route_unlocked(self) -> bool:
        return self._catalog.is_true_route_unlock_condition(
            route.value for route in self._cleared
        )

    def is_route_cleared(self, route: RouteTag) -> bool:
        return route in self._cleared

    def is_route_name_cleared(self, name: str) -> bool:
        return RouteTag(name) in self._cleared

    def _touch(self) -> None:
        now = _as_utc(self._clock())
        if now <= self._last_save_time:
            now = self._last_save_time + timedelta(microseconds=1)
        self._last_save_time = now

    def __repr__(self) -> str:
        return (
            f"ProgressRecord(id={self._id!r}, route={self._current_route.value!r}, "
            f"scene={self._current_scene.value}, cleared={self.cleared_route_names()!r})"
        )
