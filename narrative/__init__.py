"""Narrative progress core: routes, scenes, progress records, unlock rules."""

from .progression import ProgressRecord, clamp_scene
from .routes import DEFAULT_BASE_ROUTES, DEFAULT_TRUE_ROUTE, RouteCatalog, RouteTag
from .scenes import SCENES_PER_ROUTE, InvalidSceneNumber, SceneCounter
from .unlock import UnlockDecision, available_routes, can_select_route

__all__ = [
    "DEFAULT_BASE_ROUTES",
    "DEFAULT_TRUE_ROUTE",
    "SCENES_PER_ROUTE",
    "InvalidSceneNumber",
    "ProgressRecord",
    "RouteCatalog",
    "RouteTag",
    "SceneCounter",
    "UnlockDecision",
    "available_routes",
    "can_select_route",
    "clamp_scene",
]
