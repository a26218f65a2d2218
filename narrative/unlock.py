"""Route selection gate."""

from __future__ import annotations

from dataclasses import dataclass

from .progression import ProgressRecord
from .routes import RouteCatalog, RouteTag

NO_ROUTE_REASON = "no route specified"
UNKNOWN_ROUTE_REASON = "route does not exist"


@dataclass(frozen=True)
class UnlockDecision:
    can_select: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.can_select


def can_select_route(
    route: RouteTag,
    record: ProgressRecord,
    catalog: RouteCatalog | None = None,
) -> UnlockDecision:
    """Decide whether ``route`` may be selected given ``record``'s clears.

    Advisory only: nothing is mutated and nothing is raised.
    """
    catalog = catalog or record.catalog

    if route.is_empty():
        return UnlockDecision(False, NO_ROUTE_REASON)

    if catalog.is_true_route(route.value):
        if catalog.is_true_route_unlock_condition(record.cleared_route_names()):
            return UnlockDecision(True)
        required = ", ".join(catalog.base_routes())
        return UnlockDecision(False, f"clear every base route first ({required})")

    if not catalog.is_valid_route(route.value):
        return UnlockDecision(False, UNKNOWN_ROUTE_REASON)
    return UnlockDecision(True)


def available_routes(catalog: RouteCatalog) -> list[str]:
    """Routes a player can pick from a listing, in display order."""
    return catalog.all_routes()
