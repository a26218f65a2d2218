"""Route identifiers and the route catalog.

The catalog is a plain object built at startup (see ``game.config.build_catalog``)
and handed to whatever needs it. Base routes and the true route are fixed for
the catalog's lifetime; DLC and special routes can be added or removed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_BASE_ROUTES = ("route1", "route2", "route3")
DEFAULT_TRUE_ROUTE = "trueRoute"


@dataclass(frozen=True)
class RouteTag:
    """Name of a route. Compared by exact string value."""

    value: str = ""

    @classmethod
    def from_value(cls, value: str) -> RouteTag:
        return cls(value)

    @classmethod
    def empty(cls) -> RouteTag:
        return cls("")

    def is_empty(self) -> bool:
        return self.value.strip() == ""

    def equals(self, other: RouteTag) -> bool:
        return self.value == other.value

    def __str__(self) -> str:
        return self.value


class RouteCatalog:
    """Registry of base, DLC, special and true routes."""

    def __init__(
        self,
        base_routes: Iterable[str] | None = None,
        true_route: str = DEFAULT_TRUE_ROUTE,
        dlc_routes: Iterable[str] | None = None,
        special_routes: Iterable[str] | None = None,
    ):
        base = DEFAULT_BASE_ROUTES if base_routes is None else base_routes
        self._base_routes: tuple[str, ...] = tuple(_unique(base))
        if not self._base_routes:
            raise ValueError("RouteCatalog needs at least one base route")
        self._true_route = true_route
        self._dlc_routes: list[str] = _unique(dlc_routes or ())
        self._special_routes: list[str] = _unique(special_routes or ())

    @property
    def true_route_name(self) -> str:
        return self._true_route

    # ── Listing ─────────────────────────────────────────────────

    def all_routes(self) -> list[str]:
        """Base, then DLC, then special routes. The true route is not listed."""
        return [*self._base_routes, *self._dlc_routes, *self._special_routes]

    def base_routes(self) -> list[str]:
        return list(self._base_routes)

    def dlc_routes(self) -> list[str]:
        return list(self._dlc_routes)

    def special_routes(self) -> list[str]:
        return list(self._special_routes)

    # ── Mutation ────────────────────────────────────────────────

    def add_dlc_route(self, name: str) -> None:
        if name not in self._dlc_routes:
            self._dlc_routes.append(name)

    def add_special_route(self, name: str) -> None:
        if name not in self._special_routes:
            self._special_routes.append(name)

    def remove_dlc_route(self, name: str) -> None:
        if name in self._dlc_routes:
            self._dlc_routes.remove(name)

    def remove_special_route(self, name: str) -> None:
        if name in self._special_routes:
            self._special_routes.remove(name)

    def reset_configuration(self) -> None:
        """Drop every DLC and special route. Base and true routes stay."""
        self._dlc_routes = []
        self._special_routes = []

    # ── Classification ──────────────────────────────────────────

    def is_valid_route(self, name: str) -> bool:
        return name in self.all_routes() or name == self._true_route

    def is_base_route(self, name: str) -> bool:
        return name in self._base_routes

    def is_dlc_route(self, name: str) -> bool:
        return name in self._dlc_routes

    def is_special_route(self, name: str) -> bool:
        return name in self._special_routes

    def is_true_route(self, name: str) -> bool:
        return name == self._true_route

    def is_true_route_unlock_condition(self, cleared_names: Iterable[str]) -> bool:
        """True when every base route appears in ``cleared_names``."""
        cleared = set(cleared_names)
        return all(route in cleared for route in self._base_routes)

    def __repr__(self) -> str:
        return (
            f"RouteCatalog(base={list(self._base_routes)!r}, dlc={self._dlc_routes!r}, "
            f"special={self._special_routes!r}, true_route={self._true_route!r})"
        )


def _unique(names: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen
