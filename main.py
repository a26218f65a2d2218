"""Entry point for the route progress tracker.

Usage:
    python main.py --status               # Show current route, scene and clears
    python main.py --select route1        # Select a route (unlock rules apply)
    python main.py --advance 10           # Advance ten scenes
    python main.py --saves                # List stored progress
    python main.py --routes               # List selectable routes
    python main.py --autosave             # Save now if autosave is enabled
    python main.py --status --verbose     # Verbose logging
"""

from __future__ import annotations

import asyncio
import enum
import logging
import sys

import click

from game.config import build_catalog, database_path, load_config
from game.saves import SaveListService
from game.service import GameService
from game.settings import GameSettings
from game.storage import (
    SaveDatabase,
    SqliteProgressStore,
    SqliteSettingsStore,
    SqliteTextLogStore,
    StorageFailure,
)
from narrative.unlock import available_routes


class MenuAction(enum.Enum):
    SELECT = "select"
    ADVANCE = "advance"
    AUTOSAVE = "autosave"
    STATUS = "status"
    SAVES = "saves"
    ROUTES = "routes"


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers, force=True)

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


async def _dispatch(
    action: MenuAction,
    service: GameService,
    saves: SaveListService,
    route: str = "",
    steps: int = 0,
) -> bool:
    """Run one menu action. Returns False when the action was refused."""
    if action is MenuAction.SELECT:
        result = await service.select_route(route)
        if not result.success:
            click.echo(f"Cannot select {route!r}: {result.message}")
            return False
        click.echo(f"Selected {route}")
        return True

    if action is MenuAction.ADVANCE:
        for _ in range(steps):
            step = await service.advance_scene()
            if step.route_cleared:
                click.echo(f"Route cleared at scene {step.current_scene}")
        state = await service.current_state()
        click.echo(f"Scene {state.current_scene}")
        return True

    if action is MenuAction.AUTOSAVE:
        saved = await service.perform_autosave()
        click.echo("Autosaved" if saved else "Autosave is disabled")
        return True

    if action is MenuAction.STATUS:
        state = await service.current_state()
        click.echo(f"Route:   {state.current_route or '-'}")
        click.echo(f"Scene:   {state.current_scene}")
        click.echo(f"Cleared: {', '.join(state.cleared_routes) or '-'}")
        click.echo(f"True route unlocked: {'yes' if state.true_route_unlocked else 'no'}")
        return True

    if action is MenuAction.SAVES:
        listing = await saves.list_saves()
        if not listing.success:
            click.echo(listing.message)
            return False
        for summary in listing.saves:
            click.echo(
                f"[{summary.id}] {summary.route_name or '-'} "
                f"scene {summary.scene_number} ({summary.last_updated.isoformat()})"
            )
        return True

    if action is MenuAction.ROUTES:
        catalog = service.catalog
        for name in available_routes(catalog):
            click.echo(name)
        click.echo(f"{catalog.true_route_name} (true route)")
        return True

    raise ValueError(f"Unhandled menu action: {action}")


async def _run(cfg: dict, actions: list[tuple[MenuAction, str, int]]) -> bool:
    catalog = build_catalog(cfg)
    defaults = GameSettings.from_config(cfg)

    async with SaveDatabase(database_path(cfg)) as db:
        service = GameService(
            SqliteProgressStore(db, catalog),
            SqliteSettingsStore(db, defaults),
            catalog=catalog,
            text_log=SqliteTextLogStore(db),
        )
        saves = SaveListService(SqliteProgressStore(db, catalog))
        ok = True
        for action, route, steps in actions:
            ok = await _dispatch(action, service, saves, route=route, steps=steps) and ok
        return ok


@click.command()
@click.option("--select", "select_route", default=None, help="Select a route by name")
@click.option("--advance", type=click.IntRange(min=1), default=None, help="Advance N scenes")
@click.option("--autosave", is_flag=True, help="Save now if autosave is enabled")
@click.option("--status", is_flag=True, help="Show current progress")
@click.option("--saves", is_flag=True, help="List stored progress records")
@click.option("--routes", is_flag=True, help="List available routes")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
def main(
    select_route: str | None,
    advance: int | None,
    autosave: bool,
    status: bool,
    saves: bool,
    routes: bool,
    verbose: bool,
    config_dir: str | None,
) -> None:
    """Track progress through the story routes."""

    actions: list[tuple[MenuAction, str, int]] = []
    if routes:
        actions.append((MenuAction.ROUTES, "", 0))
    if select_route is not None:
        actions.append((MenuAction.SELECT, select_route, 0))
    if advance:
        actions.append((MenuAction.ADVANCE, "", advance))
    if autosave:
        actions.append((MenuAction.AUTOSAVE, "", 0))
    if status:
        actions.append((MenuAction.STATUS, "", 0))
    if saves:
        actions.append((MenuAction.SAVES, "", 0))

    if not actions:
        click.echo("Nothing to do. Use --help for details.")
        sys.exit(1)

    cfg = load_config(config_dir)

    log_file = cfg.get("storage", {}).get("log_file")
    _setup_logging(verbose=verbose, log_file=log_file)

    try:
        ok = asyncio.run(_run(cfg, actions))
    except StorageFailure as exc:
        click.echo(f"Storage error: {exc}", err=True)
        sys.exit(2)

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
