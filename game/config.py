"""Configuration loading from settings.yaml and .env."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from narrative.routes import DEFAULT_BASE_ROUTES, DEFAULT_TRUE_ROUTE, RouteCatalog

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def load_config(
    config_dir: str | Path | None = None,
) -> dict:
    """Load settings.yaml and .env, return merged config dict."""
    if config_dir is None:
        config_dir = PROJECT_ROOT / "config"
    config_dir = Path(config_dir)

    # Load .env (silently skip if missing)
    env_path = config_dir / ".env"
    load_dotenv(env_path)

    settings_path = config_dir / "settings.yaml"
    if not settings_path.exists():
        raise FileNotFoundError(f"Config not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    storage = cfg.setdefault("storage", {})
    db_override = os.getenv("PROGRESS_DB_PATH", "")
    if db_override:
        storage["database"] = db_override

    return cfg


def database_path(cfg: dict) -> Path:
    """Resolve ``storage.database``; relative paths hang off the project root."""
    path = Path(cfg.get("storage", {}).get("database", "data/progress.db"))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def build_catalog(cfg: dict) -> RouteCatalog:
    """Construct the route catalog from the ``routes`` section."""
    routes = cfg.get("routes", {}) or {}
    return RouteCatalog(
        base_routes=routes.get("base") or DEFAULT_BASE_ROUTES,
        true_route=routes.get("true_route") or DEFAULT_TRUE_ROUTE,
        dlc_routes=routes.get("dlc") or (),
        special_routes=routes.get("special") or (),
    )
