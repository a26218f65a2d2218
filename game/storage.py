"""Durable storage for progress, settings and the text log.

All three live in one SQLite file opened through ``SaveDatabase``. Each store
wraps that shared connection and turns low-level failures into
``StorageFailure``. Stores never retry; callers decide what to tell the player.

A get -> mutate -> save cycle is not atomic. Two callers doing it on the same
record race and the last ``save`` wins.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from narrative.progression import ProgressRecord
from narrative.routes import RouteCatalog, RouteTag
from narrative.scenes import SceneCounter

from .settings import GameSettings
from .textlog import TextLogEntry

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_ID = "1"


class StorageFailure(Exception):
    """Raised when the backing store cannot complete an operation."""

    def __init__(self, message: str, operation: str = ""):
        self.operation = operation
        super().__init__(message)


# ── Contracts ───────────────────────────────────────────────────


class ProgressStore(Protocol):
    """Persistence for the single active progress record."""

    async def get_or_create(self) -> ProgressRecord:
        ...

    async def save(self, record: ProgressRecord) -> None:
        ...

    async def find_by_id(self, record_id: str) -> ProgressRecord | None:
        ...

    async def delete(self, record_id: str) -> None:
        ...

    async def get_all(self) -> list[ProgressRecord]:
        ...


class SettingsStore(Protocol):
    async def get(self) -> GameSettings:
        ...

    async def save(self, settings: GameSettings) -> None:
        ...

    async def initialize_default(self) -> None:
        ...


class TextLogStore(Protocol):
    async def save(self, entry: TextLogEntry) -> None:
        ...

    async def find_by_route(self, route: RouteTag) -> list[TextLogEntry]:
        ...

    async def find_by_route_and_scene(self, route: RouteTag, scene: SceneCounter) -> list[TextLogEntry]:
        ...

    async def find_all(self) -> list[TextLogEntry]:
        ...

    async def delete_by_route(self, route: RouteTag) -> None:
        ...

    async def delete_all(self) -> None:
        ...


# ── SQLite ──────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS progress (
    id TEXT PRIMARY KEY,
    current_route TEXT,
    current_scene INTEGER,
    cleared_routes TEXT,          -- JSON list of route names
    true_route_unlocked INTEGER,  -- derived, kept for external readers
    last_save_time TEXT
);

CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    volume REAL,
    text_speed REAL,
    auto_save INTEGER
);

CREATE TABLE IF NOT EXISTS text_log (
    id TEXT PRIMARY KEY,
    route TEXT,
    scene INTEGER,
    text TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_text_log_route ON text_log (route, scene);
"""


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_iso(ts: str) -> datetime:
    raw = (ts or "").strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except StorageFailure:
        raise
    except (sqlite3.Error, OSError) as exc:
        logger.error("Storage operation %s failed: %s", operation, exc)
        raise StorageFailure(f"{operation} failed: {exc}", operation=operation) from exc
    except (ValueError, TypeError) as exc:
        logger.error("Stored data unreadable during %s: %s", operation, exc)
        raise StorageFailure(f"{operation} could not decode stored data: {exc}", operation=operation) from exc


class SaveDatabase:
    """Owns the SQLite connection shared by the stores."""

    def __init__(self, db_path: str | Path):
        self._path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def open(self) -> None:
        with _storage_errors("open"):
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(self._path))
            await self._db.executescript(_SCHEMA)
            await self._db.commit()
        logger.debug("Save DB ready at %s", self._path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> SaveDatabase:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def connection(self, operation: str) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageFailure(f"{operation} failed: database is not open", operation=operation)
        return self._db


class SqliteProgressStore:
    """``ProgressStore`` backed by the ``progress`` table."""

    def __init__(self, db: SaveDatabase, catalog: RouteCatalog | None = None):
        self._db = db
        self._catalog = catalog or RouteCatalog()

    async def get_or_create(self) -> ProgressRecord:
        with _storage_errors("get_or_create"):
            conn = self._db.connection("get_or_create")
            cursor = await conn.execute(
                "SELECT id, current_route, current_scene, cleared_routes, last_save_time "
                "FROM progress ORDER BY rowid ASC LIMIT 1"
            )
            row = await cursor.fetchone()
            if row is not None:
                return self._restore(row)

        record = ProgressRecord.create_new(DEFAULT_PROGRESS_ID, catalog=self._catalog)
        await self.save(record)
        logger.info("Created new progress record %s", record.id)
        return record

    async def save(self, record: ProgressRecord) -> None:
        with _storage_errors("save"):
            conn = self._db.connection("save")
            await conn.execute(
                "INSERT INTO progress (id, current_route, current_scene, cleared_routes, "
                "true_route_unlocked, last_save_time) VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET current_route=excluded.current_route, "
                "current_scene=excluded.current_scene, cleared_routes=excluded.cleared_routes, "
                "true_route_unlocked=excluded.true_route_unlocked, "
                "last_save_time=excluded.last_save_time",
                (
                    record.id,
                    record.current_route.value,
                    record.current_scene.value,
                    json.dumps(record.cleared_route_names()),
                    int(record.is_true_route_unlocked()),
                    _to_iso(record.last_save_time),
                ),
            )
            await conn.commit()
        logger.debug(
            "Saved progress %s: route=%s scene=%d",
            record.id,
            record.current_route.value,
            record.current_scene.value,
        )

    async def find_by_id(self, record_id: str) -> ProgressRecord | None:
        with _storage_errors("find_by_id"):
            conn = self._db.connection("find_by_id")
            cursor = await conn.execute(
                "SELECT id, current_route, current_scene, cleared_routes, last_save_time "
                "FROM progress WHERE id = ? LIMIT 1",
                (str(record_id),),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._restore(row)

    async def delete(self, record_id: str) -> None:
        with _storage_errors("delete"):
            conn = self._db.connection("delete")
            await conn.execute("DELETE FROM progress WHERE id = ?", (str(record_id),))
            await conn.commit()
        logger.debug("Deleted progress %s", record_id)

    async def get_all(self) -> list[ProgressRecord]:
        with _storage_errors("get_all"):
            conn = self._db.connection("get_all")
            cursor = await conn.execute(
                "SELECT id, current_route, current_scene, cleared_routes, last_save_time "
                "FROM progress ORDER BY rowid ASC"
            )
            rows = await cursor.fetchall()
            return [self._restore(row) for row in rows]

    def _restore(self, row: tuple) -> ProgressRecord:
        record_id, route, scene, cleared_raw, saved_at = row
        cleared = json.loads(cleared_raw) if cleared_raw else []
        if not isinstance(cleared, list):
            raise ValueError(f"cleared_routes must be a JSON list, got {cleared_raw!r}")
        return ProgressRecord.restore(
            str(record_id),
            route or "",
            int(scene or 0),
            [str(name) for name in cleared],
            _parse_iso(saved_at),
            catalog=self._catalog,
        )


class SqliteSettingsStore:
    """``SettingsStore`` backed by the single-row ``settings`` table."""

    def __init__(self, db: SaveDatabase, defaults: GameSettings | None = None):
        self._db = db
        self._defaults = defaults or GameSettings.default()

    async def get(self) -> GameSettings:
        with _storage_errors("settings.get"):
            conn = self._db.connection("settings.get")
            cursor = await conn.execute("SELECT volume, text_speed, auto_save FROM settings WHERE id = 1")
            row = await cursor.fetchone()
            if row is not None:
                return GameSettings(volume=row[0], text_speed=row[1], auto_save=bool(row[2]))

        await self.save(self._defaults)
        logger.info("Initialised default settings")
        return self._defaults

    async def save(self, settings: GameSettings) -> None:
        with _storage_errors("settings.save"):
            conn = self._db.connection("settings.save")
            await conn.execute(
                "INSERT INTO settings (id, volume, text_speed, auto_save) VALUES (1, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET volume=excluded.volume, "
                "text_speed=excluded.text_speed, auto_save=excluded.auto_save",
                (settings.volume, settings.text_speed, int(settings.auto_save)),
            )
            await conn.commit()

    async def initialize_default(self) -> None:
        await self.save(self._defaults)


class SqliteTextLogStore:
    """``TextLogStore`` backed by the ``text_log`` table, oldest first."""

    def __init__(self, db: SaveDatabase):
        self._db = db

    async def save(self, entry: TextLogEntry) -> None:
        with _storage_errors("text_log.save"):
            conn = self._db.connection("text_log.save")
            await conn.execute(
                "INSERT OR REPLACE INTO text_log (id, route, scene, text, created_at) VALUES (?, ?, ?, ?, ?)",
                (entry.id, entry.route.value, entry.scene.value, entry.text, _to_iso(entry.timestamp)),
            )
            await conn.commit()

    async def find_by_route(self, route: RouteTag) -> list[TextLogEntry]:
        return await self._select("text_log.find_by_route", "WHERE route = ?", (route.value,))

    async def find_by_route_and_scene(self, route: RouteTag, scene: SceneCounter) -> list[TextLogEntry]:
        return await self._select(
            "text_log.find_by_route_and_scene",
            "WHERE route = ? AND scene = ?",
            (route.value, scene.value),
        )

    async def find_all(self) -> list[TextLogEntry]:
        return await self._select("text_log.find_all", "", ())

    async def delete_by_route(self, route: RouteTag) -> None:
        with _storage_errors("text_log.delete_by_route"):
            conn = self._db.connection("text_log.delete_by_route")
            await conn.execute("DELETE FROM text_log WHERE route = ?", (route.value,))
            await conn.commit()

    async def delete_all(self) -> None:
        with _storage_errors("text_log.delete_all"):
            conn = self._db.connection("text_log.delete_all")
            await conn.execute("DELETE FROM text_log")
            await conn.commit()

    async def _select(self, operation: str, where: str, params: tuple) -> list[TextLogEntry]:
        query = "SELECT id, route, scene, text, created_at FROM text_log"
        if where:
            query += " " + where
        query += " ORDER BY created_at ASC, rowid ASC"
        with _storage_errors(operation):
            conn = self._db.connection(operation)
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [
                TextLogEntry.restore(row[0], row[1], row[2], row[3], _parse_iso(row[4]))
                for row in rows
            ]
