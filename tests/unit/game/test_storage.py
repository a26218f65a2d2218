"""Tests for SQLite-backed progress, settings and text-log stores."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from game.settings import GameSettings
from game.storage import (
    SaveDatabase,
    SqliteProgressStore,
    SqliteSettingsStore,
    SqliteTextLogStore,
    StorageFailure,
)
from game.textlog import TextLogEntry
from narrative import ProgressRecord, RouteCatalog, RouteTag, SceneCounter


def test_get_or_create_persists_a_fresh_record(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteProgressStore(db)
            record = await store.get_or_create()
            assert record.id == "1"
            assert record.current_route.is_empty()

            again = await store.get_or_create()
            assert again.id == record.id
            assert len(await store.get_all()) == 1

    asyncio.run(_run())


def test_save_and_reload_across_connections(tmp_path: Path):
    db_path = tmp_path / "progress.db"

    async def _write() -> datetime:
        async with SaveDatabase(db_path) as db:
            store = SqliteProgressStore(db)
            record = await store.get_or_create()
            record.select_route(RouteTag("route1"))
            for _ in range(100):
                record.advance_scene()
            record.select_route(RouteTag("route2"))
            for _ in range(7):
                record.advance_scene()
            await store.save(record)
            return record.last_save_time

    async def _read(saved_at: datetime) -> None:
        async with SaveDatabase(db_path) as db:
            store = SqliteProgressStore(db)
            record = await store.get_or_create()
            assert record.current_route == RouteTag("route2")
            assert record.current_scene.value == 7
            assert record.cleared_route_names() == ["route1"]
            assert record.last_save_time == saved_at

    asyncio.run(_read(asyncio.run(_write())))


def test_save_upserts_on_id(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteProgressStore(db)
            record = ProgressRecord.create_new("slot-a")
            await store.save(record)
            record.select_route(RouteTag("route3"))
            await store.save(record)

            rows = await store.get_all()
            assert len(rows) == 1
            assert rows[0].current_route.value == "route3"

    asyncio.run(_run())


def test_find_by_id_and_delete(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteProgressStore(db)
            await store.save(ProgressRecord.create_new("a"))
            await store.save(ProgressRecord.create_new("b"))

            assert (await store.find_by_id("b")).id == "b"
            assert await store.find_by_id("missing") is None

            await store.delete("a")
            await store.delete("missing")
            assert await store.find_by_id("a") is None
            assert [r.id for r in await store.get_all()] == ["b"]

    asyncio.run(_run())


def test_get_all_keeps_insertion_order(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteProgressStore(db)
            for record_id in ("z", "a", "m"):
                await store.save(ProgressRecord.create_new(record_id))
            assert [r.id for r in await store.get_all()] == ["z", "a", "m"]
            assert (await store.get_or_create()).id == "z"

    asyncio.run(_run())


def test_restore_normalises_stored_rows(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            conn = db.connection("test")
            await conn.execute(
                "INSERT INTO progress (id, current_route, current_scene, cleared_routes, "
                "true_route_unlocked, last_save_time) VALUES (?, ?, ?, ?, ?, ?)",
                ("x", "route1", 999, '["route1", "route1", "route2"]', 0, "2026-03-01T00:00:00Z"),
            )
            await conn.commit()

            record = await SqliteProgressStore(db).find_by_id("x")
            assert record.current_scene.value == 100
            assert len(record.cleared_routes) == 2
            assert record.last_save_time == datetime(2026, 3, 1, tzinfo=timezone.utc)

    asyncio.run(_run())


def test_corrupt_row_raises_storage_failure(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            conn = db.connection("test")
            await conn.execute(
                "INSERT INTO progress (id, current_route, current_scene, cleared_routes, "
                "true_route_unlocked, last_save_time) VALUES (?, ?, ?, ?, ?, ?)",
                ("x", "route1", 1, "not json", 0, "2026-03-01T00:00:00Z"),
            )
            await conn.commit()

            with pytest.raises(StorageFailure) as info:
                await SqliteProgressStore(db).find_by_id("x")
            assert info.value.operation == "find_by_id"
            assert info.value.__cause__ is not None

    asyncio.run(_run())


def test_store_on_closed_database_raises_storage_failure(tmp_path: Path):
    async def _run() -> None:
        store = SqliteProgressStore(SaveDatabase(tmp_path / "progress.db"))
        with pytest.raises(StorageFailure):
            await store.get_or_create()

    asyncio.run(_run())


def test_store_uses_injected_catalog(tmp_path: Path):
    async def _run() -> None:
        catalog = RouteCatalog(base_routes=["a"])
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteProgressStore(db, catalog)
            record = await store.get_or_create()
            record.select_route(RouteTag("a"))
            for _ in range(100):
                record.advance_scene()
            await store.save(record)

            reloaded = await store.get_or_create()
            assert reloaded.catalog is catalog
            assert reloaded.is_true_route_unlocked()

    asyncio.run(_run())


def test_settings_default_then_roundtrip(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteSettingsStore(db)
            assert await store.get() == GameSettings.default()

            await store.save(GameSettings(volume=0.25, text_speed=2.0, auto_save=False))
            loaded = await store.get()
            assert loaded.volume == 0.25
            assert loaded.text_speed == 2.0
            assert loaded.auto_save is False

            await store.initialize_default()
            assert await store.get() == GameSettings.default()

    asyncio.run(_run())


def test_text_log_queries(tmp_path: Path):
    async def _run() -> None:
        async with SaveDatabase(tmp_path / "progress.db") as db:
            store = SqliteTextLogStore(db)
            r1, r2 = RouteTag("route1"), RouteTag("route2")
            first = TextLogEntry.restore("1", "route1", 0, "hello", datetime(2026, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
            second = TextLogEntry.restore("2", "route1", 1, "again", datetime(2026, 1, 1, 0, 0, 2, tzinfo=timezone.utc))
            other = TextLogEntry.restore("3", "route2", 0, "elsewhere", datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc))
            for entry in (second, other, first):
                await store.save(entry)

            assert [e.id for e in await store.find_all()] == ["3", "1", "2"]
            assert [e.id for e in await store.find_by_route(r1)] == ["1", "2"]
            scene_one = await store.find_by_route_and_scene(r1, SceneCounter(1))
            assert [e.text for e in scene_one] == ["again"]

            await store.delete_by_route(r1)
            assert [e.id for e in await store.find_all()] == ["3"]
            assert await store.find_by_route(r2)

            await store.delete_all()
            assert await store.find_all() == []

    asyncio.run(_run())
