from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from progression_engine.models import FirstLesson, ProgressRecord, RewardCard
from progression_engine.store import InMemoryUnlockStore, SqliteUnlockStore
from progression_engine.unlocks import build_context, unlock_cards

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def sqlite_store(tmp_path) -> SqliteUnlockStore:
    store = SqliteUnlockStore(tmp_path / "progression-test.db")
    store.init_db()
    return store


def test_sqlite_create_is_idempotent(sqlite_store: SqliteUnlockStore) -> None:
    assert sqlite_store.create_unlock("u1", "card-a", NOW) is True
    assert sqlite_store.create_unlock("u1", "card-a", NOW) is False
    assert sqlite_store.create_unlock("u2", "card-a", NOW) is True

    assert sqlite_store.owned_card_ids("u1") == {"card-a"}
    unlocks = sqlite_store.list_unlocks("u1")
    assert len(unlocks) == 1
    assert unlocks[0].unlocked_at == NOW


def test_sqlite_init_db_is_repeatable(sqlite_store: SqliteUnlockStore) -> None:
    sqlite_store.create_unlock("u1", "card-a", NOW)
    sqlite_store.init_db()
    assert sqlite_store.owned_card_ids("u1") == {"card-a"}


def test_sqlite_default_path_comes_from_config(tmp_path, monkeypatch) -> None:
    db_path = tmp_path / "configured.db"
    monkeypatch.setattr("progression_engine.config.DB_PATH", db_path)
    store = SqliteUnlockStore()
    store.init_db()
    assert store.db_path == db_path
    assert db_path.exists()


def test_sqlite_concurrent_unlocks_grant_once(sqlite_store: SqliteUnlockStore) -> None:
    catalog = [RewardCard(id="first", name="First Steps", condition=FirstLesson())]
    ctx = build_context([ProgressRecord("l1", status="completed")])
    results: list[list[str]] = []
    barrier = threading.Barrier(4)

    def worker() -> None:
        barrier.wait()
        results.append(unlock_cards("u1", ctx, catalog, sqlite_store, NOW).card_ids)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(len(batch) for batch in results) == 1
    assert sqlite_store.owned_card_ids("u1") == {"first"}


def test_in_memory_list_unlocks_orders_by_time() -> None:
    store = InMemoryUnlockStore()
    later = datetime(2025, 1, 16, tzinfo=timezone.utc)
    store.create_unlock("u1", "b", later)
    store.create_unlock("u1", "a", NOW)
    assert [unlock.card_id for unlock in store.list_unlocks("u1")] == ["a", "b"]
    assert store.list_unlocks("nobody") == []
