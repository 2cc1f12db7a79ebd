import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from warden.errors import StoreError
from warden.storage.log_manager import LOGS_KEY, LogManager
from warden.storage.record_cache import generate_record_id
from warden.storage.report_manager import MAX_REPORTS, REPORTS_KEY, ReportManager


def make_store(stored=None, exists=False):
    return SimpleNamespace(
        get=AsyncMock(return_value=stored),
        exists=AsyncMock(return_value=exists),
        set=AsyncMock(),
    )


def test_generate_record_id_is_base36_time_plus_suffix():
    record_id = generate_record_id(36**3)

    assert record_id.startswith("1000")
    assert len(record_id) == 4 + 5
    assert record_id.isalnum() and record_id == record_id.lower()


@pytest.mark.asyncio
async def test_load_starts_empty_for_missing_key():
    reports = ReportManager(make_store(None))

    await reports.load()

    assert reports.get_all() == []
    assert not reports.is_dirty


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["{not json", json.dumps({"id": "x"}), json.dumps([{"nope": 1}])])
async def test_load_never_raises_on_bad_payload(payload):
    reports = ReportManager(make_store(payload))

    await reports.load()

    assert len(reports) == 0


@pytest.mark.asyncio
async def test_load_survives_store_error():
    store = make_store()
    store.get.side_effect = StoreError("disk gone")
    reports = ReportManager(store)

    await reports.load()

    assert len(reports) == 0
    store.get.assert_awaited_once_with(REPORTS_KEY)


@pytest.mark.asyncio
async def test_load_decodes_stored_records():
    stored = [
        {
            "id": "abc",
            "timestamp": 1,
            "reporter_id": "1",
            "reporter_name": "A",
            "reported_id": "2",
            "reported_name": "B",
            "reason": "x",
            "legacy_field": True,
        }
    ]
    reports = ReportManager(make_store(json.dumps(stored)))

    await reports.load()

    assert reports.find_by_id("abc").reported_name == "B"


def test_add_report_validates_input(make_player):
    reports = ReportManager(make_store())
    alice = make_player("Alice")

    assert reports.add_report(alice, None, "cheating") is None
    assert reports.add_report(alice, make_player("Bob"), "   ") is None
    assert reports.add_report(alice, make_player(""), "cheating") is None
    assert len(reports) == 0
    assert not reports.is_dirty


def test_add_report_caps_collection_newest_first(make_player):
    reports = ReportManager(make_store())
    alice = make_player("Alice")
    bob = make_player("Bob")

    for index in range(MAX_REPORTS + 5):
        reports.add_report(alice, bob, f"reason {index}")

    entries = reports.get_all()
    assert len(entries) == MAX_REPORTS
    assert entries[0].reason == f"reason {MAX_REPORTS + 4}"
    assert entries[-1].reason == "reason 5"
    assert reports.is_dirty


def test_get_all_returns_a_copy(make_player):
    reports = ReportManager(make_store())
    reports.add_report(make_player("Alice"), make_player("Bob"), "x")

    snapshot = reports.get_all()
    snapshot.clear()

    assert len(reports) == 1


def test_get_reports_for_filters_by_reported_name(make_player):
    reports = ReportManager(make_store())
    alice, bob, carol = make_player("Alice"), make_player("Bob"), make_player("Carol")
    reports.add_report(alice, bob, "one")
    reports.add_report(alice, carol, "two")
    reports.add_report(carol, bob, "three")

    assert [r.reason for r in reports.get_reports_for("BOB")] == ["three", "one"]


@pytest.mark.asyncio
async def test_persist_is_noop_when_clean_and_key_exists():
    store = make_store(exists=True)
    reports = ReportManager(store)

    assert await reports.persist() is True
    store.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_persist_writes_when_key_missing_even_if_clean():
    store = make_store(exists=False)
    reports = ReportManager(store)

    assert await reports.persist() is True
    store.set.assert_awaited_once_with(REPORTS_KEY, "[]")


@pytest.mark.asyncio
async def test_persist_writes_full_collection_and_clears_dirty(make_player):
    store = make_store(exists=True)
    reports = ReportManager(store)
    report = reports.add_report(make_player("Alice"), make_player("Bob"), "  flying  ")

    assert await reports.persist() is True

    key, payload = store.set.await_args.args
    assert key == REPORTS_KEY
    assert json.loads(payload) == [report.to_dict()]
    assert json.loads(payload)[0]["reason"] == "flying"
    assert not reports.is_dirty


@pytest.mark.asyncio
async def test_persist_failure_keeps_dirty(make_player):
    store = make_store(exists=True)
    store.set.side_effect = StoreError("locked")
    reports = ReportManager(store)
    reports.add_report(make_player("Alice"), make_player("Bob"), "x")

    assert await reports.persist() is False
    assert reports.is_dirty

    store.set.side_effect = None
    assert await reports.persist() is True
    assert not reports.is_dirty


@pytest.mark.asyncio
async def test_remove_by_id_unknown_has_no_side_effects(make_player):
    store = make_store(exists=True)
    reports = ReportManager(store)
    reports.add_report(make_player("Alice"), make_player("Bob"), "x")
    await reports.persist()
    store.set.reset_mock()

    assert await reports.remove_by_id("does-not-exist") is False
    assert len(reports) == 1
    assert not reports.is_dirty
    store.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_remove_by_id_and_clear_all_persist(make_player):
    store = make_store(exists=True)
    reports = ReportManager(store)
    first = reports.add_report(make_player("Alice"), make_player("Bob"), "x")
    reports.add_report(make_player("Alice"), make_player("Carol"), "y")

    assert await reports.remove_by_id(first.id) is True
    assert [r.reported_name for r in reports.get_all()] == ["Carol"]
    assert store.set.await_count == 1

    assert await reports.clear_all() is True
    assert len(reports) == 0
    assert store.set.await_args.args == (REPORTS_KEY, "[]")


@pytest.mark.asyncio
async def test_log_manager_appends_without_persisting_and_filters():
    store = make_store()
    logs = LogManager(store, max_entries=2)

    logs.add_log("ban", admin_name="Owner", target_name="Alice", duration="7d", reason="griefing")
    logs.add_log("unban", admin_name="Owner", target_name="Alice")
    logs.add_log("ban", target_name="Bob", is_automod=True, check_type="fly")

    store.set.assert_not_awaited()
    assert len(logs) == 2
    assert [entry.target_name for entry in logs.get_logs(action_type="ban")] == ["Bob"]
    assert logs.get_logs(target_name="alice")[0].action_type == "unban"
    assert logs.get_all()[0].admin_name == "System"
    assert logs.key == LOGS_KEY


@pytest.mark.asyncio
async def test_round_trip_through_real_store(memory_store, make_player):
    async with memory_store() as store:
        reports = ReportManager(store)
        report = reports.add_report(make_player("Alice"), make_player("Bob"), "x-ray")
        assert await reports.persist() is True

        reloaded = ReportManager(store)
        await reloaded.load()

        assert reloaded.get_all() == [report]
