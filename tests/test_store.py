# tests/test_store.py
import json

import pytest

from branch_ops.db import BackendError
from branch_ops.models import (
    BudgetConfig,
    FenixCompliance,
    Profile,
    RecordData,
    ScheduleActivity,
    ScheduleAssignment,
)
from branch_ops.schedule.grid import ScheduleGrid, SlotChange
from branch_ops.store import BranchDataStore

from .conftest import WEDNESDAY, WEEK, YEAR


@pytest.fixture
def store(fake_backend, tmp_path):
    return BranchDataStore(backend=fake_backend, max_workers=2, cache_file=str(tmp_path / "config.json"))


def calls_to(backend, table):
    return [c for c in backend.fetch_all.call_args_list if c.args[0] == table]


# =============================================================================
# READS
# =============================================================================

class TestReload:
    def test_collections_mapped_to_models(self, store, fake_backend):
        fake_backend.tables["advisors"] = [{"id": "a1", "name": "Ana", "position": "Asesor de Préstamos"}]
        fake_backend.tables["records"] = [{
            "id": "r1", "year": YEAR, "week": WEEK, "type": "Sucursal",
            "frequency": "DAILY", "day_of_week": 0, "values": {"x": 1},
        }]

        counts = store.reload()

        assert counts["advisors"] == 1
        assert store.advisors[0].name == "Ana"
        assert store.records[0].day_of_week == 7
        assert store.get_advisor("a1") is store.advisors[0]
        assert store.loaded_at is not None

    def test_failed_collection_left_empty(self, store, fake_backend):
        fake_backend.tables["advisors"] = [{"id": "a1", "name": "Ana", "position": "x"}]

        def fetch(table, **kwargs):
            if table == "records":
                raise BackendError(500, "boom", table=table)
            return list(fake_backend.tables.get(table, []))

        fake_backend.fetch_all.side_effect = fetch
        counts = store.reload()

        assert counts["records"] == 0
        assert store.records == []
        assert len(store.advisors) == 1

    def test_audit_log_read_newest_first(self, store, fake_backend):
        store.reload()
        (call,) = calls_to(fake_backend, "audit_logs")
        assert call.kwargs == {"order_by": "timestamp", "descending": True}

    def test_branch_config_cached_and_restored(self, store, fake_backend, tmp_path):
        fake_backend.tables["branch_schedule_config"] = [{"id": "c1", "open_time": "09:00:00", "close_time": "19:00:00", "days": []}]
        store.reload()
        assert store.branch_config.open_time == "09:00"
        assert json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))["id"] == "c1"

        def offline(table, **kwargs):
            if table == "branch_schedule_config":
                raise BackendError(None, "offline", table=table)
            return []

        fake_backend.fetch_all.side_effect = offline
        store.reload()
        assert store.branch_config.id == "c1"

    def test_no_config_anywhere(self, store):
        store.reload()
        assert store.branch_config is None

    def test_unknown_attribute(self, store):
        with pytest.raises(AttributeError):
            store.not_a_collection


# =============================================================================
# WRITES
# =============================================================================

def record(record_id="", frequency="DAILY", day=3):
    return RecordData(
        id=record_id, year=YEAR, week=WEEK, type="Sucursal", frequency=frequency,
        day_of_week=day if frequency == "DAILY" else None, values={"x": 5},
    )


def test_budgets_split_into_upsert_and_insert(store, fake_backend):
    store.save_budgets([
        BudgetConfig("i", "BRANCH_GLOBAL", YEAR, WEEK, "WEEKLY", 10.0, id="b1"),
        BudgetConfig("i", "BRANCH_GLOBAL", YEAR, WEEK + 1, "WEEKLY", 20.0),
    ])

    upserted = fake_backend.upsert.call_args.args[1]
    inserted = fake_backend.insert.call_args.args[1]
    assert [r["id"] for r in upserted] == ["b1"]
    assert "id" not in inserted[0]
    assert calls_to(fake_backend, "budgets")


def test_save_record_removes_opposite_frequency(store, fake_backend):
    store.save_record(record())

    table, filters = fake_backend.delete_where.call_args.args
    assert table == "records"
    assert filters == {"year": YEAR, "week": WEEK, "frequency": "WEEKLY", "type": "Sucursal", "advisor_id": None}
    assert calls_to(fake_backend, "records")


def test_save_record_rolls_back_on_failure(store, fake_backend):
    existing = record("r1")
    store._data["records"] = [existing]
    fake_backend.upsert.side_effect = BackendError(409, "conflict", table="records")

    edited = record("r1")
    edited.values = {"x": 99}
    with pytest.raises(BackendError):
        store.save_record(edited)

    assert [r.values for r in store.records] == [{"x": 5}]
    fake_backend.delete_where.assert_not_called()
    fake_backend.fetch_all.assert_not_called()


def test_failed_cleanup_reloads_instead_of_rolling_back(store, fake_backend):
    store._data["records"] = [record("r1")]
    edited = record("r1")
    edited.values = {"x": 99}
    fake_backend.tables["records"] = [edited.to_row()]
    fake_backend.delete_where.side_effect = BackendError(500, "timeout", table="records")

    with pytest.raises(BackendError):
        store.save_record(edited)

    assert calls_to(fake_backend, "records")
    assert [r.values for r in store.records] == [{"x": 99}]


def test_toggle_compliance(store, fake_backend):
    first = store.toggle_fenix_compliance("adv_1", WEDNESDAY, "10:00")
    assert first.is_compliant

    row = fake_backend.upsert.call_args.args[1][0]
    assert "id" not in row
    assert row["date"] == "2025-03-19"
    assert fake_backend.upsert.call_args.kwargs["on_conflict"] == "advisor_id,date,time_slot"


def test_toggle_flips_existing_mark(store, fake_backend):
    store._data["fenix_compliances"] = [FenixCompliance("adv_1", WEDNESDAY, "10:00", True, id="f1")]
    fake_backend.upsert.side_effect = BackendError(500, "down")

    with pytest.raises(BackendError):
        store.toggle_fenix_compliance("adv_1", WEDNESDAY, "10:00")
    assert store.fenix_compliances[0].is_compliant is True


def test_apply_slot_changes(store, fake_backend):
    grid = ScheduleGrid([], [ScheduleActivity(id="caja", name="Caja")])
    changes = grid.assign_range("adv_1", 1, ["09:00", "09:30"], "caja")

    assert store.apply_slot_changes(changes) == 2
    rows = fake_backend.upsert.call_args.args[1]
    assert [r["start_time"] for r in rows] == ["09:00", "09:30"]
    assert all("id" not in r for r in rows)


def test_apply_slot_changes_deletes_by_id(store, fake_backend):
    stored = ScheduleAssignment("adv_1", 1, "09:00", "09:30", "caja", id="s1")
    assert store.apply_slot_changes([SlotChange("delete", stored), SlotChange("noop")]) == 1
    fake_backend.delete_by_id.assert_called_once_with("schedule_assignments", "s1")


def test_nothing_to_apply(store, fake_backend):
    assert store.apply_slot_changes([]) == 0
    fake_backend.fetch_all.assert_not_called()


def test_audit_entry_written_for_signed_in_user(fake_backend, tmp_path):
    user = Profile(id="u1", username="gerente", role="ADMIN")
    store = BranchDataStore(backend=fake_backend, user=user, max_workers=1, cache_file=str(tmp_path / "c.json"))
    store.delete_advisor("a1")

    audit_calls = [c for c in fake_backend.insert.call_args_list if c.args[0] == "audit_logs"]
    assert audit_calls
    assert audit_calls[0].args[1][0]["action"] == "DELETE_ADVISOR"
