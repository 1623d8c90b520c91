# branch_ops/store.py
"""
In-memory Branch Data Store

Holds every entity collection for the signed-in session. Created at login,
kept in st.session_state, dropped at logout.

Reads:
- reload() fans out one fetch per collection on a thread pool
- a failed fetch leaves that collection empty and logs a warning
- branch schedule config falls back to a local JSON cache

Writes:
- one bulk backend call, then an unconditional full reload
- record saves and compliance toggles are optimistic: the collection is
  snapshotted, patched locally, written, and restored if the write fails
- every successful write appends an audit log entry (best effort)
"""

import copy
import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import config
from .constants import CONFLICT_KEYS, FREQ_DAILY, FREQ_WEEKLY, TABLES
from .db import BackendClient, BackendError
from .models import (
    AuditLogEntry,
    BranchScheduleConfig,
    BudgetConfig,
    ENTITY_MODELS,
    FenixCompliance,
    Profile,
    RecordData,
    ScheduleAssignment,
)

logger = logging.getLogger(__name__)

# Collections with a fixed read order
ORDER_BY = {
    "audit_logs": ("timestamp", True),
    "supervision_logs": ("date", True),
    "coaching_sessions": ("date", True),
}


class BranchDataStore:
    """
    Session-scoped cache of all backend collections.

    Usage:
        store = BranchDataStore(user=profile)
        store.reload()
        advisors = store.advisors
        store.save_record(record)
    """

    def __init__(
        self,
        backend: Optional[BackendClient] = None,
        user: Optional[Profile] = None,
        max_workers: Optional[int] = None,
        cache_file: Optional[str] = None,
    ):
        self.backend = backend or BackendClient()
        self.user = user
        self.max_workers = max_workers or config.get_app_setting("FETCH_WORKERS", 6)
        self.cache_file = Path(cache_file or config.get_app_setting("BRANCH_CONFIG_CACHE_FILE"))

        self._data: Dict[str, List[Any]] = {name: [] for name in ENTITY_MODELS}
        self.branch_config: Optional[BranchScheduleConfig] = None
        self.loaded_at: Optional[datetime] = None

    # ==================== COLLECTIONS ====================

    def __getattr__(self, name: str):
        # Only reached for names not found normally: expose collections as attributes
        data = self.__dict__.get("_data")
        if data is not None and name in data:
            return data[name]
        raise AttributeError(name)

    def collection(self, name: str) -> List[Any]:
        return self._data[name]

    def get_advisor(self, advisor_id: Optional[str]):
        return next((a for a in self._data["advisors"] if a.id == advisor_id), None)

    def get_indicator(self, indicator_id: str):
        return next((i for i in self._data["indicators"] if i.id == indicator_id), None)

    # ==================== READS ====================

    def reload(self) -> Dict[str, int]:
        """
        Re-fetch every collection concurrently.

        Returns:
            {collection: row count}; failed collections count 0
        """
        started = datetime.now()
        results: Dict[str, List[Any]] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._fetch, name): name for name in ENTITY_MODELS}
            config_future = executor.submit(self._fetch_branch_config)

            for future in as_completed(futures):
                name = futures[future]
                try:
                    results[name] = future.result()
                except (BackendError, ValueError) as e:
                    logger.warning(f"⚠️ Could not load {name}: {e}")
                    results[name] = []

            self.branch_config = config_future.result()

        self._data = {name: results.get(name, []) for name in ENTITY_MODELS}
        self.loaded_at = datetime.now()

        elapsed = (self.loaded_at - started).total_seconds()
        counts = {name: len(rows) for name, rows in self._data.items()}
        logger.info(f"✅ Store reloaded in {elapsed:.2f}s ({sum(counts.values())} rows)")
        return counts

    def _fetch(self, name: str) -> List[Any]:
        model = ENTITY_MODELS[name]
        order_by, descending = ORDER_BY.get(name, (None, False))
        rows = self.backend.fetch_all(TABLES[name], order_by=order_by, descending=descending)
        return [model.from_row(row) for row in rows]

    def _fetch_branch_config(self) -> Optional[BranchScheduleConfig]:
        """Backend row first; the last cached copy when the backend is unreachable."""
        try:
            rows = self.backend.fetch_all(TABLES["branch_schedule_config"])
        except (BackendError, ValueError) as e:
            logger.warning(f"⚠️ Branch schedule config unavailable, using local cache: {e}")
            return self._read_config_cache()

        if not rows:
            return None

        branch_config = BranchScheduleConfig.from_row(rows[0])
        self._write_config_cache(rows[0])
        return branch_config

    def _read_config_cache(self) -> Optional[BranchScheduleConfig]:
        if not self.cache_file.exists():
            return None
        try:
            return BranchScheduleConfig.from_row(json.loads(self.cache_file.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config cache {self.cache_file}: {e}")
            return None

    def _write_config_cache(self, row: Dict):
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            self.cache_file.write_text(json.dumps(row, default=str), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write config cache {self.cache_file}: {e}")

    # ==================== WRITE HELPERS ====================

    def _save_rows(self, name: str, items: Iterable[Any], on_conflict: Optional[str] = None) -> List[Dict]:
        """
        Persist models in bulk.

        Rows that already have an id (or a conflict key) are upserted; new
        rows without one are inserted so the backend assigns their ids.
        """
        table = TABLES[name]
        rows = [item.to_row() for item in items]

        if on_conflict:
            return self.backend.upsert(table, rows, on_conflict=on_conflict)

        existing = [row for row in rows if row.get("id")]
        new = [row for row in rows if not row.get("id")]

        written = []
        if existing:
            written += self.backend.upsert(table, existing)
        if new:
            written += self.backend.insert(table, new)
        return written

    def _log_action(self, action: str, details: str):
        """Append an audit entry; failures are logged, never raised."""
        if not config.is_feature_enabled("AUDIT_LOG") or self.user is None:
            return

        entry = AuditLogEntry(
            user_id=self.user.id,
            username=self.user.username,
            action=action,
            details=details,
            timestamp=datetime.now().isoformat(),
        )
        try:
            self.backend.insert(TABLES["audit_logs"], [entry.to_row()])
        except BackendError as e:
            logger.warning(f"Audit log write failed ({action}): {e}")

    def _after_write(self, action: str, details: str):
        self._log_action(action, details)
        self.reload()

    # ==================== GENERIC CRUD ====================

    def save(self, name: str, item: Any, action: Optional[str] = None):
        """Insert or update one entity of any collection."""
        self._save_rows(name, [item])
        self._after_write(action or f"SAVE_{name.upper()}", getattr(item, "name", None) or item.id or name)

    def delete(self, name: str, item_id: str, action: Optional[str] = None):
        """Delete one entity by id."""
        self.backend.delete_by_id(TABLES[name], item_id)
        self._after_write(action or f"DELETE_{name.upper()}", item_id)

    def save_advisor(self, advisor):
        self.save("advisors", advisor, "SAVE_ADVISOR")

    def delete_advisor(self, advisor_id: str):
        self.delete("advisors", advisor_id, "DELETE_ADVISOR")

    def save_indicator(self, indicator):
        self.save("indicators", indicator, "SAVE_INDICATOR")

    def delete_indicator(self, indicator_id: str):
        self.delete("indicators", indicator_id, "DELETE_INDICATOR")

    def save_rrhh_event(self, event):
        self.save("rrhh_events", event, "SAVE_RRHH_EVENT")

    def delete_rrhh_event(self, event_id: str):
        self.delete("rrhh_events", event_id, "DELETE_RRHH_EVENT")

    def save_supervision_log(self, log):
        self.save("supervision_logs", log, "SAVE_SUPERVISION")

    def save_coaching_session(self, session):
        self.save("coaching_sessions", session, "SAVE_COACHING")

    def save_schedule_activity(self, activity):
        self.save("schedule_activities", activity, "SAVE_ACTIVITY")

    def delete_schedule_activity(self, activity_id: str):
        self.delete("schedule_activities", activity_id, "DELETE_ACTIVITY")

    # ==================== BUDGETS ====================

    def save_budgets(self, budgets: List[BudgetConfig]):
        """Bulk write budget configs (ids are reused where they exist)."""
        if not budgets:
            return
        self._save_rows("budgets", budgets)
        self._after_write("SAVE_BUDGETS", f"{len(budgets)} budget rows")

    def delete_budgets(self, budget_ids: List[str]):
        for budget_id in budget_ids:
            self.backend.delete_by_id(TABLES["budgets"], budget_id)
        self._after_write("DELETE_BUDGETS", f"{len(budget_ids)} budget rows")

    # ==================== RECORDS ====================

    def save_record(self, record: RecordData, cleanup: bool = True):
        """
        Save one record optimistically.

        The record replaces its local copy before the backend call; if that
        write fails the previous collection is restored and the error
        re-raised. With `cleanup`, rows of the opposite frequency for the
        same owner and week are removed: a WEEKLY save drops the DAILY rows
        and vice versa. A failed cleanup reloads from the backend, which
        already holds the new record, before re-raising.
        """
        snapshot = copy.deepcopy(self._data["records"])
        self._data["records"] = [r for r in snapshot if not (record.id and r.id == record.id)] + [record]

        try:
            self._save_rows("records", [record])
        except BackendError:
            self._data["records"] = snapshot
            logger.error(f"❌ Record save rolled back (week {record.week}, {record.type})")
            raise

        if cleanup:
            try:
                self._delete_opposite_frequency(record)
            except BackendError:
                logger.error(f"❌ Cleanup after record save failed (week {record.week}, {record.type}), reloading")
                self.reload()
                raise

        self._after_write("SAVE_RECORD", f"{record.type} {record.frequency} {record.year}-W{record.week}")

    def save_records(self, records: List[RecordData]):
        """Bulk save, e.g. a weekly total distributed over several days."""
        if not records:
            return
        self._save_rows("records", records)
        self._delete_opposite_frequency(records[0])
        self._after_write("SAVE_RECORDS", f"{len(records)} records")

    def _delete_opposite_frequency(self, record: RecordData):
        opposite = FREQ_DAILY if record.frequency == FREQ_WEEKLY else FREQ_WEEKLY
        self.backend.delete_where(TABLES["records"], {
            "year": record.year,
            "week": record.week,
            "frequency": opposite,
            "type": record.type,
            "advisor_id": record.advisor_id,
        })

    def delete_record(self, record_id: str):
        self.delete("records", record_id, "DELETE_RECORD")

    # ==================== SCHEDULE ====================

    def save_schedule_assignments(self, assignments: List[ScheduleAssignment]):
        """Upsert on (advisor_id, day_of_week, start_time)."""
        if not assignments:
            return
        rows = []
        for assignment in assignments:
            row = assignment.to_row()
            row.pop("id", None)
            rows.append(row)
        self.backend.upsert(
            TABLES["schedule_assignments"], rows,
            on_conflict=CONFLICT_KEYS["schedule_assignments"],
        )
        self._after_write("SAVE_SCHEDULE", f"{len(assignments)} slots")

    def delete_schedule_assignments(self, assignment_ids: List[str]):
        for assignment_id in assignment_ids:
            self.backend.delete_by_id(TABLES["schedule_assignments"], assignment_id)
        self._after_write("DELETE_SCHEDULE", f"{len(assignment_ids)} slots")

    def apply_slot_changes(self, changes) -> int:
        """
        Persist SlotChange results from ScheduleGrid.assign_slot.

        Returns:
            Number of backend writes performed (no-ops are skipped)
        """
        upserts = [c.assignment for c in changes if c.kind == "upsert"]
        deletes = [c.assignment.id for c in changes if c.kind == "delete" and c.assignment.id]

        if upserts:
            self.backend.upsert(
                TABLES["schedule_assignments"],
                [{k: v for k, v in a.to_row().items() if k != "id"} for a in upserts],
                on_conflict=CONFLICT_KEYS["schedule_assignments"],
            )
        for assignment_id in deletes:
            self.backend.delete_by_id(TABLES["schedule_assignments"], assignment_id)

        if upserts or deletes:
            self._after_write("EDIT_SCHEDULE", f"{len(upserts)} set, {len(deletes)} cleared")
        return len(upserts) + len(deletes)

    def save_branch_config(self, branch_config: BranchScheduleConfig):
        row = branch_config.to_row()
        written = self.backend.upsert(TABLES["branch_schedule_config"], [row])
        self._write_config_cache(written[0] if written else row)
        self._after_write("SAVE_BRANCH_CONFIG", f"{branch_config.open_time}-{branch_config.close_time}")

    def toggle_fenix_compliance(self, advisor_id: str, day: date, time_slot: str) -> FenixCompliance:
        """
        Flip the compliance mark of one protected slot (optimistic).

        A slot without a mark becomes compliant.
        """
        snapshot = copy.deepcopy(self._data["fenix_compliances"])
        current = next(
            (c for c in snapshot if c.key == (advisor_id, day, time_slot)),
            None,
        )
        toggled = FenixCompliance(
            advisor_id=advisor_id,
            date=day,
            time_slot=time_slot,
            is_compliant=not current.is_compliant if current else True,
            id=current.id if current else '',
        )
        self._data["fenix_compliances"] = [
            c for c in snapshot if c.key != toggled.key
        ] + [toggled]

        row = toggled.to_row()
        row.pop("id", None)
        try:
            self.backend.upsert(
                TABLES["fenix_compliances"], [row],
                on_conflict=CONFLICT_KEYS["fenix_compliance"],
            )
        except BackendError:
            self._data["fenix_compliances"] = snapshot
            logger.error(f"❌ Compliance toggle rolled back for {advisor_id} {day} {time_slot}")
            raise

        self._after_write("TOGGLE_FENIX", f"{advisor_id} {day} {time_slot} -> {toggled.is_compliant}")
        return toggled


__all__ = [
    'BranchDataStore',
]
