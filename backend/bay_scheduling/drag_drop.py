"""
═══════════════════════════════════════════════════════════════════════════════
                    BAYPLAN — DRAG & DROP
═══════════════════════════════════════════════════════════════════════════════

Pointer drags on the grid become create/update calls against the Schedule
Store.

STATE MACHINE (per bar)
═══════════════════════

    idle ──begin_drag──▶ dragging ──drop──▶ dropped ──reconcile──▶ idle
                           │
                           └──cancel_drag──▶ idle

A dropped bar keeps its optimistic position until the next fetch is
reconciled, whether the write succeeded or not. There is no retry and no
rollback; drops are not serialized.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from bay_scheduling.capacity import compute_end_date
from bay_scheduling.client import ScheduleStoreError
from bay_scheduling.notifications import Notifier, ToastCollector, failure, success
from bay_scheduling.timeline import BayScheduleGrid, GridLayout
from bay_scheduling.types import (
    Bay,
    BarState,
    DateRange,
    DragPayload,
    DropTarget,
    ExistingDrag,
    Granularity,
    ScheduleEntry,
    decode_drag_payload,
    encode_drag_payload,
)
from feature_flags import FeatureFlags

logger = logging.getLogger(__name__)


class ScheduleDragController:
    """
    Drag/drop controller for one grid.

    store: ScheduleStoreClient (or anything with the same create/update/list
    methods).
    """

    def __init__(
        self,
        store,
        bays: Sequence[Bay] = (),
        notifier: Optional[Notifier] = None,
        view_only: Optional[bool] = None,
    ):
        self.store = store
        self.bays: Dict[int, Bay] = {b.id: b for b in bays}
        self.notify = notifier or ToastCollector()
        self.view_only = FeatureFlags.is_view_only() if view_only is None else view_only

        self.entries: Dict[int, ScheduleEntry] = {}
        self.states: Dict[int, BarState] = {}
        self.pending: Dict[int, ScheduleEntry] = {}

        self.active: Optional[DragPayload] = None
        self.transfer: Optional[str] = None
        self.highlight: Optional[DropTarget] = None

    def set_bays(self, bays: Iterable[Bay]) -> None:
        self.bays = {b.id: b for b in bays}

    def state_of(self, schedule_id: int) -> BarState:
        return self.states.get(schedule_id, BarState.IDLE)

    def _refuse_view_only(self) -> bool:
        if self.view_only:
            self.notify(failure("View only", "Schedule changes are disabled in view-only mode"))
            return True
        return False

    # ─────────────────────────────────────────────────────────────────────────
    # DRAG
    # ─────────────────────────────────────────────────────────────────────────

    def begin_drag(self, payload: DragPayload) -> Optional[str]:
        """Starts a drag and returns the encoded transfer string."""
        if self._refuse_view_only():
            return None

        self.active = payload
        self.transfer = encode_drag_payload(payload)
        if isinstance(payload, ExistingDrag):
            self.states[payload.schedule_id] = BarState.DRAGGING
        return self.transfer

    def drag_over(self, target: DropTarget) -> None:
        self.highlight = target

    def drag_leave(self) -> None:
        self.highlight = None

    def cancel_drag(self) -> None:
        if isinstance(self.active, ExistingDrag):
            if self.states.get(self.active.schedule_id) == BarState.DRAGGING:
                del self.states[self.active.schedule_id]
        self._clear_drag()

    def _clear_drag(self) -> None:
        self.active = None
        self.transfer = None
        self.highlight = None

    # ─────────────────────────────────────────────────────────────────────────
    # DROP
    # ─────────────────────────────────────────────────────────────────────────

    def drop(self, target: DropTarget, transfer: Optional[str] = None) -> Optional[ScheduleEntry]:
        """
        Commits a drag onto target.

        Returns the stored entry, or None when the drop was refused or the
        write failed (the user gets a toast either way).
        """
        raw = transfer if transfer is not None else self.transfer
        self._clear_drag()

        if self._refuse_view_only():
            return None
        if raw is None:
            logger.warning("Drop without an active drag")
            return None

        try:
            payload = decode_drag_payload(raw)
        except ValueError as exc:
            logger.error(f"Invalid drag payload on drop: {exc}")
            self.notify(failure("Update failed", "Invalid drag data"))
            return None

        bay = self.bays.get(target.bay_id)
        if bay is None:
            logger.error(f"Drop on unknown bay {target.bay_id}")
            self._settle(payload)
            self.notify(failure("Update failed", f"Bay {target.bay_id} not found"))
            return None

        try:
            end_date = compute_end_date(bay, target.date, payload.total_hours)
        except ValueError as exc:
            logger.error(f"Cannot schedule on bay {bay.id}: {exc}")
            self._settle(payload)
            self.notify(failure("Update failed", str(exc)))
            return None

        record = {
            "bay_id": bay.id,
            "project_id": payload.project_id,
            "start_date": target.date,
            "end_date": end_date,
            "total_hours": payload.total_hours,
            "row": target.row,
        }

        if isinstance(payload, ExistingDrag):
            return self._write_existing(payload.schedule_id, record, "Schedule updated")

        try:
            saved = self.store.create_schedule(record)
        except ScheduleStoreError as exc:
            logger.error(f"Failed to create schedule for project {payload.project_id}: {exc}")
            self.notify(failure("Update failed", str(exc)))
            return None

        self.notify(success("Project scheduled", f"{bay.name}: {target.date} to {end_date}"))
        return saved

    def resize(self, schedule_id: int, new_end_date: date) -> Optional[ScheduleEntry]:
        """Moves only the end date of an existing bar."""
        if self._refuse_view_only():
            return None

        current = self.pending.get(schedule_id) or self.entries.get(schedule_id)
        if current is None:
            logger.error(f"Resize of unknown schedule {schedule_id}")
            self.notify(failure("Update failed", f"Schedule {schedule_id} not found"))
            return None

        end_date = new_end_date
        if current.start_date is not None and end_date < current.start_date:
            end_date = current.start_date

        record = {
            "bay_id": current.bay_id,
            "project_id": current.project_id,
            "start_date": current.start_date,
            "end_date": end_date,
            "total_hours": current.total_hours,
            "row": current.row,
        }
        return self._write_existing(schedule_id, record, "Schedule updated")

    def _write_existing(self, schedule_id: int, record: Dict[str, Any], title: str) -> Optional[ScheduleEntry]:
        base = self.entries.get(schedule_id)
        optimistic = ScheduleEntry(
            id=schedule_id,
            project_id=record["project_id"],
            bay_id=record["bay_id"],
            start_date=record["start_date"],
            end_date=record["end_date"],
            total_hours=record["total_hours"],
            row=record["row"],
        )
        if base is not None:
            optimistic = replace(optimistic, status=base.status, notes=base.notes)

        self.states[schedule_id] = BarState.DROPPED
        self.pending[schedule_id] = optimistic

        try:
            saved = self.store.update_schedule(schedule_id, record)
        except ScheduleStoreError as exc:
            logger.error(f"Failed to update schedule {schedule_id}: {exc}")
            self.notify(failure("Update failed", str(exc)))
            return None

        self.notify(success(title, f"{record['start_date']} to {record['end_date']}"))
        return saved

    def _settle(self, payload: DragPayload) -> None:
        if isinstance(payload, ExistingDrag):
            self.states.pop(payload.schedule_id, None)

    # ─────────────────────────────────────────────────────────────────────────
    # SYNC
    # ─────────────────────────────────────────────────────────────────────────

    def reconcile(self, entries: Iterable[ScheduleEntry]) -> None:
        """Adopts a fresh fetch: optimistic positions go away, every bar is idle."""
        self.entries = {e.id: e for e in entries}
        self.pending.clear()
        self.states.clear()

    def refresh(
        self,
        date_range: DateRange,
        granularity: Optional[Granularity] = None,
        row_counts: Optional[Mapping[int, int]] = None,
    ) -> BayScheduleGrid:
        """Re-fetches registries and schedules for date_range and reconciles."""
        config = FeatureFlags.get_config()
        bays = self.store.list_bays(use_cache=False)
        projects = self.store.list_projects(use_cache=False)
        entries = self.store.list_schedules(
            start_date=date_range.start,
            end_date=date_range.end,
            use_cache=False,
        )
        self.set_bays(bays)
        self.reconcile(entries)
        return BayScheduleGrid(
            bays=bays,
            projects=projects,
            entries=entries,
            date_range=date_range,
            granularity=granularity or config.default_granularity,
            min_bar_width=config.min_bar_width,
            row_counts=row_counts,
            default_row_count=config.default_row_count,
        )

    def render(self, grid: BayScheduleGrid) -> GridLayout:
        return grid.render(states=self.states, pending=self.pending)
