"""
════════════════════════════════════════════════════════════════════════════════
BAY SCHEDULING Package - Bay Schedule Grid & Schedule Store
════════════════════════════════════════════════════════════════════════════════

Modules:
- types: Bay, Project, ScheduleEntry, TimeSlot, drag payloads
- business_days: US holiday calendar and working-day helpers
- timeline: time slots, bar geometry and grid projection
- capacity: daily capacity → days needed → end date
- utilization: phase split and weekly bay utilization
- rows: multi-row bays (row under pointer, add/remove rows)
- drag_drop: drag-and-drop controller and bar state machine
- notifications: toasts
- client: REST client for the Schedule Store
- models / schemas / services / api: the Schedule Store itself (FastAPI + SQLAlchemy)
"""

from __future__ import annotations

from .types import (
    Bay, Project, ScheduleEntry,
    DateRange, TimeSlot, ScheduleBar, DropTarget,
    Granularity, BarState, ScheduleStatus,
    ExistingDrag, NewDrag, DragPayload,
    encode_drag_payload, decode_drag_payload,
    SLOT_WIDTHS, MIN_BAR_WIDTH,
)
from .timeline import (
    BayScheduleGrid, GridLayout, BarGeometry,
    generate_time_slots, compute_bar_geometry, locate_slot, clamped_slot_index, date_at_offset,
)
from .capacity import BayCapacityError, compute_end_date, daily_capacity, days_needed
from .rows import BayRowLayout, RowRemovalAction, RowRemovalRequest, row_at
from .drag_drop import ScheduleDragController
from .notifications import Toast, ToastCollector
from .client import ScheduleStoreClient, ScheduleStoreError

__all__ = [
    # Types
    "Bay", "Project", "ScheduleEntry",
    "DateRange", "TimeSlot", "ScheduleBar", "DropTarget",
    "Granularity", "BarState", "ScheduleStatus",
    "ExistingDrag", "NewDrag", "DragPayload",
    "encode_drag_payload", "decode_drag_payload",
    "SLOT_WIDTHS", "MIN_BAR_WIDTH",
    # Timeline
    "BayScheduleGrid", "GridLayout", "BarGeometry",
    "generate_time_slots", "compute_bar_geometry", "locate_slot", "clamped_slot_index", "date_at_offset",
    # Capacity
    "BayCapacityError", "compute_end_date", "daily_capacity", "days_needed",
    # Rows
    "BayRowLayout", "RowRemovalAction", "RowRemovalRequest", "row_at",
    # Drag & drop
    "ScheduleDragController",
    "Toast", "ToastCollector",
    # Client
    "ScheduleStoreClient", "ScheduleStoreError",
]
