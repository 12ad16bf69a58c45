"""
═══════════════════════════════════════════════════════════════════════════════
                    BAYPLAN — TIMELINE & BAR LAYOUT
═══════════════════════════════════════════════════════════════════════════════

Turns schedule entries into absolutely positioned bars on a timeline.

SLOTS
═════

The visible range [R_start, R_end] is covered by contiguous slots. Each slot
spans one period of the granularity g and has a fixed width w(g):

    day = 50px, week = 100px, month = 150px, quarter = 200px

The first slot is the period containing R_start (weeks start on Monday,
quarters on Jan/Apr/Jul/Oct).

BAR GEOMETRY
════════════

For an entry e with start slot s and end slot t:

    left(e)  = s · w
    width(e) = max((t - s + 1) · w, W_min)         W_min = 30px

Dates outside the visible range clamp to the first/last slot, so a bar is
never lost off-screen and never has a negative width. The projection is a
pure function of (entries, range, granularity).
"""

from __future__ import annotations

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bay_scheduling.business_days import is_business_day
from bay_scheduling.types import (
    MIN_BAR_WIDTH,
    Bay,
    BarState,
    DateRange,
    Granularity,
    Project,
    ScheduleBar,
    ScheduleEntry,
    TimeSlot,
    slot_width_for,
)

logger = logging.getLogger(__name__)

MAX_SLOTS = 2000

PROJECT_COLORS: List[str] = [
    "rgb(59, 130, 246)",   # blue-500
    "rgb(16, 185, 129)",   # green-500
    "rgb(234, 179, 8)",    # yellow-500
    "rgb(168, 85, 247)",   # purple-500
    "rgb(99, 102, 241)",   # indigo-500
    "rgb(236, 72, 153)",   # pink-500
    "rgb(249, 115, 22)",   # orange-500
    "rgb(20, 184, 166)",   # teal-500
    "rgb(6, 182, 212)",    # cyan-500
    "rgb(132, 204, 22)",   # lime-500
    "rgb(16, 185, 129)",   # emerald-500
    "rgb(14, 165, 233)",   # sky-500
    "rgb(239, 68, 68)",    # red-500
]


def project_color(project_id: int) -> str:
    return PROJECT_COLORS[project_id % len(PROJECT_COLORS)]


# ════════════════════════════════════════════════════════════════════════════════
# SLOT GENERATION
# ════════════════════════════════════════════════════════════════════════════════

def _add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    return date(d.year + month_index // 12, month_index % 12 + 1, 1)


def period_start(d: date, granularity: Granularity) -> date:
    """Start of the period of the given granularity that contains d."""
    if granularity == Granularity.DAY:
        return d
    if granularity == Granularity.WEEK:
        return d - timedelta(days=d.weekday())
    if granularity == Granularity.MONTH:
        return d.replace(day=1)
    return date(d.year, ((d.month - 1) // 3) * 3 + 1, 1)


def next_period(start: date, granularity: Granularity) -> date:
    if granularity == Granularity.DAY:
        return start + timedelta(days=1)
    if granularity == Granularity.WEEK:
        return start + timedelta(days=7)
    if granularity == Granularity.MONTH:
        return _add_months(start, 1)
    return _add_months(start, 3)


def _slot_label(start: date, granularity: Granularity) -> str:
    if granularity == Granularity.DAY:
        return start.strftime("%b %d")
    if granularity == Granularity.WEEK:
        return f"W{start.isocalendar()[1]:02d} {start.strftime('%b %d')}"
    if granularity == Granularity.MONTH:
        return start.strftime("%b %Y")
    return f"Q{(start.month - 1) // 3 + 1} {start.year}"


def generate_time_slots(date_range: DateRange, granularity: Granularity) -> List[TimeSlot]:
    """
    Ordered, contiguous slots covering date_range.

    Raises ValueError when the range is inverted.
    """
    granularity = Granularity(granularity)
    if date_range.start > date_range.end:
        raise ValueError(
            f"Invalid date range: {date_range.start.isoformat()} > {date_range.end.isoformat()}"
        )

    width = slot_width_for(granularity)
    slots: List[TimeSlot] = []
    current = period_start(date_range.start, granularity)

    while current <= date_range.end:
        if len(slots) >= MAX_SLOTS:
            logger.error(
                f"Too many time slots for range {date_range.start} - {date_range.end} "
                f"({granularity.value}), stopping at {MAX_SLOTS}"
            )
            break

        nxt = next_period(current, granularity)
        slots.append(TimeSlot(
            date=current,
            end=nxt,
            label=_slot_label(current, granularity),
            width=width,
            is_start_of_month=current.day == 1,
            is_start_of_week=current.weekday() == 0,
            is_business_day=is_business_day(current),
            week_number=current.isocalendar()[1],
        ))
        current = nxt

    return slots


# ════════════════════════════════════════════════════════════════════════════════
# SLOT LOOKUP
# ════════════════════════════════════════════════════════════════════════════════

def locate_slot(slots: Sequence[TimeSlot], d: Optional[date]) -> Optional[int]:
    """Index of the slot whose span contains d, or None."""
    if d is None or not slots:
        return None
    starts = [s.date for s in slots]
    idx = bisect_right(starts, d) - 1
    if idx < 0 or not slots[idx].contains(d):
        return None
    return idx


def clamped_slot_index(slots: Sequence[TimeSlot], d: Optional[date], fallback: int = 0) -> int:
    """
    Like locate_slot but never fails: before the range → 0, after → last,
    missing date → fallback.
    """
    if not slots:
        raise ValueError("No time slots to position against")
    if d is None:
        return max(0, min(fallback, len(slots) - 1))
    if d < slots[0].date:
        return 0
    if d >= slots[-1].end:
        return len(slots) - 1
    idx = locate_slot(slots, d)
    return idx if idx is not None else 0


def date_at_offset(slots: Sequence[TimeSlot], x: float) -> date:
    """Start date of the slot under a horizontal pixel offset."""
    if not slots:
        raise ValueError("No time slots to position against")
    idx = int(math.floor(max(0.0, x) / slots[0].width))
    return slots[min(idx, len(slots) - 1)].date


# ════════════════════════════════════════════════════════════════════════════════
# BAR GEOMETRY
# ════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BarGeometry:
    left: float
    width: float
    start_slot: int
    end_slot: int
    clamped: bool = False


def compute_bar_geometry(
    entry: ScheduleEntry,
    slots: Sequence[TimeSlot],
    min_width: float = MIN_BAR_WIDTH,
) -> BarGeometry:
    """left/width of an entry against the given slots."""
    if not slots:
        raise ValueError("No time slots to position against")

    slot_width = slots[0].width
    start_exact = locate_slot(slots, entry.start_date)
    end_exact = locate_slot(slots, entry.end_date)

    start_idx = clamped_slot_index(slots, entry.start_date, fallback=0)
    end_idx = clamped_slot_index(slots, entry.end_date, fallback=start_idx)
    if end_idx < start_idx:
        end_idx = start_idx

    clamped = start_exact is None or end_exact is None
    if clamped:
        logger.debug(
            f"Schedule {entry.id}: dates {entry.start_date} - {entry.end_date} "
            f"clamped to slots {start_idx}-{end_idx}"
        )

    left = start_idx * slot_width
    width = max((end_idx - start_idx + 1) * slot_width, min_width)
    return BarGeometry(left=left, width=width, start_slot=start_idx, end_slot=end_idx, clamped=clamped)


# ════════════════════════════════════════════════════════════════════════════════
# GRID PROJECTION
# ════════════════════════════════════════════════════════════════════════════════

@dataclass
class BayRowBlock:
    """One bay of the grid with its bars."""
    bay: Bay
    row_count: int
    bars: List[ScheduleBar] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bay_id": self.bay.id,
            "bay_number": self.bay.bay_number,
            "name": self.bay.name,
            "team": self.bay.team,
            "row_count": self.row_count,
            "bars": [b.to_dict() for b in self.bars],
        }


@dataclass
class GridLayout:
    granularity: Granularity
    slots: List[TimeSlot]
    bays: List[BayRowBlock]
    unassigned: List[ScheduleBar]
    total_width: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granularity": self.granularity.value,
            "slot_width": slot_width_for(self.granularity),
            "total_width": self.total_width,
            "slots": [s.to_dict() for s in self.slots],
            "bays": [b.to_dict() for b in self.bays],
            "unassigned": [b.to_dict() for b in self.unassigned],
        }


class BayScheduleGrid:
    """
    Bay rows against a horizontal timeline.

    Holds the already-fetched registries; render() recomputes the whole
    projection from them every time.
    """

    def __init__(
        self,
        bays: Sequence[Bay],
        projects: Sequence[Project],
        entries: Sequence[ScheduleEntry],
        date_range: DateRange,
        granularity: Granularity = Granularity.WEEK,
        min_bar_width: float = MIN_BAR_WIDTH,
        row_counts: Optional[Mapping[int, int]] = None,
        default_row_count: int = 20,
    ):
        self.bays = sorted(bays, key=lambda b: (b.bay_number, b.id))
        self.projects = {p.id: p for p in projects}
        self.entries = list(entries)
        self.date_range = date_range
        self.granularity = Granularity(granularity)
        self.min_bar_width = min_bar_width
        self.row_counts = dict(row_counts or {})
        self.default_row_count = default_row_count
        self.slots = generate_time_slots(date_range, self.granularity)

    def row_count(self, bay_id: int) -> int:
        return self.row_counts.get(bay_id, self.default_row_count)

    def build_bar(self, entry: ScheduleEntry, state: BarState = BarState.IDLE) -> ScheduleBar:
        geometry = compute_bar_geometry(entry, self.slots, self.min_bar_width)
        project = self.projects.get(entry.project_id)
        if project is None:
            logger.warning(f"Project not found for schedule {entry.id}, project_id={entry.project_id}")
            project_name = f"Project #{entry.project_id}"
            project_number = str(entry.project_id)
        else:
            project_name = project.name
            project_number = project.project_number

        return ScheduleBar(
            schedule_id=entry.id,
            project_id=entry.project_id,
            bay_id=entry.bay_id,
            start_date=entry.start_date,
            end_date=entry.end_date,
            total_hours=entry.total_hours,
            project_name=project_name,
            project_number=project_number,
            left=geometry.left,
            width=geometry.width,
            color=project_color(entry.project_id),
            row=entry.row,
            start_slot=geometry.start_slot,
            end_slot=geometry.end_slot,
            state=state,
            clamped=geometry.clamped,
        )

    def render(
        self,
        states: Optional[Mapping[int, BarState]] = None,
        pending: Optional[Mapping[int, ScheduleEntry]] = None,
    ) -> GridLayout:
        """
        Full projection of the grid.

        Args:
            states: bar state per schedule id (default idle)
            pending: optimistic entry per schedule id, shown instead of the
                fetched one while a write is in flight
        """
        states = states or {}
        pending = pending or {}

        blocks = {bay.id: BayRowBlock(bay=bay, row_count=self.row_count(bay.id)) for bay in self.bays}
        unassigned: List[ScheduleBar] = []

        for entry in self.entries:
            shown = pending.get(entry.id, entry)
            bar = self.build_bar(shown, states.get(entry.id, BarState.IDLE))
            block = blocks.get(shown.bay_id)
            if block is None:
                logger.warning(f"Bay {shown.bay_id} not found for schedule {entry.id}")
                unassigned.append(bar)
            else:
                block.bars.append(bar)

        for block in blocks.values():
            block.bars.sort(key=lambda b: (b.row, b.left, b.schedule_id))

        return GridLayout(
            granularity=self.granularity,
            slots=self.slots,
            bays=list(blocks.values()),
            unassigned=unassigned,
            total_width=len(self.slots) * slot_width_for(self.granularity),
        )
