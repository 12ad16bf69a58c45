"""
═══════════════════════════════════════════════════════════════════════════════
                    BAYPLAN — BAY UTILIZATION
═══════════════════════════════════════════════════════════════════════════════

Weekly utilization of bays derived from schedule entries.

PHASES
══════

A schedule span of T days is split into consecutive phases using the
project's percentages (defaults FAB 27, PAINT 7, PRODUCTION 60, IT 7,
NTC 7, QC 7):

    days(phase) = round(T · pct(phase) / 100)

Only PRODUCTION, IT and NTC count as bay occupation for utilization.

UTILIZATION ENGINES
═══════════════════

STEP (default):
    n = unique projects with an aligned phase in the week
    U = 0 if n = 0, 50 if n = 1, 100 if n ≥ 2

HOURS:
    H_w = Σ_e total_hours(e) · overlap_days(e, w) / span_days(e)
    U   = min(100, round(H_w / weekly_capacity(bay) · 100))
    (bays without capacity fall back to STEP)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from bay_scheduling.capacity import weekly_capacity
from bay_scheduling.types import Bay, Project, ScheduleEntry
from feature_flags import FeatureFlags, UtilizationEngine

logger = logging.getLogger(__name__)

PHASE_ORDER = ["fab", "paint", "production", "it", "ntc", "qc"]
OCCUPYING_PHASES = ("production", "it", "ntc")
DEFAULT_WEEKS = 26


# ════════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PhaseWindow:
    phase: str
    start: date
    end: date

    def overlaps(self, start: date, end: date) -> bool:
        return self.start <= end and self.end >= start


@dataclass
class PhaseAlignment:
    project_id: int
    project_number: str
    phase: str
    start_date: date
    end_date: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "project_number": self.project_number,
            "phase": self.phase.upper(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


@dataclass
class WeeklyUtilization:
    """
    Utilization of one bay in one week.

    Attributes:
        week_start: Monday of the week
        week_end: Sunday of the week
        week_key: ISO date of week_start
        utilization_percentage: engine output (0-100)
        project_count: unique projects with an occupying phase in the week
        scheduled_hours: prorated hours in the week (all entries of the bay)
    """
    week_start: date
    week_end: date
    week_key: str
    bay_id: int
    bay_name: str
    team_name: str
    utilization_percentage: int
    project_count: int
    scheduled_hours: float = 0.0
    aligned_phases: List[PhaseAlignment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "week_key": self.week_key,
            "bay_id": self.bay_id,
            "bay_name": self.bay_name,
            "team_name": self.team_name,
            "utilization_percentage": self.utilization_percentage,
            "project_count": self.project_count,
            "scheduled_hours": round(self.scheduled_hours, 2),
            "aligned_phases": [a.to_dict() for a in self.aligned_phases],
        }


# ════════════════════════════════════════════════════════════════════════════════
# PHASES
# ════════════════════════════════════════════════════════════════════════════════

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def calculate_phase_dates(entry: ScheduleEntry, project: Project) -> Dict[str, PhaseWindow]:
    """Consecutive phase windows for a schedule entry."""
    if entry.start_date is None or entry.end_date is None:
        return {}

    total_days = (entry.end_date - entry.start_date).days
    current = entry.start_date
    phases: Dict[str, PhaseWindow] = {}
    for phase in PHASE_ORDER:
        days = _round_half_up(total_days * project.phase_percentage(phase) / 100)
        end = current + timedelta(days=days)
        phases[phase] = PhaseWindow(phase=phase, start=current, end=end)
        current = end
    return phases


def phase_alignments_for_week(
    week_start: date,
    week_end: date,
    entries: Sequence[ScheduleEntry],
    projects: Mapping[int, Project],
    bay_id: int,
) -> List[PhaseAlignment]:
    """Occupying phases of a bay's entries that overlap the week."""
    alignments: List[PhaseAlignment] = []
    for entry in entries:
        if entry.bay_id != bay_id:
            continue
        project = projects.get(entry.project_id)
        if project is None:
            continue
        phases = calculate_phase_dates(entry, project)
        for phase in OCCUPYING_PHASES:
            window = phases.get(phase)
            if window and window.overlaps(week_start, week_end):
                alignments.append(PhaseAlignment(
                    project_id=project.id,
                    project_number=project.project_number,
                    phase=phase,
                    start_date=window.start,
                    end_date=window.end,
                ))
    return alignments


# ════════════════════════════════════════════════════════════════════════════════
# ENGINES
# ════════════════════════════════════════════════════════════════════════════════

def step_utilization(project_count: int) -> int:
    """0 projects → 0, 1 → 50, 2+ → 100."""
    if project_count <= 0:
        return 0
    if project_count == 1:
        return 50
    return 100


def scheduled_hours_in_window(
    entries: Sequence[ScheduleEntry],
    bay_id: int,
    window_start: date,
    window_end: date,
) -> float:
    """Hours of the bay's entries prorated over [window_start, window_end]."""
    hours = 0.0
    for entry in entries:
        if entry.bay_id != bay_id or entry.start_date is None or entry.end_date is None:
            continue
        start, end = entry.start_date, max(entry.start_date, entry.end_date)
        overlap_start = max(start, window_start)
        overlap_end = min(end, window_end)
        if overlap_start > overlap_end:
            continue
        span_days = (end - start).days + 1
        overlap_days = (overlap_end - overlap_start).days + 1
        hours += entry.total_hours * overlap_days / span_days
    return hours


def hours_utilization(scheduled_hours: float, bay: Bay, project_count: int) -> int:
    capacity = weekly_capacity(bay)
    if capacity <= 0:
        return step_utilization(project_count)
    return min(100, _round_half_up(scheduled_hours / capacity * 100))


# ════════════════════════════════════════════════════════════════════════════════
# WEEKLY UTILIZATION
# ════════════════════════════════════════════════════════════════════════════════

def week_bounds(d: date) -> Tuple[date, date]:
    monday = d - timedelta(days=d.weekday())
    return monday, monday + timedelta(days=6)


def calculate_weekly_bay_utilization(
    entries: Sequence[ScheduleEntry],
    projects: Sequence[Project],
    bays: Sequence[Bay],
    start: date,
    weeks: int = DEFAULT_WEEKS,
    engine: Optional[UtilizationEngine] = None,
    excluded_teams: Optional[Sequence[str]] = None,
) -> List[WeeklyUtilization]:
    """Utilization for each (week, bay) starting at the week containing start."""
    if weeks <= 0:
        raise ValueError(f"weeks must be positive, got {weeks}")

    config = FeatureFlags.get_config()
    engine = UtilizationEngine(engine or config.utilization_engine)
    excluded = {t.upper() for t in (excluded_teams if excluded_teams is not None else config.excluded_teams)}

    project_map = {p.id: p for p in projects}
    active_bays = [b for b in bays if (b.team or "").upper() not in excluded]
    first_week, _ = week_bounds(start)

    results: List[WeeklyUtilization] = []
    for offset in range(weeks):
        week_start = first_week + timedelta(weeks=offset)
        week_end = week_start + timedelta(days=6)

        for bay in active_bays:
            aligned = phase_alignments_for_week(week_start, week_end, entries, project_map, bay.id)
            project_count = len({a.project_id for a in aligned})
            hours = scheduled_hours_in_window(entries, bay.id, week_start, week_end)

            if engine == UtilizationEngine.HOURS:
                percentage = hours_utilization(hours, bay, project_count)
            else:
                percentage = step_utilization(project_count)

            results.append(WeeklyUtilization(
                week_start=week_start,
                week_end=week_end,
                week_key=week_start.isoformat(),
                bay_id=bay.id,
                bay_name=bay.name,
                team_name=bay.team or "Unknown",
                utilization_percentage=percentage,
                project_count=project_count,
                scheduled_hours=hours,
                aligned_phases=aligned,
            ))

    logger.debug(f"Computed utilization for {len(active_bays)} bays x {weeks} weeks ({engine.value})")
    return results


def current_week_team_utilization(
    entries: Sequence[ScheduleEntry],
    projects: Sequence[Project],
    team_bays: Sequence[Bay],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Step utilization of a team (group of bays) in the current week."""
    week_start, week_end = week_bounds(today or date.today())
    project_map = {p.id: p for p in projects}

    aligned: List[PhaseAlignment] = []
    for bay in team_bays:
        aligned.extend(phase_alignments_for_week(week_start, week_end, entries, project_map, bay.id))

    project_count = len({a.project_id for a in aligned})
    return {
        "week_start": week_start.isoformat(),
        "project_count": project_count,
        "utilization_percentage": step_utilization(project_count),
        "aligned_phases": [a.to_dict() for a in aligned],
    }


# ════════════════════════════════════════════════════════════════════════════════
# EXPORT
# ════════════════════════════════════════════════════════════════════════════════

def utilization_frame(rows: Sequence[WeeklyUtilization]) -> pd.DataFrame:
    """Pivot bay × week of utilization percentages."""
    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame([
        {
            "bay_id": r.bay_id,
            "bay_name": r.bay_name,
            "team": r.team_name,
            "week": r.week_key,
            "utilization": r.utilization_percentage,
        }
        for r in rows
    ])
    pivot = df.pivot_table(
        index=["bay_id", "bay_name", "team"],
        columns="week",
        values="utilization",
        aggfunc="max",
        fill_value=0,
    )
    pivot.columns.name = None
    return pivot.reset_index()
