"""
═══════════════════════════════════════════════════════════════════════════════
                    BAYPLAN — BAY CAPACITY
═══════════════════════════════════════════════════════════════════════════════

Single source of the capacity arithmetic used when a project is dropped on a
bay.

DEFINITIONS
═══════════

Daily capacity of bay b (5 working days per week):

    C_b = hours_per_person_per_week(b) · staff(b) / 5

Days needed for H requested hours:

    D = ⌈ H / C_b ⌉

End date for a drop on date S:

    E = S + D days

Example: 2 staff × 40 h → C = 16 h/day; 40 h → D = ⌈2.5⌉ = 3;
dropped on a Monday → ends on Thursday.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from fractions import Fraction
from typing import Any, Dict, Sequence, Union

from bay_scheduling.types import Bay, ScheduleEntry

logger = logging.getLogger(__name__)

WORKDAYS_PER_WEEK = 5

# Horas estimadas por projeto ativo no indicador de capacidade
HOURS_PER_ACTIVE_PROJECT = 40


class BayCapacityError(ValueError):
    """Bay sem capacidade (sem staff ou sem horas semanais)."""


def _exact(value: Union[float, int, Fraction]) -> Fraction:
    # str() keeps the decimal the user typed (17.4, not 17.39999...)
    if isinstance(value, Fraction):
        return value
    return Fraction(str(value))


def daily_capacity(bay: Bay) -> float:
    """Hours per working day the bay can absorb."""
    return bay.hours_per_person_per_week * bay.effective_staff_count / WORKDAYS_PER_WEEK


def exact_daily_capacity(bay: Bay) -> Fraction:
    return _exact(bay.hours_per_person_per_week) * bay.effective_staff_count / WORKDAYS_PER_WEEK


def weekly_capacity(bay: Bay) -> float:
    return bay.hours_per_person_per_week * bay.effective_staff_count


def days_needed(total_hours: Union[float, Fraction], capacity_per_day: Union[float, Fraction]) -> int:
    """
    ⌈total_hours / capacity_per_day⌉, on exact fractions so that exact
    multiples (261 h at 17.4 h/day) do not gain a day.

    Raises:
        ValueError: negative hours
        BayCapacityError: capacity_per_day <= 0
    """
    if total_hours < 0:
        raise ValueError(f"total_hours must be >= 0, got {total_hours}")
    if capacity_per_day <= 0:
        raise BayCapacityError(f"Daily capacity must be positive, got {capacity_per_day}")
    return math.ceil(_exact(total_hours) / _exact(capacity_per_day))


def compute_end_date(bay: Bay, start: date, total_hours: float) -> date:
    """End date of a schedule of total_hours starting on start in bay."""
    capacity = exact_daily_capacity(bay)
    if capacity <= 0:
        raise BayCapacityError(
            f"Bay {bay.name} (#{bay.bay_number}) has no staffing capacity"
        )
    return start + timedelta(days=days_needed(total_hours, capacity))


@dataclass
class BayCapacityStatus:
    """Indicador de capacidade de uma bay."""
    bay_id: int
    active_projects: int
    staff_count: int
    hours_per_person_per_week: float
    weekly_capacity_hours: float
    capacity_percentage: int
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bay_id": self.bay_id,
            "active_projects": self.active_projects,
            "staff_count": self.staff_count,
            "hours_per_person_per_week": self.hours_per_person_per_week,
            "weekly_capacity_hours": round(self.weekly_capacity_hours, 2),
            "capacity_percentage": self.capacity_percentage,
            "status": self.status,
        }


def bay_capacity_status(bay: Bay, entries: Sequence[ScheduleEntry]) -> BayCapacityStatus:
    """
    Capacity badge for a bay: Available (<50%), Near Capacity (<100%),
    At Capacity.
    """
    active = sum(1 for e in entries if e.bay_id == bay.id)
    weekly = weekly_capacity(bay)

    percentage = 0
    if active > 0:
        if weekly > 0:
            percentage = min(round(active * HOURS_PER_ACTIVE_PROJECT / weekly * 100), 100)
        else:
            percentage = min(active * 50, 100)

    if percentage >= 100:
        status = "At Capacity"
    elif percentage >= 50:
        status = "Near Capacity"
    else:
        status = "Available"

    return BayCapacityStatus(
        bay_id=bay.id,
        active_projects=active,
        staff_count=bay.effective_staff_count,
        hours_per_person_per_week=bay.hours_per_person_per_week,
        weekly_capacity_hours=weekly,
        capacity_percentage=int(percentage),
        status=status,
    )
