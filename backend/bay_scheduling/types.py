"""
BayPlan - Bay Scheduling Types
==============================

Tipos comuns do grid de bay scheduling.

Estrutura:
- Bay, Project, ScheduleEntry: registos vindos do Schedule Store
- TimeSlot, DateRange: timeline derivada (nunca persistida)
- ScheduleBar: projeção visual de um ScheduleEntry (left/width/color)
- ExistingDrag / NewDrag: payload de drag-and-drop (tagged union)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class Granularity(str, Enum):
    """Granularidade da timeline."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


# Largura fixa (px) de cada slot por granularidade
SLOT_WIDTHS: Dict[Granularity, int] = {
    Granularity.DAY: 50,
    Granularity.WEEK: 100,
    Granularity.MONTH: 150,
    Granularity.QUARTER: 200,
}

MIN_BAR_WIDTH = 30


class BarState(str, Enum):
    """Estado de uma barra no grid."""
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"      # À espera da confirmação do store


class ScheduleStatus(str, Enum):
    """Estado de um schedule no store."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    MAINTENANCE = "maintenance"


def slot_width_for(granularity: Union[Granularity, str]) -> int:
    return SLOT_WIDTHS[Granularity(granularity)]


def parse_date(value: Any) -> Optional[date]:
    """Converte str ISO / datetime / date em date. Devolve None se inválido."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    # Aceita snake_case e camelCase (payloads do dashboard)
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


# ═══════════════════════════════════════════════════════════════════════════════
# REGISTRY TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Bay:
    """Uma bay de fabrico com staffing e horas semanais."""
    id: int
    bay_number: int
    name: str
    staff_count: int = 0
    hours_per_person_per_week: float = 40.0
    team: Optional[str] = "General"
    description: Optional[str] = None
    assembly_staff_count: int = 0
    electrical_staff_count: int = 0
    is_active: bool = True

    @property
    def effective_staff_count(self) -> int:
        """staff_count se definido, senão assembly + electrical."""
        if self.staff_count and self.staff_count > 0:
            return self.staff_count
        return (self.assembly_staff_count or 0) + (self.electrical_staff_count or 0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bay":
        hours = _pick(data, "hours_per_person_per_week", "hoursPerPersonPerWeek", default=40)
        return cls(
            id=int(data["id"]),
            bay_number=int(_pick(data, "bay_number", "bayNumber", default=data["id"])),
            name=str(_pick(data, "name", default=f"Bay {data['id']}")),
            staff_count=int(_pick(data, "staff_count", "staffCount", default=0)),
            hours_per_person_per_week=float(hours),
            team=_pick(data, "team", default="General"),
            description=_pick(data, "description"),
            assembly_staff_count=int(_pick(data, "assembly_staff_count", "assemblyStaffCount", default=0)),
            electrical_staff_count=int(_pick(data, "electrical_staff_count", "electricalStaffCount", default=0)),
            is_active=bool(_pick(data, "is_active", "isActive", default=True)),
        )


DEFAULT_PHASE_PERCENTAGES: Dict[str, float] = {
    "fab": 27.0,
    "paint": 7.0,
    "production": 60.0,
    "it": 7.0,
    "ntc": 7.0,
    "qc": 7.0,
}


@dataclass
class Project:
    """Projeto (registo read-only para labels e fases)."""
    id: int
    name: str
    project_number: str
    total_hours: Optional[float] = None
    phase_percentages: Dict[str, float] = field(default_factory=dict)

    def phase_percentage(self, phase: str) -> float:
        value = self.phase_percentages.get(phase)
        if not value:
            return DEFAULT_PHASE_PERCENTAGES[phase]
        return float(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        percentages = {}
        for phase in DEFAULT_PHASE_PERCENTAGES:
            value = _pick(data, f"{phase}_percentage", f"{phase}Percentage")
            if value is not None:
                percentages[phase] = float(value)
        total_hours = _pick(data, "total_hours", "totalHours")
        return cls(
            id=int(data["id"]),
            name=str(_pick(data, "name", default="")),
            project_number=str(_pick(data, "project_number", "projectNumber", default="")),
            total_hours=float(total_hours) if total_hours is not None else None,
            phase_percentages=percentages,
        )


@dataclass
class ScheduleEntry:
    """Atribuição de um projeto a uma bay num intervalo de datas."""
    id: int
    project_id: int
    bay_id: int
    start_date: Optional[date]
    end_date: Optional[date]
    total_hours: float = 1000.0
    row: int = 0
    status: str = ScheduleStatus.SCHEDULED.value
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleEntry":
        return cls(
            id=int(data["id"]),
            project_id=int(_pick(data, "project_id", "projectId")),
            bay_id=int(_pick(data, "bay_id", "bayId")),
            start_date=parse_date(_pick(data, "start_date", "startDate")),
            end_date=parse_date(_pick(data, "end_date", "endDate")),
            total_hours=float(_pick(data, "total_hours", "totalHours", default=1000)),
            row=int(_pick(data, "row", "row_index", "rowIndex", default=0)),
            status=str(_pick(data, "status", default=ScheduleStatus.SCHEDULED.value)),
            notes=_pick(data, "notes"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# TIMELINE TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """Intervalo visível (inclusivo)."""
    start: date
    end: date


@dataclass(frozen=True)
class TimeSlot:
    """
    Uma coluna da timeline.

    Cobre [date, end); end é exclusivo.
    """
    date: date
    end: date
    label: str
    width: int
    is_start_of_month: bool = False
    is_start_of_week: bool = False
    is_business_day: bool = True
    week_number: int = 0

    def contains(self, d: date) -> bool:
        return self.date <= d < self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
            "width": self.width,
            "is_start_of_month": self.is_start_of_month,
            "is_start_of_week": self.is_start_of_week,
            "is_business_day": self.is_business_day,
            "week_number": self.week_number,
        }


@dataclass
class ScheduleBar:
    """Projeção visual de um ScheduleEntry."""
    schedule_id: int
    project_id: int
    bay_id: int
    start_date: Optional[date]
    end_date: Optional[date]
    total_hours: float
    project_name: str
    project_number: str
    left: float
    width: float
    color: str
    row: int = 0
    start_slot: int = 0
    end_slot: int = 0
    state: BarState = BarState.IDLE
    clamped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat() if self.start_date else None
        data["end_date"] = self.end_date.isoformat() if self.end_date else None
        data["state"] = self.state.value
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# DRAG & DROP TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExistingDrag:
    """Drag de uma barra já agendada."""
    schedule_id: int
    project_id: int
    total_hours: float


@dataclass(frozen=True)
class NewDrag:
    """Drag de um projeto ainda não agendado."""
    project_id: int
    total_hours: float


DragPayload = Union[ExistingDrag, NewDrag]


def encode_drag_payload(payload: DragPayload) -> str:
    """Serializa o payload para o canal de transferência do drag."""
    if isinstance(payload, ExistingDrag):
        return json.dumps({
            "type": "existing",
            "id": payload.schedule_id,
            "project_id": payload.project_id,
            "total_hours": payload.total_hours,
        })
    return json.dumps({
        "type": "new",
        "project_id": payload.project_id,
        "total_hours": payload.total_hours,
    })


def decode_drag_payload(raw: str) -> DragPayload:
    """Inverso de encode_drag_payload. ValueError para payloads inválidos."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError(f"Invalid drag payload: {raw!r}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Invalid drag payload: {raw!r}")

    kind = data.get("type")
    try:
        if kind == "existing":
            return ExistingDrag(
                schedule_id=int(data["id"]),
                project_id=int(data["project_id"]),
                total_hours=float(data["total_hours"]),
            )
        if kind == "new":
            return NewDrag(
                project_id=int(data["project_id"]),
                total_hours=float(data["total_hours"]),
            )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Incomplete drag payload: {raw!r}") from exc
    raise ValueError(f"Unknown drag payload type: {kind!r}")


@dataclass(frozen=True)
class DropTarget:
    """Célula bay/data/row destacada como destino do drag."""
    bay_id: int
    date: date
    row: int = 0
