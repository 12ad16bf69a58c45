"""Pydantic schemas for the Schedule Store API."""
from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from bay_scheduling.types import ScheduleStatus

_STATUSES = {s.value for s in ScheduleStatus}


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in _STATUSES:
        raise ValueError(f"status must be one of {sorted(_STATUSES)}")
    return value


# =====================
# Bays
# =====================

class BayBase(BaseModel):
    bay_number: int = Field(ge=0)
    name: str
    description: Optional[str] = None
    team: Optional[str] = "General"
    staff_count: Optional[int] = Field(default=None, ge=0)
    assembly_staff_count: int = Field(default=0, ge=0)
    electrical_staff_count: int = Field(default=0, ge=0)
    hours_per_person_per_week: float = Field(default=40.0, ge=0)
    is_active: bool = True


class BayCreate(BayBase):
    pass


class BayUpdate(BaseModel):
    bay_number: Optional[int] = Field(default=None, ge=0)
    name: Optional[str] = None
    description: Optional[str] = None
    team: Optional[str] = None
    staff_count: Optional[int] = Field(default=None, ge=0)
    assembly_staff_count: Optional[int] = Field(default=None, ge=0)
    electrical_staff_count: Optional[int] = Field(default=None, ge=0)
    hours_per_person_per_week: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class BayRead(BayBase):
    id: int
    staff_count: int = 0

    class Config:
        from_attributes = True


# =====================
# Projects
# =====================

class ProjectCreate(BaseModel):
    project_number: str
    name: str
    total_hours: Optional[float] = Field(default=None, ge=0)
    fab_percentage: float = Field(default=27.0, ge=0, le=100)
    paint_percentage: float = Field(default=7.0, ge=0, le=100)
    production_percentage: float = Field(default=60.0, ge=0, le=100)
    it_percentage: float = Field(default=7.0, ge=0, le=100)
    ntc_percentage: float = Field(default=7.0, ge=0, le=100)
    qc_percentage: float = Field(default=7.0, ge=0, le=100)


class ProjectRead(ProjectCreate):
    id: int

    class Config:
        from_attributes = True


# =====================
# Schedules
# =====================

class ScheduleCreate(BaseModel):
    project_id: int
    bay_id: int
    start_date: date
    end_date: date
    total_hours: float = Field(default=1000.0, ge=0)
    row: Optional[int] = None
    row_index: Optional[int] = None
    forced_row_index: Optional[int] = None
    status: str = ScheduleStatus.SCHEDULED.value
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class ScheduleUpdate(BaseModel):
    project_id: Optional[int] = None
    bay_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_hours: Optional[float] = Field(default=None, ge=0)
    row: Optional[int] = None
    row_index: Optional[int] = None
    forced_row_index: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class ScheduleRead(BaseModel):
    id: int
    project_id: int
    bay_id: int
    start_date: date
    end_date: date
    total_hours: float
    row: int = 0
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# =====================
# Grid helpers
# =====================

class EndDateRequest(BaseModel):
    bay_id: int
    start_date: date
    total_hours: float = Field(ge=0)


class EndDateResponse(BaseModel):
    bay_id: int
    start_date: date
    end_date: date
    days_needed: int
    daily_capacity: float
