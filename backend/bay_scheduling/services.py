"""Schedule Store service layer (bays, projects, manufacturing schedules)."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from bay_scheduling.models import ManufacturingBayModel, ManufacturingScheduleModel, ProjectModel
from bay_scheduling.schemas import (
    BayCreate, BayUpdate, ProjectCreate, ScheduleCreate, ScheduleUpdate,
)
from bay_scheduling.types import Bay, Project, ScheduleEntry

logger = logging.getLogger(__name__)


# =====================
# Conversions
# =====================

def bay_to_domain(bay: ManufacturingBayModel) -> Bay:
    return Bay(
        id=bay.id,
        bay_number=bay.bay_number,
        name=bay.name,
        staff_count=bay.staff_count or 0,
        hours_per_person_per_week=bay.hours_per_person_per_week if bay.hours_per_person_per_week is not None else 40.0,
        team=bay.team,
        description=bay.description,
        assembly_staff_count=bay.assembly_staff_count or 0,
        electrical_staff_count=bay.electrical_staff_count or 0,
        is_active=bool(bay.is_active),
    )


def project_to_domain(project: ProjectModel) -> Project:
    return Project(
        id=project.id,
        name=project.name,
        project_number=project.project_number,
        total_hours=project.total_hours,
        phase_percentages={
            "fab": project.fab_percentage,
            "paint": project.paint_percentage,
            "production": project.production_percentage,
            "it": project.it_percentage,
            "ntc": project.ntc_percentage,
            "qc": project.qc_percentage,
        },
    )


def schedule_to_domain(schedule: ManufacturingScheduleModel) -> ScheduleEntry:
    return ScheduleEntry(
        id=schedule.id,
        project_id=schedule.project_id,
        bay_id=schedule.bay_id,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        total_hours=schedule.total_hours if schedule.total_hours is not None else 1000.0,
        row=schedule.row or 0,
        status=schedule.status,
        notes=schedule.notes,
    )


# =====================
# Bays
# =====================

def list_bays(db: Session, active_only: bool = False) -> List[ManufacturingBayModel]:
    query = db.query(ManufacturingBayModel)
    if active_only:
        query = query.filter(ManufacturingBayModel.is_active.is_(True))
    return query.order_by(ManufacturingBayModel.bay_number).all()


def get_bay(bay_id: int, db: Session) -> ManufacturingBayModel:
    bay = db.query(ManufacturingBayModel).filter(ManufacturingBayModel.id == bay_id).first()
    if not bay:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Bay {bay_id} not found")
    return bay


def _check_bay_number(db: Session, bay_number: int, exclude_id: Optional[int] = None) -> None:
    query = db.query(ManufacturingBayModel).filter(ManufacturingBayModel.bay_number == bay_number)
    if exclude_id is not None:
        query = query.filter(ManufacturingBayModel.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Bay number {bay_number} already exists",
        )


def create_bay(bay_in: BayCreate, db: Session) -> ManufacturingBayModel:
    _check_bay_number(db, bay_in.bay_number)
    data = bay_in.model_dump()
    if data.get("staff_count") is None:
        data["staff_count"] = data["assembly_staff_count"] + data["electrical_staff_count"]

    bay = ManufacturingBayModel(**data)
    db.add(bay)
    db.commit()
    db.refresh(bay)
    logger.info(f"Created bay {bay.id} (#{bay.bay_number} {bay.name})")
    return bay


def update_bay(bay_id: int, bay_in: BayUpdate, db: Session) -> ManufacturingBayModel:
    """
    Partial update. When only the assembly/electrical counts are sent,
    staff_count is recomputed as their sum.
    """
    bay = get_bay(bay_id, db)
    changes = bay_in.model_dump(exclude_unset=True)

    if changes.get("bay_number") is not None and changes["bay_number"] != bay.bay_number:
        _check_bay_number(db, changes["bay_number"], exclude_id=bay.id)

    touches_split = "assembly_staff_count" in changes or "electrical_staff_count" in changes
    if touches_split and changes.get("staff_count") is None:
        assembly = changes.get("assembly_staff_count", bay.assembly_staff_count) or 0
        electrical = changes.get("electrical_staff_count", bay.electrical_staff_count) or 0
        changes["staff_count"] = assembly + electrical

    for field, value in changes.items():
        if value is None and field in ("bay_number", "name"):
            continue
        setattr(bay, field, value)

    db.commit()
    db.refresh(bay)
    logger.info(f"Updated bay {bay.id}: {sorted(changes)}")
    return bay


def delete_bay(bay_id: int, db: Session) -> bool:
    bay = db.query(ManufacturingBayModel).filter(ManufacturingBayModel.id == bay_id).first()
    if not bay:
        return False
    db.delete(bay)
    db.commit()
    logger.info(f"Deleted bay {bay_id}")
    return True


# =====================
# Projects
# =====================

def list_projects(db: Session) -> List[ProjectModel]:
    return db.query(ProjectModel).order_by(ProjectModel.project_number).all()


def get_project(project_id: int, db: Session) -> ProjectModel:
    project = db.query(ProjectModel).filter(ProjectModel.id == project_id).first()
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project {project_id} not found")
    return project


def create_project(project_in: ProjectCreate, db: Session) -> ProjectModel:
    exists = db.query(ProjectModel).filter(ProjectModel.project_number == project_in.project_number).first()
    if exists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Project {project_in.project_number} already exists",
        )
    project = ProjectModel(**project_in.model_dump())
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"Created project {project.id} ({project.project_number})")
    return project


# =====================
# Schedules
# =====================

def normalize_row(data: Dict[str, Any]) -> Optional[int]:
    """forced_row_index > row_index > row; negatives clamp to 0. None if absent."""
    for key in ("forced_row_index", "row_index", "row"):
        value = data.get(key)
        if value is not None:
            return max(0, int(value))
    return None


def list_schedules(
    db: Session,
    bay_id: Optional[int] = None,
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[ManufacturingScheduleModel]:
    """
    Schedules with optional filters. The date filters select entries that
    overlap [start_date, end_date].
    """
    query = db.query(ManufacturingScheduleModel)
    if bay_id is not None:
        query = query.filter(ManufacturingScheduleModel.bay_id == bay_id)
    if project_id is not None:
        query = query.filter(ManufacturingScheduleModel.project_id == project_id)
    if start_date is not None:
        # entradas invertidas (start > end) também contam se o start cair na janela
        query = query.filter(or_(
            ManufacturingScheduleModel.end_date >= start_date,
            ManufacturingScheduleModel.start_date >= start_date,
        ))
    if end_date is not None:
        query = query.filter(ManufacturingScheduleModel.start_date <= end_date)
    return query.order_by(
        ManufacturingScheduleModel.bay_id,
        ManufacturingScheduleModel.row,
        ManufacturingScheduleModel.start_date,
        ManufacturingScheduleModel.id,
    ).all()


def get_schedule(schedule_id: int, db: Session) -> ManufacturingScheduleModel:
    schedule = db.query(ManufacturingScheduleModel).filter(ManufacturingScheduleModel.id == schedule_id).first()
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Schedule {schedule_id} not found")
    return schedule


def _warn_inverted(start: Optional[date], end: Optional[date], context: str) -> None:
    if start is not None and end is not None and start > end:
        logger.warning(f"{context}: start_date {start} is after end_date {end}")


def create_schedule(schedule_in: ScheduleCreate, db: Session) -> ManufacturingScheduleModel:
    data = schedule_in.model_dump()
    row = normalize_row(data) or 0
    _warn_inverted(data["start_date"], data["end_date"], f"New schedule for project {data['project_id']}")

    schedule = ManufacturingScheduleModel(
        project_id=data["project_id"],
        bay_id=data["bay_id"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        total_hours=data["total_hours"],
        row=row,
        status=data["status"],
        notes=data["notes"],
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info(
        f"Created schedule {schedule.id}: project {schedule.project_id} on bay {schedule.bay_id} "
        f"({schedule.start_date} - {schedule.end_date}, row {schedule.row})"
    )
    return schedule


def update_schedule(schedule_id: int, schedule_in: ScheduleUpdate, db: Session) -> ManufacturingScheduleModel:
    """Partial update; last write wins."""
    schedule = get_schedule(schedule_id, db)
    changes = schedule_in.model_dump(exclude_unset=True)

    row = normalize_row(changes)
    for key in ("forced_row_index", "row_index", "row"):
        changes.pop(key, None)
    if row is not None:
        changes["row"] = row

    for field, value in changes.items():
        if value is None and field in ("project_id", "bay_id", "start_date", "end_date", "total_hours", "status"):
            continue
        setattr(schedule, field, value)

    _warn_inverted(schedule.start_date, schedule.end_date, f"Schedule {schedule_id}")
    db.commit()
    db.refresh(schedule)
    logger.info(f"Updated schedule {schedule_id}: {sorted(changes)}")
    return schedule


def delete_schedule(schedule_id: int, db: Session) -> bool:
    schedule = db.query(ManufacturingScheduleModel).filter(ManufacturingScheduleModel.id == schedule_id).first()
    if not schedule:
        return False
    db.delete(schedule)
    db.commit()
    logger.info(f"Deleted schedule {schedule_id}")
    return True
