"""FastAPI router for bay scheduling: registries, schedules, grid layout, utilization."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import StreamingResponse

from bay_scheduling.capacity import BayCapacityError, bay_capacity_status, compute_end_date, daily_capacity
from bay_scheduling.models import get_db
from bay_scheduling.schemas import (
    BayCreate, BayRead, BayUpdate, EndDateRequest, EndDateResponse,
    ProjectCreate, ProjectRead, ScheduleCreate, ScheduleRead, ScheduleUpdate,
)
from bay_scheduling.services import (
    bay_to_domain, create_bay, create_project, create_schedule, delete_bay, delete_schedule,
    get_bay, get_project, get_schedule, list_bays, list_projects, list_schedules,
    project_to_domain, schedule_to_domain, update_bay, update_schedule,
)
from bay_scheduling.timeline import BayScheduleGrid
from bay_scheduling.types import DateRange, Granularity
from bay_scheduling.utilization import (
    DEFAULT_WEEKS, calculate_weekly_bay_utilization, current_week_team_utilization, utilization_frame,
)
from feature_flags import FeatureFlags, UtilizationEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Bay Scheduling"])


# =====================
# Bays
# =====================

@router.get("/manufacturing-bays", response_model=List[BayRead])
def api_list_bays(active_only: bool = False, db=Depends(get_db)):
    """List bays ordered by bay number."""
    return list_bays(db, active_only=active_only)


@router.get("/manufacturing-bays/{bay_id}", response_model=BayRead)
def api_get_bay(bay_id: int, db=Depends(get_db)):
    return get_bay(bay_id, db)


@router.post("/manufacturing-bays", response_model=BayRead, status_code=201)
def api_create_bay(payload: BayCreate, db=Depends(get_db)):
    return create_bay(payload, db)


@router.put("/manufacturing-bays/{bay_id}", response_model=BayRead)
@router.patch("/manufacturing-bays/{bay_id}", response_model=BayRead)
def api_update_bay(bay_id: int, payload: BayUpdate, db=Depends(get_db)):
    """Update a bay (staff_count follows assembly + electrical when only those change)."""
    return update_bay(bay_id, payload, db)


@router.delete("/manufacturing-bays/{bay_id}")
def api_delete_bay(bay_id: int, db=Depends(get_db)):
    if not delete_bay(bay_id, db):
        raise HTTPException(status_code=404, detail=f"Bay {bay_id} not found")
    return {"message": "Bay deleted", "bay_id": bay_id}


# =====================
# Projects
# =====================

@router.get("/projects", response_model=List[ProjectRead])
def api_list_projects(db=Depends(get_db)):
    return list_projects(db)


@router.get("/projects/{project_id}", response_model=ProjectRead)
def api_get_project(project_id: int, db=Depends(get_db)):
    return get_project(project_id, db)


@router.post("/projects", response_model=ProjectRead, status_code=201)
def api_create_project(payload: ProjectCreate, db=Depends(get_db)):
    return create_project(payload, db)


# =====================
# Manufacturing schedules
# =====================

@router.get("/manufacturing-schedules", response_model=List[ScheduleRead])
def api_list_schedules(
    bay_id: Optional[int] = None,
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db=Depends(get_db),
):
    """List schedules; start_date/end_date select entries overlapping the window."""
    return list_schedules(db, bay_id=bay_id, project_id=project_id, start_date=start_date, end_date=end_date)


@router.get("/manufacturing-schedules/{schedule_id}", response_model=ScheduleRead)
def api_get_schedule(schedule_id: int, db=Depends(get_db)):
    return get_schedule(schedule_id, db)


@router.post("/manufacturing-schedules", response_model=ScheduleRead, status_code=201)
def api_create_schedule(payload: ScheduleCreate, db=Depends(get_db)):
    return create_schedule(payload, db)


@router.put("/manufacturing-schedules/{schedule_id}", response_model=ScheduleRead)
@router.patch("/manufacturing-schedules/{schedule_id}", response_model=ScheduleRead)
def api_update_schedule(schedule_id: int, payload: ScheduleUpdate, db=Depends(get_db)):
    return update_schedule(schedule_id, payload, db)


@router.delete("/manufacturing-schedules/{schedule_id}")
def api_delete_schedule(schedule_id: int, db=Depends(get_db)):
    if not delete_schedule(schedule_id, db):
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return {"message": "Schedule deleted", "schedule_id": schedule_id}


# =====================
# Grid
# =====================

@router.get("/bay-schedule/layout")
def api_bay_schedule_layout(
    start: date,
    end: date,
    granularity: Optional[Granularity] = None,
    db=Depends(get_db),
) -> Dict[str, Any]:
    """Bars of every schedule overlapping [start, end], positioned on the timeline."""
    config = FeatureFlags.get_config()
    try:
        bays = [bay_to_domain(b) for b in list_bays(db)]
        projects = [project_to_domain(p) for p in list_projects(db)]
        entries = [schedule_to_domain(s) for s in list_schedules(db, start_date=start, end_date=end)]

        row_counts: Dict[int, int] = {}
        for entry in entries:
            row_counts[entry.bay_id] = max(row_counts.get(entry.bay_id, config.default_row_count), entry.row + 1)

        grid = BayScheduleGrid(
            bays=bays,
            projects=projects,
            entries=entries,
            date_range=DateRange(start=start, end=end),
            granularity=granularity or config.default_granularity,
            min_bar_width=config.min_bar_width,
            row_counts=row_counts,
            default_row_count=config.default_row_count,
        )
        return grid.render().to_dict()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.error(f"Error building bay schedule layout: {exc}")
        raise HTTPException(status_code=500, detail="Failed to build bay schedule layout")


@router.post("/bay-schedule/end-date", response_model=EndDateResponse)
def api_bay_schedule_end_date(payload: EndDateRequest, db=Depends(get_db)):
    """End date of a drop: start + ceil(hours / daily capacity of the bay)."""
    bay = bay_to_domain(get_bay(payload.bay_id, db))
    try:
        end_date = compute_end_date(bay, payload.start_date, payload.total_hours)
    except BayCapacityError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return EndDateResponse(
        bay_id=bay.id,
        start_date=payload.start_date,
        end_date=end_date,
        days_needed=(end_date - payload.start_date).days,
        daily_capacity=daily_capacity(bay),
    )


@router.get("/bay-schedule/bays/{bay_id}/capacity")
def api_bay_capacity(bay_id: int, as_of: Optional[date] = None, db=Depends(get_db)) -> Dict[str, Any]:
    """Capacity badge of a bay, counting schedules active on as_of (default today)."""
    bay = bay_to_domain(get_bay(bay_id, db))
    day = as_of or date.today()
    entries = [schedule_to_domain(s) for s in list_schedules(db, bay_id=bay_id, start_date=day, end_date=day)]
    return bay_capacity_status(bay, entries).to_dict()


# =====================
# Utilization
# =====================

def _weekly_utilization(db, start: Optional[date], weeks: int, engine: Optional[UtilizationEngine]):
    start = start or date.today()
    bays = [bay_to_domain(b) for b in list_bays(db, active_only=True)]
    projects = [project_to_domain(p) for p in list_projects(db)]
    entries = [schedule_to_domain(s) for s in list_schedules(db)]
    return calculate_weekly_bay_utilization(entries, projects, bays, start, weeks=weeks, engine=engine)


@router.get("/bay-schedule/utilization")
def api_bay_utilization(
    start: Optional[date] = None,
    weeks: int = Query(DEFAULT_WEEKS, ge=1, le=104),
    engine: Optional[UtilizationEngine] = None,
    db=Depends(get_db),
) -> Dict[str, Any]:
    """Weekly utilization of every active bay."""
    try:
        rows = _weekly_utilization(db, start, weeks, engine)
    except Exception as exc:
        logger.error(f"Error computing bay utilization: {exc}")
        raise HTTPException(status_code=500, detail="Failed to compute bay utilization")

    return {
        "engine": (engine or FeatureFlags.get_utilization_engine()).value,
        "weeks": weeks,
        "utilization": [r.to_dict() for r in rows],
    }


@router.get("/bay-schedule/utilization/team")
def api_team_utilization(team: str, as_of: Optional[date] = None, db=Depends(get_db)) -> Dict[str, Any]:
    """Step utilization of a team's bays in the week of as_of (default today)."""
    team_bays = [bay_to_domain(b) for b in list_bays(db, active_only=True) if b.team == team]
    if not team_bays:
        raise HTTPException(status_code=404, detail=f"No active bays for team {team}")

    projects = [project_to_domain(p) for p in list_projects(db)]
    entries = [schedule_to_domain(s) for s in list_schedules(db)]
    result = current_week_team_utilization(entries, projects, team_bays, today=as_of)
    result["team"] = team
    result["bay_ids"] = [b.id for b in team_bays]
    return result


@router.get("/bay-schedule/utilization/export")
def api_bay_utilization_export(
    start: Optional[date] = None,
    weeks: int = Query(DEFAULT_WEEKS, ge=1, le=104),
    engine: Optional[UtilizationEngine] = None,
    db=Depends(get_db),
) -> Response:
    """Bay × week utilization pivot as CSV."""
    rows = _weekly_utilization(db, start, weeks, engine)
    frame = utilization_frame(rows)
    content = frame.to_csv(index=False)

    return StreamingResponse(
        iter(["\ufeff" + content]),  # BOM for Excel UTF-8
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=Bay-Utilization-{datetime.now().strftime('%Y%m%d')}.csv"
        },
    )
