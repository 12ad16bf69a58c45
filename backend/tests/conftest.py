"""
Fixtures comuns para os testes do bay scheduling.
"""
import os
import sys
import tempfile
from dataclasses import fields, replace
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

# Base de dados temporária antes de importar a app (o engine é criado no import)
_db_fd, _db_path = tempfile.mkstemp(suffix=".db")
os.close(_db_fd)
os.environ["BAYPLAN_DATABASE_URL"] = f"sqlite:///{_db_path}"
for _var in ("BAYPLAN_UTILIZATION_ENGINE", "BAYPLAN_VIEW_ONLY", "BAYPLAN_EXCLUDED_TEAMS",
             "BAYPLAN_DEFAULT_ROW_COUNT", "BAYPLAN_MIN_BAR_WIDTH", "BAYPLAN_DEFAULT_GRANULARITY"):
    os.environ.pop(_var, None)

from api import app  # noqa: E402
from bay_scheduling.client import ScheduleStoreError  # noqa: E402
from bay_scheduling.models import Base, engine  # noqa: E402
from bay_scheduling.types import Bay, Project, ScheduleEntry  # noqa: E402
from feature_flags import FeatureFlags  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    if os.path.exists(_db_path):
        os.unlink(_db_path)


@pytest.fixture(autouse=True)
def reset_feature_flags():
    """Cada teste começa com flags recarregadas do ambiente."""
    FeatureFlags.reset()
    yield
    FeatureFlags.reset()


@pytest.fixture
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def test_client(clean_db):
    """Cliente de teste FastAPI sobre uma base de dados vazia."""
    return TestClient(app)


# ═══════════════════════════════════════════════════════════════════════════════
# DOMAIN SAMPLES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_bays():
    """Bays de exemplo (a bay 3 não tem staff)."""
    return [
        Bay(id=1, bay_number=1, name="Bay 1", staff_count=2, hours_per_person_per_week=40, team="Assembly"),
        Bay(id=2, bay_number=2, name="Bay 2", staff_count=4, hours_per_person_per_week=40, team="Electrical"),
        Bay(id=3, bay_number=3, name="Empty Bay", staff_count=0, hours_per_person_per_week=40, team="Assembly"),
    ]


@pytest.fixture
def sample_projects():
    return [
        Project(id=10, name="Alpha", project_number="PRJ-810", total_hours=400),
        Project(id=11, name="Beta", project_number="PRJ-811", total_hours=800),
        Project(id=12, name="Gamma", project_number="PRJ-812", total_hours=320),
    ]


@pytest.fixture
def sample_entries():
    """Schedules de exemplo em Janeiro/Fevereiro de 2024."""
    return [
        ScheduleEntry(id=100, project_id=10, bay_id=1, start_date=date(2024, 1, 8),
                      end_date=date(2024, 1, 19), total_hours=400, row=0),
        ScheduleEntry(id=101, project_id=11, bay_id=1, start_date=date(2024, 1, 15),
                      end_date=date(2024, 2, 2), total_hours=800, row=1),
        ScheduleEntry(id=102, project_id=12, bay_id=2, start_date=date(2024, 1, 22),
                      end_date=date(2024, 2, 9), total_hours=320, row=0),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# FAKE STORE
# ═══════════════════════════════════════════════════════════════════════════════

_ENTRY_FIELDS = {f.name for f in fields(ScheduleEntry)}


class FakeScheduleStore:
    """Schedule Store em memória; regista as chamadas e pode falhar à pedido."""

    def __init__(self, entries=(), bays=(), projects=()):
        self.entries = {e.id: e for e in entries}
        self.bays = list(bays)
        self.projects = list(projects)
        self.calls = []
        self.fail = False
        self._next_id = max(self.entries, default=0) + 1

    def _check(self, method, path):
        if self.fail:
            raise ScheduleStoreError(f"{method} {path} failed with HTTP 500", status_code=500)

    def create_schedule(self, payload):
        self.calls.append(("create", None, dict(payload)))
        self._check("POST", "/api/manufacturing-schedules")
        entry = ScheduleEntry(
            id=self._next_id,
            project_id=payload["project_id"],
            bay_id=payload["bay_id"],
            start_date=payload["start_date"],
            end_date=payload["end_date"],
            total_hours=payload["total_hours"],
            row=payload.get("row", 0),
        )
        self._next_id += 1
        self.entries[entry.id] = entry
        return entry

    def update_schedule(self, schedule_id, payload):
        self.calls.append(("update", schedule_id, dict(payload)))
        self._check("PUT", f"/api/manufacturing-schedules/{schedule_id}")
        changes = {k: v for k, v in payload.items() if k in _ENTRY_FIELDS}
        updated = replace(self.entries[schedule_id], **changes)
        self.entries[schedule_id] = updated
        return updated

    def delete_schedule(self, schedule_id):
        self.calls.append(("delete", schedule_id, None))
        self._check("DELETE", f"/api/manufacturing-schedules/{schedule_id}")
        self.entries.pop(schedule_id, None)

    def list_schedules(self, use_cache=True, **filters):
        return list(self.entries.values())

    def list_bays(self, use_cache=True):
        return list(self.bays)

    def list_projects(self, use_cache=True):
        return list(self.projects)

    def writes(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def fake_store(sample_entries, sample_bays, sample_projects):
    return FakeScheduleStore(sample_entries, sample_bays, sample_projects)


# ═══════════════════════════════════════════════════════════════════════════════
# API SAMPLES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def seeded(test_client):
    """Cria 2 bays, 2 projetos e 2 schedules via API; devolve os ids."""
    bay_a = test_client.post("/api/manufacturing-bays", json={
        "bay_number": 1, "name": "Bay 1", "team": "Assembly", "staff_count": 2,
    }).json()
    bay_b = test_client.post("/api/manufacturing-bays", json={
        "bay_number": 2, "name": "Bay 2", "team": "Electrical",
        "assembly_staff_count": 1, "electrical_staff_count": 2,
    }).json()
    project_a = test_client.post("/api/projects", json={
        "project_number": "PRJ-810", "name": "Alpha", "total_hours": 400,
    }).json()
    project_b = test_client.post("/api/projects", json={
        "project_number": "PRJ-811", "name": "Beta", "total_hours": 800,
    }).json()
    schedule_a = test_client.post("/api/manufacturing-schedules", json={
        "project_id": project_a["id"], "bay_id": bay_a["id"],
        "start_date": "2024-01-08", "end_date": "2024-01-19", "total_hours": 400,
    }).json()
    schedule_b = test_client.post("/api/manufacturing-schedules", json={
        "project_id": project_b["id"], "bay_id": bay_b["id"],
        "start_date": "2024-02-05", "end_date": "2024-03-01", "total_hours": 800, "row": 2,
    }).json()
    return {
        "bays": [bay_a["id"], bay_b["id"]],
        "projects": [project_a["id"], project_b["id"]],
        "schedules": [schedule_a["id"], schedule_b["id"]],
    }
