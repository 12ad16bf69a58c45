#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
                    SEED DEV DATA - Bays, projetos e schedules de demo
═══════════════════════════════════════════════════════════════════════════════

Popula um servidor BayPlan a correr com dados de desenvolvimento:
- 6 bays (equipas Assembly / Electrical / Paint)
- 10 projetos com horas totais
- schedules espalhados pelas próximas semanas, com fim calculado pela
  capacidade da bay

Uso:
    python run_server.py                # noutro terminal
    python scripts/seed_dev_data.py [--base-url http://127.0.0.1:8000]
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import logging
import random
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import requests

from bay_scheduling.capacity import BayCapacityError, compute_end_date
from bay_scheduling.types import Bay
from feature_flags import FeatureFlags

logger = logging.getLogger("seed_dev_data")

BAYS = [
    {"bay_number": 1, "name": "Bay 1", "team": "Assembly", "assembly_staff_count": 3, "electrical_staff_count": 1},
    {"bay_number": 2, "name": "Bay 2", "team": "Assembly", "assembly_staff_count": 2, "electrical_staff_count": 2},
    {"bay_number": 3, "name": "Bay 3", "team": "Assembly", "assembly_staff_count": 2, "electrical_staff_count": 0},
    {"bay_number": 4, "name": "Bay 4", "team": "Electrical", "assembly_staff_count": 0, "electrical_staff_count": 3},
    {"bay_number": 5, "name": "Bay 5", "team": "Electrical", "assembly_staff_count": 1, "electrical_staff_count": 2},
    {"bay_number": 6, "name": "Paint Booth", "team": "Paint", "staff_count": 2, "hours_per_person_per_week": 32},
]


def api_call(session: requests.Session, base_url: str, method: str, endpoint: str,
             data: Optional[Dict] = None) -> Optional[Any]:
    """Chamada à API; devolve None (e regista) em caso de erro."""
    url = f"{base_url}{endpoint}"
    try:
        resp = session.request(method, url, json=data, timeout=FeatureFlags.get_config().store_timeout_sec)
    except requests.RequestException as e:
        logger.error(f"{method} {endpoint} failed: {e}")
        return None

    if resp.status_code in (200, 201):
        return resp.json()
    logger.warning(f"{method} {endpoint}: HTTP {resp.status_code}: {resp.text[:200]}")
    return None


def check_backend_status(session: requests.Session, base_url: str) -> bool:
    return api_call(session, base_url, "GET", "/api/health") is not None


def seed_bays(session: requests.Session, base_url: str) -> List[Bay]:
    logger.info("Seeding bays...")
    bays = []
    for payload in BAYS:
        result = api_call(session, base_url, "POST", "/api/manufacturing-bays", payload)
        if result:
            bays.append(Bay.from_dict(result))
            logger.info(f"  ✅ {result['name']} (staff {result['staff_count']})")
    return bays


def seed_projects(session: requests.Session, base_url: str, count: int = 10) -> List[Dict[str, Any]]:
    logger.info("Seeding projects...")
    projects = []
    for i in range(1, count + 1):
        payload = {
            "project_number": f"PRJ-{800 + i}",
            "name": f"Demo Project {i}",
            "total_hours": float(random.choice([160, 240, 320, 480, 640, 960])),
        }
        result = api_call(session, base_url, "POST", "/api/projects", payload)
        if result:
            projects.append(result)
            logger.info(f"  ✅ {result['project_number']} ({result['total_hours']} h)")
    return projects


def seed_schedules(session: requests.Session, base_url: str, bays: List[Bay],
                   projects: List[Dict[str, Any]]) -> int:
    logger.info("Seeding schedules...")
    if not bays:
        logger.warning("No bays available, skipping schedules")
        return 0

    monday = date.today() - timedelta(days=date.today().weekday())
    created = 0
    for i, project in enumerate(projects):
        bay = bays[i % len(bays)]
        start = monday + timedelta(weeks=random.randint(0, 6), days=random.randint(0, 4))
        try:
            end = compute_end_date(bay, start, project["total_hours"])
        except BayCapacityError as e:
            logger.warning(f"  ⚠ {project['project_number']}: {e}")
            continue

        payload = {
            "project_id": project["id"],
            "bay_id": bay.id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_hours": project["total_hours"],
            "row": i // len(bays),
        }
        if api_call(session, base_url, "POST", "/api/manufacturing-schedules", payload):
            created += 1
            logger.info(f"  ✅ {project['project_number']} → {bay.name}: {start} - {end}")
    return created


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed a BayPlan server with demo data")
    parser.add_argument("--base-url", default=FeatureFlags.get_config().store_url)
    parser.add_argument("--projects", type=int, default=10)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    random.seed(args.seed)
    base_url = args.base_url.rstrip("/")

    print("=" * 70)
    print("  BayPlan - Development Data Seeding")
    print("=" * 70)

    session = requests.Session()
    logger.info("Checking backend status...")
    if not check_backend_status(session, base_url):
        logger.error("Backend not running! Start with: python run_server.py")
        sys.exit(1)

    bays = seed_bays(session, base_url)
    projects = seed_projects(session, base_url, args.projects)
    created = seed_schedules(session, base_url, bays, projects)

    print("=" * 70)
    logger.info(f"Seeding complete! {len(bays)} bays, {len(projects)} projects, {created} schedules")
    print("=" * 70)


if __name__ == "__main__":
    main()
