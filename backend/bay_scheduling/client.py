"""
Cliente REST do Schedule Store.

Leituras (schedules, bays, projetos) ficam em cache por path até serem
invalidadas; escritas bem-sucedidas invalidam a cache de schedules.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests

from bay_scheduling.types import Bay, Project, ScheduleEntry
from feature_flags import FeatureFlags

logger = logging.getLogger(__name__)


class ScheduleStoreError(RuntimeError):
    """Raised when the Schedule Store cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def _jsonable(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.isoformat() if isinstance(v, date) else v) for k, v in payload.items()}


class ScheduleStoreClient:
    """Wrapper simples sobre a API REST de manufacturing schedules."""

    SCHEDULES_PATH = "/api/manufacturing-schedules"
    BAYS_PATH = "/api/manufacturing-bays"
    PROJECTS_PATH = "/api/projects"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[Any] = None,
    ):
        config = FeatureFlags.get_config()
        self.base_url = (base_url or config.store_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.store_timeout_sec
        self.session = session or requests.Session()
        self._cache: Dict[str, Any] = {}

    # ─────────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=_jsonable(payload) if payload is not None else None,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ScheduleStoreError(f"Schedule store unreachable: {exc}") from exc

        if response.status_code >= 400:
            detail = response.text
            try:
                detail_json = response.json()
                if isinstance(detail_json, dict):
                    detail = detail_json.get("detail") or detail_json.get("message") or json.dumps(detail_json)
            except ValueError:
                pass
            raise ScheduleStoreError(
                f"{method} {path} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                detail=str(detail),
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _cache_key(path: str, params: Optional[Dict[str, Any]]) -> str:
        if not params:
            return path
        clean = {k: (v.isoformat() if isinstance(v, date) else v) for k, v in params.items() if v is not None}
        return f"{path}?{urlencode(sorted(clean.items()))}" if clean else path

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None, use_cache: bool = True) -> Any:
        key = self._cache_key(path, params)
        if use_cache and key in self._cache:
            return self._cache[key]
        clean = None
        if params:
            clean = {k: (v.isoformat() if isinstance(v, date) else v) for k, v in params.items() if v is not None}
        data = self._request("GET", path, params=clean)
        self._cache[key] = data
        return data

    def invalidate(self, prefix: Optional[str] = None) -> None:
        """Remove entradas da cache (todas, ou as que começam por prefix)."""
        if prefix is None:
            self._cache.clear()
            return
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    # ─────────────────────────────────────────────────────────────────────────
    # READS
    # ─────────────────────────────────────────────────────────────────────────

    def list_schedules(
        self,
        bay_id: Optional[int] = None,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        use_cache: bool = True,
    ) -> List[ScheduleEntry]:
        params = {
            "bay_id": bay_id,
            "project_id": project_id,
            "start_date": start_date,
            "end_date": end_date,
        }
        data = self.get_json(self.SCHEDULES_PATH, params=params, use_cache=use_cache) or []
        return [ScheduleEntry.from_dict(row) for row in data]

    def list_bays(self, use_cache: bool = True) -> List[Bay]:
        data = self.get_json(self.BAYS_PATH, use_cache=use_cache) or []
        return [Bay.from_dict(row) for row in data]

    def list_projects(self, use_cache: bool = True) -> List[Project]:
        data = self.get_json(self.PROJECTS_PATH, use_cache=use_cache) or []
        return [Project.from_dict(row) for row in data]

    # ─────────────────────────────────────────────────────────────────────────
    # WRITES
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _schedule_body(data: Any, method: str, path: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ScheduleStoreError(f"{method} {path} returned an empty response")
        return data

    def create_schedule(self, payload: Dict[str, Any]) -> ScheduleEntry:
        data = self._request("POST", self.SCHEDULES_PATH, payload=payload)
        self.invalidate(self.SCHEDULES_PATH)
        data = self._schedule_body(data, "POST", self.SCHEDULES_PATH)
        logger.info(f"Created schedule {data.get('id')} for project {data.get('project_id')}")
        return ScheduleEntry.from_dict(data)

    def update_schedule(self, schedule_id: int, payload: Dict[str, Any]) -> ScheduleEntry:
        path = f"{self.SCHEDULES_PATH}/{schedule_id}"
        data = self._request("PUT", path, payload=payload)
        self.invalidate(self.SCHEDULES_PATH)
        data = self._schedule_body(data, "PUT", path)
        logger.info(f"Updated schedule {schedule_id}")
        return ScheduleEntry.from_dict(data)

    def delete_schedule(self, schedule_id: int) -> None:
        self._request("DELETE", f"{self.SCHEDULES_PATH}/{schedule_id}")
        self.invalidate(self.SCHEDULES_PATH)
        logger.info(f"Deleted schedule {schedule_id}")
