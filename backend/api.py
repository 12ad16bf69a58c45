from __future__ import annotations

from typing import Any, Dict
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from bay_scheduling.api import router as bay_scheduling_router
from bay_scheduling.models import init_db
from feature_flags import FeatureFlags

logger = logging.getLogger(__name__)

app = FastAPI(title="BayPlan – Bay Scheduling")
app.include_router(bay_scheduling_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()
logger.info(f"Bay scheduling API ready (flags: {FeatureFlags.to_dict()})")


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "flags": FeatureFlags.to_dict()}
