# file: backend/main.py
"""
FastAPI Backend - Org Chart Planner API v1.

One PlanningSession per process, held on ``app.state.session`` and built
lazily from the sample organization on first use.

Endpoints:
  GET    /hierarchy                  - effective hierarchy + diagnostics
  GET    /context/{person_id}        - manager, peers and downward team
  GET    /search                     - name / title / email search
  POST   /planning/enter             - enable editing
  POST   /planning/exit              - leave planning (refuses unsaved edits)
  POST   /planning/discard           - drop pending edits
  PATCH  /employees/{id}             - field edit (planning mode only)
  POST   /employees/{id}/reassign    - move under a new manager
  GET    /drift                      - base vs effective dataset
  GET    /scenarios                  - saved scenarios
  POST   /scenarios                  - save the effective dataset
  GET    /scenarios/{id}             - full scenario
  DELETE /scenarios/{id}             - delete a scenario
  POST   /scenarios/{id}/load        - replay a scenario as pending edits
  GET    /scenarios/{a}/compare/{b}  - drift between two scenarios
  POST   /generate                   - replace the org with a generated one
  GET    /metrics                    - session metrics
"""
from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from orgchart_kernel.context import ContextCache
from orgchart_kernel.diagnostics import compute_diagnostics
from orgchart_kernel.errors import (
    CyclicReassignmentError,
    NotInPlanningModeError,
    UnknownEmployeeError,
)
from orgchart_kernel.scenarios import ScenarioStore
from orgchart_kernel.snapshot import ScenarioIntegrityError
from orgchart_runtime.config import configure_logging, load_config
from orgchart_runtime.directory import InMemoryDirectory
from orgchart_runtime.scenario_repository import SqliteScenarioRepository
from orgchart_runtime.session import (
    PlanningSession,
    ScenarioNotFoundError,
    UnsavedChangesError,
)

from backend.postgres_scenario_repository import PostgresScenarioRepository

from generator.compiler import GeneratorInvariantError, compile_org
from generator.sample_data import sample_employees
from generator.template_spec import OrgTemplateSpec

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

CONFIG = load_config()
configure_logging(CONFIG.log_level)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="OrgChart Planner API",
    version="1.0.0",
    description="Org chart hierarchy, context lookup and scenario planning",
)
app.state.session = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        CONFIG.frontend_url,
        "http://localhost:5173",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class EmployeePatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    manager_id: Optional[str] = None
    account_enabled: Optional[bool] = None


class ReassignRequest(BaseModel):
    manager_id: Optional[str] = None


class ExitPlanningRequest(BaseModel):
    discard: bool = False


class SaveScenarioRequest(BaseModel):
    name: str
    description: str = ""
    author: Optional[str] = None


class GenerateRequest(BaseModel):
    headcount: int
    department_count: int
    max_span: int
    seed: int = 42
    inactive_share: int = 0
    dangling_manager_count: int = 0
    cycle_count: int = 0
    duplicate_count: int = 0


# Fields that may be cleared to null; the rest are required strings/bools.
_NULLABLE_FIELDS = ("phone", "location", "avatar", "manager_id")

# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = (
    (UnknownEmployeeError, 404),
    (ScenarioNotFoundError, 404),
    (NotInPlanningModeError, 409),
    (UnsavedChangesError, 409),
    (CyclicReassignmentError, 422),
    (ScenarioIntegrityError, 500),
    (GeneratorInvariantError, 500),
    (ValueError, 422),
)


def _error_response(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


for _error_cls, _status in _STATUS_BY_ERROR:
    app.add_exception_handler(_error_cls, _error_response(_status))

# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _build_store() -> ScenarioStore:
    if CONFIG.database_url:
        return PostgresScenarioRepository(CONFIG.database_url)
    if CONFIG.db_path:
        return SqliteScenarioRepository(CONFIG.db_path)
    raise HTTPException(
        status_code=500,
        detail="No scenario storage configured: set DATABASE_URL or ORGCHART_DB_PATH",
    )


def build_session(employees, store: Optional[ScenarioStore] = None) -> PlanningSession:
    """A session over *employees*, served by an in-memory directory."""
    employees = list(employees)
    session = PlanningSession(
        source=InMemoryDirectory(employees),
        store=store if store is not None else _build_store(),
        cache=ContextCache(max_depth=CONFIG.context_max_depth),
        search_limit=CONFIG.search_limit,
    )
    session.load_full(employees)
    return session


def _session() -> PlanningSession:
    if app.state.session is None:
        app.state.session = build_session(sample_employees())
        logger.info("Planning session started with the sample organization")
    return app.state.session


def _hierarchy_payload(session: PlanningSession) -> dict:
    result = session.hierarchy()
    payload = result.to_dict()
    payload["summary"] = compute_diagnostics(result)
    payload["planning_mode"] = session.planning_mode
    payload["edit_status"] = {
        eid: session.overlay.status_of(eid).value for eid in session.overlay.overlay
    }
    return payload


def _reconcile_payload(session: PlanningSession, outcome) -> dict:
    return {
        "planning_mode": session.planning_mode,
        "dropped_ids": list(outcome.dropped_ids),
        "retained_count": outcome.retained_count,
        "reassigned_count": outcome.reassigned_count,
        "duplicate_ids": list(outcome.duplicate_ids),
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    return {"status": "ok", "version": "1.0.0"}


@app.get("/hierarchy")
def get_hierarchy():
    return _hierarchy_payload(_session())


@app.get("/context/{person_id}")
async def get_context(person_id: str):
    session = _session()
    context = await session.context_for(person_id)
    return {
        "person_id": person_id,
        "manager_ref": session.cache.manager_ref(person_id),
        "employees": [e.to_dict() for e in context],
    }


@app.get("/search")
def search(q: str = "", department: Optional[str] = None):
    results = _session().search(q, department)
    return {"query": q, "results": [e.to_dict() for e in results]}


# -- Planning mode --------------------------------------------------------


@app.post("/planning/enter")
def enter_planning():
    session = _session()
    session.enter_planning()
    return {"planning_mode": session.planning_mode}


@app.post("/planning/exit")
def exit_planning(req: Optional[ExitPlanningRequest] = None):
    session = _session()
    discarded = session.exit_planning(discard=req.discard if req else False)
    return {"planning_mode": session.planning_mode, "discarded": discarded}


@app.post("/planning/discard")
def discard_edits():
    return {"discarded": _session().discard()}


@app.patch("/employees/{employee_id}")
def edit_employee(employee_id: str, req: EmployeePatchRequest):
    changes: Dict[str, Any] = req.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        if value is None and field_name not in _NULLABLE_FIELDS:
            raise HTTPException(
                status_code=422, detail=f"{field_name!r} cannot be null",
            )
    if not changes:
        raise HTTPException(status_code=422, detail="Empty patch")
    session = _session()
    updated = session.edit(employee_id, changes)
    return {
        "employee": updated.to_dict(),
        "status": session.overlay.status_of(employee_id).value,
    }


@app.post("/employees/{employee_id}/reassign")
def reassign_employee(employee_id: str, req: ReassignRequest):
    session = _session()
    updated = session.reassign(employee_id, req.manager_id or None)
    return {
        "employee": updated.to_dict(),
        "status": session.overlay.status_of(employee_id).value,
    }


@app.get("/drift")
def drift():
    return _session().compare_to_base()


# -- Scenarios ------------------------------------------------------------


@app.get("/scenarios")
def list_scenarios():
    return {"scenarios": [s.summary() for s in _session().list_scenarios()]}


@app.post("/scenarios", status_code=201)
def save_scenario(req: SaveScenarioRequest):
    snapshot = _session().save_scenario(req.name, req.description, req.author)
    return snapshot.summary()


@app.get("/scenarios/{scenario_id}")
def get_scenario(scenario_id: str):
    return _session().get_scenario(scenario_id).to_dict()


@app.delete("/scenarios/{scenario_id}")
def delete_scenario(scenario_id: str):
    _session().delete_scenario(scenario_id)
    return {"status": "deleted", "scenario_id": scenario_id}


@app.post("/scenarios/{scenario_id}/load")
def load_scenario(scenario_id: str):
    session = _session()
    outcome = session.load_scenario(scenario_id)
    return _reconcile_payload(session, outcome)


@app.get("/scenarios/{scenario_a}/compare/{scenario_b}")
def compare_scenarios(scenario_a: str, scenario_b: str):
    return _session().compare_scenarios(scenario_a, scenario_b)


# -- Generator / metrics --------------------------------------------------


@app.post("/generate")
def generate(req: GenerateRequest):
    """Replace the session with a generated organization. Scenarios are kept."""
    spec = OrgTemplateSpec(
        headcount=req.headcount,
        department_count=req.department_count,
        max_span=req.max_span,
        inactive_share=req.inactive_share,
        dangling_manager_count=req.dangling_manager_count,
        cycle_count=req.cycle_count,
        duplicate_count=req.duplicate_count,
    )
    employees, manifest = compile_org(spec, req.seed)
    current = _session()
    if current.planning_mode and current.overlay.dirty:
        raise UnsavedChangesError(len(current.overlay.overlay))
    app.state.session = build_session(employees, store=current.store)
    logger.info("Generated organization: %d records (seed=%d)", len(employees), req.seed)
    payload = _hierarchy_payload(app.state.session)
    payload["manifest"] = manifest
    return payload


@app.get("/metrics")
def metrics():
    return dataclasses.asdict(_session().get_metrics())
