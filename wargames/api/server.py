"""
War Games Engine: API Server
============================

HTTP transport around the intervention engine, the world store and the
cascade headline rewriter.

Endpoints:
- GET  /health          -> Liveness
- GET  /api/world       -> Current World (wire format)
- POST /api/intervene   -> Apply one edited headline, save, return World
- POST /api/rewrite     -> Ask the rewriter for downstream headline updates

Configuration (environment):
- WARGAMES_WORLD_PATH   World JSON file (default data/wwi.json)
- WARGAMES_REWRITER     "mock" (default) or "openai"
- WARGAMES_HISTORY_LIMIT  Saved worlds kept in memory (default 20)
- WARGAMES_AUDIT_LIMIT    Audit entries and metric samples kept per
                          layer or series (default 1000)
- OPENAI_API_KEY        Required by the openai rewriter

Usage:
    uvicorn wargames.api.server:app --reload
"""
import asyncio
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rewriter import CascadeRewriter, RewriteRequest, TimelineEntry
from rewriter.providers import RewriteProvider, MockProvider

from ..contracts.base import ErrorCode
from ..engine import EngineConfig, InterventionEngine, InterventionOutcome
from ..observability import ObservabilityConfig
from ..storage import WorldStore, WorldStoreConfig, create_store

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

# Global instances
store: Optional[WorldStore] = None
engine: Optional[InterventionEngine] = None
rewriter: Optional[CascadeRewriter] = None

# Serializes load -> intervene -> save
world_lock: Optional[asyncio.Lock] = None

DEFAULT_HISTORY_LIMIT = 20
DEFAULT_AUDIT_LIMIT = 1000


def create_provider(kind: str) -> RewriteProvider:
    if kind == "mock":
        return MockProvider()
    if kind == "openai":
        from rewriter.providers.openai_chat import OpenAIChatProvider
        return OpenAIChatProvider()
    raise ValueError(f"Unknown rewriter provider: {kind!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize store, engine and rewriter on startup."""
    global store, engine, rewriter, world_lock

    world_path = os.environ.get("WARGAMES_WORLD_PATH", os.path.join(os.getcwd(), "data", "wwi.json"))
    provider_kind = os.environ.get("WARGAMES_REWRITER", "mock")

    print(f"[*] Loading world from: {world_path}")
    print(f"[*] Rewriter provider: {provider_kind}")

    try:
        history_limit = int(os.environ.get("WARGAMES_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT))
        audit_limit = int(os.environ.get("WARGAMES_AUDIT_LIMIT", DEFAULT_AUDIT_LIMIT))
        store = create_store(WorldStoreConfig(
            backend_type="file", world_path=world_path, max_versions=history_limit
        ))
        engine = InterventionEngine(EngineConfig(observability=ObservabilityConfig(
            max_entries_per_layer=audit_limit, max_points_per_metric=audit_limit
        )))
        rewriter = CascadeRewriter(
            create_provider(provider_kind), max_audit_entries=audit_limit
        )
        world_lock = asyncio.Lock()
        print("[*] Engine initialized successfully.")
    except Exception as e:
        print(f"[!] FAILED to initialize engine: {e}")
        raise e

    yield

    print("[*] Shutting down engine.")
    store = None
    engine = None
    rewriter = None
    world_lock = None


app = FastAPI(
    title="War Games Engine API",
    version="0.1.0",
    description="Counterfactual interventions over a causal event graph",
    lifespan=lifespan
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class InterveneBody(BaseModel):
    id: str
    edited: str


class TimelineItem(BaseModel):
    id: str
    year: int
    text: str = ""
    influences: List[str] = []


class RewriteBody(BaseModel):
    changedId: Optional[str] = None
    newText: Optional[str] = None
    timeline: Optional[List[TimelineItem]] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

def _require_initialized():
    if store is None or engine is None or rewriter is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")


def _load_world():
    result = store.load()
    if result.is_failure:
        status = 404 if result.error.code == ErrorCode.WORLD_NOT_FOUND else 500
        raise HTTPException(status_code=status, detail=result.error.message)
    return result.value


@app.get("/health")
async def health_check():
    """System status."""
    _require_initialized()
    return {"status": "online", "rewriter": rewriter.provider.provider_id}


@app.get("/api/world")
def get_world():
    _require_initialized()
    return _load_world().to_dict()


@app.post("/api/intervene")
async def post_intervene(body: InterveneBody):
    """
    Apply an edited headline to one event and persist the new World.

    Unknown event ids are rejected with 404 and nothing is saved.
    """
    _require_initialized()

    async with world_lock:
        outcome = await run_in_threadpool(_apply_intervention, body.id, body.edited)

    return outcome.world.to_dict()


def _apply_intervention(event_id: str, edited: str) -> InterventionOutcome:
    """Load, intervene and save. Blocking file I/O; runs in the threadpool."""
    world = _load_world()
    outcome = engine.run(world, event_id, edited)
    if not outcome.applied:
        raise HTTPException(status_code=404, detail=outcome.error.message)

    written = store.save(outcome.world)
    if not written.success:
        raise HTTPException(status_code=500, detail=written.error.message)
    return outcome


@app.post("/api/rewrite")
def post_rewrite(body: RewriteBody):
    """
    Ask the rewriter which downstream headlines change.

    Runs in the threadpool since providers may block on network I/O.
    """
    _require_initialized()

    if not body.changedId or not body.timeline:
        return JSONResponse(status_code=400, content={"error": "Missing changedId or timeline"})

    request = RewriteRequest(
        changed_id=body.changedId,
        new_text=body.newText,
        timeline=tuple(
            TimelineEntry(
                event_id=item.id,
                year=item.year,
                text=item.text,
                influences=tuple(item.influences),
            )
            for item in body.timeline
        ),
    )
    response = rewriter.rewrite(request)

    if not response.success:
        return JSONResponse(
            status_code=500,
            content={
                "error": response.error.message,
                "code": response.error.error_code.value,
                "raw": response.raw,
            },
        )

    return {"updates": [u.to_dict() for u in response.updates], "raw": response.raw}
