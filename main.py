from fastapi import FastAPI, Request, Header, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from typing import Optional

import json as _json
import uuid as _uuid
from datetime import datetime as _dt, timezone as _tz

import config
from api_budget import daily_budget
from agent.omni_agent import OmniIntelligenceAgent, LLMQuotaExceeded, QUOTA_MESSAGE, sanitize_target_asset
from core.analysis_orchestrator import AnalysisOrchestrator
from core.dashboard_state import DashboardState
from core.recommendation_lookup import find_recommendation
from core.scheduler import MarketScheduler
from data.image_provider import ImageEnrichmentClient
from data.intelligence_client import IntelligenceClient, MissingCredentialsError
from data.market_store import MarketDataStore, build_initial_markets
from data.market_universe import INITIAL_RECOMMENDATIONS, INITIAL_SUMMARY
from data.models import Recommendation

SERVICE_UNAVAILABLE = "Service unavailable. Please try again later."
SETUP_REQUIRED = "Intelligence service is not configured. Check the API keys and restart."

app = FastAPI(title="OmniTrade Pulse API")

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    print(f"[VALIDATION_ERROR] path={request.url.path} method={request.method}")
    print(f"[VALIDATION_ERROR] errors={exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.errors(),
            "message": "Request validation failed - check field names and types.",
            "request_id": str(_uuid.uuid4()),
            "as_of": _dt.now(_tz.utc).isoformat(),
        },
    )


@app.exception_handler(_json.JSONDecodeError)
async def json_decode_exception_handler(request: Request, exc: _json.JSONDecodeError):
    print(f"[JSON_DECODE_ERROR] path={request.url.path} method={request.method}")
    print(f"[JSON_DECODE_ERROR] error={exc}")
    return JSONResponse(
        status_code=400,
        content={
            "error": f"Malformed JSON: {str(exc)}",
            "message": "Could not parse request body as JSON.",
            "request_id": str(_uuid.uuid4()),
            "as_of": _dt.now(_tz.utc).isoformat(),
        },
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

agent = None
state = None
store = None
orchestrator = None
scheduler = None
intelligence_client = None


def build_dashboard(client=None, images=None, rng=None):
    """Wire state, store, orchestrator and scheduler around one state container."""
    dash_state = DashboardState(
        build_initial_markets(),
        recommendations=[Recommendation.model_validate(r) for r in INITIAL_RECOMMENDATIONS],
        summary=INITIAL_SUMMARY,
    )
    dash_store = MarketDataStore(dash_state, drift_limit_pct=config.MARKET_DRIFT_LIMIT_PCT, rng=rng)
    client = client or IntelligenceClient(
        url=config.INTELLIGENCE_URL,
        api_key=config.INTELLIGENCE_API_KEY,
        timeout=config.INTELLIGENCE_TIMEOUT_SECONDS,
    )
    images = images or ImageEnrichmentClient(
        api_key=config.OPENAI_API_KEY,
        model=config.IMAGE_MODEL,
        enabled=config.IMAGE_ENRICHMENT_ENABLED,
    )
    dash_orchestrator = AnalysisOrchestrator(dash_state, dash_store, client, images=images)
    dash_scheduler = MarketScheduler(
        dash_state,
        dash_store,
        dash_orchestrator,
        market_interval=config.MARKET_TICK_SECONDS,
        clock_interval=config.CLOCK_TICK_SECONDS,
        startup_delay=config.ANALYSIS_STARTUP_DELAY,
    )
    return dash_state, dash_store, dash_orchestrator, dash_scheduler


def _get_agent():
    global agent
    if agent is None and config.ANTHROPIC_API_KEY:
        agent = OmniIntelligenceAgent(
            api_key=config.ANTHROPIC_API_KEY,
            model=config.ANTHROPIC_MODEL,
            timeout=config.LLM_TIMEOUT_SECONDS,
        )
    return agent


@app.on_event("startup")
async def startup_event():
    global state, store, orchestrator, scheduler, intelligence_client
    state, store, orchestrator, scheduler = build_dashboard()
    intelligence_client = orchestrator.client
    scheduler.start()
    print(f"[INIT] Dashboard ready: {len(state.assets())} assets, intelligence at {config.INTELLIGENCE_URL}")
    if not config.ANTHROPIC_API_KEY:
        print("[INIT] WARNING: ANTHROPIC_API_KEY not set, the intelligence proxy will answer 503")


@app.on_event("shutdown")
async def shutdown_event():
    if scheduler is not None:
        await scheduler.stop()
    if intelligence_client is not None:
        await intelligence_client.close()


# ============================================================
# API Routes
# ============================================================


@app.get("/")
async def root():
    """Health check - visit this URL to confirm the backend is running."""
    return {"status": "running", "message": "OmniTrade Pulse API is live"}


@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "dashboard_loaded": state is not None,
        "scheduler_running": bool(scheduler and scheduler.running),
        "llm_configured": bool(config.ANTHROPIC_API_KEY),
        "images_enabled": bool(orchestrator and orchestrator.images and orchestrator.images.enabled),
    }


async def verify_api_key(x_api_key: Optional[str] = Header(None)):
    """Verify the X-API-Key header when AGENT_API_KEY is configured."""
    if not config.AGENT_API_KEY:
        return None
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Include X-API-Key header.",
        )
    if x_api_key != config.AGENT_API_KEY:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key.",
        )
    return x_api_key


def _require_dashboard():
    if state is None or orchestrator is None:
        raise HTTPException(status_code=503, detail="Dashboard is still starting up. Please try again in a moment.")


# ============================================================
# Intelligence proxy (LLM backend)
# ============================================================


@app.post("/api/omni-intelligence")
@limiter.limit("20/minute")
async def omni_intelligence(request: Request, api_key: str = Header(None, alias="X-API-Key")):
    await verify_api_key(api_key)

    body = await request.json()
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})

    market_data = body.get("marketData")
    target_asset = body.get("targetAsset")

    if market_data is None and target_asset is None:
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})
    if market_data is not None and not isinstance(market_data, list):
        return JSONResponse(status_code=400, content={"error": "Invalid marketData format: expected array"})
    if target_asset is not None and not isinstance(target_asset, dict):
        return JSONResponse(status_code=400, content={"error": "Invalid targetAsset format: expected object"})

    llm = _get_agent()
    if llm is None:
        return JSONResponse(status_code=503, content={"error": "API_KEY_MISSING"})

    try:
        if target_asset is not None:
            result = await llm.deep_dive(sanitize_target_asset(target_asset))
        else:
            result = await llm.scan_market(market_data)
    except LLMQuotaExceeded as e:
        print(f"[PROXY] Quota exceeded: {e}")
        return JSONResponse(status_code=429, content={"error": QUOTA_MESSAGE, "quotaReached": True})
    except Exception as e:
        print(f"[PROXY] Function error: {type(e).__name__}: {e}")
        return JSONResponse(status_code=500, content={"error": SERVICE_UNAVAILABLE})

    return JSONResponse(content=result)


# ============================================================
# Dashboard (read-only views + triggers)
# ============================================================


@app.get("/api/dashboard")
async def get_dashboard():
    _require_dashboard()
    return state.snapshot()


@app.get("/api/assets/{asset_id}")
async def get_asset(asset_id: str):
    _require_dashboard()
    asset = state.get_asset(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Unknown asset: {asset_id}")
    rec = find_recommendation(state.recommendations, asset)
    return {
        "asset": asset.model_dump(),
        "recommendation": rec.model_dump() if rec else None,
        "is_analyzing": state.is_analyzing,
    }


@app.post("/api/analysis/run")
@limiter.limit("10/minute")
async def run_analysis(request: Request):
    _require_dashboard()
    try:
        result = await orchestrator.run_analysis()
    except MissingCredentialsError as e:
        print(f"[API] Manual analysis blocked: {e}")
        raise HTTPException(status_code=503, detail=SETUP_REQUIRED)
    snapshot = state.snapshot()
    snapshot["cycle"] = {"failure": result.failure, "quota_reached": result.quota_reached}
    return snapshot


@app.post("/api/assets/{asset_id}/deep-dive")
@limiter.limit("10/minute")
async def deep_dive(request: Request, asset_id: str):
    _require_dashboard()
    if state.get_asset(asset_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown asset: {asset_id}")
    try:
        rec = await orchestrator.deep_dive(asset_id)
    except MissingCredentialsError as e:
        print(f"[API] Deep dive blocked: {e}")
        raise HTTPException(status_code=503, detail=SETUP_REQUIRED)
    asset = state.get_asset(asset_id)
    current = find_recommendation(state.recommendations, asset)
    return {
        "asset": asset.model_dump(),
        "recommendation": current.model_dump() if current else None,
        "updated": rec is not None,
    }


@app.get("/api/budget")
async def get_budget():
    return daily_budget.status()
