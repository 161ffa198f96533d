"""PagePilot FastAPI application: entry point.

Start with:
    uvicorn pagepilot.api.main:app --reload --host 0.0.0.0 --port 8000

The LLM client comes from env (LLM_PROVIDER / OPENAI_API_KEY / GEMINI_API_KEY);
without a key the service starts with a no-op client that answers with a
configuration hint, so no API key is required at startup.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from pagepilot.clients.llm.registry import build_from_settings
from pagepilot.config import LLMSettings, StyleStoreConfig, load_dispatcher_config
from pagepilot.core.exceptions import ProjectError
from pagepilot.core.logger import configure
from pagepilot.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from pagepilot.services.dispatcher_service import DispatcherService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure()

    await ensure_database_exists()
    engine = build_engine()
    session_factory = build_session_factory(engine)
    await init_db()
    app.state.session_factory = session_factory

    llm_client = build_from_settings(LLMSettings.from_env())
    app.state.llm_client = llm_client

    app.state.dispatcher = DispatcherService.build(
        session_factory,
        llm_client,
        config=load_dispatcher_config(),
        style_config=StyleStoreConfig.from_env(),
    )
    logger.info("API: dispatcher ready")

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await close_engine()
    logger.info("API: engine disposed")


app = FastAPI(
    title="PagePilot API",
    version="1.0.0",
    description="Conversational editing of link-in-bio page components and designs.",
    lifespan=lifespan,
)

# Rate limiter: CHAT_RATE_LIMIT env var (default 30/minute)
_chat_rate_limit = os.environ.get("CHAT_RATE_LIMIT", "30/minute")
limiter = Limiter(key_func=get_remote_address, default_limits=[_chat_rate_limit])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Optional API key authentication ──────────────────────────────
# With ADMIN_API_KEY set, /api/v1/* requests must send X-Api-Key: <value>.
_ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "").strip() or None


@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    if _ADMIN_API_KEY and request.url.path.startswith("/api/v1"):
        provided = request.headers.get("X-Api-Key")
        if provided != _ADMIN_API_KEY:
            return JSONResponse(
                status_code=401,
                content={"detail": "Unauthorized: set X-Api-Key header"},
            )
    return await call_next(request)


@app.exception_handler(ProjectError)
async def project_error_handler(request: Request, exc: ProjectError):
    logger.warning("API: %s on %s", exc.code, request.url.path)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# ── Routers ───────────────────────────────────────────────────────
from pagepilot.api.routers import chat  # noqa: E402

app.include_router(chat.router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health(request: Request, check_llm: bool = False):
    """Liveness plus wiring; with ``?check_llm=true`` also pings the LLM provider."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    llm = getattr(request.app.state, "llm_client", None)
    llm_reachable = None
    if check_llm and llm is not None:
        llm_reachable = await llm.test_connection()
    return {
        "status": "ok",
        "llm_provider": llm.provider if llm is not None else None,
        "llm_reachable": llm_reachable,
        "dispatcher": dispatcher.describe() if dispatcher is not None else None,
    }
