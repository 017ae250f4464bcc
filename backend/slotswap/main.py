"""
FastAPI app entrypoint.

Slot swap marketplace: slots, swap requests, and a WebSocket push channel.
Service objects are built once here and handed to routes through app.state;
the swap engine gets its notifier injected rather than finding a global.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from slotswap.api.routes import auth, push, slots, swaps
from slotswap.config import settings
from slotswap.core.constants import SWAP_AUDIT_JOB_ID
from slotswap.core.errors import SwapError, status_for
from slotswap.scheduler.swap_audit_job import run_swap_audit_job
from slotswap.services.auth_service import AccountService
from slotswap.services.push import PushHub
from slotswap.services.slot_service import SlotStore
from slotswap.services.swap_notify import SwapNotifier
from slotswap.services.swap_service import SwapEngine

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.swap_audit_enabled:
        _scheduler.add_job(
            run_swap_audit_job,
            "interval",
            seconds=settings.swap_audit_interval_seconds,
            id=SWAP_AUDIT_JOB_ID,
            replace_existing=True,
        )
        _scheduler.start()
        app.state.scheduler = _scheduler
        logger.info("Swap audit scheduled every %ss", settings.swap_audit_interval_seconds)
    logger.info("Backend ready")
    yield
    if _scheduler.running:
        _scheduler.shutdown(wait=False)


app = FastAPI(title="Slot Swap", version="0.1.0", lifespan=lifespan)

push_hub = PushHub()
notifier = SwapNotifier(push_hub)
app.state.push_hub = push_hub
app.state.accounts = AccountService()
app.state.slot_store = SlotStore(notifier=notifier)
app.state.swap_engine = SwapEngine(notifier)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_extra = settings.cors_origins
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(SwapError)
async def swap_error_handler(request: Request, exc: SwapError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": exc.message, "kind": exc.kind})


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(slots.router, prefix="/api/events", tags=["slots"])
app.include_router(swaps.router, prefix="/api", tags=["swaps"])
app.include_router(push.router, tags=["push"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Slot Swap API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
