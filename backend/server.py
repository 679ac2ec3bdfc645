#!/usr/bin/env python3
"""
Hand-Hygiene Compliance Dashboard - Backend API Server

Refreshes the hygiene log on a fixed interval and serves the latest
snapshot to the frontend. All parsing and statistics live in src/;
this server only owns the refresh loop and the presentation formatting.

Usage:
    python3 backend/server.py
    → Opens http://localhost:8000
"""

import io
import os
import sys
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv

# ── Paths ────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = PROJECT_ROOT / ".env"
FRONTEND_DIR = PROJECT_ROOT / "frontend"

sys.path.insert(0, str(PROJECT_ROOT / "src"))
load_dotenv(ENV_PATH)

from config import DISPLAY, get_logger, load_settings
from export import export_filename, time_only, write_daily_log
from refresh import RefreshOrchestrator

logger = get_logger("server")

# ── Config ───────────────────────────────────────────────────────────────
PORT = int(os.getenv("PORT", "8000"))
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

orchestrator: Optional[RefreshOrchestrator] = None


def get_orchestrator() -> RefreshOrchestrator:
    """Create the orchestrator on first use. ConfigurationError is fatal here."""
    global orchestrator
    if orchestrator is None:
        orchestrator = RefreshOrchestrator(load_settings())
    return orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    refresher = get_orchestrator()
    task = asyncio.create_task(refresher.run_forever())
    try:
        yield
    finally:
        logger.info("Stopping refresh loop")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


# ── App ──────────────────────────────────────────────────────────────────
app = FastAPI(title="Hand-Hygiene Compliance Dashboard", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Response models ──────────────────────────────────────────────────────
class EventRow(BaseModel):
    name: str
    timestamp: str
    time: str
    date: str
    status: str

class DashboardStats(BaseModel):
    today: str
    today_count: int
    last_worker: str
    last_time: str
    percent: int
    tier: str
    tier_class: str
    rows: list[EventRow] = []

class StatsResponse(BaseModel):
    status: str
    message: str = ""
    current_date: str
    empty_state: Optional[str] = None
    last_success: Optional[datetime] = None
    cycles: int = 0
    stats: Optional[DashboardStats] = None


# ── Presentation ─────────────────────────────────────────────────────────
def long_date(now: datetime) -> str:
    """e.g. 'Friday, March 15, 2024'."""
    return f"{now.strftime('%A')}, {now.strftime('%B')} {now.day}, {now.year}"


def format_stats(snapshot: dict) -> DashboardStats:
    rows = [
        EventRow(
            name=e.worker_name,
            timestamp=e.timestamp_raw,
            time=time_only(e.timestamp_raw),
            date=e.date_part,
            status=DISPLAY["row_status"],
        )
        for e in snapshot["today_events"]
    ]
    return DashboardStats(
        today=snapshot["today"],
        today_count=snapshot["today_count"],
        last_worker=snapshot["last_worker"],
        last_time=snapshot["last_timestamp_raw"],
        percent=snapshot["percent"],
        tier=snapshot["tier"],
        tier_class=DISPLAY["tier_classes"][snapshot["tier"]],
        rows=rows,
    )


def build_stats_response(refresher: RefreshOrchestrator, now: Optional[datetime] = None) -> StatsResponse:
    state = refresher.state
    stats = format_stats(state.snapshot) if state.snapshot else None

    if state.status == "waiting":
        empty_state = f"{DISPLAY['waiting_title']}. {DISPLAY['waiting_detail']}"
    elif stats is not None and not stats.rows:
        empty_state = DISPLAY["empty_today"]
    else:
        empty_state = None

    return StatsResponse(
        status=state.status,
        message=state.message,
        current_date=long_date(now or datetime.now()),
        empty_state=empty_state,
        last_success=state.last_success,
        cycles=state.cycles,
        stats=stats,
    )


# ── API routes ───────────────────────────────────────────────────────────
@app.get("/", response_class=HTMLResponse)
async def serve_index():
    """Serve the frontend."""
    index_path = FRONTEND_DIR / "index.html"
    if not index_path.exists():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return FileResponse(index_path)


@app.get("/api/health")
async def health_check():
    """Report the configured source and refresh progress."""
    refresher = get_orchestrator()
    return {
        "status": "ok",
        "source_document": refresher.settings["source_document"],
        "refresh_interval_ms": refresher.settings["refresh_interval_ms"],
        "cycles": refresher.state.cycles,
        "data_status": refresher.state.status,
        "failures": refresher.state.failures,
    }


@app.get("/api/stats", response_model=StatsResponse)
async def get_stats():
    """Latest snapshot; the last good stats stay visible when a cycle fails."""
    return build_stats_response(get_orchestrator())


@app.get("/api/export")
async def export_xlsx():
    """Download today's table from the last good snapshot as .xlsx."""
    snapshot = get_orchestrator().state.snapshot
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No data available to export yet")

    buffer = io.BytesIO()
    write_daily_log(snapshot["today_events"], buffer)
    filename = export_filename(snapshot["today"])
    return Response(
        content=buffer.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Entry point ──────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    refresher = get_orchestrator()

    print("\nHand-Hygiene Compliance Dashboard")
    print(f"   Source:    {refresher.settings['source_document']}")
    print(f"   Refresh:   every {refresher.interval_s:g}s")
    print(f"   Headcount: {refresher.settings['total_workers_estimate']}")
    print(f"   Frontend:  http://localhost:{PORT}")
    print(f"   API docs:  http://localhost:{PORT}/docs\n")

    uvicorn.run(app, host="0.0.0.0", port=PORT)
