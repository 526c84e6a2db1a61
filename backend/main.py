# Backend main entry point - meeting cycle tracker API
import logging
import os
from datetime import date
from typing import Dict, List, Optional

from dotenv import load_dotenv
load_dotenv()  # Load .env so DEMO_MODE / GRID_START_MONTH work for local runs
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import store
from logic import (
    ClientFilter,
    STATUS_CATEGORIES,
    attention_deadline,
    available_months,
    filter_clients,
    is_inactive,
    needs_attention,
    resolve_status,
)
from models import Client, MeetingStatus, UnknownStatusError, client_to_dict
from months import InvalidMonthKey, MEETING_LABELS, cycle, month_key, month_label, month_window
from reports import (
    ChecklistItem,
    build_checklist,
    build_grid,
    build_monthly_report,
    build_stats,
    grid_months,
    upcoming_reminders,
)
from seed import seed_data

logger = logging.getLogger(__name__)

# Initialize seed data
seed_data()

app = FastAPI(title="Meeting Cycle Tracker API")


def _is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"


def _grid_start_month() -> str:
    return os.environ.get("GRID_START_MONTH", "2025-01")


def _report_window_months() -> int:
    try:
        months = int(os.environ.get("REPORT_WINDOW_MONTHS", "12"))
    except ValueError:
        logger.warning("Ignoring non-numeric REPORT_WINDOW_MONTHS")
        return 12
    if months < 1:
        logger.warning("Ignoring REPORT_WINDOW_MONTHS=%d, must be at least 1", months)
        return 12
    return months


# Configure CORS - allow local dev and the deployed frontend
_allowed_origins = [
    "http://localhost:5173",
    "http://localhost:5174",
]
_frontend_url = os.environ.get("FRONTEND_URL", "")
if _frontend_url:
    _allowed_origins.append(_frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    phoneDigits: str = Field(min_length=1)
    enrollmentMonth: str  # YYYY-MM
    enrollmentDay: int = Field(ge=1, le=31)
    sequenceNumber: Optional[int] = Field(default=None, ge=1)


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phoneDigits: Optional[str] = Field(default=None, min_length=1)
    enrollmentMonth: Optional[str] = None
    enrollmentDay: Optional[int] = Field(default=None, ge=1, le=31)
    sequenceNumber: Optional[int] = Field(default=None, ge=1)


class SequenceUpdate(BaseModel):
    sequenceNumber: int = Field(ge=1)


class MeetingUpdate(BaseModel):
    status: Optional[MeetingStatus] = None
    customDate: Optional[int] = Field(default=None, ge=1, le=31)


def _today(now: Optional[date]) -> date:
    return now or date.today()


def _client_or_404(client_id: str) -> Client:
    client = store.get_client(client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def _client_view(client: Client, now: date) -> Dict:
    view = client_to_dict(client)
    view["inactive"] = is_inactive(client)
    view["needsAttention"] = needs_attention(client, now)
    view["cycle"] = []
    for idx, m in enumerate(cycle(client.enrollmentMonth)):
        resolution = resolve_status(client, m)
        deadline = attention_deadline(client, m)
        view["cycle"].append({
            "month": m,
            "label": month_label(m),
            "meetingNumber": idx + 1,
            "meetingLabel": MEETING_LABELS[idx],
            "status": resolution.status.value,
            "effectiveDay": resolution.effectiveDay,
            "attentionDeadline": deadline.isoformat() if deadline else None,
        })
    return view


def _item_view(item: ChecklistItem) -> Dict:
    return {
        "clientId": item.client.id,
        "name": item.client.name,
        "phoneDigits": item.client.phoneDigits,
        "sequenceNumber": item.client.sequenceNumber,
        "meetingNumber": item.meetingNumber,
        "meetingLabel": item.meetingLabel,
        "status": item.status.value,
        "effectiveDay": item.effectiveDay,
    }


def _run_write(fn, *args):
    """Run a store write and translate domain errors into HTTP errors."""
    try:
        return fn(*args)
    except store.ClientNotFound:
        raise HTTPException(status_code=404, detail="Client not found")
    except (InvalidMonthKey, UnknownStatusError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except store.PersistenceError as exc:
        raise HTTPException(status_code=502, detail=f"Could not save change: {exc}")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/")
def read_root():
    return {"message": "Meeting Cycle Tracker API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/clients")
def get_clients(
    search: str = "",
    month: str = "all",
    status: str = "active",
    now: Optional[date] = None,
):
    """Filtered, sorted client list with classification flags"""
    if status not in STATUS_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"status must be one of {list(STATUS_CATEGORIES)}")
    today = _today(now)
    client_filter = ClientFilter(search=search, monthEquals=month, statusCategory=status)
    return [_client_view(c, today) for c in filter_clients(store.list_clients(), client_filter, today)]


@app.post("/clients", status_code=201)
def create_client(payload: ClientCreate, now: Optional[date] = None):
    client = _run_write(
        store.add_client,
        payload.name,
        payload.phoneDigits,
        payload.enrollmentMonth,
        payload.enrollmentDay,
        payload.sequenceNumber,
    )
    return _client_view(client, _today(now))


@app.get("/clients/months")
def get_client_months():
    """Enrollment months present in the collection, for the month filter"""
    return available_months(store.list_clients())


@app.get("/clients/{client_id}")
def get_client(client_id: str, now: Optional[date] = None):
    return _client_view(_client_or_404(client_id), _today(now))


@app.patch("/clients/{client_id}")
def update_client(client_id: str, payload: ClientUpdate, now: Optional[date] = None):
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    client = _run_write(store.update_client, client_id, changes)
    return _client_view(client, _today(now))


@app.put("/clients/{client_id}/sequence")
def update_sequence(client_id: str, payload: SequenceUpdate, now: Optional[date] = None):
    client = _run_write(store.update_sequence, client_id, payload.sequenceNumber)
    return _client_view(client, _today(now))


@app.patch("/clients/{client_id}/months/{month}")
def update_meeting(client_id: str, month: str, payload: MeetingUpdate, now: Optional[date] = None):
    """
    Merge a status and/or customDate change into one month's record.
    Sending customDate: null clears the custom day.
    """
    patch = payload.model_dump(exclude_unset=True)
    if "status" in patch and patch["status"] is None:
        raise HTTPException(status_code=400, detail="status cannot be null")
    if not patch:
        raise HTTPException(status_code=400, detail="No fields to update")
    client = _run_write(store.update_meeting, client_id, month, patch)
    return _client_view(client, _today(now))


@app.delete("/clients/{client_id}", status_code=204)
def delete_client(client_id: str):
    _run_write(store.delete_client, client_id)


@app.get("/checklist")
def get_checklist(
    month: Optional[str] = None,
    subFilter: str = "all",
    now: Optional[date] = None,
):
    target = month or month_key(_today(now))
    try:
        checklist = build_checklist(store.list_clients(), target, subFilter)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "month": checklist.month,
        "label": month_label(checklist.month),
        "pending": [_item_view(item) for item in checklist.pending],
        "completed": [_item_view(item) for item in checklist.completed],
        "counts": checklist.counts,
    }


@app.get("/reports/monthly")
def get_monthly_report(
    mode: str = "closures",
    start: Optional[str] = None,
    months: Optional[int] = Query(default=None, ge=1, le=120),
    now: Optional[date] = None,
):
    """Dense per-month counts of contract closures or enrollments"""
    try:
        window = month_window(start or month_key(_today(now)), months or _report_window_months())
        rows = build_monthly_report(store.list_clients(), window, mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "mode": mode,
        "total": sum(row.count for row in rows),
        "rows": [{"month": row.month, "label": row.label, "count": row.count} for row in rows],
    }


@app.get("/stats")
def get_stats(month: Optional[str] = None, now: Optional[date] = None):
    try:
        return build_stats(store.list_clients(), _today(now), month)
    except InvalidMonthKey as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/reminders")
def get_reminders(
    days: int = Query(default=7, ge=0, le=60),
    now: Optional[date] = None,
) -> List[Dict]:
    return upcoming_reminders(store.list_clients(), _today(now), days)


@app.get("/grid")
def get_grid(
    ahead: int = Query(default=12, ge=0, le=60),
    now: Optional[date] = None,
):
    """Operational grid from GRID_START_MONTH through `ahead` months past now"""
    today = _today(now)
    try:
        months = grid_months(_grid_start_month(), today, ahead)
    except InvalidMonthKey as exc:
        raise HTTPException(status_code=500, detail=f"Bad GRID_START_MONTH: {exc}")
    return {
        "months": [{"month": m, "label": month_label(m)} for m in months],
        "currentMonth": month_key(today),
        "rows": build_grid(store.list_clients(), months, today),
    }


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": _is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset to the seeded clients. Only available when DEMO_MODE=true.
    """
    if not _is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data()
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
