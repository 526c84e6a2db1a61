# Aggregators - monthly checklist, conversion reports, dashboard stats, reminders and grid
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from logic import as_date, is_inactive, needs_attention, resolve_status, sort_clients
from models import Client, MeetingStatus, SETTLED_STATUSES
from months import (
    MEETING_LABELS,
    add_months,
    cycle,
    cycle_index,
    date_of,
    month_key,
    month_label,
    month_window,
    parse_month_key,
)

CHECKLIST_SUB_FILTERS = {
    "all": None,
    "pending": MeetingStatus.PENDING,
    "not_done": MeetingStatus.NOT_DONE,
    "rescheduled": MeetingStatus.RESCHEDULED,
}

REPORT_MODES = ("closures", "enrollments")


@dataclass(frozen=True)
class ChecklistItem:
    """One client's meeting in the checklist month"""
    client: Client
    meetingIndex: int  # 0-based position in the cycle
    status: MeetingStatus
    effectiveDay: Optional[int]

    @property
    def meetingNumber(self) -> int:
        return self.meetingIndex + 1

    @property
    def meetingLabel(self) -> str:
        return MEETING_LABELS[self.meetingIndex]


@dataclass(frozen=True)
class Checklist:
    month: str
    pending: List[ChecklistItem]
    completed: List[ChecklistItem]
    counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportRow:
    month: str
    label: str
    count: int


def build_checklist(clients: Iterable[Client], target_month: str, sub_filter: str = "all") -> Checklist:
    """
    Partition active clients whose cycle includes target_month into pending and
    completed. sub_filter narrows the pending list only; counts are always
    taken over the full pending set.
    """
    parse_month_key(target_month)
    if sub_filter not in CHECKLIST_SUB_FILTERS:
        raise ValueError(f"unknown checklist filter: {sub_filter!r}")

    items: List[ChecklistItem] = []
    for client in sort_clients(c for c in clients if not is_inactive(c)):
        meeting_idx = cycle_index(cycle(client.enrollmentMonth), target_month)
        if meeting_idx is None:
            continue
        resolution = resolve_status(client, target_month)
        items.append(ChecklistItem(client, meeting_idx, resolution.status, resolution.effectiveDay))

    pending_all = [item for item in items if item.status not in SETTLED_STATUSES]
    completed = [item for item in items if item.status in SETTLED_STATUSES]

    wanted = CHECKLIST_SUB_FILTERS[sub_filter]
    pending = pending_all if wanted is None else [item for item in pending_all if item.status == wanted]

    by_status = Counter(item.status for item in pending_all)
    counts = {
        "all": len(pending_all),
        "pending": by_status.get(MeetingStatus.PENDING, 0),
        "not_done": by_status.get(MeetingStatus.NOT_DONE, 0),
        "rescheduled": by_status.get(MeetingStatus.RESCHEDULED, 0),
        "completed": len(completed),
    }
    return Checklist(month=target_month, pending=pending, completed=completed, counts=counts)


def build_monthly_report(
    clients: Iterable[Client],
    window_months: List[str],
    mode: str = "closures",
) -> List[ReportRow]:
    """
    Dense report over window_months.
    closures: closed-contract records counted in the month the record is
    attached to. enrollments: clients counted in their enrollment month.
    """
    if mode not in REPORT_MODES:
        raise ValueError(f"unknown report mode: {mode!r}")

    counter: Counter = Counter()
    for client in clients:
        if mode == "closures":
            for month, record in client.statusByMonth.items():
                if record.status == MeetingStatus.CLOSED_CONTRACT:
                    counter[month] += 1
        else:
            counter[client.enrollmentMonth] += 1

    return [ReportRow(month=m, label=month_label(m), count=counter.get(m, 0)) for m in window_months]


def build_stats(clients: Iterable[Client], now: date, month: Optional[str] = None) -> Dict:
    """Dashboard counters. Enrollments are for `month`, or now's month when unset."""
    clients = list(clients)
    target = month if month and month != "all" else month_key(as_date(now))
    parse_month_key(target)
    inactive_count = sum(1 for c in clients if is_inactive(c))
    return {
        "totalActive": len(clients) - inactive_count,
        "totalFinalized": inactive_count,
        "totalNeedsAttention": sum(1 for c in clients if needs_attention(c, now)),
        "enrollments": sum(1 for c in clients if c.enrollmentMonth == target),
        "enrollmentsMonth": target,
        "enrollmentsLabel": month_label(target),
    }


def upcoming_reminders(clients: Iterable[Client], today: date, horizon_days: int = 7) -> List[Dict]:
    """Untouched cycle meetings of active clients falling within the next horizon_days"""
    today = as_date(today)
    reminders: List[Dict] = []
    for client in clients:
        if is_inactive(client):
            continue
        for idx, month in enumerate(cycle(client.enrollmentMonth)):
            record = client.statusByMonth.get(month)
            if record is not None and record.status != MeetingStatus.PENDING:
                continue
            day = resolve_status(client, month).effectiveDay
            if day is None:
                continue
            meeting_date = date_of(month, day)
            days_left = (meeting_date - today).days
            if 0 <= days_left <= horizon_days:
                reminders.append({
                    "clientId": client.id,
                    "clientName": client.name,
                    "meetingNumber": idx + 1,
                    "month": month,
                    "date": meeting_date.isoformat(),
                    "daysLeft": days_left,
                })
    return sorted(reminders, key=lambda r: r["daysLeft"])


def grid_months(start: str, now: date, ahead: int = 12) -> List[str]:
    """Visible grid columns: from a fixed start through `ahead` months past now"""
    end = add_months(month_key(as_date(now)), ahead)
    parse_month_key(start)
    if start > end:
        return []
    months = [start]
    while months[-1] < end:
        months.append(add_months(months[-1], 1))
    return months


def build_grid(clients: Iterable[Client], months: List[str], now: date) -> List[Dict]:
    """Operational grid: one row per client, one cell per visible month"""
    rows: List[Dict] = []
    for client in sort_clients(clients):
        client_cycle = cycle(client.enrollmentMonth)
        cells = []
        for month in months:
            idx = cycle_index(client_cycle, month)
            resolution = resolve_status(client, month)
            cells.append({
                "month": month,
                "meetingNumber": idx + 1 if idx is not None else None,
                "status": resolution.status.value,
                "effectiveDay": resolution.effectiveDay,
            })
        rows.append({
            "clientId": client.id,
            "name": client.name,
            "phoneDigits": client.phoneDigits,
            "sequenceNumber": client.sequenceNumber,
            "enrollmentMonth": client.enrollmentMonth,
            "inactive": is_inactive(client),
            "needsAttention": needs_attention(client, now),
            "cells": cells,
        })
    return rows


def default_report_window(now: date, count: int = 12) -> List[str]:
    return month_window(month_key(as_date(now)), count)
