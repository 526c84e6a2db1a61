# Business logic - status resolution, pure mutations and client classification
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models import (
    Client,
    MeetingRecord,
    MeetingStatus,
    SETTLED_STATUSES,
    normalize_phone_digits,
    parse_status,
)
from months import add_months, cycle, date_of, parse_month_key

# Calendar months after a meeting's ideal date before it counts as overdue
ATTENTION_GRACE_MONTHS = 4

STATUS_CATEGORIES = ("all", "active", "finalized", "needs_attention")

_STATUS_PATCH_KEYS = {"status", "customDate"}
_EDITABLE_FIELDS = {"name", "phoneDigits", "enrollmentMonth", "enrollmentDay", "sequenceNumber"}


@dataclass(frozen=True)
class Resolution:
    """Effective status and day of one month for one client"""
    status: MeetingStatus
    effectiveDay: Optional[int]  # None when the client has no default day and no override

    @property
    def resolved(self) -> bool:
        return self.effectiveDay is not None


@dataclass(frozen=True)
class ClientFilter:
    search: str = ""
    monthEquals: str = "all"  # Enrollment month or "all"
    statusCategory: str = "active"


def as_date(now: date) -> date:
    # datetime is a date subclass but does not compare with plain dates
    return now.date() if isinstance(now, datetime) else now


def resolve_status(client: Client, month: str) -> Resolution:
    """Override-or-default policy. Total over any month key, in cycle or not."""
    record = client.statusByMonth.get(month)
    if record is None:
        return Resolution(MeetingStatus.PENDING, client.enrollmentDay)
    day = record.customDate if record.customDate is not None else client.enrollmentDay
    return Resolution(record.status, day)


def apply_status_update(client: Client, month: str, patch: Mapping[str, Any]) -> Client:
    """
    Merge a partial {status, customDate} update into the record for `month`.
    Returns a new Client; the input is left untouched. The whole patch is
    validated before anything is built, so it applies fully or raises.
    """
    parse_month_key(month)
    unknown = set(patch) - _STATUS_PATCH_KEYS
    if unknown:
        raise ValueError(f"unsupported status fields: {sorted(unknown)}")

    current = client.statusByMonth.get(month) or MeetingRecord()
    changes: Dict[str, Any] = {}
    if "status" in patch:
        changes["status"] = parse_status(patch["status"])
    if "customDate" in patch:
        custom_date = patch["customDate"]
        if custom_date is not None and not 1 <= int(custom_date) <= 31:
            raise ValueError(f"customDate must be a day of month, got {custom_date!r}")
        changes["customDate"] = int(custom_date) if custom_date is not None else None

    status_by_month = dict(client.statusByMonth)
    status_by_month[month] = replace(current, **changes)
    return replace(client, statusByMonth=status_by_month)


def check_profile_fields(enrollment_day: Optional[int] = None, sequence_number: Optional[int] = None) -> None:
    """Range checks for the profile fields a caller may set. None means not set."""
    if enrollment_day is not None and not 1 <= int(enrollment_day) <= 31:
        raise ValueError(f"enrollmentDay must be a day of month, got {enrollment_day!r}")
    if sequence_number is not None and int(sequence_number) < 1:
        raise ValueError(f"sequenceNumber must be at least 1, got {sequence_number!r}")


def apply_client_edit(client: Client, changes: Mapping[str, Any]) -> Client:
    """Profile edit as a pure transform. Phone is trimmed to its last 4 digits."""
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"unsupported client fields: {sorted(unknown)}")
    patched = dict(changes)
    if "enrollmentMonth" in patched:
        parse_month_key(patched["enrollmentMonth"])
    check_profile_fields(patched.get("enrollmentDay"), patched.get("sequenceNumber"))
    if "phoneDigits" in patched:
        patched["phoneDigits"] = normalize_phone_digits(patched["phoneDigits"])
    return replace(client, **patched)


def is_inactive(client: Client) -> bool:
    """Any closed-contract record, in the cycle or not, finalizes the client."""
    return any(r.status == MeetingStatus.CLOSED_CONTRACT for r in client.statusByMonth.values())


def attention_deadline(client: Client, month: str) -> Optional[date]:
    """Ideal meeting date for `month` plus the grace period; None without a default day."""
    if client.enrollmentDay is None:
        return None
    ideal = date_of(month, client.enrollmentDay)
    return add_months(ideal, ATTENTION_GRACE_MONTHS)


def needs_attention(client: Client, now: date) -> bool:
    """
    True when an active client has an unsettled cycle meeting whose ideal date
    (enrollment day, not the recorded custom day) is at least
    ATTENTION_GRACE_MONTHS behind `now`. Every cycle month is scanned.
    """
    if is_inactive(client):
        return False
    today = as_date(now)
    for month in cycle(client.enrollmentMonth):
        if resolve_status(client, month).status in SETTLED_STATUSES:
            continue
        deadline = attention_deadline(client, month)
        if deadline is not None and today >= deadline:
            return True
    return False


def matches_filter(client: Client, client_filter: ClientFilter, now: date) -> bool:
    search = client_filter.search.strip().lower()
    if search and search not in client.name.lower() and search not in client.phoneDigits.lower():
        return False

    if client_filter.monthEquals not in ("", "all") and client.enrollmentMonth != client_filter.monthEquals:
        return False

    category = client_filter.statusCategory
    if category == "active":
        return not is_inactive(client)
    elif category == "finalized":
        return is_inactive(client)
    elif category == "needs_attention":
        return needs_attention(client, now)
    elif category == "all":
        return True
    raise ValueError(f"unknown status category: {category!r}")


def sort_clients(clients: Iterable[Client]) -> List[Client]:
    """Listing order: enrollment month, then sequence within the month"""
    return sorted(clients, key=lambda c: (c.enrollmentMonth, c.sequenceNumber or 0))


def filter_clients(clients: Iterable[Client], client_filter: ClientFilter, now: date) -> List[Client]:
    return sort_clients(c for c in clients if matches_filter(c, client_filter, now))


def next_sequence_for_month(clients: Iterable[Client], month: str) -> int:
    sequences = [c.sequenceNumber or 0 for c in clients if c.enrollmentMonth == month]
    return max(sequences) + 1 if sequences else 1


def available_months(clients: Iterable[Client]) -> List[str]:
    """Distinct enrollment months, oldest first, for the month filter"""
    return sorted({c.enrollmentMonth for c in clients})
