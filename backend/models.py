# Data models - clients, per-month meeting records and the status enumeration
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from months import parse_month_key


class MeetingStatus(str, Enum):
    PENDING = "PENDING"
    DONE = "DONE"
    NOT_DONE = "NOT_DONE"
    RESCHEDULED = "RESCHEDULED"
    CLOSED_CONTRACT = "CLOSED_CONTRACT"


# Statuses that settle a meeting: never pending, never overdue
SETTLED_STATUSES = frozenset({MeetingStatus.DONE, MeetingStatus.CLOSED_CONTRACT})


class UnknownStatusError(ValueError):
    """A persisted or submitted status literal outside the closed enumeration."""

    def __init__(self, value: Any):
        super().__init__(f"unknown meeting status: {value!r}")
        self.value = value


def parse_status(value: Any) -> MeetingStatus:
    if isinstance(value, MeetingStatus):
        return value
    try:
        return MeetingStatus(value)
    except ValueError:
        raise UnknownStatusError(value) from None


@dataclass(frozen=True)
class MeetingRecord:
    """Outcome recorded for one month"""
    status: MeetingStatus = MeetingStatus.PENDING
    customDate: Optional[int] = None  # Day of month the meeting actually happened


@dataclass(frozen=True)
class Client:
    """A consulting engagement"""
    id: str
    name: str
    phoneDigits: str
    enrollmentMonth: str  # YYYY-MM, meeting 1
    enrollmentDay: Optional[int]  # Default ideal day for every meeting
    sequenceNumber: int = 1
    statusByMonth: Mapping[str, MeetingRecord] = field(default_factory=dict)


def normalize_phone_digits(phone: str) -> str:
    """Keep only the last 4 characters of whatever was entered"""
    phone = (phone or "").strip()
    return phone[-4:] if len(phone) > 4 else phone


def record_from_dict(data: Mapping[str, Any]) -> MeetingRecord:
    custom_date = data.get("customDate")
    return MeetingRecord(
        status=parse_status(data.get("status", MeetingStatus.PENDING)),
        customDate=int(custom_date) if custom_date else None,
    )


def record_to_dict(record: MeetingRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = {"status": record.status.value}
    if record.customDate is not None:
        data["customDate"] = record.customDate
    return data


def client_from_dict(row: Mapping[str, Any]) -> Client:
    """
    Build a Client from a stored row.
    Raises InvalidMonthKey / UnknownStatusError on corrupted data instead of
    guessing, so the caller can flag the record.
    """
    enrollment_month = row["enrollmentMonth"]
    parse_month_key(enrollment_month)
    status_by_month: Dict[str, MeetingRecord] = {}
    for month, record in (row.get("statusByMonth") or {}).items():
        parse_month_key(month)
        status_by_month[month] = record_from_dict(record)
    enrollment_day = row.get("enrollmentDay")
    return Client(
        id=row["id"],
        name=row.get("name", ""),
        phoneDigits=row.get("phoneDigits", ""),
        enrollmentMonth=enrollment_month,
        enrollmentDay=int(enrollment_day) if enrollment_day is not None else None,
        sequenceNumber=row.get("sequenceNumber") or 1,
        statusByMonth=status_by_month,
    )


def client_to_dict(client: Client) -> Dict[str, Any]:
    return {
        "id": client.id,
        "name": client.name,
        "phoneDigits": client.phoneDigits,
        "enrollmentMonth": client.enrollmentMonth,
        "enrollmentDay": client.enrollmentDay,
        "sequenceNumber": client.sequenceNumber,
        "statusByMonth": {
            month: record_to_dict(record)
            for month, record in sorted(client.statusByMonth.items())
        },
    }
