# Client store - authoritative in-memory collection with optimistic writes
# Every write installs the new value first, then persists; a failed persist
# puts the previous snapshot back before the error propagates.
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from logic import apply_client_edit, apply_status_update, check_profile_fields, next_sequence_for_month
from models import Client, client_to_dict, normalize_phone_digits
from months import parse_month_key

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """The persistence backend rejected a write; local state was rolled back."""


class ClientNotFound(KeyError):
    pass


class ClientBackend:
    """Persistence collaborator. Implementations raise on failure."""

    def upsert(self, client_id: str, patch: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, client_id: str) -> None:
        raise NotImplementedError


class InMemoryBackend(ClientBackend):
    """Stores rows as plain dicts, the shape a remote table would hold."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    def upsert(self, client_id: str, patch: Dict[str, Any]) -> None:
        self.rows.setdefault(client_id, {"id": client_id}).update(patch)

    def delete(self, client_id: str) -> None:
        self.rows.pop(client_id, None)


# In-memory store
_clients: Dict[str, Client] = {}
_backend: ClientBackend = InMemoryBackend()


def set_backend(backend: ClientBackend) -> ClientBackend:
    """Swap the persistence backend; returns the previous one."""
    global _backend
    previous = _backend
    _backend = backend
    return previous


def get_backend() -> ClientBackend:
    return _backend


def reset_store(clients: Optional[List[Client]] = None):
    """Replace the collection (for seeding and testing) and start a fresh backend."""
    global _backend
    _clients.clear()
    _backend = InMemoryBackend()
    for client in clients or []:
        _clients[client.id] = client
        _backend.upsert(client.id, client_to_dict(client))


def get_client(client_id: str) -> Optional[Client]:
    return _clients.get(client_id)


def list_clients() -> List[Client]:
    """Snapshot of the collection; callers never see later writes through it."""
    return list(_clients.values())


def _require(client_id: str) -> Client:
    client = _clients.get(client_id)
    if client is None:
        raise ClientNotFound(client_id)
    return client


def _commit(client_id: str, before: Optional[Client], after: Optional[Client], write: Callable[[], None]):
    if after is None:
        _clients.pop(client_id, None)
    else:
        _clients[client_id] = after
    try:
        write()
    except Exception as exc:
        if before is None:
            _clients.pop(client_id, None)
        else:
            _clients[client_id] = before
        logger.warning("Write for client %s failed, rolled back: %s", client_id, exc)
        raise PersistenceError(str(exc)) from exc


def add_client(
    name: str,
    phone_digits: str,
    enrollment_month: str,
    enrollment_day: int,
    sequence_number: Optional[int] = None,
) -> Client:
    parse_month_key(enrollment_month)
    check_profile_fields(enrollment_day, sequence_number)
    if sequence_number is None:
        sequence_number = next_sequence_for_month(_clients.values(), enrollment_month)
    client = Client(
        id=uuid.uuid4().hex,
        name=name.strip(),
        phoneDigits=normalize_phone_digits(phone_digits),
        enrollmentMonth=enrollment_month,
        enrollmentDay=enrollment_day,
        sequenceNumber=sequence_number,
        statusByMonth={},
    )
    _commit(client.id, None, client, lambda: _backend.upsert(client.id, client_to_dict(client)))
    return client


def update_meeting(client_id: str, month: str, patch: Mapping[str, Any]) -> Client:
    before = _require(client_id)
    after = apply_status_update(before, month, patch)
    status_by_month = client_to_dict(after)["statusByMonth"]
    _commit(client_id, before, after, lambda: _backend.upsert(client_id, {"statusByMonth": status_by_month}))
    return after


def update_client(client_id: str, changes: Mapping[str, Any]) -> Client:
    before = _require(client_id)
    after = apply_client_edit(before, changes)
    row = client_to_dict(after)
    patch = {key: row[key] for key in changes}
    _commit(client_id, before, after, lambda: _backend.upsert(client_id, patch))
    return after


def update_sequence(client_id: str, sequence_number: int) -> Client:
    return update_client(client_id, {"sequenceNumber": sequence_number})


def delete_client(client_id: str) -> None:
    before = _require(client_id)
    _commit(client_id, before, None, lambda: _backend.delete(client_id))
