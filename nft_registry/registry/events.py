"""Registry events and the append-only event log

Events are the registry's audit trail. Off-registry indexers consume them,
so each event's field order is part of the compatibility surface: fields
are never reordered or dropped.

Two families share one log, in commit order:
- Registry events: Minted, RoyaltyUpdated, Transferred, AuthorityTransferred
- Ownership ledger events: Transfer, Approval, ApprovalForAll
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, fields
from typing import Any, Callable, ClassVar, TypeVar, Union

from .logger import EventLogger

logger = logging.getLogger(__name__)


class _EventBase:
    """Shared serialization for event dataclasses."""

    event_type: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        """Fields in declaration order, prefixed by event_type."""
        data: dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):  # type: ignore[arg-type]
            data[f.name] = getattr(self, f.name)
        return data

    def payload(self) -> dict[str, Any]:
        """Fields in declaration order, without event_type."""
        return {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]


# ===== Registry events =====

@dataclass(frozen=True)
class Minted(_EventBase):
    """A new token was minted to its creator."""

    event_type: ClassVar[str] = "minted"

    token_id: int
    creator: str
    royalty_rate: int


@dataclass(frozen=True)
class RoyaltyUpdated(_EventBase):
    """A token's royalty rate was overwritten."""

    event_type: ClassVar[str] = "royalty_updated"

    token_id: int
    new_rate: int


@dataclass(frozen=True)
class Transferred(_EventBase):
    """Registry-level transfer record, emitted after the ledger's Transfer."""

    event_type: ClassVar[str] = "transferred"

    token_id: int
    from_id: str
    to_id: str


@dataclass(frozen=True)
class AuthorityTransferred(_EventBase):
    """The administrative authority changed hands."""

    event_type: ClassVar[str] = "authority_transferred"

    previous_authority: str
    new_authority: str


# ===== Ownership ledger events =====

@dataclass(frozen=True)
class Transfer(_EventBase):
    """Holder change inside the ownership ledger. from_id is None on mint."""

    event_type: ClassVar[str] = "transfer"

    from_id: str | None
    to_id: str
    token_id: int


@dataclass(frozen=True)
class Approval(_EventBase):
    """Single-token approval set (approved is None when cleared)."""

    event_type: ClassVar[str] = "approval"

    holder: str
    approved: str | None
    token_id: int


@dataclass(frozen=True)
class ApprovalForAll(_EventBase):
    """Operator approval granted or revoked."""

    event_type: ClassVar[str] = "approval_for_all"

    holder: str
    operator: str
    approved: bool


Event = Union[
    Minted, RoyaltyUpdated, Transferred, AuthorityTransferred,
    Transfer, Approval, ApprovalForAll,
]

EVENT_TYPES: dict[str, type] = {
    cls.event_type: cls
    for cls in (
        Minted, RoyaltyUpdated, Transferred, AuthorityTransferred,
        Transfer, Approval, ApprovalForAll,
    )
}

E = TypeVar("E")


@dataclass(frozen=True)
class LoggedEvent:
    """An event plus its position in the log."""

    sequence: int
    event: Event

    @property
    def event_type(self) -> str:
        return self.event.event_type

    def to_dict(self) -> dict[str, Any]:
        return {"sequence": self.sequence, **self.event.to_dict()}


class EventLog:
    """Append-only, ordered event trail.

    Sequence numbers continue from start_sequence (the number of events
    already written to the durable trail, 0 for a fresh one) and increase
    by one per append. Appends happen inside the registry's commit lock, so
    log order is commit order.

    An optional EventLogger mirrors every event to JSONL, and subscribers
    are called synchronously after each append. The change an event
    describes is already committed when it is appended, so a failing sink
    or subscriber is logged and never fails the append.
    """

    _entries: list[LoggedEvent]
    _subscribers: list[Callable[[LoggedEvent], None]]
    sink: EventLogger | None

    def __init__(self, sink: EventLogger | None = None, start_sequence: int = 0) -> None:
        if start_sequence < 0:
            raise ValueError(f"start_sequence must be >= 0, got {start_sequence}")
        self._entries = []
        self._subscribers = []
        self._lock = threading.Lock()
        self._start_sequence = start_sequence
        self.sink = sink

    @property
    def last_sequence(self) -> int:
        """Sequence number of the most recent event, or start_sequence if none."""
        with self._lock:
            return self._start_sequence + len(self._entries)

    def append(self, event: Event) -> LoggedEvent:
        """Append an event and fan it out to the sink and subscribers."""
        with self._lock:
            entry = LoggedEvent(
                sequence=self._start_sequence + len(self._entries) + 1, event=event
            )
            self._entries.append(entry)
            subscribers = list(self._subscribers)
        if self.sink is not None:
            try:
                self.sink.log(event.event_type, event.payload(), entry.sequence)
            except Exception:
                logger.exception("event #%d: sink write failed", entry.sequence)
        for callback in subscribers:
            try:
                callback(entry)
            except Exception:
                logger.exception("event #%d: subscriber %r failed", entry.sequence, callback)
        logger.debug("event #%d %s %s", entry.sequence, event.event_type, event.payload())
        return entry

    def subscribe(self, callback: Callable[[LoggedEvent], None]) -> None:
        """Register a callback invoked for every future event."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LoggedEvent], None]) -> bool:
        """Remove a callback. Returns False if it was not registered."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                return False
        return True

    def entries(self) -> list[LoggedEvent]:
        """All logged events, oldest first."""
        with self._lock:
            return list(self._entries)

    def events(self) -> list[Event]:
        """All events without sequence numbers, oldest first."""
        return [entry.event for entry in self.entries()]

    def of_type(self, event_cls: type[E]) -> list[E]:
        """All events of one class, oldest first."""
        return [e for e in self.events() if isinstance(e, event_cls)]

    def read_recent(self, n: int = 50) -> list[LoggedEvent]:
        """The last n logged events."""
        entries = self.entries()
        return entries[-n:] if len(entries) > n else entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
