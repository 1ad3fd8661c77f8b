"""Token registry - minting, creator/royalty bookkeeping, transfers

The TokenRegistry owns all per-token state and the authorization rules
gating each mutation:

- mint, set_metadata, transfer_authority: administrative authority only
- update_royalty: authority or the token's creator (not the holder)
- transfer, approve: decided by the OwnershipLedger (holder, approved
  identity, or operator)
- reads: public

Every operation runs under one commit lock. All preconditions are checked
before anything is written, so a rejected call leaves no trace: no state
change and no event.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, TypedDict

from ..config_schema import AppConfig
from .errors import (
    InvalidArgumentError,
    InvalidIdentityError,
    TokenNotFoundError,
    UnauthorizedError,
)
from .events import AuthorityTransferred, EventLog, Minted, RoyaltyUpdated, Transferred
from .id_allocator import FIRST_TOKEN_ID, TokenIdAllocator
from .logger import EventLogger
from .ownership import OwnershipLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRecord:
    """Read-only view of one token."""

    token_id: int
    holder: str
    creator: str
    metadata_ref: str
    royalty_rate: int


@dataclass
class _TokenEntry:
    """Registry-side fields of a token. The holder lives in the ledger."""

    creator: str
    metadata_ref: str
    royalty_rate: int


class RecordDict(TypedDict):
    token_id: int
    holder: str
    creator: str
    metadata_ref: str
    royalty_rate: int


class RegistrySnapshot(TypedDict):
    """Complete registry state, JSON-serializable."""

    next_id: int
    authority: str
    records: list[RecordDict]
    token_approvals: dict[str, str]
    operator_approvals: list[list[str]]


def _check_identity(field: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentityError(field, value)
    return value


def _check_rate(rate: object) -> int:
    # Unsigned, but deliberately no upper bound
    if isinstance(rate, bool) or not isinstance(rate, int) or rate < 0:
        raise InvalidArgumentError(
            f"royalty_rate must be a non-negative integer, got {rate!r}",
            royalty_rate=repr(rate),
        )
    return rate


def _check_metadata(metadata_ref: object) -> str:
    if not isinstance(metadata_ref, str):
        raise InvalidArgumentError(
            f"metadata_ref must be a string, got {type(metadata_ref).__name__}"
        )
    return metadata_ref


class TokenRegistry:
    """
    Single-authority registry of non-fungible tokens.

    - authority: identity with mint and metadata rights
    - ledger: OwnershipLedger holding holders, balances and approvals
    - event_log: shared append-only trail for registry and ledger events

    Thread-safety: all public methods serialize on an internal RLock.
    """

    _authority: str
    _entries: dict[int, _TokenEntry]
    ledger: OwnershipLedger
    event_log: EventLog
    _allocator: TokenIdAllocator
    _lock: threading.RLock

    def __init__(
        self,
        authority: str,
        ledger: OwnershipLedger | None = None,
        event_log: EventLog | None = None,
        allocator: TokenIdAllocator | None = None,
    ) -> None:
        self._authority = _check_identity("authority", authority)
        if ledger is None:
            ledger = OwnershipLedger(event_log)
        elif event_log is not None and ledger.event_log is not event_log:
            raise ValueError("ledger and registry must share one event log")
        self.ledger = ledger
        self.event_log = ledger.event_log
        self._allocator = allocator if allocator is not None else TokenIdAllocator()
        self._entries = {}
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: AppConfig | None = None) -> "TokenRegistry":
        """Create a TokenRegistry from the validated config.

        Args:
            config: AppConfig to use (defaults to the globally loaded one)

        Returns:
            Registry with the configured authority, mirroring events to
            JSONL when logging.enabled is set
        """
        if config is None:
            from ..config import get_validated_config
            config = get_validated_config()

        sink = None
        if config.logging.enabled:
            sink = EventLogger(config.logging.output_file)
        return cls(authority=config.registry.authority, event_log=EventLog(sink))

    # ===== PROPERTIES =====

    @property
    def authority(self) -> str:
        return self._authority

    @property
    def next_id(self) -> int:
        """The ID the next successful mint will receive."""
        with self._lock:
            return self._allocator.peek()

    @property
    def total_minted(self) -> int:
        with self._lock:
            return len(self._entries)

    # ===== INTERNAL CHECKS =====

    def _entry(self, token_id: int) -> _TokenEntry:
        entry = self._entries.get(token_id)
        if entry is None:
            raise TokenNotFoundError(token_id)
        return entry

    def _require_authority(self, caller: str, operation: str) -> None:
        if caller != self._authority:
            logger.warning("rejected %s by non-authority '%s'", operation, caller)
            raise UnauthorizedError(caller, operation)

    # ===== MUTATIONS =====

    def mint(self, caller: str, to: str, metadata_ref: str, royalty_rate: int) -> int:
        """Mint a new token to `to`, who becomes both holder and creator.

        Args:
            caller: Must be the administrative authority
            to: First holder and permanent creator
            metadata_ref: Opaque reference, stored as given
            royalty_rate: Non-negative integer, no upper bound

        Returns:
            The newly assigned token ID

        Raises:
            UnauthorizedError: caller is not the authority
            InvalidIdentityError: `to` is empty
            InvalidArgumentError: bad rate or non-string metadata_ref
        """
        with self._lock:
            self._require_authority(caller, "mint")
            _check_identity("to", to)
            _check_metadata(metadata_ref)
            _check_rate(royalty_rate)

            token_id = self._allocator.allocate()
            self._entries[token_id] = _TokenEntry(
                creator=to,
                metadata_ref=metadata_ref,
                royalty_rate=royalty_rate,
            )
            self.ledger.record_mint(to, token_id)
            self.event_log.append(Minted(token_id=token_id, creator=to, royalty_rate=royalty_rate))
            logger.info("minted token %d to '%s' (royalty %d)", token_id, to, royalty_rate)
            return token_id

    def update_royalty(self, caller: str, token_id: int, new_rate: int) -> None:
        """Overwrite a token's royalty rate.

        Allowed for the authority and the token's creator. The current
        holder has no such right unless it is also the creator.
        """
        with self._lock:
            entry = self._entry(token_id)
            if caller != self._authority and caller != entry.creator:
                logger.warning(
                    "rejected royalty update on token %d by '%s'", token_id, caller
                )
                raise UnauthorizedError(
                    caller, f"update royalty of token {token_id}", token_id=token_id
                )
            _check_rate(new_rate)

            entry.royalty_rate = new_rate
            self.event_log.append(RoyaltyUpdated(token_id=token_id, new_rate=new_rate))
            logger.info("royalty of token %d set to %d by '%s'", token_id, new_rate, caller)

    def transfer(self, caller: str, from_id: str, to_id: str, token_id: int) -> None:
        """Move a token, then record the registry-level Transferred event.

        Authorization is the ledger's: caller must be the holder, the
        token's approved identity, or an operator of the holder, and
        from_id must be the current holder. Authorization is checked before
        the recipient is validated. The ledger emits its own Transfer event
        first; Transferred follows it.
        """
        with self._lock:
            self._entry(token_id)
            self.ledger.check_transfer(caller, from_id, token_id)
            _check_identity("to", to_id)

            self.ledger.transfer_from(caller, from_id, to_id, token_id)
            self.event_log.append(Transferred(token_id=token_id, from_id=from_id, to_id=to_id))
            logger.info("token %d transferred '%s' -> '%s'", token_id, from_id, to_id)

    def set_metadata(self, caller: str, token_id: int, metadata_ref: str) -> None:
        """Overwrite a token's metadata reference. Emits no event."""
        with self._lock:
            self._require_authority(caller, f"set metadata of token {token_id}")
            entry = self._entry(token_id)
            _check_metadata(metadata_ref)

            entry.metadata_ref = metadata_ref
            logger.info("metadata of token %d updated", token_id)

    def approve(self, caller: str, approved: str | None, token_id: int) -> None:
        """Let `approved` move one token (None clears the approval)."""
        with self._lock:
            self._entry(token_id)
            self.ledger.check_approver(caller, token_id)
            if approved is not None:
                _check_identity("approved", approved)
            self.ledger.approve(caller, approved, token_id)

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke `operator` over all of caller's tokens."""
        with self._lock:
            _check_identity("operator", operator)
            self.ledger.set_approval_for_all(caller, operator, approved)

    def transfer_authority(self, caller: str, new_authority: str) -> None:
        """Hand mint and metadata rights to a new identity."""
        with self._lock:
            self._require_authority(caller, "transfer authority")
            _check_identity("new_authority", new_authority)

            previous = self._authority
            self._authority = new_authority
            self.event_log.append(
                AuthorityTransferred(previous_authority=previous, new_authority=new_authority)
            )
            logger.info("authority transferred '%s' -> '%s'", previous, new_authority)

    # ===== READS =====

    def get_metadata(self, token_id: int) -> str:
        with self._lock:
            return self._entry(token_id).metadata_ref

    def get_creator(self, token_id: int) -> str:
        with self._lock:
            return self._entry(token_id).creator

    def get_royalty(self, token_id: int) -> int:
        with self._lock:
            return self._entry(token_id).royalty_rate

    def holder_of(self, token_id: int) -> str:
        with self._lock:
            self._entry(token_id)
            return self.ledger.holder_of(token_id)

    def balance_of(self, identity: str) -> int:
        with self._lock:
            return self.ledger.balance_of(identity)

    def get_approved(self, token_id: int) -> str | None:
        with self._lock:
            self._entry(token_id)
            return self.ledger.get_approved(token_id)

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        with self._lock:
            return self.ledger.is_approved_for_all(holder, operator)

    def exists(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._entries

    def get_record(self, token_id: int) -> TokenRecord:
        """Consistent view of every field of one token."""
        with self._lock:
            entry = self._entry(token_id)
            return TokenRecord(
                token_id=token_id,
                holder=self.ledger.holder_of(token_id),
                creator=entry.creator,
                metadata_ref=entry.metadata_ref,
                royalty_rate=entry.royalty_rate,
            )

    def token_ids(self) -> list[int]:
        """All minted IDs in mint order."""
        with self._lock:
            return sorted(self._entries)

    # ===== SNAPSHOT / RESTORE =====

    def snapshot(self) -> RegistrySnapshot:
        """Export the complete state as plain JSON-compatible data."""
        with self._lock:
            records: list[RecordDict] = []
            for token_id in sorted(self._entries):
                entry = self._entries[token_id]
                records.append({
                    "token_id": token_id,
                    "holder": self.ledger.holder_of(token_id),
                    "creator": entry.creator,
                    "metadata_ref": entry.metadata_ref,
                    "royalty_rate": entry.royalty_rate,
                })
            return {
                "next_id": self._allocator.peek(),
                "authority": self._authority,
                "records": records,
                "token_approvals": {
                    str(token_id): approved
                    for token_id, approved in sorted(self.ledger.token_approvals.items())
                },
                "operator_approvals": [
                    [holder, operator]
                    for (holder, operator), ok in sorted(self.ledger.operator_approvals.items())
                    if ok
                ],
            }

    def restore(self, snapshot: RegistrySnapshot | dict[str, Any]) -> None:
        """Load state exported by snapshot() into this empty registry.

        The whole snapshot is validated before any state changes, so a
        malformed snapshot leaves the registry untouched. No events are
        emitted; the restored state is already committed.

        Raises:
            ValueError: If the registry already holds tokens, or the snapshot
                is malformed or would break ID monotonicity
            InvalidIdentityError: An identity in the snapshot is empty
            InvalidArgumentError: A record has a bad rate or metadata_ref
        """
        with self._lock:
            if self._entries or self.ledger.holders:
                raise ValueError("restore() requires an empty registry")

            authority = _check_identity("authority", snapshot["authority"])
            next_id = int(snapshot["next_id"])

            entries: dict[int, tuple[str, _TokenEntry]] = {}
            for record in snapshot["records"]:
                token_id = int(record["token_id"])
                if token_id < FIRST_TOKEN_ID:
                    raise ValueError(f"Token id {token_id} in snapshot is below {FIRST_TOKEN_ID}")
                if token_id in entries:
                    raise ValueError(f"Duplicate token {token_id} in snapshot")
                entries[token_id] = (
                    _check_identity("holder", record["holder"]),
                    _TokenEntry(
                        creator=_check_identity("creator", record["creator"]),
                        metadata_ref=_check_metadata(record["metadata_ref"]),
                        royalty_rate=_check_rate(record["royalty_rate"]),
                    ),
                )

            approvals: dict[int, str] = {}
            for token_id_str, approved in snapshot.get("token_approvals", {}).items():
                token_id = int(token_id_str)
                if token_id not in entries:
                    raise ValueError(f"Approval references unknown token {token_id}")
                approvals[token_id] = _check_identity("approved", approved)

            operators: list[tuple[str, str]] = []
            for pair in snapshot.get("operator_approvals", []):
                if len(pair) != 2:
                    raise ValueError(f"Operator approval must be [holder, operator], got {pair!r}")
                operators.append((
                    _check_identity("holder", pair[0]),
                    _check_identity("operator", pair[1]),
                ))

            self._allocator.reset_to(next_id, max(entries, default=None))

            self._authority = authority
            for token_id, (holder, entry) in sorted(entries.items()):
                self._entries[token_id] = entry
                self.ledger.restore_holder(token_id, holder)
            self.ledger.token_approvals.update(approvals)
            for holder, operator in operators:
                self.ledger.operator_approvals[(holder, operator)] = True

            logger.info("restored %d tokens (next_id=%d)", len(entries), next_id)
