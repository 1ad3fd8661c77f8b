"""Ownership ledger - who holds which token, and who may move it

This is the holding/approval layer the TokenRegistry builds on. It knows
nothing about creators, metadata or royalties; it only tracks:

1. Holders - one holder identity per token
2. Balances - number of tokens held per identity
3. Token approvals - one identity allowed to move a specific token
4. Operator approvals - identities allowed to move all of a holder's tokens

A caller may move a token if it is the holder, the token's approved
identity, or an operator of the holder. Every transfer clears the token's
approval. The ledger emits its own Transfer/Approval/ApprovalForAll events.
"""

from __future__ import annotations

import logging

from .errors import ErrorCode, InvalidArgumentError, TokenNotFoundError, UnauthorizedError
from .events import Approval, ApprovalForAll, EventLog, Transfer

logger = logging.getLogger(__name__)


class OwnershipLedger:
    """
    Tracks holders, balances and approvals per token.

    - holders: {token_id: holder}
    - balances: {identity: token count}
    - token_approvals: {token_id: approved identity}
    - operator_approvals: {(holder, operator): True}

    Thread-safety: This class is NOT thread-safe. The TokenRegistry calls it
    only while holding its commit lock.
    """

    holders: dict[int, str]
    balances: dict[str, int]
    token_approvals: dict[int, str]
    operator_approvals: dict[tuple[str, str], bool]
    event_log: EventLog

    def __init__(self, event_log: EventLog | None = None) -> None:
        self.holders = {}
        self.balances = {}
        self.token_approvals = {}
        self.operator_approvals = {}
        self.event_log = event_log if event_log is not None else EventLog()

    # ===== QUERIES =====

    def exists(self, token_id: int) -> bool:
        return token_id in self.holders

    def holder_of(self, token_id: int) -> str:
        """Get the current holder. Raises TokenNotFoundError if never minted."""
        holder = self.holders.get(token_id)
        if holder is None:
            raise TokenNotFoundError(token_id)
        return holder

    def balance_of(self, identity: str) -> int:
        """Number of tokens held. Unknown identities hold 0."""
        return self.balances.get(identity, 0)

    def get_approved(self, token_id: int) -> str | None:
        """The identity approved for one token, or None."""
        self.holder_of(token_id)
        return self.token_approvals.get(token_id)

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        return self.operator_approvals.get((holder, operator), False)

    def is_approved_or_holder(self, caller: str, token_id: int) -> bool:
        """Check if caller may move the token on the holder's behalf."""
        holder = self.holder_of(token_id)
        return (
            caller == holder
            or self.token_approvals.get(token_id) == caller
            or self.is_approved_for_all(holder, caller)
        )

    # ===== MUTATIONS =====

    def record_mint(self, to_id: str, token_id: int) -> None:
        """Assign a freshly allocated token to its first holder."""
        if token_id in self.holders:
            raise ValueError(f"Token {token_id} already has a holder")
        self.holders[token_id] = to_id
        self.balances[to_id] = self.balances.get(to_id, 0) + 1
        self.event_log.append(Transfer(from_id=None, to_id=to_id, token_id=token_id))

    def check_approver(self, caller: str, token_id: int) -> str:
        """Raise unless caller is the holder or one of its operators. Returns the holder."""
        holder = self.holder_of(token_id)
        if caller != holder and not self.is_approved_for_all(holder, caller):
            raise UnauthorizedError(caller, f"approve token {token_id}", token_id=token_id)
        return holder

    def check_transfer(self, caller: str, from_id: str, token_id: int) -> None:
        """Raise unless caller may move the token out of from_id.

        Raises:
            TokenNotFoundError: Token was never minted
            UnauthorizedError: Caller may not move the token, or from_id is
                not the current holder (code NOT_OWNER)
        """
        holder = self.holder_of(token_id)
        if not self.is_approved_or_holder(caller, token_id):
            raise UnauthorizedError(caller, f"transfer token {token_id}", token_id=token_id)
        if holder != from_id:
            raise UnauthorizedError(
                caller,
                f"transfer token {token_id}",
                message=f"Token {token_id} is held by '{holder}', not '{from_id}'",
                code=ErrorCode.NOT_OWNER,
                token_id=token_id,
            )

    def approve(self, caller: str, approved: str | None, token_id: int) -> None:
        """Set (or clear, with None) the single-token approval.

        Only the holder or one of the holder's operators may approve.
        """
        holder = self.check_approver(caller, token_id)
        if approved == holder:
            raise InvalidArgumentError(
                f"Cannot approve the current holder '{holder}' of token {token_id}",
                token_id=token_id,
            )
        if approved is None:
            self.token_approvals.pop(token_id, None)
        else:
            self.token_approvals[token_id] = approved
        self.event_log.append(Approval(holder=holder, approved=approved, token_id=token_id))

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke an operator for all of caller's tokens."""
        if operator == caller:
            raise InvalidArgumentError(f"'{caller}' cannot make itself an operator")
        if approved:
            self.operator_approvals[(caller, operator)] = True
        else:
            self.operator_approvals.pop((caller, operator), None)
        self.event_log.append(ApprovalForAll(holder=caller, operator=operator, approved=approved))

    def transfer_from(self, caller: str, from_id: str, to_id: str, token_id: int) -> None:
        """Move a token between identities after checking caller's right.

        Raises:
            TokenNotFoundError: Token was never minted
            UnauthorizedError: Caller may not move the token, or from_id is
                not the current holder
        """
        self.check_transfer(caller, from_id, token_id)

        self.token_approvals.pop(token_id, None)
        self.balances[from_id] -= 1
        if self.balances[from_id] == 0:
            del self.balances[from_id]
        self.balances[to_id] = self.balances.get(to_id, 0) + 1
        self.holders[token_id] = to_id
        self.event_log.append(Transfer(from_id=from_id, to_id=to_id, token_id=token_id))
        logger.debug("ledger moved token %d %s -> %s", token_id, from_id, to_id)

    def restore_holder(self, token_id: int, holder: str) -> None:
        """Re-insert a holder from a checkpoint without emitting events."""
        self.holders[token_id] = holder
        self.balances[holder] = self.balances.get(holder, 0) + 1
