"""Token ID allocation - monotonic, never reused

IDs start at FIRST_TOKEN_ID and increase by exactly one per allocation.
There is no release operation: once handed out, an ID stays taken even
if the caller later fails to use it.

Usage:
    allocator = TokenIdAllocator()

    allocator.peek()          # 1
    allocator.allocate()      # 1
    allocator.allocate()      # 2
    allocator.is_allocated(2) # True
    allocator.is_allocated(3) # False
"""

from __future__ import annotations


FIRST_TOKEN_ID = 1


class TokenIdAllocator:
    """Hands out token IDs in strictly increasing order.

    Thread-safety: This class is NOT thread-safe. The owning TokenRegistry
    serializes access under its commit lock.
    """

    _next_id: int

    def __init__(self, next_id: int = FIRST_TOKEN_ID) -> None:
        if next_id < FIRST_TOKEN_ID:
            raise ValueError(f"next_id must be >= {FIRST_TOKEN_ID}, got {next_id}")
        self._next_id = next_id

    def peek(self) -> int:
        """Return the ID the next allocation will hand out."""
        return self._next_id

    def allocate(self) -> int:
        """Reserve and return the next ID.

        Returns:
            The newly allocated ID
        """
        token_id = self._next_id
        self._next_id += 1
        return token_id

    def is_allocated(self, token_id: int) -> bool:
        """Check whether an ID has ever been handed out."""
        return FIRST_TOKEN_ID <= token_id < self._next_id

    def count(self) -> int:
        """Number of IDs allocated so far."""
        return self._next_id - FIRST_TOKEN_ID

    def reset_to(self, next_id: int, highest_used: int | None = None) -> None:
        """Set the counter when restoring from a checkpoint.

        Args:
            next_id: Counter value to restore
            highest_used: Largest ID present in the restored state, if any

        Raises:
            ValueError: If next_id would hand out an ID that is already used
        """
        if next_id < FIRST_TOKEN_ID:
            raise ValueError(f"next_id must be >= {FIRST_TOKEN_ID}, got {next_id}")
        if highest_used is not None and next_id <= highest_used:
            raise ValueError(
                f"next_id {next_id} would reuse token {highest_used}"
            )
        self._next_id = next_id
