"""Unit tests for token ID allocation."""

import pytest

from nft_registry.registry import FIRST_TOKEN_ID, TokenIdAllocator


class TestTokenIdAllocator:
    """Unit tests for the TokenIdAllocator class."""

    def test_first_id(self) -> None:
        allocator = TokenIdAllocator()
        assert FIRST_TOKEN_ID == 1
        assert allocator.peek() == 1
        assert allocator.count() == 0

    def test_allocate_is_strictly_increasing(self) -> None:
        """Each allocation returns the previous peek and advances by one."""
        allocator = TokenIdAllocator()
        ids = [allocator.allocate() for _ in range(5)]

        assert ids == [1, 2, 3, 4, 5]
        assert allocator.peek() == 6
        assert allocator.count() == 5

    def test_is_allocated(self) -> None:
        allocator = TokenIdAllocator()
        allocator.allocate()
        allocator.allocate()

        assert allocator.is_allocated(1)
        assert allocator.is_allocated(2)
        assert not allocator.is_allocated(3)
        assert not allocator.is_allocated(0)

    def test_start_below_first_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenIdAllocator(next_id=0)

    def test_reset_to(self) -> None:
        """Restoring moves the counter forward past used IDs."""
        allocator = TokenIdAllocator()
        allocator.reset_to(10, highest_used=9)
        assert allocator.allocate() == 10

    def test_reset_to_would_reuse(self) -> None:
        """The counter may never land on an ID already in use."""
        allocator = TokenIdAllocator()
        with pytest.raises(ValueError):
            allocator.reset_to(4, highest_used=4)
        assert allocator.peek() == 1

    def test_reset_to_without_used_ids(self) -> None:
        """An empty state may keep a counter advanced past unused IDs."""
        allocator = TokenIdAllocator()
        allocator.reset_to(7)
        assert allocator.peek() == 7
