"""NFT registry source package.

This package contains:
- config: Configuration loading and management
- registry: token registry, ownership ledger, events and checkpoints
"""

from __future__ import annotations

__all__: list[str] = []
