"""Pytest fixtures for nft_registry tests.

Common fixtures for building registries in a known state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from dotenv import load_dotenv

# Load environment variables from .env before any tests run
load_dotenv()

import pytest

from nft_registry import config as config_module
from nft_registry.registry import EventLog, TokenRegistry

AUTHORITY = "admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "feature(name): mark test as belonging to a feature. "
        "Usage: @pytest.mark.feature('approvals')"
    )


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command-line options."""
    parser.addoption(
        "--feature",
        action="store",
        type=str,
        default=None,
        help="Run tests for a specific feature (e.g., --feature approvals)",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Filter tests based on command-line options."""
    feature_filter = config.getoption("--feature")
    if feature_filter is None:
        return
    selected = []
    deselected = []
    for item in items:
        marker = item.get_closest_marker("feature")
        if marker is not None:
            feature_name = marker.args[0] if marker.args else ""
            if feature_name == feature_filter:
                selected.append(item)
                continue
        deselected.append(item)
    config.hook.pytest_deselected(items=deselected)
    items[:] = selected


@pytest.fixture(autouse=True)
def _isolated_config() -> Iterator[None]:
    """Drop any config loaded or overridden by a previous test."""
    config_module.reset_config()
    yield
    config_module.reset_config()


@pytest.fixture
def event_log() -> EventLog:
    """In-memory event log with no JSONL sink."""
    return EventLog()


@pytest.fixture
def registry(event_log: EventLog) -> TokenRegistry:
    """Empty registry administered by 'admin'."""
    return TokenRegistry(authority=AUTHORITY, event_log=event_log)


@pytest.fixture
def minted_registry(registry: TokenRegistry) -> TokenRegistry:
    """Registry with two tokens already minted.

    - token 1: creator/holder alice, metadata ipfs://x, royalty 500
    - token 2: creator/holder bob, metadata ipfs://y, royalty 250
    """
    registry.mint(AUTHORITY, ALICE, "ipfs://x", 500)
    registry.mint(AUTHORITY, BOB, "ipfs://y", 250)
    return registry


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a small valid config file into a temp directory."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "registry:\n"
        "  authority: issuer\n"
        "logging:\n"
        f"  output_file: {tmp_path / 'events.jsonl'}\n"
        "  default_recent: 5\n"
        "checkpoint:\n"
        f"  file: {tmp_path / 'checkpoint.json'}\n"
    )
    return path
