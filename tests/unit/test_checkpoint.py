"""Unit tests for registry checkpoint save/load."""

import json
from pathlib import Path

import pytest

from nft_registry.registry import (
    EventLog,
    EventLogger,
    Minted,
    TokenRegistry,
    load_checkpoint,
    restore_registry,
    save_checkpoint,
)
from nft_registry.registry.checkpoint import CHECKPOINT_VERSION


@pytest.fixture
def busy_registry(minted_registry: TokenRegistry) -> TokenRegistry:
    """Minted registry with a transfer, approvals and a royalty change."""
    minted_registry.transfer("alice", "alice", "carol", 1)
    minted_registry.update_royalty("bob", 2, 900)
    minted_registry.approve("carol", "bob", 1)
    minted_registry.set_approval_for_all("bob", "alice", True)
    minted_registry.set_metadata("admin", 2, "ipfs://y2")
    return minted_registry


class TestSaveCheckpoint:
    """Tests for save_checkpoint."""

    def test_writes_expected_fields(self, busy_registry: TokenRegistry, tmp_path: Path) -> None:
        path = tmp_path / "cp.json"
        result = save_checkpoint(busy_registry, path, reason="nightly")

        assert result == str(path)
        data = json.loads(path.read_text())
        assert data["version"] == CHECKPOINT_VERSION
        assert data["next_id"] == 3
        assert data["authority"] == "admin"
        assert data["reason"] == "nightly"
        assert data["event_count"] == len(busy_registry.event_log)
        assert data["records"][1]["metadata_ref"] == "ipfs://y2"
        assert "timestamp" in data

    def test_no_temp_file_left(self, busy_registry: TokenRegistry, tmp_path: Path) -> None:
        path = tmp_path / "cp.json"
        save_checkpoint(busy_registry, path)
        assert not Path(f"{path}.tmp").exists()

    def test_overwrites_previous(self, busy_registry: TokenRegistry, tmp_path: Path) -> None:
        path = tmp_path / "cp.json"
        save_checkpoint(busy_registry, path)
        busy_registry.mint("admin", "dave", "ipfs://d", 1)
        save_checkpoint(busy_registry, path)

        assert json.loads(path.read_text())["next_id"] == 4

    def test_default_path_from_config(
        self, busy_registry: TokenRegistry, config_file: Path, tmp_path: Path
    ) -> None:
        from nft_registry.config import load_config

        load_config(str(config_file))
        result = save_checkpoint(busy_registry)
        assert result == str(tmp_path / "checkpoint.json")


class TestLoadCheckpoint:
    """Tests for load_checkpoint and restore_registry."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_checkpoint(tmp_path / "nope.json") is None

    def test_unknown_version(self, tmp_path: Path) -> None:
        path = tmp_path / "cp.json"
        path.write_text(json.dumps({"version": 99, "next_id": 1, "authority": "a", "records": []}))
        with pytest.raises(ValueError):
            load_checkpoint(path)

    def test_round_trip(self, busy_registry: TokenRegistry, tmp_path: Path) -> None:
        """Everything except the event history survives a restart."""
        path = tmp_path / "cp.json"
        save_checkpoint(busy_registry, path, reason="shutdown")

        checkpoint = load_checkpoint(path)
        assert checkpoint is not None
        assert checkpoint["reason"] == "shutdown"

        restored = restore_registry(checkpoint)
        assert restored.snapshot() == busy_registry.snapshot()
        assert restored.holder_of(1) == "carol"
        assert restored.get_creator(1) == "alice"
        assert restored.get_royalty(2) == 900
        assert restored.get_approved(1) == "bob"
        assert restored.is_approved_for_all("bob", "alice")
        assert len(restored.event_log) == 0

    def test_restored_registry_continues_ids(
        self, busy_registry: TokenRegistry, tmp_path: Path
    ) -> None:
        """IDs are never reused across a restart."""
        path = tmp_path / "cp.json"
        save_checkpoint(busy_registry, path)

        log = EventLog()
        restored = restore_registry(load_checkpoint(path), event_log=log)  # type: ignore[arg-type]
        token_id = restored.mint("admin", "dave", "ipfs://d", 1)

        assert token_id == 3
        assert log.of_type(Minted) == [Minted(token_id=3, creator="dave", royalty_rate=1)]

    def test_restored_log_continues_sequence(self, tmp_path: Path) -> None:
        """A restored registry appending to the same trail never repeats a sequence."""
        trail = tmp_path / "events.jsonl"
        registry = TokenRegistry("admin", event_log=EventLog(EventLogger(str(trail))))
        registry.mint("admin", "alice", "ipfs://x", 1)
        cp = save_checkpoint(registry, tmp_path / "cp.json")

        checkpoint = load_checkpoint(cp)
        assert checkpoint is not None
        assert checkpoint["event_count"] == 2
        restored = restore_registry(checkpoint, sink=EventLogger(str(trail)))
        restored.mint("admin", "bob", "ipfs://y", 1)

        sequences = [line["sequence"] for line in EventLogger(str(trail)).read_recent(10)]
        assert sequences == [1, 2, 3, 4]
        assert restored.event_log.last_sequence == 4

    def test_checkpoint_of_restored_registry_counts_whole_trail(self, tmp_path: Path) -> None:
        registry = TokenRegistry("admin")
        registry.mint("admin", "alice", "ipfs://x", 1)
        checkpoint = load_checkpoint(save_checkpoint(registry, tmp_path / "a.json"))
        assert checkpoint is not None

        restored = restore_registry(checkpoint)
        restored.mint("admin", "bob", "ipfs://y", 1)
        again = load_checkpoint(save_checkpoint(restored, tmp_path / "b.json"))

        assert again is not None
        assert again["event_count"] == 4
