"""Unit tests for the JSONL EventLogger."""

import json
from pathlib import Path

from nft_registry.registry import EventLogger


class TestEventLogger:
    """Tests for append-only JSONL output."""

    def test_creates_file_and_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "events.jsonl"
        EventLogger(str(path))
        assert path.exists()
        assert path.read_text() == ""

    def test_log_line_format(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        logger = EventLogger(str(path))

        logger.log("minted", {"token_id": 1, "creator": "alice", "royalty_rate": 5}, sequence=1)

        line = json.loads(path.read_text().strip())
        assert list(line) == ["timestamp", "sequence", "event_type", "token_id", "creator", "royalty_rate"]
        assert line["sequence"] == 1

    def test_appends_to_existing_trail(self, tmp_path: Path) -> None:
        """Reopening the file keeps earlier events."""
        path = tmp_path / "events.jsonl"
        EventLogger(str(path)).log("minted", {"token_id": 1}, sequence=1)
        EventLogger(str(path)).log("minted", {"token_id": 2}, sequence=2)

        assert [e["token_id"] for e in EventLogger(str(path)).read_recent(10)] == [1, 2]

    def test_truncate(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventLogger(str(path)).log("minted", {"token_id": 1}, sequence=1)

        logger = EventLogger(str(path), truncate=True)
        assert logger.read_recent(10) == []

    def test_read_recent_limits(self, tmp_path: Path) -> None:
        logger = EventLogger(str(tmp_path / "events.jsonl"))
        for i in range(1, 8):
            logger.log("royalty_updated", {"token_id": 1, "new_rate": i}, sequence=i)

        assert [e["new_rate"] for e in logger.read_recent(3)] == [5, 6, 7]

    def test_read_recent_default_from_config(self, tmp_path: Path, config_file: Path) -> None:
        """Without n, the configured default_recent applies."""
        from nft_registry.config import load_config

        load_config(str(config_file))
        logger = EventLogger(str(tmp_path / "events.jsonl"))
        for i in range(1, 9):
            logger.log("royalty_updated", {"token_id": 1, "new_rate": i}, sequence=i)

        assert len(logger.read_recent()) == 5

    def test_default_output_file_from_config(self, config_file: Path, tmp_path: Path) -> None:
        from nft_registry.config import load_config

        load_config(str(config_file))
        logger = EventLogger()
        assert logger.output_path == tmp_path / "events.jsonl"
