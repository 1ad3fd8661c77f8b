"""JSONL event logger - durable mirror of the registry event trail"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get


class EventLogger:
    """Append-only JSONL event log.

    One line per event:
        {"timestamp": ..., "sequence": N, "event_type": "...", <fields>}

    The sequence number comes from the caller (the in-memory EventLog) so
    the file and the in-memory trail agree on ordering.
    """

    output_path: Path

    def __init__(self, output_file: str | None = None, truncate: bool = False) -> None:
        """Initialize the event logger.

        Args:
            output_file: File path (default: logging.output_file from config)
            truncate: Clear the file instead of appending to an existing trail
        """
        resolved_file = output_file or get("logging.output_file") or "registry_events.jsonl"
        if not isinstance(resolved_file, str):
            resolved_file = "registry_events.jsonl"
        self.output_path = Path(resolved_file)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        if truncate or not self.output_path.exists():
            self.output_path.write_text("")

    def log(self, event_type: str, data: dict[str, Any], sequence: int) -> None:
        """Append one event line to the JSONL file."""
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": sequence,
            "event_type": event_type,
            **data,
        }
        with open(self.output_path, "a") as f:
            f.write(json.dumps(event) + "\n")

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events from the log.

        N defaults to logging.default_recent from config.
        """
        if n is None:
            default_recent = get("logging.default_recent")
            if isinstance(default_recent, int):
                n = default_recent
            else:
                n = 50
        if not self.output_path.exists():
            return []
        lines = self.output_path.read_text().strip().split("\n")
        lines = [line for line in lines if line]
        recent = lines[-n:] if len(lines) > n else lines
        return [json.loads(line) for line in recent]
