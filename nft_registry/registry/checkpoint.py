"""Checkpoint save/load for registry state.

The checkpoint is the registry snapshot plus bookkeeping (version, reason,
timestamp, event count). Writes are atomic: a temp file is written and
then renamed over the target, so an interrupted save never leaves a
half-written checkpoint behind.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypedDict

from .events import EventLog
from .logger import EventLogger
from .token_registry import RecordDict, TokenRegistry

logger = logging.getLogger(__name__)

# Current checkpoint format version
CHECKPOINT_VERSION = 1


class CheckpointData(TypedDict, total=False):
    """Structure of a checkpoint file."""

    version: int
    next_id: int
    authority: str
    records: list[RecordDict]
    token_approvals: dict[str, str]
    operator_approvals: list[list[str]]
    event_count: int
    reason: str
    timestamp: str


def save_checkpoint(
    registry: TokenRegistry,
    checkpoint_file: str | Path | None = None,
    reason: str = "",
) -> str:
    """Save registry state to a checkpoint file.

    Args:
        registry: The registry to checkpoint
        checkpoint_file: Target path (defaults to checkpoint.file from config)
        reason: Free-form note stored with the checkpoint

    Returns:
        Path to the saved checkpoint file
    """
    if checkpoint_file is None:
        from ..config import get
        checkpoint_file = get("checkpoint.file", "registry_checkpoint.json")
    path = Path(str(checkpoint_file))

    snapshot = registry.snapshot()
    checkpoint: CheckpointData = {
        "version": CHECKPOINT_VERSION,
        "next_id": snapshot["next_id"],
        "authority": snapshot["authority"],
        "records": snapshot["records"],
        "token_approvals": snapshot["token_approvals"],
        "operator_approvals": snapshot["operator_approvals"],
        "event_count": registry.event_log.last_sequence,
        "reason": reason,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = f"{path}.tmp"
    with open(temp_file, "w") as f:
        json.dump(checkpoint, f, indent=2)

    # os.replace is atomic on POSIX
    os.replace(temp_file, path)

    logger.info("checkpoint saved to %s (%d tokens)", path, len(snapshot["records"]))
    return str(path)


def load_checkpoint(checkpoint_file: str | Path) -> CheckpointData | None:
    """Load a checkpoint file.

    Args:
        checkpoint_file: Path to the checkpoint JSON file.

    Returns:
        CheckpointData if the file exists, None otherwise.

    Raises:
        ValueError: If the file was written by an unknown format version
    """
    checkpoint_path = Path(checkpoint_file)
    if not checkpoint_path.exists():
        return None

    with open(checkpoint_path) as f:
        data: dict[str, Any] = json.load(f)

    version = int(data.get("version", CHECKPOINT_VERSION))
    if version != CHECKPOINT_VERSION:
        raise ValueError(
            f"Unsupported checkpoint version {version} (expected {CHECKPOINT_VERSION})"
        )

    checkpoint: CheckpointData = {
        "version": version,
        "next_id": int(data["next_id"]),
        "authority": str(data["authority"]),
        "records": list(data["records"]),
        "token_approvals": dict(data.get("token_approvals", {})),
        "operator_approvals": [list(pair) for pair in data.get("operator_approvals", [])],
        "event_count": int(data.get("event_count", 0)),
        "reason": str(data.get("reason", "")),
    }
    if "timestamp" in data:
        checkpoint["timestamp"] = str(data["timestamp"])

    return checkpoint


def restore_registry(
    checkpoint: CheckpointData,
    event_log: EventLog | None = None,
    sink: EventLogger | None = None,
) -> TokenRegistry:
    """Build a new TokenRegistry holding the checkpointed state.

    Without an explicit event_log, the new log continues numbering from the
    checkpoint's event_count, so a restored registry appending to the same
    JSONL trail never repeats a sequence number.

    Args:
        checkpoint: Data returned by load_checkpoint()
        event_log: Log for events emitted after the restore
        sink: JSONL sink for the new log (ignored when event_log is given)

    Returns:
        The restored registry
    """
    if event_log is None:
        event_log = EventLog(sink, start_sequence=checkpoint.get("event_count", 0))
    registry = TokenRegistry(authority=checkpoint["authority"], event_log=event_log)
    registry.restore({
        "next_id": checkpoint["next_id"],
        "authority": checkpoint["authority"],
        "records": checkpoint["records"],
        "token_approvals": checkpoint.get("token_approvals", {}),
        "operator_approvals": checkpoint.get("operator_approvals", []),
    })
    logger.info(
        "registry restored: next_id=%d, events continue after #%d",
        checkpoint["next_id"], event_log.last_sequence,
    )
    return registry
