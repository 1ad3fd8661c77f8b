#!/usr/bin/env python3
"""
Event log viewer - summarize and inspect registry event trails

Usage:
    python view_events.py                          # Summary of registry_events.jsonl
    python view_events.py --full                   # Full event log
    python view_events.py --tokens                 # Per-token state rebuilt from events
    python view_events.py other_events.jsonl       # View different log file
"""

import json
import argparse
from pathlib import Path
from collections import defaultdict


def load_events(log_file: str) -> list:
    """Load all events from JSONL file"""
    events = []
    with open(log_file) as f:
        for line in f:
            if line.strip():
                events.append(json.loads(line))
    return events


def rebuild_tokens(events: list) -> dict:
    """Replay registry events into {token_id: {creator, holder, royalty_rate, transfers}}.

    Metadata is not recoverable: set_metadata emits no event.
    """
    tokens = {}
    for e in events:
        event_type = e.get("event_type")
        if event_type == "minted":
            tokens[e["token_id"]] = {
                "creator": e["creator"],
                "holder": e["creator"],
                "royalty_rate": e["royalty_rate"],
                "transfers": 0,
            }
        elif event_type == "royalty_updated" and e["token_id"] in tokens:
            tokens[e["token_id"]]["royalty_rate"] = e["new_rate"]
        elif event_type == "transferred" and e["token_id"] in tokens:
            tokens[e["token_id"]]["holder"] = e["to_id"]
            tokens[e["token_id"]]["transfers"] += 1
    return tokens


def summarize(events: list) -> None:
    """Print summary statistics"""
    by_type = defaultdict(int)
    for e in events:
        by_type[e.get("event_type", "?")] += 1

    tokens = rebuild_tokens(events)
    holdings = defaultdict(int)
    for data in tokens.values():
        holdings[data["holder"]] += 1

    print("=" * 60)
    print("REGISTRY EVENT SUMMARY")
    print("=" * 60)

    print(f"\nTotal events: {len(events)}")
    print(f"\nEvent Types:")
    for event_type, count in sorted(by_type.items()):
        print(f"  {event_type}: {count}")

    print(f"\nTokens minted: {len(tokens)}")
    print(f"\nHoldings:")
    for holder, count in sorted(holdings.items(), key=lambda x: (-x[1], x[0])):
        print(f"  {holder}: {count}")

    authority_changes = [e for e in events if e.get("event_type") == "authority_transferred"]
    if authority_changes:
        print(f"\nCurrent authority: {authority_changes[-1]['new_authority']}")


def show_full_log(events: list) -> None:
    """Print full event log in readable format"""
    print("=" * 60)
    print("FULL EVENT LOG")
    print("=" * 60)

    for e in events:
        event_type = e.get("event_type", "?")
        ts = e.get("timestamp", "")[:19]
        seq = e.get("sequence", "?")
        head = f"\n#{seq} [{ts}]"

        if event_type == "minted":
            print(f"{head} MINTED token {e['token_id']}")
            print(f"  Creator: {e['creator']}, Royalty: {e['royalty_rate']}")
        elif event_type == "royalty_updated":
            print(f"{head} ROYALTY token {e['token_id']} -> {e['new_rate']}")
        elif event_type == "transferred":
            print(f"{head} TRANSFERRED token {e['token_id']}: {e['from_id']} -> {e['to_id']}")
        elif event_type == "authority_transferred":
            print(f"{head} AUTHORITY {e['previous_authority']} -> {e['new_authority']}")
        elif event_type == "transfer":
            print(f"{head} ledger transfer token {e['token_id']}: {e['from_id']} -> {e['to_id']}")
        elif event_type == "approval":
            print(f"{head} approval token {e['token_id']}: {e['holder']} -> {e['approved']}")
        elif event_type == "approval_for_all":
            state = "granted" if e["approved"] else "revoked"
            print(f"{head} operator {e['operator']} {state} by {e['holder']}")
        else:
            print(f"{head} {event_type}")


def show_tokens(events: list) -> None:
    """Show every token's state as rebuilt from events"""
    print("=" * 60)
    print("TOKENS")
    print("=" * 60)

    tokens = rebuild_tokens(events)
    print(f"\n  {'ID':>5} {'Creator':<16} {'Holder':<16} {'Royalty':>8} {'Moves':>6}")
    print(f"  {'-'*5} {'-'*16} {'-'*16} {'-'*8} {'-'*6}")
    for token_id, data in sorted(tokens.items()):
        print(
            f"  {token_id:>5} {data['creator']:<16} {data['holder']:<16} "
            f"{data['royalty_rate']:>8} {data['transfers']:>6}"
        )


def main():
    parser = argparse.ArgumentParser(description="View registry event logs")
    parser.add_argument("log_file", nargs="?", default="registry_events.jsonl", help="Log file to view")
    parser.add_argument("--full", action="store_true", help="Show full event log")
    parser.add_argument("--tokens", action="store_true", help="Show per-token state")
    args = parser.parse_args()

    if not Path(args.log_file).exists():
        print(f"Error: {args.log_file} not found")
        return

    events = load_events(args.log_file)

    if args.full:
        show_full_log(events)
    elif args.tokens:
        show_tokens(events)
    else:
        summarize(events)


if __name__ == "__main__":
    main()
