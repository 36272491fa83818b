"""
State Store

Trade journal: every controller event and command as JSONL, plus a
snapshot of the final outcome and metrics.
"""

import json
from dataclasses import fields, is_dataclass
from datetime import datetime, timezone
from pathlib import Path


def to_record(obj) -> dict:
    """Flatten an event/command dataclass into a JSON-friendly dict."""
    record = {"type": type(obj).__name__}
    if is_dataclass(obj):
        for f in fields(obj):
            record[f.name] = getattr(obj, f.name)
    return record


class StateStore:
    """
    Persistent trade journal.

    Stores:
    - journal.jsonl: events in, commands out, in processing order
    - outcome_<ts>.json: final outcome, error and metrics
    """

    def __init__(self, data_dir: str = "data/journal", enabled: bool = True):
        self.data_dir = Path(data_dir)
        self.enabled = enabled
        if enabled:
            self.data_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def save_outcome(self, data: dict):
        """Save the final outcome of a trade."""
        if not self.enabled:
            return
        stamp = self._now().replace(":", "-")
        path = self.data_dir / f"outcome_{stamp}.json"
        with open(path, "w") as f:
            json.dump(data, f, indent=2, default=str)

    def last_outcome(self, pair: str) -> dict:
        """Most recent outcome snapshot saved for pair, or {} if there is none."""
        if not self.enabled:
            return {}
        for path in sorted(self.data_dir.glob("outcome_*.json"), reverse=True):
            with open(path, "r") as f:
                snapshot = json.load(f)
            if snapshot.get("pair") == pair:
                return snapshot
        return {}

    def append_jsonl(self, name: str, record: dict):
        """Append a record to a JSONL log file."""
        if not self.enabled:
            return
        path = self.data_dir / f"{name}.jsonl"
        with open(path, "a") as f:
            f.write(json.dumps({"ts": self._now(), **record}, default=str) + "\n")

    def journal(self, direction: str, obj):
        """Record one event ("in") or command ("out")."""
        self.append_jsonl("journal", {"dir": direction, **to_record(obj)})
