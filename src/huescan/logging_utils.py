"""
Structured event logging for huescan.

Events are JSONL lines so downstream tooling can consume them without
bespoke parsers. Writes are serialized via an asyncio lock and run in a
worker thread to stay off the event loop.
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Dict


class EventLogger:
    """Append-only JSONL logger with async-safe writes."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def log(self, event_type: str, payload: Dict[str, Any]) -> None:
        """Write a structured event."""
        record = {
            "ts": time.time(),
            "event": event_type,
            **payload,
        }
        async with self._lock:
            await asyncio.to_thread(self._append_record, record)

    def _append_record(self, record: Dict[str, Any]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    def read_events(self) -> list[Dict[str, Any]]:
        """Load every event written so far."""
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]


def build_logger(base_dir: str, name: str) -> EventLogger:
    """Create a logger under ``base_dir`` with a filename ``{name}.jsonl``."""
    Path(base_dir).mkdir(parents=True, exist_ok=True)
    return EventLogger(str(Path(base_dir) / f"{name}.jsonl"))
