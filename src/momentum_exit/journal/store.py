"""JSONL journal store for exit-check events."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator

_ALLOWED_EVENT_TYPES = {
    "exit_check_start",
    "exit_signal",
    "order",
    "exit_check_end",
    "error",
}


class JournalStore:
    """Append-only JSONL event store, one file per UTC day."""

    def __init__(self, journal_dir: Path) -> None:
        self._journal_dir = journal_dir
        self._journal_dir.mkdir(parents=True, exist_ok=True)

    def append(self, event_type: str, payload: dict[str, Any]) -> None:
        """Append one event line to the current day's file."""
        if event_type not in _ALLOWED_EVENT_TYPES:
            raise ValueError(f"unsupported_event_type: {event_type}")
        now = datetime.now(timezone.utc)
        record = {
            "timestamp": now.isoformat(),
            "event_type": event_type,
            "payload": payload,
        }
        with self._file_path_for_day(now.date()).open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=True, default=str) + "\n")

    def load_recent(self, limit: int, *, event_type: str | None = None) -> list[dict[str, Any]]:
        """Load up to ``limit`` newest events, oldest first."""
        if limit <= 0:
            return []

        rows: list[dict[str, Any]] = []
        for record in self._iter_newest_first():
            if event_type is not None and record.get("event_type") != event_type:
                continue
            rows.append(record)
            if len(rows) >= limit:
                break
        return list(reversed(rows))

    def pending_exit_trade_ids(self, day: date | None = None) -> set[str]:
        """Trade ids that already received a close order on ``day`` (default today)."""
        day = day or datetime.now(timezone.utc).date()
        file_path = self._file_path_for_day(day)
        if not file_path.exists():
            return set()

        trade_ids: set[str] = set()
        for line in file_path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            record = json.loads(line)
            if record.get("event_type") != "order":
                continue
            trade_id = record.get("payload", {}).get("trade_id")
            if trade_id is not None:
                trade_ids.add(str(trade_id))
        return trade_ids

    def _iter_newest_first(self) -> Iterator[dict[str, Any]]:
        files = sorted(self._journal_dir.glob("*.jsonl"), reverse=True)
        for file in files:
            lines = file.read_text(encoding="utf-8").splitlines()
            for line in reversed(lines):
                if line.strip():
                    yield json.loads(line)

    def _file_path_for_day(self, day: date) -> Path:
        return self._journal_dir / f"{day.isoformat()}.jsonl"
