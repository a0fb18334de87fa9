"""Append-only JSON lines files for chat transcripts and handoff backups."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping


class ConversationLogger:
    """Writes one JSON object per line; writes run in a worker thread."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def encode(payload: Mapping[str, Any]) -> str:
        """Serialize ``payload`` with a UTC timestamp; a timestamp in the payload wins."""

        record: Dict[str, Any] = {"timestamp": datetime.now(tz=timezone.utc).isoformat()}
        record.update(payload)
        return json.dumps(record, ensure_ascii=False, default=str)

    def _write(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    async def log(self, payload: Mapping[str, Any]) -> None:
        line = self.encode(payload)
        async with self._write_lock:
            await asyncio.to_thread(self._write, line)

    def read(self) -> List[Dict[str, Any]]:
        """Return every record written so far; a missing file has none."""

        if not self._path.exists():
            return []
        with self._path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]


__all__ = ["ConversationLogger"]
