from __future__ import annotations

import json
import sys
from typing import Any, Dict

from .base import Reporter, TaskRecord, get_verbosity

# "<Kind> summary: k=v k=v" status lines become structured summary events.
SUMMARY_KINDS = ("pack", "build", "validate", "verify", "extract", "index")


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, obj: dict) -> None:
        self.stream.write(json.dumps(obj, sort_keys=True, default=str) + "\n")

    def _on_start(self, rec: TaskRecord) -> None:
        self._emit(
            {
                "event": "task_start",
                "id": rec.task_id,
                "name": rec.name,
                "total": rec.total,
                **rec.meta,
            }
        )

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        self._emit(
            {"event": "task_progress", "id": rec.task_id, "completed": rec.completed, **meta}
        )

    def _on_end(self, rec: TaskRecord) -> None:
        event = {
            "event": "task_end",
            "id": rec.task_id,
            "status": rec.status.name.lower(),
            "completed": rec.completed,
            "total": rec.total,
            "duration_seconds": rec.elapsed,
            **rec.meta,
        }
        if rec.ratio is not None:
            event["ratio"] = round(rec.ratio, 4)
        self._emit(event)

    def _maybe_summary(self, message: str, level: str, **fields: Any) -> None:
        head, sep, tail = message.partition(":")
        words = head.lower().split()
        if not sep or len(words) != 2 or words[1] != "summary":
            return
        if words[0] not in SUMMARY_KINDS:
            return
        kv_pairs = dict(
            token.split("=", 1) for token in tail.split() if "=" in token
        )
        self._emit(
            {
                "event": "summary",
                "summary_type": words[0],
                "level": level,
                "raw": message,
                **kv_pairs,
                **fields,
            }
        )

    def _line(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        self._emit({"event": "status", "message": message, "level": level, **fields})

    def status(self, message: str, **fields: Any) -> None:
        self._maybe_summary(message, "info", **fields)
        self._line("info", message, fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._line(f"verbose{level}", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._line("error", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._line("warning", message, fields)

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
