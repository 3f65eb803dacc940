"""Reporter interface and the process-wide active reporter.

Tasks are pipeline stages (``pack.prepare``, ``write.payload``, ``extract``,
``copy.loose``). The base class keeps their :class:`TaskRecord` so back ends
only render. Completion metadata uses the pipeline counters ``files``,
``entries``, ``bytes`` and ``stored``; a failed stage carries the ``error``
code of the exception that stopped it.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "failure_code",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]

_COUNTERS = ("entries", "files", "bytes", "stored")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    started: float = field(default_factory=time.monotonic)
    ended: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed(self) -> float:
        return (self.ended or time.monotonic()) - self.started

    @property
    def ratio(self) -> float | None:
        """Stored bytes over input bytes, when a stage reports both."""
        raw, stored = self.meta.get("bytes"), self.meta.get("stored")
        if not raw or stored is None:
            return None
        return stored / raw

    def progress_label(self) -> str:
        return f" {self.completed}/{self.total}" if self.total is not None else ""

    def stats(self) -> str:
        parts = [f"{k}={self.meta[k]}" for k in _COUNTERS if k in self.meta]
        if self.ratio is not None:
            parts.append(f"ratio={self.ratio:.2f}")
        if "error" in self.meta:
            parts.append(f"error={self.meta['error']}")
        return f" [{' '.join(parts)}]" if parts else ""


def failure_code(exc: BaseException) -> str:
    # NmresError carries a stable code; anything else is named by its type.
    return getattr(exc, "code", None) or type(exc).__name__


class Reporter:
    """Sink for pipeline progress, status lines and section headers.

    Subclasses render through the ``_on_*`` hooks and the message methods.
    """

    supports_progress: bool = False

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskRecord] = {}

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        rec = TaskRecord(task_id, name, total, meta=meta)
        self._tasks[task_id] = rec
        self._on_start(rec)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self._on_advance(rec, meta)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.ended = time.monotonic()
        rec.meta.update(final_meta)
        self._on_end(rec)

    def _on_start(self, rec: TaskRecord) -> None:
        pass

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        pass

    def _on_end(self, rec: TaskRecord) -> None:
        pass

    def status(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    def section(self, title: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None
_VERBOSITY = 0


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


def set_verbosity(level: int) -> None:
    """Set by the CLI from repeated ``-v``."""
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None, **meta: Any
) -> Iterator[Reporter]:
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    try:
        yield rep
    except Exception as e:
        rep.end_task(task_id, TaskStatus.FAILED, error=failure_code(e))
        raise
    rep.end_task(task_id, TaskStatus.SUCCESS)
