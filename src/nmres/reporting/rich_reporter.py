from __future__ import annotations

import os
from typing import Any, Dict

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}


class RichReporter(Reporter):
    """Progress bars on stderr via rich; one bar per counted task."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(stderr=True, highlight=False)
        self._transient = os.getenv("NMRES_PROGRESS_TRANSIENT", "0").lower() in (
            "1",
            "true",
            "yes",
        )
        self.progress: Progress | None = None
        self._bar_ids: Dict[str, TaskID] = {}

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TextColumn("[dim]{task.fields[item]}"),
                TimeElapsedColumn(),
                console=self.console,
                transient=self._transient,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _on_start(self, rec: TaskRecord) -> None:
        if rec.total is None:
            # Uncounted tasks render as rules rather than spinners.
            self.console.rule(rec.name)
            return
        progress = self._ensure_progress()
        self._bar_ids[rec.task_id] = progress.add_task(
            rec.name, total=rec.total, item=""
        )

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        bar = self._bar_ids.get(rec.task_id)
        if bar is not None and self.progress is not None:
            self.progress.update(
                bar, completed=rec.completed, item=meta.get("current_item", "")
            )

    def _on_end(self, rec: TaskRecord) -> None:
        bar = self._bar_ids.pop(rec.task_id, None)
        if bar is not None and self.progress is not None:
            self.progress.remove_task(bar)
        self.console.print(
            f"{_STATUS_ICON.get(rec.status, '')} {rec.name}{rec.progress_label()} "
            f"({rec.elapsed:.2f}s){rec.stats()}"
        )
        if not self._bar_ids:
            self.flush()

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        if self.progress is not None:
            try:
                self.progress.stop()
            finally:
                self.progress = None
