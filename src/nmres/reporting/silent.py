from __future__ import annotations

from typing import Any

from .base import Reporter


class SilentReporter(Reporter):
    """Keeps task records but prints nothing; for --reporter silent and library calls."""

    def status(self, message: str, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        pass

    def section(self, title: str) -> None:
        pass
