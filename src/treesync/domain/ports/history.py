"""Port for the undo/redo history recorder."""

from __future__ import annotations

from typing import Protocol


class HistoryRecorder(Protocol):
    def try_begin(self, label: str) -> object | None:
        """Open a recording; ``None`` when one cannot be started right now."""
        ...

    def finish(self, handle: object, *, commit: bool) -> None: ...
