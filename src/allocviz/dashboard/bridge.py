# mypy: ignore-errors
"""Marshal fetch outcomes from worker threads onto the Qt UI thread."""

from __future__ import annotations

from collections.abc import Callable

from .common import QObject, Qt, pyqtSignal

if Qt is not None:  # pragma: no cover - requires PyQt6

    class UiBridge(QObject):  # type: ignore[misc]
        call = pyqtSignal(object)

        def __init__(self) -> None:
            super().__init__()
            self.call.connect(self._dispatch)  # type: ignore[attr-defined]

        def dispatch(self, func: Callable[[], None]) -> None:
            # Emitting from a worker thread queues the call on this object's thread.
            self.call.emit(func)  # type: ignore[attr-defined]

        def _dispatch(self, payload: object) -> None:
            if callable(payload):
                payload()

else:  # pragma: no cover - PyQt6 missing

    class UiBridge:
        def dispatch(self, func: Callable[[], None]) -> None:
            func()


__all__ = ["UiBridge"]
