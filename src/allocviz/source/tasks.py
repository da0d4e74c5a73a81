"""Cancellable fetch tasks.

Every chart owns one :class:`FetchCoordinator`. Submitting a new fetch cancels
the previous one, and a cancelled task never delivers its outcome: the check
happens inside the dispatched callback, on the same thread that cancels, so a
superseded result cannot slip in between.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Dispatch = Callable[[Callable[[], None]], None]

_task_ids = itertools.count(1)


def dispatch_inline(func: Callable[[], None]) -> None:
    func()


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class FetchTask(Generic[T]):
    """A single fetch attempt whose outcome is committed at most once."""

    def __init__(
        self,
        work: Callable[[CancelToken], T],
        on_success: Callable[[T], None],
        on_error: Callable[[Exception], None],
        *,
        dispatch: Dispatch = dispatch_inline,
        label: str = "fetch",
    ) -> None:
        self.id = next(_task_ids)
        self.label = label
        self.token = CancelToken()
        self._work = work
        self._on_success = on_success
        self._on_error = on_error
        self._dispatch = dispatch
        self.done = threading.Event()

    def cancel(self) -> None:
        self.token.cancel()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def run(self) -> None:
        try:
            if self.token.cancelled:
                logger.debug("Skipping cancelled %s #%d", self.label, self.id)
                return
            try:
                result = self._work(self.token)
            except Exception as exc:  # noqa: BLE001 - delivered to on_error
                self._deliver(self._on_error, exc)
                return
            self._deliver(self._on_success, result)
        finally:
            self.done.set()

    def _deliver(self, callback: Callable[[Any], None], value: Any) -> None:
        def _commit() -> None:
            if self.token.cancelled:
                logger.debug("Discarding outcome of superseded %s #%d", self.label, self.id)
                return
            callback(value)

        self._dispatch(_commit)


class FetchCoordinator:
    """Run at most one live fetch; newer submissions supersede older ones.

    Without a ``dispatch`` the work and its commit both run inline on the
    calling thread. Background fetches need a dispatcher that hands outcomes
    back to the owning thread, since commits mutate chart state.
    """

    def __init__(self, dispatch: Dispatch | None = None, *, background: bool | None = None) -> None:
        if background is None:
            background = dispatch is not None
        if background and dispatch is None:
            raise ValueError("background fetches require a dispatcher for the owning thread")
        self._dispatch = dispatch or dispatch_inline
        self._background = background
        self._current: FetchTask[Any] | None = None

    @property
    def current(self) -> FetchTask[Any] | None:
        return self._current

    def submit(
        self,
        work: Callable[[CancelToken], T],
        on_success: Callable[[T], None],
        on_error: Callable[[Exception], None],
        *,
        label: str = "fetch",
    ) -> FetchTask[T]:
        self.cancel()
        task: FetchTask[T] = FetchTask(
            work, on_success, on_error, dispatch=self._dispatch, label=label
        )
        self._current = task
        if self._background:
            thread = threading.Thread(
                target=task.run, name=f"allocviz-{label}-{task.id}", daemon=True
            )
            thread.start()
        else:
            task.run()
        return task

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
            self._current = None

    def shutdown(self) -> None:
        self.cancel()


__all__ = ["CancelToken", "FetchTask", "FetchCoordinator", "dispatch_inline"]
