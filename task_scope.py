# -*- coding: utf-8 -*-
########################
# task_scope.py
########################
# Purpose:
# - Owns every periodic or delayed callback the game arms (spawner, ticker, countdown,
#   play timer, cue auto-clears).
# - Provides cancellation tokens grouped into scopes, one scope per session state.
#
# Design notes:
# - Single threaded: callbacks run on the event loop thread that owns the backend.
# - A cancelled token never fires again, even if the backend already queued its timeout.
# - Cancelling twice is a no-op.
# - A callback that raises is logged and dropped at the task boundary; it never
#   propagates into the event loop.
# - Two interchangeable backends:
#   - QtTimerBackend: QTimer based, used by the desktop app.
#   - ManualTimerBackend: virtual clock advanced explicitly, used by tests and headless simulation.
#
########################
# Interfaces:
# Public protocols:
# - TimerHandle: stop() -> None
# - TimerBackend: now_ms() -> float, call_later(delay_ms, callback) -> TimerHandle,
#                 call_every(interval_ms, callback) -> TimerHandle
#
# Public classes:
# - class CancellationToken
#   - name -> str, cancelled -> bool, cancel() -> None
# - class TaskScope
#   - __init__(backend: TimerBackend, *, name: str)
#   - later(delay_ms: float, callback, *, name: str = "") -> CancellationToken
#   - every(interval_ms: float, callback, *, name: str = "") -> CancellationToken
#   - cancel_all() -> None
#   - cancelled -> bool, active_count -> int
# - class ManualTimerBackend
#   - advance(milliseconds: float) -> None
#   - pending_count() -> int
# - class QtTimerBackend(PyQt6.QtCore.QObject)
#
########################

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple


logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(Protocol):
    def stop(self) -> None:
        ...


class TimerBackend(Protocol):
    def now_ms(self) -> float:
        ...

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        ...

    def call_every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        ...


class CancellationToken:
    def __init__(self, name: str = "") -> None:
        self._name = str(name)
        self._cancelled = False
        self._handle: Optional[TimerHandle] = None

    def __repr__(self) -> str:
        return f"CancellationToken(name={self._name!r}, cancelled={self._cancelled})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _bind(self, handle: TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.stop()


class TaskScope:
    """Set of tokens armed on behalf of one owner.

    The owner cancels the whole scope when it gives up control; nothing armed through
    this scope can fire afterwards.
    """

    def __init__(self, backend: TimerBackend, *, name: str = "scope") -> None:
        self._backend = backend
        self._name = str(name)
        self._tokens: Dict[int, CancellationToken] = {}
        self._cancelled = False

    def __repr__(self) -> str:
        return f"TaskScope(name={self._name!r}, active={len(self._tokens)}, cancelled={self._cancelled})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active_count(self) -> int:
        return len(self._tokens)

    @property
    def backend(self) -> TimerBackend:
        return self._backend

    def later(self, delay_ms: float, callback: Callback, *, name: str = "") -> CancellationToken:
        token = self._new_token(name)
        handle = self._backend.call_later(max(0.0, float(delay_ms)), self._guard(token, callback, one_shot=True))
        token._bind(handle)
        return token

    def every(self, interval_ms: float, callback: Callback, *, name: str = "") -> CancellationToken:
        interval = float(interval_ms)
        if interval <= 0.0:
            raise ValueError("Periodic tasks need a positive interval")
        token = self._new_token(name)
        handle = self._backend.call_every(interval, self._guard(token, callback, one_shot=False))
        token._bind(handle)
        return token

    def cancel(self, token: CancellationToken) -> None:
        self._tokens.pop(id(token), None)
        token.cancel()

    def cancel_all(self) -> None:
        self._cancelled = True
        tokens = list(self._tokens.values())
        self._tokens.clear()
        for token in tokens:
            token.cancel()

    def _new_token(self, name: str) -> CancellationToken:
        if self._cancelled:
            raise RuntimeError(f"Cannot arm task {name!r} on cancelled scope {self._name!r}")
        token = CancellationToken(name=f"{self._name}.{name}" if name else self._name)
        self._tokens[id(token)] = token
        return token

    def _guard(self, token: CancellationToken, callback: Callback, *, one_shot: bool) -> Callback:
        def run() -> None:
            if token.cancelled:
                return
            if one_shot:
                self._tokens.pop(id(token), None)
                token._handle = None
            try:
                callback()
            except Exception:
                logger.exception("Task %s failed; its effects for this tick were skipped", token.name)

        return run


# -----------------
# Manual (virtual clock) backend
# -----------------


class _ManualEntry:
    __slots__ = ("callback", "interval_ms", "active")

    def __init__(self, callback: Callback, interval_ms: Optional[float]) -> None:
        self.callback = callback
        self.interval_ms = interval_ms
        self.active = True

    def stop(self) -> None:
        self.active = False


class ManualTimerBackend:
    """Deterministic timer backend driven by explicit advance() calls.

    Due callbacks fire in (due time, registration order) order. Callbacks may arm or
    stop timers while the clock advances; timers that become due within the same
    advance window also fire.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)
        self._sequence = itertools.count()
        self._queue: List[Tuple[float, int, _ManualEntry]] = []

    def now_ms(self) -> float:
        return self._now_ms

    def call_later(self, delay_ms: float, callback: Callback) -> _ManualEntry:
        entry = _ManualEntry(callback, None)
        self._push(self._now_ms + max(0.0, float(delay_ms)), entry)
        return entry

    def call_every(self, interval_ms: float, callback: Callback) -> _ManualEntry:
        interval = float(interval_ms)
        if interval <= 0.0:
            raise ValueError("Periodic timers need a positive interval")
        entry = _ManualEntry(callback, interval)
        self._push(self._now_ms + interval, entry)
        return entry

    def pending_count(self) -> int:
        return sum(1 for _due, _seq, entry in self._queue if entry.active)

    def advance(self, milliseconds: float) -> None:
        if float(milliseconds) < 0.0:
            raise ValueError("The virtual clock only moves forward")
        target_ms = self._now_ms + float(milliseconds)
        while self._queue and self._queue[0][0] <= target_ms:
            due_ms, _seq, entry = heapq.heappop(self._queue)
            if not entry.active:
                continue
            self._now_ms = max(self._now_ms, due_ms)
            if entry.interval_ms is not None:
                self._push(due_ms + entry.interval_ms, entry)
            else:
                entry.active = False
            entry.callback()
        self._now_ms = target_ms

    def _push(self, due_ms: float, entry: _ManualEntry) -> None:
        heapq.heappush(self._queue, (float(due_ms), next(self._sequence), entry))


# -----------------
# Qt backend
# -----------------


def _create_qt_backend_class() -> Any:
    from PyQt6.QtCore import QElapsedTimer, QObject, QTimer, Qt

    class _QtTimerHandle:
        def __init__(self, timer: QTimer) -> None:
            self._timer: Optional[QTimer] = timer

        def stop(self) -> None:
            timer = self._timer
            self._timer = None
            if timer is None:
                return
            timer.stop()
            timer.deleteLater()

    class _QtTimerBackend(QObject):
        def __init__(self, parent: Optional[QObject] = None) -> None:
            super().__init__(parent)
            self._clock = QElapsedTimer()
            self._clock.start()

        def now_ms(self) -> float:
            return float(self._clock.nsecsElapsed()) / 1_000_000.0

        def call_later(self, delay_ms: float, callback: Callback) -> _QtTimerHandle:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.setTimerType(Qt.TimerType.PreciseTimer)
            timer.setInterval(int(max(0.0, float(delay_ms))))
            handle = _QtTimerHandle(timer)

            def fire() -> None:
                handle.stop()
                callback()

            timer.timeout.connect(fire)
            timer.start()
            return handle

        def call_every(self, interval_ms: float, callback: Callback) -> _QtTimerHandle:
            interval = int(round(float(interval_ms)))
            if interval <= 0:
                raise ValueError("Periodic timers need a positive interval")
            timer = QTimer(self)
            timer.setTimerType(Qt.TimerType.PreciseTimer)
            timer.setInterval(interval)
            timer.timeout.connect(callback)
            timer.start()
            return _QtTimerHandle(timer)

    return _QtTimerBackend


def __getattr__(name: str) -> Any:
    # QtTimerBackend is built on first access so pure gameplay code never imports Qt.
    if name == "QtTimerBackend":
        backend_class = _create_qt_backend_class()
        globals()["QtTimerBackend"] = backend_class
        return backend_class
    raise AttributeError(name)


def _run_unit_tests() -> None:
    backend = ManualTimerBackend()
    scope = TaskScope(backend, name="test")
    fired: List[str] = []

    scope.later(100, lambda: fired.append("later"), name="later")
    ticker = scope.every(50, lambda: fired.append("tick"), name="tick")
    backend.advance(100)
    assert fired == ["tick", "later", "tick"]

    ticker.cancel()
    ticker.cancel()
    backend.advance(200)
    assert fired == ["tick", "later", "tick"]

    scope.cancel_all()
    scope.cancel_all()
    assert scope.cancelled and scope.active_count == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("task_scope.py: ok")
