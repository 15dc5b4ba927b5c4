# -*- coding: utf-8 -*-
"""
Persistence Scheduler

Per-session queue of deferred side effects (text sync, storage writes,
dirty recomputation), keyed by (effect, target):

- Re-submitting a key replaces its callback and moves it to the back.
- Debounced tasks run when the session's QTimer fires; the timer restarts on
  every submission.
- Idle tasks run on a zero-interval QTimer, the next time the event loop is free.
- flush() runs everything pending for a session synchronously, in
  submission order.

All timers live on the Qt thread that owns the scheduler.
"""

import itertools
from typing import Callable, Dict, Hashable, Optional, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

import xcforge_config as config
from xcforge_enums import SyncEffect
from xcforge_logger import get_logger

logger = get_logger("core.persistence_scheduler")

# Matches every target in cancel() / has_pending()
ANY = object()

# Tasks may enqueue follow-up work while flushing; bound the number of passes
_MAX_FLUSH_ROUNDS = 16

TaskKey = Tuple[SyncEffect, Hashable]


class _SessionQueue:
    """Pending tasks and timers of one session."""

    def __init__(self):
        self.debounced: Dict[TaskKey, Tuple[int, Callable[[], None]]] = {}
        self.idle: Dict[TaskKey, Tuple[int, Callable[[], None]]] = {}
        self.debounce_timer: Optional[QTimer] = None
        self.idle_timer: Optional[QTimer] = None

    def is_empty(self) -> bool:
        return not self.debounced and not self.idle


class PersistenceScheduler(QObject):
    """
    Signals:
        task_failed(str, str, str): session id, effect, error message
        flushed(str): session id whose queue just drained
    """

    task_failed = Signal(str, str, str)
    flushed = Signal(str)

    def __init__(self, debounce_ms: int = config.DEFAULT_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self.debounce_ms = debounce_ms
        self._queues: Dict[str, _SessionQueue] = {}
        self._sequence = itertools.count()
        logger.debug(f"PersistenceScheduler initialized (debounce={debounce_ms}ms)")

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def _queue(self, session_id: str) -> _SessionQueue:
        queue = self._queues.get(session_id)
        if queue is None:
            queue = _SessionQueue()
            self._queues[session_id] = queue
        return queue

    @staticmethod
    def _put(tasks: Dict, key: TaskKey, sequence: int, callback):
        tasks.pop(key, None)
        tasks[key] = (sequence, callback)

    def schedule(self, session_id: str, effect: SyncEffect, target: Hashable, callback: Callable[[], None]):
        """Queue a debounced task; restarts the session's debounce window."""
        queue = self._queue(session_id)
        self._put(queue.debounced, (effect, target), next(self._sequence), callback)

        if queue.debounce_timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.timeout.connect(lambda sid=session_id: self._run_debounced(sid))
            queue.debounce_timer = timer
        queue.debounce_timer.start(self.debounce_ms)

    def schedule_idle(self, session_id: str, effect: SyncEffect, target: Hashable, callback: Callable[[], None]):
        """Queue a task for the next idle slice of the event loop."""
        queue = self._queue(session_id)
        self._put(queue.idle, (effect, target), next(self._sequence), callback)

        if queue.idle_timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.setInterval(0)
            timer.timeout.connect(lambda sid=session_id: self._run_idle(sid))
            queue.idle_timer = timer
        if not queue.idle_timer.isActive():
            queue.idle_timer.start()

    # =========================================================================
    # INSPECTION / CANCELLATION
    # =========================================================================

    @staticmethod
    def _matches(key: TaskKey, effect: Optional[SyncEffect], target) -> bool:
        if effect is not None and key[0] != effect:
            return False
        return target is ANY or key[1] == target

    def has_pending(self, session_id: str, effect: Optional[SyncEffect] = None, target=ANY) -> bool:
        queue = self._queues.get(session_id)
        if queue is None:
            return False
        return any(
            self._matches(key, effect, target)
            for key in itertools.chain(queue.debounced, queue.idle)
        )

    def cancel(self, session_id: str, effect: SyncEffect, target=ANY) -> int:
        """Drop pending tasks of `effect` (optionally one target). Returns how many were dropped."""
        queue = self._queues.get(session_id)
        if queue is None:
            return 0
        dropped = 0
        for tasks in (queue.debounced, queue.idle):
            for key in [key for key in tasks if self._matches(key, effect, target)]:
                del tasks[key]
                dropped += 1
        self._stop_empty_timers(queue)
        return dropped

    def discard(self, session_id: str):
        """Forget everything queued for a session without running it."""
        queue = self._queues.pop(session_id, None)
        if queue is None:
            return
        for timer in (queue.debounce_timer, queue.idle_timer):
            if timer is not None:
                timer.stop()
                timer.deleteLater()
        logger.debug(f"Discarded task queue of session {session_id}")

    def _stop_empty_timers(self, queue: _SessionQueue):
        if not queue.debounced and queue.debounce_timer is not None:
            queue.debounce_timer.stop()
        if not queue.idle and queue.idle_timer is not None:
            queue.idle_timer.stop()

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def _run(self, session_id: str, key: TaskKey, callback):
        try:
            callback()
        except Exception as e:
            effect = key[0].value if isinstance(key[0], SyncEffect) else str(key[0])
            logger.error(f"Task {effect} for session {session_id} failed: {e}", exc_info=True)
            self.task_failed.emit(session_id, effect, str(e))

    def _drain(self, session_id: str, tasks: Dict) -> None:
        # One at a time: a running task may cancel or replace the ones after it
        while tasks:
            key = min(tasks, key=lambda k: tasks[k][0])
            _, callback = tasks.pop(key)
            self._run(session_id, key, callback)

    def _run_debounced(self, session_id: str):
        queue = self._queues.get(session_id)
        if queue is None:
            return
        self._drain(session_id, queue.debounced)
        if queue.is_empty():
            self.flushed.emit(session_id)

    def _run_idle(self, session_id: str):
        queue = self._queues.get(session_id)
        if queue is None:
            return
        self._drain(session_id, queue.idle)
        if queue.is_empty():
            self.flushed.emit(session_id)

    def flush(self, session_id: str):
        """Run every pending task of the session now, idle ones first, each group in submission order."""
        queue = self._queues.get(session_id)
        if queue is None:
            return
        for timer in (queue.debounce_timer, queue.idle_timer):
            if timer is not None:
                timer.stop()

        rounds = 0
        while not queue.is_empty():
            rounds += 1
            if rounds > _MAX_FLUSH_ROUNDS:
                logger.warning(f"Session {session_id} kept queueing work while flushing; giving up")
                break
            self._drain(session_id, queue.idle)
            self._drain(session_id, queue.debounced)

        self._stop_empty_timers(queue)
        self.flushed.emit(session_id)

    def flush_all(self):
        for session_id in list(self._queues):
            self.flush(session_id)
