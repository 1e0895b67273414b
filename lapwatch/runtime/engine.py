"""Timer engine owning every stopwatch and its periodic update thread."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..model.stopwatch import Stopwatch, default_label
from ..utils.timers import Clock, wall_clock_ms


@dataclass
class EngineConfig:
    """Tick cadence and naming for a :class:`TimerEngine`."""

    tick_interval: float = 0.01
    locale: str = "en"
    default_label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.default_label is not None and not self.default_label.strip():
            raise ValueError("default_label must not be blank")

    @property
    def label(self) -> str:
        if self.default_label is not None:
            return self.default_label.strip()
        return default_label(self.locale)


@dataclass(frozen=True)
class EngineSnapshot:
    """Immutable view of the collection published after every change."""

    stopwatches: Tuple[Stopwatch, ...] = ()
    active_id: Optional[str] = None

    def get(self, stopwatch_id: str) -> Optional[Stopwatch]:
        return next((sw for sw in self.stopwatches if sw.id == stopwatch_id), None)

    @property
    def active(self) -> Optional[Stopwatch]:
        return self.get(self.active_id) if self.active_id is not None else None


Subscriber = Callable[[EngineSnapshot], None]


class _TickTask:
    """Background loop refreshing one running stopwatch's elapsed time."""

    def __init__(self, engine: "TimerEngine", stopwatch_id: str, interval: float):
        self.engine = engine
        self.stopwatch_id = stopwatch_id
        self.interval = interval
        self.cancelled = threading.Event()
        self.thread = threading.Thread(
            target=self._run,
            name=f"lapwatch-tick-{stopwatch_id[:8]}",
            daemon=True,
        )

    def start(self) -> None:
        self.thread.start()

    def cancel(self) -> None:
        self.cancelled.set()

    def _run(self) -> None:
        while not self.cancelled.wait(self.interval):
            if not self.engine._tick(self):
                break


class TimerEngine:
    """Owns the stopwatch collection and the active id.

    Every public operation is synchronous and total: an id that is not in
    the collection makes the call a silent no-op. All reads and writes of
    the collection go through one re-entrant lock, so a tick and a user
    action for the same stopwatch never build two replacements from the
    same prior value. Subscribers are called with the new
    :class:`EngineSnapshot` after each change, in change order, from the
    thread that made the change.
    """

    def __init__(self, config: Optional[EngineConfig] = None, clock: Clock = wall_clock_ms):
        self.config = config or EngineConfig()
        self._clock = clock
        self._lock = threading.RLock()
        self._snapshot = EngineSnapshot()
        self._tasks: Dict[str, _TickTask] = {}
        self._subscribers: Tuple[Subscriber, ...] = ()
        self._closed = False

    # ------------------------------------------------------------------ reads
    @property
    def stopwatches(self) -> Tuple[Stopwatch, ...]:
        return self._snapshot.stopwatches

    @property
    def active_id(self) -> Optional[str]:
        return self._snapshot.active_id

    def snapshot(self) -> EngineSnapshot:
        return self._snapshot

    def get(self, stopwatch_id: str) -> Optional[Stopwatch]:
        return self._snapshot.get(stopwatch_id)

    def get_active(self) -> Optional[Stopwatch]:
        return self._snapshot.active

    def running_ids(self) -> List[str]:
        with self._lock:
            return list(self._tasks)

    # ------------------------------------------------------------------ subscriptions
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

        with self._lock:
            self._subscribers = self._subscribers + (callback,)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers = tuple(cb for cb in self._subscribers if cb is not callback)

        return unsubscribe

    # ------------------------------------------------------------------ operations
    def add(self) -> str:
        with self._lock:
            stopwatches = self._snapshot.stopwatches
            stopwatch = Stopwatch(name=f"{self.config.label} {len(stopwatches) + 1}")
            active_id = self._snapshot.active_id
            if active_id is None:
                active_id = stopwatch.id
            self._commit(stopwatches + (stopwatch,), active_id)
        logger.debug("Added stopwatch {} ({})", stopwatch.id, stopwatch.name)
        return stopwatch.id

    def remove(self, stopwatch_id: str) -> None:
        with self._lock:
            if self._lookup("remove", stopwatch_id) is None:
                return
            self._cancel_task(stopwatch_id)
            remaining = tuple(sw for sw in self._snapshot.stopwatches if sw.id != stopwatch_id)
            active_id = self._snapshot.active_id
            if active_id == stopwatch_id:
                active_id = remaining[0].id if remaining else None
            self._commit(remaining, active_id)
        logger.debug("Removed stopwatch {}", stopwatch_id)

    def start(self, stopwatch_id: str) -> None:
        with self._lock:
            stopwatch = self._lookup("start", stopwatch_id)
            if stopwatch is None or stopwatch.is_running:
                return
            if self._closed:
                logger.warning("Engine is shut down; not starting stopwatch {}", stopwatch_id)
                return
            self._replace(
                replace(
                    stopwatch,
                    is_running=True,
                    start_epoch_millis=self._clock() - stopwatch.elapsed_millis,
                )
            )
            task = _TickTask(self, stopwatch_id, self.config.tick_interval)
            self._tasks[stopwatch_id] = task
            task.start()
        logger.debug("Started stopwatch {} at {} ms", stopwatch_id, stopwatch.elapsed_millis)

    def stop(self, stopwatch_id: str) -> None:
        with self._lock:
            stopwatch = self._lookup("stop", stopwatch_id)
            if stopwatch is None or not stopwatch.is_running:
                return
            self._cancel_task(stopwatch_id)
            self._replace(replace(stopwatch, is_running=False))
        logger.debug("Stopped stopwatch {} at {} ms", stopwatch_id, stopwatch.elapsed_millis)

    def record_lap(self, stopwatch_id: str) -> None:
        with self._lock:
            stopwatch = self._lookup("record_lap", stopwatch_id)
            if stopwatch is None or not stopwatch.is_running:
                return
            lap = stopwatch.next_lap()
            self._replace(replace(stopwatch, laps=stopwatch.laps + (lap,)))
        logger.debug("Lap {} on stopwatch {}: {} ms", lap.lap_number, stopwatch_id, lap.lap_time)

    def reset(self, stopwatch_id: str) -> None:
        with self._lock:
            stopwatch = self._lookup("reset", stopwatch_id)
            if stopwatch is None:
                return
            self._cancel_task(stopwatch_id)
            self._replace(
                replace(stopwatch, elapsed_millis=0, is_running=False, laps=(), start_epoch_millis=0)
            )
        logger.debug("Reset stopwatch {}", stopwatch_id)

    def rename(self, stopwatch_id: str, new_name: str) -> None:
        with self._lock:
            stopwatch = self._lookup("rename", stopwatch_id)
            if stopwatch is None:
                return
            name = new_name.strip() or self.config.label
            self._replace(replace(stopwatch, name=name))

    def set_active(self, stopwatch_id: str) -> None:
        with self._lock:
            if self._lookup("set_active", stopwatch_id) is None:
                return
            if self._snapshot.active_id != stopwatch_id:
                self._commit(self._snapshot.stopwatches, stopwatch_id)

    def shutdown(self) -> None:
        """Cancel every tick thread; safe to call more than once."""

        with self._lock:
            self._closed = True
            tasks = list(self._tasks.values())
            for task in tasks:
                task.cancel()
            self._tasks.clear()
        current = threading.current_thread()
        for task in tasks:
            if task.thread is not current:
                task.thread.join(timeout=max(1.0, task.interval * 10))
        if tasks:
            logger.info("Timer engine shut down, cancelled {} tick thread(s)", len(tasks))

    def __enter__(self) -> "TimerEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------ internals
    def _tick(self, task: _TickTask) -> bool:
        """Refresh elapsed time for ``task``'s stopwatch; False ends the loop."""

        with self._lock:
            if task.cancelled.is_set() or self._tasks.get(task.stopwatch_id) is not task:
                return False
            stopwatch = self._snapshot.get(task.stopwatch_id)
            if stopwatch is None or not stopwatch.is_running:
                del self._tasks[task.stopwatch_id]
                return False
            elapsed = max(stopwatch.elapsed_millis, self._clock() - stopwatch.start_epoch_millis)
            if elapsed != stopwatch.elapsed_millis:
                self._replace(replace(stopwatch, elapsed_millis=elapsed))
            return True

    def _lookup(self, operation: str, stopwatch_id: str) -> Optional[Stopwatch]:
        stopwatch = self._snapshot.get(stopwatch_id)
        if stopwatch is None:
            logger.debug("Ignoring {} for unknown stopwatch {!r}", operation, stopwatch_id)
        return stopwatch

    def _cancel_task(self, stopwatch_id: str) -> None:
        task = self._tasks.pop(stopwatch_id, None)
        if task is not None:
            task.cancel()

    def _replace(self, updated: Stopwatch) -> None:
        stopwatches = tuple(updated if sw.id == updated.id else sw for sw in self._snapshot.stopwatches)
        self._commit(stopwatches, self._snapshot.active_id)

    def _commit(self, stopwatches: Tuple[Stopwatch, ...], active_id: Optional[str]) -> None:
        snapshot = EngineSnapshot(stopwatches=stopwatches, active_id=active_id)
        self._snapshot = snapshot
        for callback in self._subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber {!r} failed", callback)


__all__ = ["EngineConfig", "EngineSnapshot", "Subscriber", "TimerEngine"]
