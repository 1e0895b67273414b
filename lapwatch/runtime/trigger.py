"""Route a shared start/stop/lap control to the currently selected stopwatch."""

from __future__ import annotations

from enum import Enum

from loguru import logger

from .engine import TimerEngine


class TriggerIntent(str, Enum):
    TOGGLE = "toggle"
    LAP = "lap"


def resolve_target(engine: TimerEngine) -> str:
    """Return the id a single-target control acts on.

    The active stopwatch wins, then the first one in creation order; with
    an empty collection a new stopwatch is added (and becomes active).
    """

    active = engine.get_active()
    if active is not None:
        return active.id
    stopwatches = engine.stopwatches
    if stopwatches:
        return stopwatches[0].id
    return engine.add()


def fire(engine: TimerEngine, intent: TriggerIntent) -> str:
    """Apply ``intent`` to the resolved target and return its id.

    ``TOGGLE`` stops a running stopwatch and starts a stopped one. ``LAP``
    records a lap while running and starts the stopwatch otherwise.
    """

    intent = TriggerIntent(intent)
    target_id = resolve_target(engine)
    target = engine.get(target_id)
    running = target is not None and target.is_running
    if intent is TriggerIntent.TOGGLE:
        if running:
            engine.stop(target_id)
        else:
            engine.start(target_id)
    elif running:
        engine.record_lap(target_id)
    else:
        engine.start(target_id)
    logger.debug("Trigger {} -> stopwatch {} (was running: {})", intent.value, target_id, running)
    return target_id


__all__ = ["TriggerIntent", "fire", "resolve_target"]
