from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from lapwatch.runtime.engine import EngineConfig, TimerEngine
from lapwatch.runtime.trigger import TriggerIntent, fire, resolve_target
from lapwatch.utils.timers import ManualClock


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def engine(clock):
    eng = TimerEngine(EngineConfig(tick_interval=0.002), clock=clock)
    yield eng
    eng.shutdown()


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.002)
    return predicate()


def test_empty_collection_creates_and_starts(engine):
    target = fire(engine, TriggerIntent.TOGGLE)
    assert [sw.id for sw in engine.stopwatches] == [target]
    assert engine.active_id == target
    assert engine.get(target).is_running


def test_toggle_flips_running_state(engine):
    sid = engine.add()
    assert fire(engine, TriggerIntent.TOGGLE) == sid
    assert engine.get(sid).is_running
    fire(engine, TriggerIntent.TOGGLE)
    assert not engine.get(sid).is_running


def test_lap_records_while_running(engine, clock):
    sid = engine.add()
    fire(engine, TriggerIntent.LAP)
    assert engine.get(sid).is_running
    assert engine.get(sid).laps == ()

    clock.advance(1200)
    assert wait_until(lambda: engine.get(sid).elapsed_millis == 1200)
    fire(engine, "lap")
    lap = engine.get(sid).laps[0]
    assert (lap.lap_number, lap.lap_time, lap.total_time) == (1, 1200, 1200)


def test_targets_active_stopwatch(engine):
    first, second = engine.add(), engine.add()
    engine.set_active(second)
    assert resolve_target(engine) == second
    fire(engine, TriggerIntent.TOGGLE)
    assert engine.get(second).is_running
    assert not engine.get(first).is_running


def test_invalid_intent():
    with TimerEngine() as engine:
        with pytest.raises(ValueError):
            fire(engine, "explode")
        assert engine.stopwatches == ()
