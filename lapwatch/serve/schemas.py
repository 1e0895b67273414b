"""Pydantic models for FastAPI I/O."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..model.stopwatch import Lap, Stopwatch
from ..runtime.engine import EngineSnapshot
from ..runtime.trigger import TriggerIntent


class LapModel(BaseModel):
    lap_number: int
    lap_time: int
    total_time: int
    formatted_lap_time: str
    formatted_total_time: str

    @classmethod
    def from_lap(cls, lap: Lap) -> "LapModel":
        return cls(
            lap_number=lap.lap_number,
            lap_time=lap.lap_time,
            total_time=lap.total_time,
            formatted_lap_time=lap.formatted_lap_time,
            formatted_total_time=lap.formatted_total_time,
        )


class StopwatchModel(BaseModel):
    id: str
    name: str
    elapsed_millis: int
    formatted_time: str
    is_running: bool
    laps: List[LapModel]

    @classmethod
    def from_stopwatch(cls, stopwatch: Stopwatch) -> "StopwatchModel":
        return cls(
            id=stopwatch.id,
            name=stopwatch.name,
            elapsed_millis=stopwatch.elapsed_millis,
            formatted_time=stopwatch.formatted_time,
            is_running=stopwatch.is_running,
            laps=[LapModel.from_lap(lap) for lap in stopwatch.laps],
        )


class SnapshotModel(BaseModel):
    stopwatches: List[StopwatchModel]
    active_id: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: EngineSnapshot) -> "SnapshotModel":
        return cls(
            stopwatches=[StopwatchModel.from_stopwatch(sw) for sw in snapshot.stopwatches],
            active_id=snapshot.active_id,
        )


class RenameRequest(BaseModel):
    name: str = Field(default="", max_length=200)


class TriggerRequest(BaseModel):
    intent: TriggerIntent = TriggerIntent.TOGGLE


class TriggerResponse(BaseModel):
    target_id: str
    snapshot: SnapshotModel


__all__ = [
    "LapModel",
    "StopwatchModel",
    "SnapshotModel",
    "RenameRequest",
    "TriggerRequest",
    "TriggerResponse",
]
