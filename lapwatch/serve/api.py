"""FastAPI application exposing the timer engine to a presentation layer."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from loguru import logger

from ..runtime.engine import EngineConfig, EngineSnapshot, TimerEngine
from ..runtime.trigger import fire
from ..utils.timers import Clock, wall_clock_ms
from .broadcaster import Broadcaster
from .schemas import RenameRequest, SnapshotModel, StopwatchModel, TriggerRequest, TriggerResponse


class AppState:
    def __init__(self, config: Optional[EngineConfig] = None, clock: Clock = wall_clock_ms):
        self.engine = TimerEngine(config, clock=clock)
        self.broadcaster = Broadcaster()
        self.engine.subscribe(self._publish)

    def _publish(self, snapshot: EngineSnapshot) -> None:
        self.broadcaster.publish_threadsafe(SnapshotModel.from_snapshot(snapshot).model_dump())

    def current(self) -> SnapshotModel:
        return SnapshotModel.from_snapshot(self.engine.snapshot())


def create_app(config: Optional[EngineConfig] = None, clock: Clock = wall_clock_ms) -> FastAPI:
    state = AppState(config, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state.broadcaster.bind(asyncio.get_running_loop())
        yield
        state.engine.shutdown()
        logger.info("lapwatch API stopped")

    app = FastAPI(title="lapwatch API", lifespan=lifespan)
    app.state.runtime = state
    engine = state.engine

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/stopwatches", response_model=SnapshotModel)
    def list_stopwatches() -> SnapshotModel:
        return state.current()

    @app.get("/stopwatches/{stopwatch_id}", response_model=StopwatchModel)
    def get_stopwatch(stopwatch_id: str) -> StopwatchModel:
        stopwatch = engine.get(stopwatch_id)
        if stopwatch is None:
            raise HTTPException(status_code=404, detail=f"unknown stopwatch {stopwatch_id}")
        return StopwatchModel.from_stopwatch(stopwatch)

    @app.post("/stopwatches", response_model=SnapshotModel)
    def add_stopwatch() -> SnapshotModel:
        engine.add()
        return state.current()

    @app.delete("/stopwatches/{stopwatch_id}", response_model=SnapshotModel)
    def remove_stopwatch(stopwatch_id: str) -> SnapshotModel:
        engine.remove(stopwatch_id)
        return state.current()

    @app.post("/stopwatches/{stopwatch_id}/start", response_model=SnapshotModel)
    def start_stopwatch(stopwatch_id: str) -> SnapshotModel:
        engine.start(stopwatch_id)
        return state.current()

    @app.post("/stopwatches/{stopwatch_id}/stop", response_model=SnapshotModel)
    def stop_stopwatch(stopwatch_id: str) -> SnapshotModel:
        engine.stop(stopwatch_id)
        return state.current()

    @app.post("/stopwatches/{stopwatch_id}/lap", response_model=SnapshotModel)
    def record_lap(stopwatch_id: str) -> SnapshotModel:
        engine.record_lap(stopwatch_id)
        return state.current()

    @app.post("/stopwatches/{stopwatch_id}/reset", response_model=SnapshotModel)
    def reset_stopwatch(stopwatch_id: str) -> SnapshotModel:
        engine.reset(stopwatch_id)
        return state.current()

    @app.post("/stopwatches/{stopwatch_id}/activate", response_model=SnapshotModel)
    def activate_stopwatch(stopwatch_id: str) -> SnapshotModel:
        engine.set_active(stopwatch_id)
        return state.current()

    @app.put("/stopwatches/{stopwatch_id}/name", response_model=SnapshotModel)
    def rename_stopwatch(stopwatch_id: str, payload: RenameRequest) -> SnapshotModel:
        engine.rename(stopwatch_id, payload.name)
        return state.current()

    @app.post("/trigger", response_model=TriggerResponse)
    def trigger(payload: TriggerRequest) -> TriggerResponse:
        target_id = fire(engine, payload.intent)
        return TriggerResponse(target_id=target_id, snapshot=state.current())

    @app.websocket("/ws/stream")
    async def ws_stream(socket: WebSocket):
        await socket.accept()
        queue = await state.broadcaster.register()
        try:
            await socket.send_json(state.current().model_dump())
            while True:
                payload = await queue.get()
                await socket.send_json(payload)
        except WebSocketDisconnect:
            pass
        finally:
            await state.broadcaster.unregister(queue)

    return app


__all__ = ["AppState", "create_app"]
