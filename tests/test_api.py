from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from lapwatch.runtime.engine import EngineConfig
from lapwatch.serve.api import create_app
from lapwatch.utils.timers import ManualClock


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def app(clock):
    return create_app(EngineConfig(tick_interval=0.002), clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_add_and_list(client):
    client.post("/stopwatches")
    body = client.post("/stopwatches").json()
    names = [sw["name"] for sw in body["stopwatches"]]
    assert names == ["Stopwatch 1", "Stopwatch 2"]
    assert body["active_id"] == body["stopwatches"][0]["id"]
    assert client.get("/stopwatches").json() == body


def test_get_unknown_stopwatch_is_404(client):
    assert client.get("/stopwatches/missing").status_code == 404


def test_mutations_on_unknown_id_are_noops(client):
    before = client.post("/stopwatches").json()
    for action in ("start", "stop", "lap", "reset", "activate"):
        response = client.post(f"/stopwatches/missing/{action}")
        assert response.status_code == 200
        assert response.json() == before
    assert client.put("/stopwatches/missing/name", json={"name": "x"}).json() == before
    assert client.delete("/stopwatches/missing").json() == before


def test_run_lap_stop_flow(app, client, clock):
    sid = client.post("/stopwatches").json()["stopwatches"][0]["id"]
    assert client.post(f"/stopwatches/{sid}/start").json()["stopwatches"][0]["is_running"]

    engine = app.state.runtime.engine
    clock.advance(63450)
    deadline = time.monotonic() + 2.0
    while engine.get(sid).elapsed_millis != 63450 and time.monotonic() < deadline:
        time.sleep(0.002)

    lap = client.post(f"/stopwatches/{sid}/lap").json()["stopwatches"][0]["laps"][0]
    assert lap == {
        "lap_number": 1,
        "lap_time": 63450,
        "total_time": 63450,
        "formatted_lap_time": "01:03.45",
        "formatted_total_time": "01:03.45",
    }

    stopped = client.post(f"/stopwatches/{sid}/stop").json()["stopwatches"][0]
    assert not stopped["is_running"]
    assert stopped["formatted_time"] == "01:03.45"

    reset = client.post(f"/stopwatches/{sid}/reset").json()["stopwatches"][0]
    assert reset["elapsed_millis"] == 0
    assert reset["laps"] == []


def test_rename_and_remove(client):
    first = client.post("/stopwatches").json()["stopwatches"][0]["id"]
    second = client.post("/stopwatches").json()["stopwatches"][1]["id"]

    renamed = client.put(f"/stopwatches/{first}/name", json={"name": "  Sprint  "}).json()
    assert renamed["stopwatches"][0]["name"] == "Sprint"
    blank = client.put(f"/stopwatches/{first}/name", json={"name": "  "}).json()
    assert blank["stopwatches"][0]["name"] == "Stopwatch"

    body = client.delete(f"/stopwatches/{first}").json()
    assert [sw["id"] for sw in body["stopwatches"]] == [second]
    assert body["active_id"] == second


def test_trigger_endpoint(client):
    body = client.post("/trigger", json={"intent": "toggle"}).json()
    target = body["target_id"]
    assert body["snapshot"]["active_id"] == target
    assert body["snapshot"]["stopwatches"][0]["is_running"]

    body = client.post("/trigger", json={"intent": "toggle"}).json()
    assert not body["snapshot"]["stopwatches"][0]["is_running"]

    assert client.post("/trigger", json={"intent": "explode"}).status_code == 422


def test_websocket_stream(client):
    with client.websocket_connect("/ws/stream") as websocket:
        initial = websocket.receive_json()
        assert initial == {"stopwatches": [], "active_id": None}

        client.post("/stopwatches")
        message = websocket.receive_json()
        assert message["stopwatches"][0]["name"] == "Stopwatch 1"
        assert message["active_id"] == message["stopwatches"][0]["id"]


def test_websocket_clients_share_one_stream(client):
    with client.websocket_connect("/ws/stream") as first, client.websocket_connect("/ws/stream") as second:
        first.receive_json()
        second.receive_json()

        client.post("/stopwatches")
        assert first.receive_json() == second.receive_json()
