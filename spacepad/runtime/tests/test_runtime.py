import json

from spacepad.core.config import DEFAULT_PRESET
from spacepad.core.types import (
    ClientIdentity, GestureType, PointerEvent, PointerPhase, Role, Status,
)
from spacepad.runtime.recorder import SessionRecorder
from spacepad.runtime.run_loop import ControllerRuntime
from spacepad.sync.channel import LocalHub
from spacepad.sync.commands import Command


class Clock:
    def __init__(self):
        self.t = 0

    def __call__(self):
        return self.t


def host(hub, received):
    ch = hub.channel("spacecraft", "host-1")
    ch.subscribe(lambda *a: None, on_broadcast=lambda ev, p: received.append((ev, p)))
    ch.track({
        "clientId": "host-1", "clientType": "host", "clientName": "Host", "startTime": 100,
        "shared": {"hostId": "host-1", "sessionStartTime": 100, "availableTags": ["rockets", "robots"],
                   "currentCollectionItems": [{"title": "Rocket Ship Galileo"}]},
    })
    return ch


def runtime(hub, role=Role.SELECTOR):
    ident = ClientIdentity("ctl-1", role, "Orion", 500)
    clock = Clock()
    rt = ControllerRuntime(ident, DEFAULT_PRESET, lambda: hub.channel("spacecraft", "ctl-1"), clock=clock)
    return rt, clock


def test_text_becomes_search_or_command():
    hub = LocalHub()
    received = []
    host(hub, received)
    rt, _ = runtime(hub)
    assert rt.connect()

    rt.inbox.put("find rockets")
    rt.step()
    assert hub.state("spacecraft")["ctl-1"]["searchQuery"] == "find rockets"

    rt.inbox.put("Never mind!")
    rt.step()
    assert "searchQuery" not in hub.state("spacecraft")["ctl-1"]

    rt.inbox.put("yes")
    rt.step()
    assert received[-1][0] == "select"
    assert received[-1][1]["action"] == GestureType.TAP.value
    assert received[-1][1]["targetHostId"] == "host-1"


def test_pointer_events_reach_host():
    hub = LocalHub()
    received = []
    host(hub, received)
    rt, _ = runtime(hub)
    rt.connect()

    rt.inbox.put(PointerEvent(0, 1, PointerPhase.DOWN, 100, 100))
    rt.inbox.put(PointerEvent(40, 1, PointerPhase.UP, 100, 200))
    rt.step()
    assert [(ev, p["action"]) for ev, p in received] == [("select", "south")]


def test_commands_toggle_engine_state():
    hub = LocalHub()
    rt, _ = runtime(hub)
    rt.connect()
    rt.inbox.put(Command.SHAKE)
    rt.inbox.put(Command.DIAGNOSTICS)
    rt.step()
    assert rt.engine.shake.enabled is False
    assert rt.engine.diagnostics_enabled is True


def test_reconnects_after_delay():
    hub = LocalHub()
    rt, clock = runtime(hub)
    rt.connect()
    first = rt.channel

    first.drop()
    assert rt.status.connection == Status.ERROR
    clock.t = 100
    rt.step()
    assert rt.channel is first

    clock.t = 2100
    rt.step()
    assert rt.channel is not first
    assert rt.channel.connected
    assert rt.status.connection == Status.GRANTED
    assert "ctl-1" in hub.state("spacecraft")


def test_unplugged_touch_source_is_dropped_not_raised():
    hub = LocalHub()
    received = []
    host(hub, received)
    rt, _ = runtime(hub)
    rt.connect()

    def unplugged(t_ms):
        raise OSError(19, "No such device")

    def still_there(t_ms):
        return [PointerEvent(t_ms, 1, PointerPhase.DOWN, 0, 0), PointerEvent(t_ms, 1, PointerPhase.UP, 0, 0)]

    rt.pollers = [unplugged, still_there]
    rt.step()
    assert rt.status.input == Status.UNAVAILABLE
    assert rt.pollers == [still_there]
    assert [p["action"] for _, p in received] == ["tap"]

    rt.step()
    assert len(received) == 2


def test_typed_text_lands_in_session_recording(tmp_path):
    hub = LocalHub()
    ident = ClientIdentity("ctl-1", Role.SELECTOR, "Orion", 500)
    rec = SessionRecorder(tmp_path / "session.jsonl")
    rt = ControllerRuntime(ident, DEFAULT_PRESET, lambda: hub.channel("spacecraft", "ctl-1"),
                           recorder=rec, clock=Clock())
    rt.connect()
    rt.inbox.put("find rockets")
    rt.step()
    rec.close()

    lines = [json.loads(line) for line in (tmp_path / "session.jsonl").read_text().splitlines()]
    assert lines == [{"kind": "note", "data": {"t_ms": 0, "text": "find rockets"}}]


def test_host_update_logs_peer_count(caplog):
    hub = LocalHub()
    host(hub, [])
    rt, _ = runtime(hub)
    with caplog.at_level("INFO", logger="spacepad.runtime.run_loop"):
        rt.connect()
    assert any("host host-1" in m and "peers=1" in m for m in caplog.messages)
