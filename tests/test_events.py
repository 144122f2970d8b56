import json

import pytest

from wmipc.dumps import (
    dump_client_focus_change_event,
    dump_client_state,
    dump_focused_title_change_event,
    dump_layout_change_event,
    dump_tag_event,
)
from wmipc.events import (
    client_focus_change_event,
    detect_events,
    focused_state_change_event,
    focused_title_change_event,
    layout_change_event,
    monitor_focus_change_event,
    tag_change_event,
)
from wmipc.models import Client, ClientState, Layout, Monitor, TagState, WMState
from wmipc.protocol import Event


def _decode(payload):
    assert payload.endswith(b"\0")
    assert not payload.endswith(b"\0\0")
    return json.loads(payload[:-1].decode("utf-8"))


def test_tag_change_event_payload():
    old = TagState(1, 3, 0)
    new = TagState(2, 3, 2)
    event, payload = tag_change_event(4, old, new)
    assert event == Event.TAG_CHANGE
    assert _decode(payload) == dump_tag_event(4, old, new)
    assert _decode(payload)["tag_change_event"]["monitor_number"] == 4


def test_client_focus_change_event_with_none():
    new = Client(win=77)
    event, payload = client_focus_change_event(0, None, new)
    assert event == Event.CLIENT_FOCUS_CHANGE
    doc = _decode(payload)
    assert doc == dump_client_focus_change_event(None, new, 0)
    assert doc["client_focus_change_event"]["old_win_id"] is None
    assert doc["client_focus_change_event"]["new_win_id"] == 77


def test_layout_change_event_payload():
    tile = Layout("[]=")
    mono = Layout("[M]")
    event, payload = layout_change_event(1, "[]=", tile, "[M]", mono)
    assert event == Event.LAYOUT_CHANGE
    assert _decode(payload) == dump_layout_change_event(1, "[]=", tile, "[M]", mono)


def test_monitor_focus_change_event_payload():
    event, payload = monitor_focus_change_event(0, 1)
    assert event == Event.MONITOR_FOCUS_CHANGE
    doc = _decode(payload)["monitor_focus_change_event"]
    assert doc["old_monitor_number"] == 0
    assert doc["new_monitor_number"] == 1


def test_focused_title_change_event_payload():
    event, payload = focused_title_change_event(2, 55, "old", "new")
    assert event == Event.FOCUSED_TITLE_CHANGE
    assert _decode(payload) == dump_focused_title_change_event(2, 55, "old", "new")


def test_focused_state_change_event_payload():
    old = ClientState()
    new = ClientState(isfloating=True)
    event, payload = focused_state_change_event(0, 9, old, new)
    assert event == Event.FOCUSED_STATE_CHANGE
    doc = _decode(payload)["focused_state_change_event"]
    assert doc["client_window_id"] == 9
    assert doc["old_state"] == dump_client_state(old)
    assert doc["new_state"] == dump_client_state(new)


def _state():
    tile = Layout("[]=")
    mon = Monitor(num=0, lt=[tile, tile], ltsymbol="[]=", lastltsymbol="[]=", lastlt=tile)
    return WMState(monitors=[mon], selmon=mon, lastselmon=mon), mon


def test_detect_events_is_quiet_after_reporting():
    state, mon = _state()
    client = Client(win=10, tags=2, mon=mon)
    mon.clients.append(client)
    mon.sel = client
    first = detect_events(state)
    kinds = [event for event, _ in first]
    assert Event.TAG_CHANGE in kinds
    assert Event.CLIENT_FOCUS_CHANGE in kinds
    assert detect_events(state) == []


def test_detect_events_tag_state_updated():
    state, mon = _state()
    mon.clients.append(Client(win=3, tags=4, isurgent=True, mon=mon))
    messages = detect_events(state)
    assert mon.tagstate == mon.compute_tag_state()
    tag_payloads = [p for e, p in messages if e == Event.TAG_CHANGE]
    assert len(tag_payloads) == 1
    doc = _decode(tag_payloads[0])["tag_change_event"]
    assert doc["new_state"]["occupied"] == 4
    assert doc["new_state"]["urgent"] == 4


def test_detect_events_layout_change():
    state, mon = _state()
    detect_events(state)
    mono = Layout("[M]")
    old = mon.current_layout()
    mon.lt[mon.sellt] = mono
    mon.ltsymbol = "[M]"
    messages = detect_events(state)
    assert [e for e, _ in messages] == [Event.LAYOUT_CHANGE]
    assert _decode(messages[0][1]) == dump_layout_change_event(0, "[]=", old, "[M]", mono)
    assert mon.lastlt is mono
    assert mon.lastltsymbol == "[M]"


def test_detect_events_monitor_focus():
    state, mon = _state()
    other = Monitor(num=1, lt=mon.lt[:], ltsymbol="[]=", lastltsymbol="[]=", lastlt=mon.lt[0])
    state.monitors.append(other)
    detect_events(state)
    state.selmon = other
    messages = detect_events(state)
    focus = [p for e, p in messages if e == Event.MONITOR_FOCUS_CHANGE]
    assert len(focus) == 1
    doc = _decode(focus[0])["monitor_focus_change_event"]
    assert (doc["old_monitor_number"], doc["new_monitor_number"]) == (0, 1)
    assert state.lastselmon is other


def test_detect_events_no_monitor_focus_without_previous():
    state, mon = _state()
    state.lastselmon = None
    messages = detect_events(state)
    assert Event.MONITOR_FOCUS_CHANGE not in [e for e, _ in messages]
    assert state.lastselmon is mon


@pytest.mark.parametrize("flag", ["isfloating", "isfullscreen", "isurgent"])
def test_detect_events_focused_state_change(flag):
    state, mon = _state()
    client = Client(win=21, tags=1, mon=mon)
    mon.clients.append(client)
    mon.sel = client
    detect_events(state)
    setattr(client, flag, True)
    messages = detect_events(state)
    changes = [p for e, p in messages if e == Event.FOCUSED_STATE_CHANGE]
    assert len(changes) == 1
    assert client.prevstate == client.state()
    doc = _decode(changes[0])["focused_state_change_event"]
    assert doc["new_state"] == dump_client_state(client.state())
    assert doc["old_state"] == dump_client_state(ClientState())