"""Event messages for subscribed IPC clients, and detection of state changes."""

from __future__ import annotations

from typing import Any, Optional

from wmipc.dumps import (
    dump_client_focus_change_event,
    dump_focused_state_change_event,
    dump_focused_title_change_event,
    dump_layout_change_event,
    dump_monitor_focus_change_event,
    dump_tag_event,
    encode,
)
from wmipc.models import Client, ClientState, Layout, TagState, WMState
from wmipc.protocol import Event
from wmipc.util import null_terminate

EventMessage = tuple[Event, bytes]


def _payload(document: Any) -> bytes:
    # Event payloads carry a trailing NUL, as replies do.
    return null_terminate(encode(document))


def tag_change_event(
    mon_num: int, old_state: TagState, new_state: TagState
) -> EventMessage:
    """A tag_change_event message for the given monitor."""
    return Event.TAG_CHANGE, _payload(dump_tag_event(mon_num, old_state, new_state))


def client_focus_change_event(
    mon_num: int, old_client: Optional[Client], new_client: Optional[Client]
) -> EventMessage:
    """A client_focus_change_event message; either client may be None."""
    return Event.CLIENT_FOCUS_CHANGE, _payload(
        dump_client_focus_change_event(old_client, new_client, mon_num)
    )


def layout_change_event(
    mon_num: int,
    old_symbol: str,
    old_layout: Optional[Layout],
    new_symbol: str,
    new_layout: Optional[Layout],
) -> EventMessage:
    """A layout_change_event message."""
    return Event.LAYOUT_CHANGE, _payload(
        dump_layout_change_event(
            mon_num, old_symbol, old_layout, new_symbol, new_layout
        )
    )


def monitor_focus_change_event(last_mon_num: int, new_mon_num: int) -> EventMessage:
    """A monitor_focus_change_event message."""
    return Event.MONITOR_FOCUS_CHANGE, _payload(
        dump_monitor_focus_change_event(last_mon_num, new_mon_num)
    )


def focused_title_change_event(
    mon_num: int, client_id: int, old_name: str, new_name: str
) -> EventMessage:
    """A focused_title_change_event message."""
    return Event.FOCUSED_TITLE_CHANGE, _payload(
        dump_focused_title_change_event(mon_num, client_id, old_name, new_name)
    )


def focused_state_change_event(
    mon_num: int, client_id: int, old_state: ClientState, new_state: ClientState
) -> EventMessage:
    """A focused_state_change_event message."""
    return Event.FOCUSED_STATE_CHANGE, _payload(
        dump_focused_state_change_event(mon_num, client_id, old_state, new_state)
    )


def detect_events(state: WMState) -> list[EventMessage]:
    """Compare *state* with what was last reported and return the due events.

    The recorded "last" values on the monitors, clients and *state* are
    updated, so a second call without intervening changes returns nothing.
    """
    messages: list[EventMessage] = []
    for mon in state.monitors:
        new_tags = mon.compute_tag_state()
        if mon.tagstate != new_tags:
            messages.append(tag_change_event(mon.num, mon.tagstate, new_tags))
            mon.tagstate = new_tags

        if mon.lastsel is not mon.sel:
            messages.append(client_focus_change_event(mon.num, mon.lastsel, mon.sel))
            mon.lastsel = mon.sel

        layout = mon.current_layout()
        if mon.ltsymbol != mon.lastltsymbol or mon.lastlt is not layout:
            messages.append(
                layout_change_event(
                    mon.num, mon.lastltsymbol, mon.lastlt, mon.ltsymbol, layout
                )
            )
            mon.lastltsymbol = mon.ltsymbol
            mon.lastlt = layout

        if state.lastselmon is not state.selmon:
            if state.lastselmon is not None and state.selmon is not None:
                messages.append(
                    monitor_focus_change_event(
                        state.lastselmon.num, state.selmon.num
                    )
                )
            state.lastselmon = state.selmon

        sel = mon.sel
        if sel is None:
            continue
        current = sel.state()
        if sel.prevstate != current:
            messages.append(
                focused_state_change_event(mon.num, sel.win, sel.prevstate, current)
            )
            sel.prevstate = current
    return messages