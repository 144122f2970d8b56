"""Build the JSON documents sent to IPC clients."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Sequence

from wmipc.models import Client, ClientState, Layout, Monitor, TagState


def encode(obj: Any) -> bytes:
    """Serialise *obj* as indented UTF-8 JSON."""
    return json.dumps(obj, indent=4, ensure_ascii=False).encode("utf-8")


def _address(layout: Optional[Layout]) -> int:
    return layout.address if layout is not None else 0


def dump_tag(name: str, tag_mask: int) -> dict[str, Any]:
    """One tag with its bit mask."""
    return {"bit_mask": tag_mask, "name": name}


def dump_tags(tags: Sequence[str]) -> list[dict[str, Any]]:
    """All tags, each with the bit for its position."""
    return [dump_tag(name, 1 << index) for index, name in enumerate(tags)]


def dump_client(client: Client) -> dict[str, Any]:
    """Properties of one client."""
    return {
        "name": client.name,
        "tags": client.tags,
        "window_id": client.win,
        "monitor_number": client.mon.num,
        "geometry": {
            "current": {
                "x": client.x,
                "y": client.y,
                "width": client.w,
                "height": client.h,
            },
            "old": {
                "x": client.oldx,
                "y": client.oldy,
                "width": client.oldw,
                "height": client.oldh,
            },
        },
        "size_hints": {
            "base": {"width": client.basew, "height": client.baseh},
            "step": {"width": client.incw, "height": client.inch},
            "max": {"width": client.maxw, "height": client.maxh},
            "min": {"width": client.minw, "height": client.minh},
            "aspect_ratio": {"min": float(client.mina), "max": float(client.maxa)},
        },
        "border_width": {"current": client.bw, "old": client.oldbw},
        "states": {
            "is_fixed": bool(client.isfixed),
            "is_floating": bool(client.isfloating),
            "is_urgent": bool(client.isurgent),
            "never_focus": bool(client.neverfocus),
            "old_state": bool(client.oldstate),
            "is_fullscreen": bool(client.isfullscreen),
        },
    }


def dump_monitor(mon: Monitor, is_selected: bool) -> dict[str, Any]:
    """Properties of one monitor."""
    return {
        "master_factor": float(mon.mfact),
        "num_master": mon.nmaster,
        "num": mon.num,
        "is_selected": bool(is_selected),
        "monitor_geometry": {
            "x": mon.mx,
            "y": mon.my,
            "width": mon.mw,
            "height": mon.mh,
        },
        "window_geometry": {
            "x": mon.wx,
            "y": mon.wy,
            "width": mon.ww,
            "height": mon.wh,
        },
        "tagset": {
            "current": mon.tagset[mon.seltags],
            "old": mon.tagset[mon.seltags ^ 1],
        },
        "tag_state": dump_tag_state(mon.tagstate),
        "clients": {
            "selected": mon.sel.win if mon.sel is not None else 0,
            "stack": [client.win for client in mon.stack],
            "all": [client.win for client in mon.clients],
        },
        "layout": {
            "symbol": {"current": mon.ltsymbol, "old": mon.lastltsymbol},
            "address": {
                "current": _address(mon.lt[mon.sellt]),
                "old": _address(mon.lt[mon.sellt ^ 1]),
            },
        },
        "bar": {
            "y": mon.by,
            "is_shown": bool(mon.showbar),
            "is_top": bool(mon.topbar),
            "window_id": mon.barwin,
        },
    }


def dump_monitors(
    mons: Iterable[Monitor], selmon: Optional[Monitor]
) -> list[dict[str, Any]]:
    """All monitors, marking the selected one."""
    return [dump_monitor(mon, mon is selmon) for mon in mons]


def dump_layouts(layouts: Iterable[Layout]) -> list[dict[str, Any]]:
    """Available layouts with their symbols and addresses."""
    return [
        {"symbol": layout.symbol or "", "address": layout.address}
        for layout in layouts
    ]


def dump_tag_state(state: TagState) -> dict[str, int]:
    """A tag state as a mapping."""
    return {
        "selected": state.selected,
        "occupied": state.occupied,
        "urgent": state.urgent,
    }


def dump_tag_event(
    mon_num: int, old_state: TagState, new_state: TagState
) -> dict[str, Any]:
    """A tag_change_event document."""
    return {
        "tag_change_event": {
            "monitor_number": mon_num,
            "old_state": dump_tag_state(old_state),
            "new_state": dump_tag_state(new_state),
        }
    }


def dump_client_focus_change_event(
    old_client: Optional[Client], new_client: Optional[Client], mon_num: int
) -> dict[str, Any]:
    """A client_focus_change_event document."""
    return {
        "client_focus_change_event": {
            "monitor_number": mon_num,
            "old_win_id": old_client.win if old_client is not None else None,
            "new_win_id": new_client.win if new_client is not None else None,
        }
    }


def dump_layout_change_event(
    mon_num: int,
    old_symbol: str,
    old_layout: Optional[Layout],
    new_symbol: str,
    new_layout: Optional[Layout],
) -> dict[str, Any]:
    """A layout_change_event document."""
    return {
        "layout_change_event": {
            "monitor_number": mon_num,
            "old_symbol": old_symbol,
            "old_address": _address(old_layout),
            "new_symbol": new_symbol,
            "new_address": _address(new_layout),
        }
    }


def dump_monitor_focus_change_event(
    last_mon_num: int, new_mon_num: int
) -> dict[str, Any]:
    """A monitor_focus_change_event document."""
    return {
        "monitor_focus_change_event": {
            "old_monitor_number": last_mon_num,
            "new_monitor_number": new_mon_num,
        }
    }


def dump_focused_title_change_event(
    mon_num: int, client_id: int, old_name: str, new_name: str
) -> dict[str, Any]:
    """A focused_title_change_event document."""
    return {
        "focused_title_change_event": {
            "monitor_number": mon_num,
            "client_window_id": client_id,
            "old_name": old_name,
            "new_name": new_name,
        }
    }


def dump_client_state(state: ClientState) -> dict[str, bool]:
    """A client state as a mapping."""
    return {
        "old_state": bool(state.oldstate),
        "is_fixed": bool(state.isfixed),
        "is_floating": bool(state.isfloating),
        "is_fullscreen": bool(state.isfullscreen),
        "is_urgent": bool(state.isurgent),
        "never_focus": bool(state.neverfocus),
    }


def dump_focused_state_change_event(
    mon_num: int, client_id: int, old_state: ClientState, new_state: ClientState
) -> dict[str, Any]:
    """A focused_state_change_event document."""
    return {
        "focused_state_change_event": {
            "monitor_number": mon_num,
            "client_window_id": client_id,
            "old_state": dump_client_state(old_state),
            "new_state": dump_client_state(new_state),
        }
    }


def dump_error_message(reason: str) -> dict[str, str]:
    """An error reply."""
    return {"result": "error", "reason": reason}