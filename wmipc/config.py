"""Default configuration: appearance, tags, rules, layouts and IPC commands."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from wmipc.models import Layout, Monitor, WMState
from wmipc.protocol import ArgType, CommandSpec

_HEX_COLOR = re.compile(r"#[0-9a-fA-F]{6}")

# appearance
BORDERPX = 2
SNAP = 32
SYSTRAY_PINNING = 0
SYSTRAY_ON_LEFT = False
SYSTRAY_SPACING = 2
SYSTRAY_PINNING_FAIL_FIRST = True
SHOW_SYSTRAY = True
SHOWBAR = True
TOPBAR = True
FOCUS_ON_WHEEL = False
TOGGLE_FLOAT_RATIO = 0.5
FONT = "Hack Nerd Font Mono 14"
DMENU_FONT = "Hack Nerd Font Mono:size=14"

SMART_TAGVIEW = True
REMEMBER_FOCUS = True
SHOW_WINDOW_TITLE = False

# layout parameters
MFACT = 0.5
NMASTER = 1
RESIZEHINTS = True
LOCKFULLSCREEN = True

IPC_SOCKET_PATH = "/tmp/dwm.sock"

TAGS: tuple[str, ...] = ("1", "2", "3", "4", "5", "6", "7", "8", "9")


@dataclass(frozen=True)
class ColorScheme:
    """Foreground, background and border colours, each as ``#rrggbb``."""

    fg: str
    bg: str
    border: str

    def __post_init__(self) -> None:
        for name in ("fg", "bg", "border"):
            value = getattr(self, name)
            if not _HEX_COLOR.fullmatch(value):
                raise ValueError(f"invalid {name} colour: {value!r}")


@dataclass(frozen=True)
class Rule:
    """Placement rule applied to new windows matching class, instance and title.

    A field left as None matches anything; a monitor of -1 keeps the
    current monitor.
    """

    class_name: Optional[str] = None
    instance: Optional[str] = None
    title: Optional[str] = None
    tags: int = 0
    isfloating: bool = False
    monitor: int = -1


COLORS: dict[str, ColorScheme] = {
    "norm": ColorScheme("#eceff4", "#2e3440", "#2e3440"),
    "sel": ColorScheme("#eceff4", "#5e81ac", "#eceff4"),
    "title": ColorScheme("#eceff4", "#2e3440", "#eceff4"),
    "systray": ColorScheme("#eceff4", "#5e81ac", "#eceff4"),
    "status": ColorScheme("#eceff4", "#2e3440", "#eceff4"),
    "occ": ColorScheme("#eceff4", "#4c566a", "#eceff4"),
}

RULES: tuple[Rule, ...] = (
    Rule("Gimp", isfloating=True),
    Rule("Firefox", tags=1 << 8),
    Rule("wemeetapp", isfloating=True),
)

_LAYOUT_SYMBOLS: tuple[str, ...] = ("[]=", "><>", "[M]")

_IPC_COMMANDS: tuple[tuple[str, ArgType], ...] = (
    ("view", ArgType.UINT),
    ("toggleview", ArgType.UINT),
    ("tag", ArgType.UINT),
    ("toggletag", ArgType.UINT),
    ("tagmon", ArgType.UINT),
    ("focusmon", ArgType.SINT),
    ("focusstack", ArgType.SINT),
    ("zoom", ArgType.NONE),
    ("incnmaster", ArgType.SINT),
    ("killclient", ArgType.SINT),
    ("togglefloating", ArgType.NONE),
    ("setmfact", ArgType.FLOAT),
    ("setlayoutsafe", ArgType.PTR),
    ("quit", ArgType.NONE),
)


def ipc_commands(handlers: Mapping[str, Callable[..., Any]]) -> tuple[CommandSpec, ...]:
    """Build the IPC command table, taking each command's function from *handlers*.

    Raises ValueError when a configured command has no handler.
    """
    missing = [name for name, _ in _IPC_COMMANDS if name not in handlers]
    if missing:
        raise ValueError(f"no handler for IPC commands: {', '.join(missing)}")
    return tuple(
        CommandSpec(name, handlers[name], (arg_type,))
        for name, arg_type in _IPC_COMMANDS
    )


def default_layouts() -> list[Layout]:
    """The configured layouts; the first is the default.

    Arrange functions belong to the window manager and are left unset here.
    """
    return [Layout(symbol) for symbol in _LAYOUT_SYMBOLS]


def default_state() -> WMState:
    """A window-manager state with one monitor set up from the configuration."""
    layouts = default_layouts()
    monitor = Monitor(
        num=0,
        mfact=MFACT,
        nmaster=NMASTER,
        showbar=SHOWBAR,
        topbar=TOPBAR,
        tagset=[1, 1],
        lt=[layouts[0], layouts[1 % len(layouts)]],
        ltsymbol=layouts[0].symbol or "",
    )
    return WMState(
        monitors=[monitor],
        selmon=monitor,
        tags=list(TAGS),
        layouts=layouts,
    )