"""Window-manager state objects exposed through the IPC interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(frozen=True)
class TagState:
    """Bit masks of selected, occupied and urgent tags of a monitor."""

    selected: int = 0
    occupied: int = 0
    urgent: int = 0


@dataclass(frozen=True)
class ClientState:
    """Boolean state flags of a client window."""

    oldstate: bool = False
    isfixed: bool = False
    isfloating: bool = False
    isfullscreen: bool = False
    isurgent: bool = False
    neverfocus: bool = False


@dataclass(eq=False)
class Layout:
    """A tiling layout: a bar symbol and an arrange function (None means floating)."""

    symbol: Optional[str]
    arrange: Optional[Callable[["Monitor"], None]] = None

    @property
    def address(self) -> int:
        """Identity of the layout as reported to IPC clients."""
        return id(self)


@dataclass(eq=False)
class Client:
    """A managed window."""

    name: str = ""
    tags: int = 0
    win: int = 0
    mon: Optional["Monitor"] = field(default=None, repr=False)
    x: int = 0
    y: int = 0
    w: int = 0
    h: int = 0
    oldx: int = 0
    oldy: int = 0
    oldw: int = 0
    oldh: int = 0
    basew: int = 0
    baseh: int = 0
    incw: int = 0
    inch: int = 0
    maxw: int = 0
    maxh: int = 0
    minw: int = 0
    minh: int = 0
    mina: float = 0.0
    maxa: float = 0.0
    bw: int = 0
    oldbw: int = 0
    isfixed: bool = False
    isfloating: bool = False
    isurgent: bool = False
    neverfocus: bool = False
    oldstate: bool = False
    isfullscreen: bool = False
    prevstate: ClientState = field(default_factory=ClientState)

    def state(self) -> ClientState:
        """Snapshot of the client's current state flags."""
        return ClientState(
            oldstate=self.oldstate,
            isfixed=self.isfixed,
            isfloating=self.isfloating,
            isfullscreen=self.isfullscreen,
            isurgent=self.isurgent,
            neverfocus=self.neverfocus,
        )


@dataclass(eq=False)
class Monitor:
    """A screen with its clients, tags, layouts and bar."""

    num: int = 0
    mfact: float = 0.5
    nmaster: int = 1
    mx: int = 0
    my: int = 0
    mw: int = 0
    mh: int = 0
    wx: int = 0
    wy: int = 0
    ww: int = 0
    wh: int = 0
    by: int = 0
    showbar: bool = True
    topbar: bool = True
    barwin: int = 0
    tagset: list[int] = field(default_factory=lambda: [1, 1])
    seltags: int = 0
    sellt: int = 0
    lt: list[Optional[Layout]] = field(default_factory=lambda: [None, None])
    ltsymbol: str = ""
    lastltsymbol: str = ""
    lastlt: Optional[Layout] = None
    tagstate: TagState = field(default_factory=TagState)
    sel: Optional[Client] = None
    lastsel: Optional[Client] = None
    clients: list[Client] = field(default_factory=list)
    stack: list[Client] = field(default_factory=list)

    def current_layout(self) -> Optional[Layout]:
        """The layout currently in use."""
        return self.lt[self.sellt]

    def compute_tag_state(self) -> TagState:
        """Tag state derived from the selected tagset and the clients' tags."""
        occupied = 0
        urgent = 0
        for client in self.clients:
            occupied |= client.tags
            if client.isurgent:
                urgent |= client.tags
        return TagState(
            selected=self.tagset[self.seltags], occupied=occupied, urgent=urgent
        )


@dataclass(eq=False)
class WMState:
    """Everything the IPC layer needs to know about the window manager."""

    monitors: list[Monitor] = field(default_factory=list)
    selmon: Optional[Monitor] = None
    lastselmon: Optional[Monitor] = None
    tags: list[str] = field(default_factory=list)
    layouts: list[Layout] = field(default_factory=list)