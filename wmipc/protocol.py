"""Wire format and message parsing of the IPC socket protocol."""

from __future__ import annotations

import json
import select
import socket
import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Optional, Union

MAGIC = b"DWM-IPC"
MAX_MESSAGE_SIZE = 1_000_000

# magic, payload size, message type; packed, native byte order
_HEADER = struct.Struct("=7sIB")
HEADER_SIZE = _HEADER.size

Payload = Union[str, bytes, bytearray]


class MessageType(IntEnum):
    """Kinds of IPC messages."""

    RUN_COMMAND = 0
    GET_MONITORS = 1
    GET_TAGS = 2
    GET_LAYOUTS = 3
    GET_DWM_CLIENT = 4
    SUBSCRIBE = 5
    EVENT = 6


class Event(IntFlag):
    """Events a client may subscribe to; combinable as a bit mask."""

    TAG_CHANGE = 1 << 0
    CLIENT_FOCUS_CHANGE = 1 << 1
    LAYOUT_CHANGE = 1 << 2
    MONITOR_FOCUS_CHANGE = 1 << 3
    FOCUSED_TITLE_CHANGE = 1 << 4
    FOCUSED_STATE_CHANGE = 1 << 5


class SubscriptionAction(IntEnum):
    """Whether a subscribe message adds or removes a subscription."""

    UNSUBSCRIBE = 0
    SUBSCRIBE = 1


class ArgType(IntEnum):
    """Types of command arguments."""

    NONE = 0
    UINT = 1
    SINT = 2
    FLOAT = 3
    PTR = 4
    STR = 5


_EVENT_NAMES = {
    "tag_change_event": Event.TAG_CHANGE,
    "client_focus_change_event": Event.CLIENT_FOCUS_CHANGE,
    "layout_change_event": Event.LAYOUT_CHANGE,
    "monitor_focus_change_event": Event.MONITOR_FOCUS_CHANGE,
    "focused_title_change_event": Event.FOCUSED_TITLE_CHANGE,
    "focused_state_change_event": Event.FOCUSED_STATE_CHANGE,
}

_ACTION_NAMES = {
    "subscribe": SubscriptionAction.SUBSCRIBE,
    "unsubscribe": SubscriptionAction.UNSUBSCRIBE,
}


class IPCError(Exception):
    """Base class of IPC errors."""


class ProtocolError(IPCError):
    """A message is malformed or the connection broke mid-message."""


class CommandError(IPCError):
    """A command request does not match the command it names."""


@dataclass(frozen=True)
class CommandSpec:
    """A command that IPC clients may run, with its expected argument types."""

    name: str
    func: Callable[..., Any]
    arg_types: tuple[ArgType, ...]

    @property
    def argc(self) -> int:
        return len(self.arg_types)


@dataclass
class ParsedCommand:
    """A command request as received from a client."""

    name: str
    args: list[Any] = field(default_factory=list)
    arg_types: list[ArgType] = field(default_factory=list)

    @property
    def argc(self) -> int:
        return len(self.args)


def pack_message(msg_type: int, payload: Payload) -> bytes:
    """Return the header followed by *payload*, ready to be sent."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return _HEADER.pack(MAGIC, len(payload), int(msg_type)) + bytes(payload)


def unpack_header(data: bytes) -> tuple[int, int]:
    """Decode a header into ``(message type, payload size)``.

    Raises ProtocolError on a short header, a wrong magic string or a payload
    size beyond MAX_MESSAGE_SIZE.
    """
    if len(data) < HEADER_SIZE:
        raise ProtocolError(
            f"Read {len(data)} bytes, expected {HEADER_SIZE} total bytes"
        )
    magic, size, msg_type = _HEADER.unpack_from(data)
    if magic != MAGIC:
        raise ProtocolError(
            f"Invalid magic string. Got {magic!r}, expected {MAGIC.decode()!r}"
        )
    if size > MAX_MESSAGE_SIZE:
        raise ProtocolError(
            f"Message too long: {size} bytes. "
            f"Maximum message size is: {MAX_MESSAGE_SIZE}"
        )
    return msg_type, size


def _recv_exact(sock: socket.socket, count: int, wait: bool) -> bytes:
    buffer = bytearray()
    while len(buffer) < count:
        try:
            chunk = sock.recv(count - len(buffer))
        except BlockingIOError:
            if not wait:
                raise
            select.select([sock], [], [])
            continue
        if not chunk:
            raise ProtocolError(
                f"Unexpectedly reached EOF. Read {len(buffer)} bytes, "
                f"expected {count} bytes"
            )
        buffer += chunk
    return bytes(buffer)


def read_message(sock: socket.socket) -> tuple[int, bytes]:
    """Read one message from *sock* and return ``(message type, payload)``.

    BlockingIOError from reading the header of a non-blocking socket is left
    to the caller; once the header is in, the payload is waited for.
    """
    header = _recv_exact(sock, HEADER_SIZE, wait=False)
    msg_type, size = unpack_header(header)
    if size == 0:
        return msg_type, b""
    return msg_type, _recv_exact(sock, size, wait=True)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _load_object(msg: Payload) -> dict[str, Any]:
    if isinstance(msg, (bytes, bytearray)):
        raw = bytes(msg).split(b"\0", 1)[0]
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"Message is not valid UTF-8: {exc}") from exc
    else:
        text = msg.split("\0", 1)[0]
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ProtocolError(f"Failed to parse message from client: {exc}") from exc
    return value if isinstance(value, dict) else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _get_string(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ProtocolError(f"No '{key}' key found in client message")
    return value


def parse_run_command(msg: Payload) -> ParsedCommand:
    """Parse ``{"command": name, "args": [...]}`` into a ParsedCommand.

    Negative integers become SINT, other integers UINT, other numbers FLOAT
    and strings STR. With no arguments a single NONE argument of 0 is given.
    """
    obj = _load_object(msg)
    name = _get_string(obj, "command")
    raw_args = obj.get("args")
    if not isinstance(raw_args, list):
        raise ProtocolError("No 'args' key found in client message")

    if not raw_args:
        return ParsedCommand(name, [0], [ArgType.NONE])

    parsed = ParsedCommand(name)
    for value in raw_args:
        if _is_number(value) and isinstance(value, int):
            if value < 0:
                parsed.args.append(value)
                parsed.arg_types.append(ArgType.SINT)
            else:
                parsed.args.append(value & 0xFFFFFFFF)
                parsed.arg_types.append(ArgType.UINT)
        elif _is_number(value):
            parsed.args.append(float(value))
            parsed.arg_types.append(ArgType.FLOAT)
        elif isinstance(value, str):
            parsed.args.append(value)
            parsed.arg_types.append(ArgType.STR)
        else:
            raise ProtocolError(f"Unsupported argument: {value!r}")
    return parsed


def validate_run_command(parsed: ParsedCommand, spec: CommandSpec) -> ParsedCommand:
    """Check *parsed* against *spec* and return it with casts applied.

    An unsigned argument is accepted where a pointer or signed integer is
    expected. Raises CommandError on a count or type mismatch.
    """
    if parsed.argc != spec.argc:
        raise CommandError(
            f"{parsed.argc} arguments provided, {spec.argc} expected"
        )
    for given, expected in zip(parsed.arg_types, spec.arg_types):
        if given != expected and not (
            given == ArgType.UINT and expected in (ArgType.PTR, ArgType.SINT)
        ):
            raise CommandError("Type mismatch")
    return ParsedCommand(parsed.name, list(parsed.args), list(spec.arg_types))


def event_from_name(name: str) -> Event:
    """Map an event name such as ``"tag_change_event"`` to its Event."""
    try:
        return _EVENT_NAMES[name]
    except KeyError:
        raise ProtocolError(f"Event does not exist: {name}") from None


def parse_subscribe(msg: Payload) -> tuple[SubscriptionAction, Event]:
    """Parse ``{"event": name, "action": "subscribe"|"unsubscribe"}``."""
    obj = _load_object(msg)
    event = event_from_name(_get_string(obj, "event"))
    action_name = _get_string(obj, "action")
    action: Optional[SubscriptionAction] = _ACTION_NAMES.get(action_name)
    if action is None:
        raise ProtocolError("Invalid action specified for subscription")
    return action, event


def parse_get_dwm_client(msg: Payload) -> int:
    """Return the window id of ``{"client_window_id": id}``.

    A non-integral number yields 0.
    """
    obj = _load_object(msg)
    value = obj.get("client_window_id")
    if not _is_number(value):
        raise ProtocolError("No client window id found in client message")
    return value if isinstance(value, int) else 0