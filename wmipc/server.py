"""Unix-socket IPC server: client bookkeeping, message dispatch and replies."""

from __future__ import annotations

import contextlib
import logging
import os
import socket
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from wmipc.dumps import (
    dump_client,
    dump_error_message,
    dump_layouts,
    dump_monitors,
    dump_tags,
    encode,
)
from wmipc.events import detect_events
from wmipc.models import WMState
from wmipc.protocol import (
    CommandError,
    CommandSpec,
    Event,
    IPCError,
    MessageType,
    Payload,
    ProtocolError,
    SubscriptionAction,
    pack_message,
    parse_get_dwm_client,
    parse_run_command,
    parse_subscribe,
    read_message,
    validate_run_command,
)
from wmipc.util import mkdirp, normalize_path, null_terminate, parent_dir

log = logging.getLogger(__name__)

SOCKET_BACKLOG = 5
_SUCCESS = b'{"result":"success"}\0'


def _reply_payload(document: Any) -> bytes:
    return null_terminate(encode(document))


@dataclass(eq=False)
class IPCClient:
    """A connected IPC client with its subscriptions and pending output."""

    sock: socket.socket
    subscriptions: Event = Event(0)
    buffer: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.fd = self.sock.fileno()

    @property
    def wants_write(self) -> bool:
        """Whether output is waiting to be written to the client."""
        return bool(self.buffer)


class IPCServer:
    """Listens on a Unix socket and answers IPC clients.

    The owner drives it from its event loop: it calls handle_socket_event
    when the listening socket is readable and handle_client_event for
    readiness of client sockets (see IPCClient.wants_write).
    """

    def __init__(
        self,
        socket_path: Union[str, "os.PathLike[str]"],
        commands: Iterable[CommandSpec],
    ) -> None:
        self.socket_path = normalize_path(os.fspath(socket_path))
        self._commands: dict[str, CommandSpec] = {}
        for spec in commands:
            self._commands.setdefault(spec.name, spec)
        self._sock: Optional[socket.socket] = None
        self.clients: dict[int, IPCClient] = {}

    def __enter__(self) -> "IPCServer":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> int:
        """Create, bind and listen on the socket; return its file descriptor."""
        path = self.socket_path
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)
        try:
            parent = parent_dir(path)
        except ValueError:
            parent = ""
        if parent:
            mkdirp(parent)

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.setblocking(False)
            sock.bind(path)
            sock.listen(SOCKET_BACKLOG)
        except OSError:
            sock.close()
            raise
        log.debug("Now listening for connections on %s", path)
        self._sock = sock
        return sock.fileno()

    def close(self) -> None:
        """Drop every client, close the socket and remove its file."""
        for client in list(self.clients.values()):
            self.drop_client(client)
        if self._sock is not None:
            with contextlib.suppress(OSError):
                self._sock.shutdown(socket.SHUT_RDWR)
            self._sock.close()
            self._sock = None
            with contextlib.suppress(FileNotFoundError):
                os.unlink(self.socket_path)

    def fileno(self) -> int:
        """File descriptor of the listening socket, or -1 if not started."""
        return self._sock.fileno() if self._sock is not None else -1

    def get_client(self, fd: int) -> Optional[IPCClient]:
        """The client on *fd*, or None."""
        return self.clients.get(fd)

    def is_client_registered(self, fd: int) -> bool:
        """Whether a client is connected on *fd*."""
        return fd in self.clients

    def accept_client(self) -> Optional[int]:
        """Accept a pending connection and return its fd, or None if none waits."""
        if self._sock is None:
            raise IPCError("IPC socket is not started")
        try:
            conn, _ = self._sock.accept()
        except (BlockingIOError, InterruptedError):
            return None
        conn.setblocking(False)
        client = IPCClient(conn)
        self.clients[client.fd] = client
        log.debug("New client at fd: %d", client.fd)
        return client.fd

    def drop_client(self, client: IPCClient) -> None:
        """Disconnect *client* and forget it."""
        fd = client.fd
        with contextlib.suppress(OSError):
            client.sock.shutdown(socket.SHUT_RDWR)
        client.sock.close()
        client.buffer.clear()
        self.clients.pop(fd, None)
        log.debug("Successfully removed client on fd %d", fd)

    def read_client(self, client: IPCClient) -> Optional[tuple[int, bytes]]:
        """Read one message from *client* as ``(type, payload)``.

        Returns None when no data is available yet. On a malformed message or
        a broken connection the client is dropped and ProtocolError raised.
        """
        fd = client.fd
        try:
            msg_type, payload = read_message(client.sock)
        except BlockingIOError:
            return None
        except (ProtocolError, OSError) as exc:
            log.error("Error reading message: dropping client at fd %d", fd)
            self.drop_client(client)
            if isinstance(exc, ProtocolError):
                raise
            raise ProtocolError(str(exc)) from exc
        if payload:
            payload = null_terminate(payload)
        log.debug("[fd %d] message type %d, size %d", fd, msg_type, len(payload))
        return msg_type, payload

    def write_client(self, client: IPCClient) -> int:
        """Write as much pending output as the socket takes; return the count."""
        written = 0
        view = bytes(client.buffer)
        while written < len(view):
            try:
                written += client.sock.send(view[written:])
            except BlockingIOError:
                break
        del client.buffer[:written]
        return written

    def prepare_send_message(
        self, client: IPCClient, msg_type: int, payload: Payload
    ) -> None:
        """Queue a message for *client*."""
        client.buffer += pack_message(msg_type, payload)

    def prepare_reply_failure(
        self, client: IPCClient, msg_type: int, reason: str
    ) -> None:
        """Queue an error reply carrying *reason*."""
        self.prepare_send_message(
            client, msg_type, _reply_payload(dump_error_message(reason))
        )
        log.error("[fd %d] Error: %s", client.fd, reason)

    def prepare_reply_success(self, client: IPCClient, msg_type: int) -> None:
        """Queue a success reply."""
        self.prepare_send_message(client, msg_type, _SUCCESS)

    def broadcast(self, event: Event, payload: Payload) -> None:
        """Queue an event message for every client subscribed to *event*."""
        for client in self.clients.values():
            if client.subscriptions & event:
                self.prepare_send_message(client, MessageType.EVENT, payload)

    def send_events(self, state: WMState) -> None:
        """Broadcast every change in *state* since it was last reported."""
        for event, payload in detect_events(state):
            self.broadcast(event, payload)

    def handle_message(
        self, client: IPCClient, msg_type: int, msg: bytes, state: WMState
    ) -> None:
        """Answer one message from *client*.

        Raises an IPCError when the request fails; a failure reply has then
        been queued, except for an unparsable window-id request.
        """
        if msg_type == MessageType.GET_MONITORS:
            self.prepare_send_message(
                client,
                MessageType.GET_MONITORS,
                _reply_payload(dump_monitors(state.monitors, state.selmon)),
            )
        elif msg_type == MessageType.GET_TAGS:
            self.prepare_send_message(
                client, MessageType.GET_TAGS, _reply_payload(dump_tags(state.tags))
            )
        elif msg_type == MessageType.GET_LAYOUTS:
            self.prepare_send_message(
                client,
                MessageType.GET_LAYOUTS,
                _reply_payload(dump_layouts(state.layouts)),
            )
        elif msg_type == MessageType.RUN_COMMAND:
            self._run_command(client, msg)
            self.send_events(state)
        elif msg_type == MessageType.GET_DWM_CLIENT:
            self._get_dwm_client(client, msg, state)
        elif msg_type == MessageType.SUBSCRIBE:
            self._subscribe(client, msg)
        else:
            self.prepare_reply_failure(
                client, msg_type, f"Invalid message type: {msg_type}"
            )

    def _run_command(self, client: IPCClient, msg: bytes) -> None:
        kind = MessageType.RUN_COMMAND
        try:
            parsed = parse_run_command(msg)
        except ProtocolError:
            self.prepare_reply_failure(client, kind, "Failed to parse run command")
            raise
        spec = self._commands.get(parsed.name)
        if spec is None:
            reason = f"Command {parsed.name} not found"
            self.prepare_reply_failure(client, kind, reason)
            raise CommandError(reason)
        try:
            checked = validate_run_command(parsed, spec)
        except CommandError as exc:
            self.prepare_reply_failure(client, kind, str(exc))
            raise
        spec.func(*checked.args)
        log.debug("Called function for command %s", checked.name)
        self.prepare_reply_success(client, kind)

    def _get_dwm_client(self, client: IPCClient, msg: bytes, state: WMState) -> None:
        win = parse_get_dwm_client(msg)
        for mon in state.monitors:
            for managed in mon.clients:
                if managed.win == win:
                    self.prepare_send_message(
                        client,
                        MessageType.GET_DWM_CLIENT,
                        _reply_payload(dump_client(managed)),
                    )
                    return
        reason = f"Client with window id {win} not found"
        self.prepare_reply_failure(client, MessageType.GET_DWM_CLIENT, reason)
        raise IPCError(reason)

    def _subscribe(self, client: IPCClient, msg: bytes) -> None:
        try:
            action, event = parse_subscribe(msg)
        except ProtocolError:
            self.prepare_reply_failure(
                client, MessageType.SUBSCRIBE, "Event does not exist"
            )
            raise
        if action == SubscriptionAction.SUBSCRIBE:
            client.subscriptions |= event
        else:
            client.subscriptions ^= event
        self.prepare_reply_success(client, MessageType.SUBSCRIBE)

    def handle_client_event(
        self,
        fd: int,
        readable: bool,
        writable: bool,
        hangup: bool,
        state: WMState,
    ) -> None:
        """React to readiness of the client socket *fd*."""
        client = self.get_client(fd)
        if client is None:
            raise IPCError(f"No IPC client at fd {fd}")
        if hangup:
            self.drop_client(client)
        elif writable:
            if client.buffer:
                self.write_client(client)
        elif readable:
            message = self.read_client(client)
            if message is None:
                return
            msg_type, msg = message
            self.handle_message(client, msg_type, msg, state)
        else:
            raise IPCError(f"Unhandled event from fd {fd}")

    def handle_socket_event(self, readable: bool) -> Optional[int]:
        """Accept a connection when the listening socket is readable."""
        if not readable:
            raise IPCError("Unhandled event on IPC socket")
        return self.accept_client()