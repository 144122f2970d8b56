# wmipc

`wmipc` is the inter-process communication layer of a tiling window manager.
It listens on a Unix domain socket and serves framed JSON messages to
clients such as status bars and scripts. Clients use it to query the window
manager's state, to run commands and to subscribe to change events.

The package depends only on the standard library.

## Wire format

Every packet starts with a 12-byte header:

| bytes | field |
|-------|-------|
| 0–6   | magic string `DWM-IPC` |
| 7–10  | payload size, unsigned 32-bit, native byte order |
| 11    | message type |

The payload follows the header. Replies and events carry a JSON document
that ends in a NUL byte. A header that announces more than 1 000 000 bytes
is rejected (`wmipc.protocol.MAX_MESSAGE_SIZE`).

Message types (`wmipc.protocol.MessageType`):

| value | name | request payload |
|-------|------|-----------------|
| 0 | `RUN_COMMAND` | `{"command": "<name>", "args": [...]}` |
| 1 | `GET_MONITORS` | none |
| 2 | `GET_TAGS` | none |
| 3 | `GET_LAYOUTS` | none |
| 4 | `GET_DWM_CLIENT` | `{"client_window_id": <id>}` |
| 5 | `SUBSCRIBE` | `{"event": "<event name>", "action": "subscribe"}` or `"unsubscribe"` |
| 6 | `EVENT` | sent by the server only |

Command arguments are typed as they are parsed. A negative integer becomes
`SINT` and any other integer becomes `UINT`. Any other number becomes
`FLOAT` and a string becomes `STR`. A command sent with no arguments gets a
single `NONE` argument of `0`. A `UINT` argument is also accepted where the
command expects `SINT` or `PTR`.

A successful command or subscription is answered with `{"result":"success"}`.
A successful query is answered with the data asked for. A failed request is
answered with `{"result": "error", "reason": "..."}`.

Events that a client can subscribe to (`wmipc.protocol.Event`):

- `tag_change_event`
- `client_focus_change_event`
- `layout_change_event`
- `monitor_focus_change_event`
- `focused_title_change_event`
- `focused_state_change_event`

An `"unsubscribe"` action toggles the event's bit in the client's
subscription mask. Send it only for an event the client is subscribed to.

## Running a server

`wmipc.config.ipc_commands` builds the command table. It needs a handler
for every configured command and raises `ValueError` if any is missing. A
handler is called with the command's arguments as positional parameters.

```python
from wmipc.config import default_state, ipc_commands
from wmipc.server import IPCServer

names = [
    "view", "toggleview", "tag", "toggletag", "tagmon", "focusmon",
    "focusstack", "zoom", "incnmaster", "killclient", "togglefloating",
    "setmfact", "setlayoutsafe", "quit",
]
handlers = {name: (lambda arg, name=name: print(name, arg)) for name in names}

state = default_state()
with IPCServer("/tmp/dwm.sock", ipc_commands(handlers)) as server:
    ...  # run your event loop here
```

`IPCServer.start()` removes any stale socket file and creates missing parent
directories with mode 0700. It then binds and listens, and returns the
socket's file descriptor. Used as a context manager, the server calls
`start()` on entry and `close()` on exit.

`IPCServer.fileno()` returns the listening socket's descriptor. Register it
with your event loop (`selectors`, `select.epoll`, ...). Register the
descriptors of the accepted clients as well. Then dispatch like this:

- When the listening socket becomes readable, call
  `server.handle_socket_event(True)`. It returns the new client's descriptor,
  or `None` if no connection was waiting.
- When a client descriptor has activity, call
  `server.handle_client_event(fd, readable, writable, hangup, state)`.
  A hangup drops the client. A writable socket gets the queued output
  flushed. A readable socket has one request read and answered. A failed
  request raises an `IPCError` (`ProtocolError` or `CommandError`); a failure
  reply is normally queued for the client first. A malformed packet drops
  the client.
- `IPCClient.wants_write` tells you whether a client has output queued, and
  so whether to watch its socket for writability.
- After the window manager's state changes, call `server.send_events(state)`.
  It uses `wmipc.events.detect_events` to compare `state` with what was last
  reported, then queues the due events for the subscribed clients. A
  successful `RUN_COMMAND` calls it as well.
- Call `server.close()` on shutdown. It disconnects all clients and removes
  the socket file.

`detect_events` reports tag, client-focus, layout, monitor-focus and
focused-state changes. A change of the focused window's title is not
detected. Build that event with `wmipc.events.focused_title_change_event`
and pass it to `server.broadcast(event, payload)` yourself.

## State model

`wmipc.models` holds the state that the server reports: `WMState`,
`Monitor`, `Client`, `Layout`, `TagState` and `ClientState`.
`wmipc.config.default_state()` returns a state with one monitor, the
configured tags `1`–`9` and the layouts `[]=`, `><>` and `[M]`.
`wmipc.config` also holds the appearance settings, the colour schemes
(`ColorScheme`) and the window rules (`Rule`).

## Building messages by hand

`wmipc.protocol.pack_message` builds a packet. `wmipc.protocol.read_message`
reads one from a connected socket:

```python
import socket
from wmipc.protocol import MessageType, pack_message, read_message

with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
    sock.connect("/tmp/dwm.sock")
    sock.sendall(pack_message(MessageType.GET_TAGS, b""))
    msg_type, payload = read_message(sock)
    print(msg_type, payload.rstrip(b"\0").decode())
```

The JSON documents come from the functions in `wmipc.dumps`, such as
`dump_monitors`, `dump_client` and `dump_tag_event`. `wmipc.dumps.encode`
serialises them.

## What this package does not do

- It does not manage windows. Nothing here talks to a display server, and
  the layouts' arrange functions are left unset. The state objects must be
  kept up to date by the program that embeds the server.
- It has no event loop of its own. The embedding program watches the
  sockets and calls the `handle_*` methods.
- It has no command-line client. Requests are sent with `pack_message` and
  `read_message`, as shown above.

## Tests

```
pip install -e .[test]
pytest
```