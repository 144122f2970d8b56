import socket

import pytest

from wmipc.protocol import (
    HEADER_SIZE,
    MAGIC,
    MAX_MESSAGE_SIZE,
    ArgType,
    CommandError,
    CommandSpec,
    Event,
    IPCError,
    MessageType,
    ParsedCommand,
    ProtocolError,
    SubscriptionAction,
    event_from_name,
    pack_message,
    parse_get_dwm_client,
    parse_run_command,
    parse_subscribe,
    read_message,
    unpack_header,
    validate_run_command,
)


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def _noop(*args):
    return None


def test_header_size_is_packed():
    packet = pack_message(MessageType.GET_TAGS, b"")
    assert len(packet) == 12
    assert HEADER_SIZE == len(packet)


def test_pack_starts_with_magic_and_has_payload():
    packet = pack_message(MessageType.GET_TAGS, b"{}")
    assert packet[: len(MAGIC)] == b"DWM-IPC"
    assert packet[HEADER_SIZE:] == b"{}"
    assert len(packet) == HEADER_SIZE + 2


def test_pack_unpack_round_trip():
    payload = '{"command":"view"}'
    packet = pack_message(MessageType.RUN_COMMAND, payload)
    msg_type, size = unpack_header(packet)
    assert msg_type == MessageType.RUN_COMMAND
    assert size == len(payload.encode())


def test_unpack_bad_magic():
    packet = b"XXX-IPC" + pack_message(MessageType.GET_TAGS, b"")[len(MAGIC):]
    with pytest.raises(ProtocolError):
        unpack_header(packet)


def test_unpack_short_header():
    with pytest.raises(ProtocolError):
        unpack_header(pack_message(MessageType.GET_TAGS, b"")[:-1])


def test_unpack_too_long():
    packet = pack_message(MessageType.GET_TAGS, b"x" * (MAX_MESSAGE_SIZE + 1))
    with pytest.raises(ProtocolError, match="too long"):
        unpack_header(packet)


def test_unpack_at_limit_ok():
    packet = pack_message(MessageType.GET_TAGS, b"x" * MAX_MESSAGE_SIZE)
    assert unpack_header(packet) == (MessageType.GET_TAGS, MAX_MESSAGE_SIZE)


def test_read_message_round_trip(pair):
    left, right = pair
    left.sendall(pack_message(MessageType.SUBSCRIBE, b'{"a":1}\0'))
    assert read_message(right) == (MessageType.SUBSCRIBE, b'{"a":1}\0')


def test_read_message_empty_payload(pair):
    left, right = pair
    left.sendall(pack_message(MessageType.GET_MONITORS, b""))
    assert read_message(right) == (MessageType.GET_MONITORS, b"")


def test_read_two_messages_in_order(pair):
    left, right = pair
    left.sendall(
        pack_message(MessageType.GET_TAGS, b"one")
        + pack_message(MessageType.GET_LAYOUTS, b"two")
    )
    assert read_message(right) == (MessageType.GET_TAGS, b"one")
    assert read_message(right) == (MessageType.GET_LAYOUTS, b"two")


def test_read_message_eof(pair):
    left, right = pair
    left.close()
    with pytest.raises(ProtocolError):
        read_message(right)


def test_read_message_truncated_payload(pair):
    left, right = pair
    left.sendall(pack_message(MessageType.GET_TAGS, b"abcdef")[:-3])
    left.shutdown(socket.SHUT_WR)
    with pytest.raises(ProtocolError):
        read_message(right)


def test_read_message_nonblocking_without_data(pair):
    _, right = pair
    right.setblocking(False)
    with pytest.raises(BlockingIOError):
        read_message(right)


def test_parse_run_command_types():
    parsed = parse_run_command('{"command": "view", "args": [-1, 4, 0.5, "s"]}')
    assert parsed.name == "view"
    assert parsed.args == [-1, 4, 0.5, "s"]
    assert parsed.arg_types == [
        ArgType.SINT,
        ArgType.UINT,
        ArgType.FLOAT,
        ArgType.STR,
    ]


def test_parse_run_command_no_args_gives_dummy():
    parsed = parse_run_command(b'{"command":"zoom","args":[]}\0')
    assert parsed.args == [0]
    assert parsed.arg_types == [ArgType.NONE]
    assert parsed.argc == 1


def test_parse_run_command_ignores_after_nul():
    parsed = parse_run_command(b'{"command":"quit","args":[]}\0garbage')
    assert parsed.name == "quit"


@pytest.mark.parametrize(
    "msg",
    [
        "not json",
        '{"args": []}',
        '{"command": 3, "args": []}',
        '{"command": "view"}',
        '{"command": "view", "args": 1}',
        '{"command": "view", "args": [true]}',
        "[1, 2]",
        b"\xff\xfe",
    ],
)
def test_parse_run_command_errors(msg):
    with pytest.raises(ProtocolError):
        parse_run_command(msg)


def test_validate_exact_match():
    spec = CommandSpec("setmfact", _noop, (ArgType.FLOAT,))
    parsed = ParsedCommand("setmfact", [0.05], [ArgType.FLOAT])
    result = validate_run_command(parsed, spec)
    assert result.args == [0.05]
    assert result.arg_types == [ArgType.FLOAT]


@pytest.mark.parametrize("expected", [ArgType.PTR, ArgType.SINT])
def test_validate_casts_uint(expected):
    spec = CommandSpec("cmd", _noop, (expected,))
    parsed = parse_run_command('{"command":"cmd","args":[2]}')
    result = validate_run_command(parsed, spec)
    assert result.arg_types == [expected]
    assert result.args == [2]


def test_validate_count_mismatch():
    spec = CommandSpec("view", _noop, (ArgType.UINT,))
    parsed = parse_run_command('{"command":"view","args":[1, 2]}')
    with pytest.raises(CommandError, match="arguments provided"):
        validate_run_command(parsed, spec)


def test_validate_type_mismatch():
    spec = CommandSpec("view", _noop, (ArgType.UINT,))
    parsed = parse_run_command('{"command":"view","args":["x"]}')
    with pytest.raises(CommandError, match="Type mismatch"):
        validate_run_command(parsed, spec)


def test_validate_none_command_accepts_empty_args():
    spec = CommandSpec("zoom", _noop, (ArgType.NONE,))
    parsed = parse_run_command('{"command":"zoom","args":[]}')
    assert validate_run_command(parsed, spec).argc == spec.argc


def test_errors_share_base():
    with pytest.raises(IPCError):
        event_from_name("bogus")


@pytest.mark.parametrize(
    "name, event",
    [
        ("tag_change_event", Event.TAG_CHANGE),
        ("client_focus_change_event", Event.CLIENT_FOCUS_CHANGE),
        ("layout_change_event", Event.LAYOUT_CHANGE),
        ("monitor_focus_change_event", Event.MONITOR_FOCUS_CHANGE),
        ("focused_title_change_event", Event.FOCUSED_TITLE_CHANGE),
        ("focused_state_change_event", Event.FOCUSED_STATE_CHANGE),
    ],
)
def test_event_from_name(name, event):
    assert event_from_name(name) is event


def test_events_are_distinct_bits():
    names = [
        "tag_change_event",
        "client_focus_change_event",
        "layout_change_event",
        "monitor_focus_change_event",
        "focused_title_change_event",
        "focused_state_change_event",
    ]
    events = [event_from_name(name) for name in names]
    combined = 0
    for event in events:
        value = int(event)
        assert value > 0 and value & (value - 1) == 0
        assert combined & value == 0
        combined |= value
    assert len({int(e) for e in events}) == len(names)


def test_parse_subscribe():
    action, event = parse_subscribe(
        b'{"event":"layout_change_event","action":"subscribe"}\0'
    )
    assert action is SubscriptionAction.SUBSCRIBE
    assert event is Event.LAYOUT_CHANGE


def test_parse_unsubscribe():
    action, event = parse_subscribe(
        '{"event":"tag_change_event","action":"unsubscribe"}'
    )
    assert action is SubscriptionAction.UNSUBSCRIBE
    assert event is Event.TAG_CHANGE


@pytest.mark.parametrize(
    "msg",
    [
        '{"event":"nope","action":"subscribe"}',
        '{"event":"tag_change_event","action":"maybe"}',
        '{"event":"tag_change_event"}',
        '{"action":"subscribe"}',
        "{",
    ],
)
def test_parse_subscribe_errors(msg):
    with pytest.raises(ProtocolError):
        parse_subscribe(msg)


def test_parse_get_dwm_client():
    assert parse_get_dwm_client('{"client_window_id": 12345}') == 12345


def test_parse_get_dwm_client_float_gives_zero():
    assert parse_get_dwm_client('{"client_window_id": 1.5}') == 0


@pytest.mark.parametrize(
    "msg",
    ['{"client_window_id": "5"}', "{}", '{"client_window_id": true}', "x"],
)
def test_parse_get_dwm_client_errors(msg):
    with pytest.raises(ProtocolError):
        parse_get_dwm_client(msg)