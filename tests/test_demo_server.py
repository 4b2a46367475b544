import socket

import pytest

from zinx.config import GlobalConfig
from zinx.connection import ConnectionClosedError, PropertyNotFoundError
from zinx.datapack import DataPack
from zinx.demo_server import (
    BEGIN_MSG_ID,
    BEGIN_REPLY,
    HELLO_MSG_ID,
    HELLO_REPLY,
    PING_MSG_ID,
    PING_REPLY,
    PROPERTIES,
    HelloZinxRouter,
    PingRouter,
    build_server,
    do_connection_begin,
    do_connection_lost,
    main,
)
from zinx.message import Message
from zinx.request import Request


class FakeConnection:
    def __init__(self, conn_id=0, closed=False):
        self.conn_id = conn_id
        self.closed = closed
        self.sent = []
        self.properties = {}

    def send_msg(self, msg_id, data):
        if self.closed:
            raise ConnectionClosedError("connection closed when send msg")
        self.sent.append((msg_id, data))

    def set_property(self, key, value):
        self.properties[key] = value

    def get_property(self, key):
        try:
            return self.properties[key]
        except KeyError:
            raise PropertyNotFoundError(key) from None


def test_ping_router_replies_with_ping():
    conn = FakeConnection()
    PingRouter().handle(Request(conn, Message(msg_id=0, data=b"client0")))
    assert conn.sent == [(0, b"ping...ping...ping ")]


def test_hello_router_replies_with_welcome():
    conn = FakeConnection()
    HelloZinxRouter().handle(Request(conn, Message(msg_id=1, data=b"client1")))
    assert conn.sent == [(1, b"Hello, Welcome to Zinx!")]


def test_router_on_closed_connection_sends_nothing():
    conn = FakeConnection(closed=True)
    PingRouter().handle(Request(conn, Message(msg_id=0, data=b"x")))
    assert conn.sent == []


def test_connection_begin_greets_and_sets_properties():
    conn = FakeConnection()
    do_connection_begin(conn)
    assert conn.sent == [(202, b"DoConnectionBegin")]
    assert conn.properties == PROPERTIES


def test_connection_begin_on_closed_connection_still_sets_properties():
    conn = FakeConnection(closed=True)
    do_connection_begin(conn)
    assert conn.sent == []
    assert conn.properties == PROPERTIES


def test_connection_lost_returns_found_properties():
    conn = FakeConnection(conn_id=3)
    do_connection_begin(conn)
    assert do_connection_lost(conn) == PROPERTIES


def test_connection_lost_skips_missing_properties():
    conn = FakeConnection()
    conn.set_property("Name", "someone")
    assert do_connection_lost(conn) == {"Name": "someone"}


def test_build_server_registers_routers_and_hooks():
    server = build_server(GlobalConfig(host="127.0.0.1", tcp_port=0))
    assert sorted(server.msg_handler.apis) == [PING_MSG_ID, HELLO_MSG_ID]
    assert isinstance(server.msg_handler.apis[PING_MSG_ID], PingRouter)
    assert isinstance(server.msg_handler.apis[HELLO_MSG_ID], HelloZinxRouter)
    assert server.on_conn_start is do_connection_begin
    assert server.on_conn_stop is do_connection_lost


@pytest.mark.parametrize(
    "msg_id, reply",
    [(PING_MSG_ID, PING_REPLY), (HELLO_MSG_ID, HELLO_REPLY)],
)
def test_server_end_to_end(msg_id, reply):
    config = GlobalConfig(host="127.0.0.1", tcp_port=0, worker_pool_size=2)
    datapack = DataPack()
    with build_server(config) as server:
        with socket.create_connection(server.address, timeout=5) as sock:
            sock.sendall(datapack.pack(Message(msg_id=msg_id, data=b"test message")))
            with sock.makefile("rb") as reader:
                received = {
                    (m.msg_id, m.data)
                    for m in (datapack.read_message(reader) for _ in range(2))
                }
    assert received == {(BEGIN_MSG_ID, BEGIN_REPLY), (msg_id, reply)}


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "not-a-number"])
    assert info.value.code == 2