import socket
import threading
import time

import pytest

from zinx.config import GlobalConfig
from zinx.datapack import DataPack
from zinx.message import Message
from zinx.msghandler import DuplicateRouterError
from zinx.router import BaseRouter
from zinx.server import Server


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class Ping(BaseRouter):
    def handle(self, request):
        request.connection.send_msg(0, b"ping...ping...ping " + request.data)


@pytest.fixture
def config():
    return GlobalConfig(host="127.0.0.1", tcp_port=0, worker_pool_size=2)


@pytest.fixture
def server(config):
    srv = Server("test", config)
    yield srv
    srv.stop()


def _connect(srv):
    return socket.create_connection(srv.address, timeout=3)


def test_name_defaults_to_config_name(config):
    assert Server(config=config).name == config.name
    assert Server("custom", config).name == "custom"


def test_address_before_start_raises(server):
    with pytest.raises(RuntimeError):
        server.address
    server.start()
    host, _ = server.address
    assert host == "127.0.0.1"


def test_start_binds_configured_host(server):
    server.start()
    host, port = server.address
    assert host == "127.0.0.1"
    assert port > 0


def test_start_twice_raises(server):
    server.start()
    with pytest.raises(RuntimeError):
        server.start()


def test_duplicate_router_raises(server):
    server.add_router(0, Ping())
    with pytest.raises(DuplicateRouterError):
        server.add_router(0, Ping())


def test_request_and_reply_round_trip(server):
    server.add_router(0, Ping())
    server.start()
    with _connect(server) as client:
        client.sendall(DataPack().pack(Message(0, b"hi")))
        reply = DataPack().read_message(client.makefile("rb"))
    assert reply.msg_id == 0
    assert reply.data == b"ping...ping...ping hi"


def test_start_hook_can_send_message(server):
    def begin(conn):
        conn.send_msg(202, b"DoConnectionBegin")

    server.set_on_conn_start(begin)
    server.start()
    with _connect(server) as client:
        reply = DataPack().read_message(client.makefile("rb"))
    assert reply.msg_id == 202
    assert reply.data == b"DoConnectionBegin"


def test_connection_ids_increase_and_remote_addr_known(server):
    server.start()
    with _connect(server) as first, _connect(server) as second:
        assert _wait_for(lambda: len(server.conn_manager) == 2)
        ids = {server.conn_manager.get(0).remote_addr, server.conn_manager.get(1).remote_addr}
        assert ids == {first.getsockname(), second.getsockname()}


def test_stop_hook_runs_when_client_leaves(server):
    lost = []
    server.set_on_conn_stop(lambda conn: lost.append(conn.conn_id))
    server.start()
    client = _connect(server)
    _wait_for(lambda: len(server.conn_manager) == 1)
    assert len(server.conn_manager) == 1
    client.close()
    _wait_for(lambda: lost == [0] and len(server.conn_manager) == 0)
    assert lost == [0]
    assert len(server.conn_manager) == 0


def test_max_conn_rejects_extra_client(config):
    config.max_conn = 1
    srv = Server("test", config)
    srv.start()
    try:
        with _connect(srv) as first:
            assert _wait_for(lambda: len(srv.conn_manager) == 1)
            with _connect(srv) as second:
                assert second.recv(16) == b""
            assert len(srv.conn_manager) == 1
            assert first.fileno() >= 0
    finally:
        srv.stop()


def test_stop_closes_all_connections(server):
    server.start()
    client = _connect(server)
    try:
        assert _wait_for(lambda: len(server.conn_manager) == 1)
        server.stop()
        assert len(server.conn_manager) == 0
        assert client.recv(16) == b""
    finally:
        client.close()


def test_hooks_called_directly(server):
    seen = []
    server.set_on_conn_start(lambda conn: seen.append(("start", conn)))
    server.set_on_conn_stop(lambda conn: seen.append(("stop", conn)))
    server.call_on_conn_start("a")
    server.call_on_conn_stop("b")
    assert seen == [("start", "a"), ("stop", "b")]


def test_serve_blocks_until_stopped(server):
    thread = threading.Thread(target=server.serve, daemon=True)
    thread.start()

    def listening():
        try:
            server.address
        except RuntimeError:
            return False
        return True

    assert _wait_for(listening)
    assert thread.is_alive()
    server.stop()
    thread.join(3)
    assert not thread.is_alive()


def test_context_manager_starts_and_stops(config):
    with Server("test", config) as srv:
        port = srv.address[1]
        with socket.create_connection(("127.0.0.1", port), timeout=3):
            assert _wait_for(lambda: len(srv.conn_manager) == 1)
    with pytest.raises(RuntimeError):
        srv.address
    assert len(srv.conn_manager) == 0