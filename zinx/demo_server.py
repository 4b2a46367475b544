"""Demo server: two routers and connection hooks that set and read properties."""

from __future__ import annotations

import argparse
from typing import Any, Optional

from .config import DEFAULT_CONFIG_PATH, GlobalConfig, load_config
from .connection import ConnectionClosedError, PropertyNotFoundError
from .router import BaseRouter
from .server import Server

SERVER_NAME = "[Zinx V1.9.0]"

PING_MSG_ID = 0
HELLO_MSG_ID = 1
BEGIN_MSG_ID = 202

PING_REPLY = b"ping...ping...ping "
HELLO_REPLY = b"Hello, Welcome to Zinx!"
BEGIN_REPLY = b"DoConnectionBegin"

PROPERTIES = {
    "Name": "ZinxUser",
    "Email": "zinx@example.com",
    "Github": "https://example.com/zinx",
}


def _report(name: str, request: Any) -> None:
    print(f"Call {name} Handle...")
    print("recv from client: msgID=", request.msg_id)
    print("recv from client: data=", request.data.decode("utf-8", errors="replace"))


class PingRouter(BaseRouter):
    """Answers every request with a ping message under id 0."""

    def handle(self, request: Any) -> None:
        _report("PingRouter", request)
        try:
            request.connection.send_msg(PING_MSG_ID, PING_REPLY)
        except ConnectionClosedError as exc:
            print(exc)


class HelloZinxRouter(BaseRouter):
    """Answers every request with a welcome message under id 1."""

    def handle(self, request: Any) -> None:
        _report("HelloZinxRouter", request)
        try:
            request.connection.send_msg(HELLO_MSG_ID, HELLO_REPLY)
        except ConnectionClosedError as exc:
            print(exc)


def do_connection_begin(conn: Any) -> None:
    """Greet a new connection and attach the demo properties to it."""
    print("conn DoConnectionBegin")
    try:
        conn.send_msg(BEGIN_MSG_ID, BEGIN_REPLY)
    except ConnectionClosedError as exc:
        print(exc)

    print("Set Conn property...")
    for key, value in PROPERTIES.items():
        conn.set_property(key, value)


def do_connection_lost(conn: Any) -> dict[str, Any]:
    """Report the demo properties of a closing connection and return those found."""
    print("conn DoConnectionLost, connid", conn.conn_id)
    found: dict[str, Any] = {}
    for key in PROPERTIES:
        try:
            value = conn.get_property(key)
        except PropertyNotFoundError:
            continue
        print(f"{key.lower()} = {value}")
        found[key] = value
    return found


def build_server(config: Optional[GlobalConfig] = None) -> Server:
    """Create a server with the demo hooks and routers registered."""
    server = Server(SERVER_NAME, config)
    server.set_on_conn_start(do_connection_begin)
    server.set_on_conn_stop(do_connection_lost)
    server.add_router(PING_MSG_ID, PingRouter())
    server.add_router(HELLO_MSG_ID, HelloZinxRouter())
    return server


def main(argv: Optional[list[str]] = None) -> int:
    """Run the demo server until interrupted."""
    parser = argparse.ArgumentParser(description="Run the demo message server.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="JSON configuration file")
    parser.add_argument("--host", help="address to listen on")
    parser.add_argument("--port", type=int, help="port to listen on")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.tcp_port = args.port

    build_server(config).serve()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())