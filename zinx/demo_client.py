"""Demo client: sends one framed message at a time and prints each reply."""

from __future__ import annotations

import argparse
import socket
import time
from typing import Optional

from .datapack import DataPack
from .message import Message

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8999
DEFAULT_TEXT = "Zinx v1.9.0 client0 test message"


def exchange(
    sock: socket.socket, msg_id: int, data: bytes, datapack: Optional[DataPack] = None
) -> Message:
    """Send one message on ``sock`` and return the next message read from it.

    Raises EOFError if the peer closes before a whole message arrives.
    """
    datapack = datapack if datapack is not None else DataPack()
    sock.sendall(datapack.pack(Message(msg_id=msg_id, data=data)))
    # Unbuffered, so no bytes of a following message are consumed here.
    with sock.makefile("rb", buffering=0) as reader:
        return datapack.read_message(reader)


def run_client(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    msg_id: int = 0,
    text: str = DEFAULT_TEXT,
    count: Optional[int] = None,
    interval: float = 1.0,
) -> list[Message]:
    """Exchange ``count`` messages with the server (forever if None); return the replies."""
    print("client start...")
    if interval > 0:
        time.sleep(interval)
    datapack = DataPack()
    payload = text.encode("utf-8")
    replies: list[Message] = []
    with socket.create_connection((host, port)) as sock:
        sent = 0
        while count is None or sent < count:
            if sent and interval > 0:
                time.sleep(interval)
            reply = exchange(sock, msg_id, payload, datapack)
            sent += 1
            if reply.data_len:
                print(
                    f"------>Recv Server MsgID: {reply.msg_id}, datalen: {reply.data_len}, "
                    f"data: {reply.data.decode('utf-8', errors='replace')}"
                )
            if count is not None:
                replies.append(reply)
    return replies


def main(argv: Optional[list[str]] = None) -> int:
    """Run the demo client; return 0 on success and 1 on a connection error."""
    parser = argparse.ArgumentParser(description="Send framed messages to the demo server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--msg-id", type=int, default=0)
    parser.add_argument("--text", default=DEFAULT_TEXT)
    parser.add_argument("--count", type=int, default=None, help="number of exchanges (default: forever)")
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between exchanges")
    args = parser.parse_args(argv)

    try:
        run_client(args.host, args.port, args.msg_id, args.text, args.count, args.interval)
    except (OSError, EOFError) as exc:
        print(exc)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())