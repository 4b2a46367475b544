"""One client connection: a reader thread, a writer thread and properties."""

from __future__ import annotations

import logging
import queue
import socket
import threading
from typing import Any

from .datapack import DataPack, DataPackError
from .message import Message
from .request import Request

_log = logging.getLogger(__name__)

_EXIT = object()


class ConnectionClosedError(Exception):
    """A message was sent on a connection that is already closed."""


class PropertyNotFoundError(LookupError):
    """The connection has no property under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"property not found: {key}")
        self.key = key


class Connection:
    """A framed-message connection bound to a server and a message handler.

    The connection registers itself with the server's connection manager when
    it is created and removes itself when it stops.
    """

    def __init__(self, server: Any, sock: socket.socket, conn_id: int, msg_handler: Any) -> None:
        self.server = server
        self.sock = sock
        self.conn_id = conn_id
        self.msg_handler = msg_handler
        self._closed = False
        self._state_lock = threading.Lock()
        self._outbox: queue.Queue = queue.Queue()
        self._properties: dict[str, Any] = {}
        self._property_lock = threading.Lock()
        self._datapack = DataPack(server.config.max_package_size)
        try:
            self._remote_addr = sock.getpeername()
        except OSError:
            self._remote_addr = None
        server.conn_manager.add(self)

    def start(self) -> None:
        """Start the reader and writer threads, then run the server's start hook."""
        _log.info("Connection Start: [%d]", self.conn_id)
        threading.Thread(
            target=self._read_loop, name=f"zinx-reader-{self.conn_id}", daemon=True
        ).start()
        threading.Thread(
            target=self._write_loop, name=f"zinx-writer-{self.conn_id}", daemon=True
        ).start()
        self.server.call_on_conn_start(self)

    def stop(self) -> None:
        """Close the connection once; later calls do nothing."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        _log.info("Connection stop: [%d]", self.conn_id)
        self.server.call_on_conn_stop(self)
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()
        self._outbox.put(_EXIT)
        self.server.conn_manager.remove(self)

    @property
    def remote_addr(self) -> Any:
        """Address of the peer, as reported when the connection was created."""
        return self._remote_addr

    @property
    def is_closed(self) -> bool:
        """Whether the connection has been stopped."""
        with self._state_lock:
            return self._closed

    def send_msg(self, msg_id: int, data: bytes) -> None:
        """Frame ``data`` under ``msg_id`` and queue it for the writer."""
        if self.is_closed:
            raise ConnectionClosedError("connection closed when send msg")
        self._outbox.put(self._datapack.pack(Message(msg_id=msg_id, data=data)))

    def set_property(self, key: str, value: Any) -> None:
        """Attach ``value`` to the connection under ``key``."""
        with self._property_lock:
            self._properties[key] = value

    def get_property(self, key: str) -> Any:
        """Return the property stored under ``key``."""
        with self._property_lock:
            try:
                return self._properties[key]
            except KeyError:
                raise PropertyNotFoundError(key) from None

    def remove_property(self, key: str) -> None:
        """Drop the property under ``key``, if any."""
        with self._property_lock:
            self._properties.pop(key, None)

    def _read_loop(self) -> None:
        _log.debug("reader for connID=%d is running", self.conn_id)
        reader = self.sock.makefile("rb")
        try:
            while True:
                try:
                    message = self._datapack.read_message(reader)
                except DataPackError as exc:
                    _log.warning("unpack err on connID=%d: %s", self.conn_id, exc)
                    break
                except (EOFError, OSError, ValueError) as exc:
                    _log.info("read msg err on connID=%d: %s", self.conn_id, exc)
                    break
                request = Request(connection=self, message=message)
                try:
                    self._dispatch(request)
                except RuntimeError as exc:
                    _log.error("cannot dispatch request on connID=%d: %s", self.conn_id, exc)
                    break
        finally:
            reader.close()
            self.stop()
            _log.debug("reader for connID=%d exited, remote addr %s", self.conn_id, self._remote_addr)

    def _dispatch(self, request: Request) -> None:
        if self.msg_handler.worker_pool_size > 0:
            self.msg_handler.send_msg_to_task_queue(request)
        else:
            threading.Thread(
                target=self.msg_handler.do_msg_handler, args=(request,), daemon=True
            ).start()

    def _write_loop(self) -> None:
        _log.debug("writer for connID=%d is running", self.conn_id)
        try:
            while True:
                item = self._outbox.get()
                if item is _EXIT:
                    return
                try:
                    self.sock.sendall(item)
                except OSError as exc:
                    _log.info("Send data error on connID=%d: %s", self.conn_id, exc)
                    return
        finally:
            self.stop()
            _log.debug("writer for connID=%d exited", self.conn_id)