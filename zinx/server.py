"""TCP server that accepts framed-message connections and routes them."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Callable, Optional

from .config import GlobalConfig, load_config
from .connection import Connection
from .connmanager import ConnectionManager
from .msghandler import MessageHandler

_log = logging.getLogger(__name__)

_ACCEPT_POLL_SECONDS = 0.2
_CONN_ID_MASK = 0xFFFFFFFF

ConnHook = Callable[[Any], None]


class Server:
    """Listens on the configured address and serves each client on its own connection."""

    def __init__(self, name: Optional[str] = None, config: Optional[GlobalConfig] = None) -> None:
        self.config = config if config is not None else load_config()
        self.name = name or self.config.name
        self.host = self.config.host
        self.port = self.config.tcp_port
        self.msg_handler = MessageHandler(
            self.config.worker_pool_size, self.config.max_worker_task_len
        )
        self.conn_manager = ConnectionManager()
        self.on_conn_start: Optional[ConnHook] = None
        self.on_conn_stop: Optional[ConnHook] = None
        self._listener: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()
        self._next_conn_id = 0

    @property
    def address(self) -> tuple[str, int]:
        """The (host, port) the server is listening on."""
        listener = self._listener
        if listener is None:
            raise RuntimeError("server is not listening")
        host, port = listener.getsockname()[:2]
        return host, port

    def start(self) -> None:
        """Bind the listener, start the worker pool and accept clients in the background."""
        if self._listener is not None:
            raise RuntimeError("server already started")
        _log.info(
            "[Zinx] Server Name: %s, listener at IP: %s, Port: %d is starting",
            self.name, self.host, self.port,
        )
        _log.info(
            "[Zinx] Version: %s, MaxConn: %d, MaxPacketSize: %d",
            self.config.version, self.config.max_conn, self.config.max_package_size,
        )
        self._stopping.clear()
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.host, self.port))
            listener.listen()
            listener.settimeout(_ACCEPT_POLL_SECONDS)
        except OSError:
            listener.close()
            raise
        self.msg_handler.start_worker_pool()
        self._listener = listener
        self._accept_thread = threading.Thread(
            target=self._accept_loop, args=(listener,), name="zinx-accept", daemon=True
        )
        self._accept_thread.start()
        _log.info("start zinx server success %s Listening...", self.name)

    def stop(self) -> None:
        """Stop accepting, close every connection and stop the worker pool."""
        _log.info("[Stop] Zinx Server Name: %s", self.name)
        self._stopping.set()
        thread, self._accept_thread = self._accept_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.close()
        self.conn_manager.clear()
        self.msg_handler.stop_worker_pool()

    def serve(self) -> None:
        """Start the server and block until it is stopped or interrupted."""
        self.start()
        try:
            while not self._stopping.wait(0.5):
                pass
        except KeyboardInterrupt:
            self.stop()

    def add_router(self, msg_id: int, router: Any) -> None:
        """Register ``router`` for messages with ``msg_id``."""
        self.msg_handler.add_router(msg_id, router)
        _log.info("[Zinx] Add Router Success")

    def set_on_conn_start(self, hook: Optional[ConnHook]) -> None:
        """Set the hook run after each connection starts."""
        self.on_conn_start = hook

    def set_on_conn_stop(self, hook: Optional[ConnHook]) -> None:
        """Set the hook run before each connection closes."""
        self.on_conn_stop = hook

    def call_on_conn_start(self, conn: Any) -> None:
        """Run the start hook for ``conn``, if one is set."""
        if self.on_conn_start is not None:
            _log.debug("[Zinx] Call OnConnStart")
            self.on_conn_start(conn)

    def call_on_conn_stop(self, conn: Any) -> None:
        """Run the stop hook for ``conn``, if one is set."""
        if self.on_conn_stop is not None:
            _log.debug("[Zinx] Call OnConnStop")
            self.on_conn_stop(conn)

    def __enter__(self) -> Server:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    def _accept_loop(self, listener: socket.socket) -> None:
        while not self._stopping.is_set():
            try:
                sock, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stopping.is_set():
                    break
                _log.warning("Accept err: %s", exc)
                continue
            sock.settimeout(None)
            if len(self.conn_manager) >= self.config.max_conn:
                _log.warning("[Zinx] MaxConn exceeded = %d", self.config.max_conn)
                sock.close()
                continue
            conn = Connection(self, sock, self._next_conn_id, self.msg_handler)
            self._next_conn_id = (self._next_conn_id + 1) & _CONN_ID_MASK
            threading.Thread(target=conn.start, daemon=True).start()