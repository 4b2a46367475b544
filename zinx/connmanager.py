"""Registry of the live connections of one server."""

from __future__ import annotations

import logging
import threading
from typing import Any

_log = logging.getLogger(__name__)


class ConnectionNotFoundError(LookupError):
    """No connection is registered under the requested id."""

    def __init__(self, conn_id: int) -> None:
        super().__init__(f"connection not found: {conn_id}")
        self.conn_id = conn_id


class ConnectionManager:
    """Thread-safe map from connection id to connection."""

    def __init__(self) -> None:
        self._connections: dict[int, Any] = {}
        self._lock = threading.Lock()

    def add(self, conn: Any) -> None:
        """Register ``conn`` under its ``conn_id``."""
        with self._lock:
            self._connections[conn.conn_id] = conn
            count = len(self._connections)
        _log.info("connID=%d added to ConnManager: conn num=%d", conn.conn_id, count)

    def remove(self, conn: Any) -> None:
        """Forget ``conn``; removing an unknown connection does nothing."""
        with self._lock:
            self._connections.pop(conn.conn_id, None)
            count = len(self._connections)
        _log.info("connID=%d removed from ConnManager: conn num=%d", conn.conn_id, count)

    def get(self, conn_id: int) -> Any:
        """Return the connection registered under ``conn_id``."""
        with self._lock:
            try:
                return self._connections[conn_id]
            except KeyError:
                raise ConnectionNotFoundError(conn_id) from None

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, conn_id: object) -> bool:
        with self._lock:
            return conn_id in self._connections

    def clear(self) -> None:
        """Stop every registered connection and empty the registry."""
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for conn in connections:
            conn.stop()
        _log.info("Clear All connections successfully: conn num=%d", len(self))