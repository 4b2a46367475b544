"""A client request: the connection it came on and the message it carried."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .message import Message


@dataclass(frozen=True)
class Request:
    """One message received on one connection."""

    connection: Any
    message: Message

    @property
    def data(self) -> bytes:
        """The message payload."""
        return self.message.data

    @property
    def msg_id(self) -> int:
        """The message id."""
        return self.message.msg_id