"""The message carried by one framed packet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_UINT32_MAX = 0xFFFFFFFF


@dataclass
class Message:
    """A message id, its payload and the payload length declared in its head.

    ``data_len`` defaults to the length of ``data``; a message decoded from a
    head alone carries the declared length with an empty payload.
    """

    msg_id: int = 0
    data: bytes = b""
    data_len: Optional[int] = None

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if self.data_len is None:
            self.data_len = len(self.data)
        for label, value in (("msg_id", self.msg_id), ("data_len", self.data_len)):
            if not 0 <= value <= _UINT32_MAX:
                raise ValueError(f"{label} out of range: {value}")