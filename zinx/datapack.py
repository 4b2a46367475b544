"""Framing of messages on a byte stream: |data_len|msg_id|data|, little endian."""

from __future__ import annotations

import struct
from typing import BinaryIO

from .message import Message

_HEADER = struct.Struct("<II")


class DataPackError(Exception):
    """A packet could not be packed or unpacked."""


class PackageTooLargeError(DataPackError):
    """The declared payload length exceeds the configured maximum."""


class DataPack:
    """Packs messages into frames and reads frames back into messages."""

    HEAD_LEN = _HEADER.size

    def __init__(self, max_package_size: int = 4096) -> None:
        self.max_package_size = max_package_size

    @property
    def head_len(self) -> int:
        """Length of the frame head: data length and message id, 4 bytes each."""
        return self.HEAD_LEN

    def pack(self, message: Message) -> bytes:
        """Return the frame for ``message``."""
        try:
            head = _HEADER.pack(message.data_len, message.msg_id)
        except struct.error as exc:
            raise DataPackError(str(exc)) from exc
        return head + message.data

    def unpack(self, data: bytes) -> Message:
        """Decode a frame head into a message carrying no payload yet."""
        if len(data) < self.HEAD_LEN:
            raise DataPackError(
                f"message head needs {self.HEAD_LEN} bytes, got {len(data)}"
            )
        data_len, msg_id = _HEADER.unpack_from(data)
        if self.max_package_size > 0 and data_len > self.max_package_size:
            raise PackageTooLargeError("too large msg data recv!")
        return Message(msg_id=msg_id, data_len=data_len)

    def read_message(self, reader: BinaryIO) -> Message:
        """Read one whole message from a binary stream with a ``read`` method.

        Raises EOFError if the stream ends before the message is complete.
        """
        message = self.unpack(_read_exact(reader, self.HEAD_LEN))
        if message.data_len:
            message.data = _read_exact(reader, message.data_len)
        return message


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining:
        chunk = reader.read(remaining)
        if not chunk:
            if remaining == size:
                raise EOFError("stream ended")
            raise EOFError(f"stream ended after {size - remaining} of {size} bytes")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)