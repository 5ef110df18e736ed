"""Buffer of indexed player inputs awaiting acknowledgement from the server."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from typing import BinaryIO, NamedTuple

from asteroidnet.state import DecodeError, Input

_U32 = 0xFFFFFFFF


class _IndexedInput(NamedTuple):
    index: int
    input: Input


def _read_u32(reader: BinaryIO) -> int:
    data = reader.read(4)
    if len(data) != 4:
        raise DecodeError(f"expected 4 bytes, got {len(data)}")
    (value,) = struct.unpack(">I", data)
    return value


class InputBuffer:
    """Inputs numbered in the order they were produced.

    Inputs stay in the buffer until the server acknowledges them, so every
    send carries all inputs the server may not have seen yet.
    """

    def __init__(self) -> None:
        self._entries: list[_IndexedInput] = []
        self._next = 0

    @classmethod
    def from_inputs(cls, inputs: Iterable[Input]) -> InputBuffer:
        """Build a buffer whose inputs are numbered from zero."""
        buf = cls()
        for inp in inputs:
            buf.append(inp)
        return buf

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"InputBuffer(indices={self.indices()!r}, next={self._next})"

    def indices(self) -> list[int]:
        return [entry.index for entry in self._entries]

    def inputs(self) -> list[Input]:
        return [entry.input for entry in self._entries]

    def encode(self, out: BinaryIO) -> None:
        out.write(struct.pack(">I", len(self._entries) & _U32))
        for index, inp in self._entries:
            out.write(struct.pack(">I", index & _U32))
            inp.encode(out)

    @classmethod
    def decode(cls, reader: BinaryIO) -> InputBuffer:
        """Read a buffer; raises DecodeError if the data is truncated."""
        count = _read_u32(reader)
        buf = cls()
        for _ in range(count):
            index = _read_u32(reader)
            buf._entries.append(_IndexedInput(index, Input.decode(reader)))
        if buf._entries:
            buf._next = (buf._entries[-1].index + 1) & _U32
        return buf

    def discard_until(self, index: int) -> None:
        """Drop the leading inputs whose index is at most ``index``."""
        keep_from = 0
        for entry in self._entries:
            if entry.index > index:
                break
            keep_from += 1
        del self._entries[:keep_from]

    def append(self, input: Input) -> None:  # noqa: A002 - mirrors list.append
        self._entries.append(_IndexedInput(self._next, input))
        self._next = (self._next + 1) & _U32