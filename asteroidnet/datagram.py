"""Wire format of a single protocol datagram."""

from __future__ import annotations

import struct
from dataclasses import dataclass

HEADER_VERSION_SIZE = 1
HEADER_FLAGS_SIZE = 2
HEADER_SIZE = HEADER_VERSION_SIZE + HEADER_FLAGS_SIZE

_HEADER = struct.Struct(">BH")


class ShortDatagramError(ValueError):
    """Raised when a datagram is shorter than its header."""


@dataclass(frozen=True, slots=True)
class Datagram:
    """A version byte, a 16-bit flag word and a payload."""

    version: int
    flags: int
    data: bytes = b""

    def __str__(self) -> str:
        return f"Datagram(v{self.version}:{self.flags:08b}:{self.data.hex()})"

    def to_bytes(self) -> bytes:
        return _HEADER.pack(self.version, self.flags) + bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> Datagram:
        if len(data) < HEADER_SIZE:
            raise ShortDatagramError(
                f"len data {len(data)} less than expected {HEADER_SIZE}: short datagram"
            )
        version, flags = _HEADER.unpack_from(data)
        return cls(version=version, flags=flags, data=bytes(data[HEADER_SIZE:]))