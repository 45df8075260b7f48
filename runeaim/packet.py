"""Fixed-length frames exchanged with the embedded controller.

A frame looks like ``[0xff, data bytes..., check byte, 0x0d]``.
"""

from __future__ import annotations

import struct

HEAD_BYTE = 0xFF
TAIL_BYTE = 0x0D

_BYTE_ORDER_CHARS = "@=<>!"


def _struct_for(fmt: str) -> struct.Struct:
    """Compile ``fmt``; without an explicit byte order, little-endian is used."""
    if not fmt:
        raise ValueError("empty struct format")
    if fmt[0] not in _BYTE_ORDER_CHARS:
        fmt = "<" + fmt
    return struct.Struct(fmt)


class FixedPacket:
    """A frame of ``capacity`` bytes with a head and a tail byte."""

    __slots__ = ("capacity", "_buffer")

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 3:
            raise ValueError(f"capacity must be at least 3, got {capacity}")
        self.capacity = capacity
        self._buffer = bytearray(capacity)
        self._buffer[0] = HEAD_BYTE
        self._buffer[-1] = TAIL_BYTE

    @property
    def buffer(self) -> bytes:
        """The whole frame as bytes."""
        return bytes(self._buffer)

    def __bytes__(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return self.capacity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FixedPacket):
            return NotImplemented
        return self._buffer == other._buffer

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FixedPacket({self._buffer.hex(' ')})"

    def clear(self) -> None:
        """Zero the data bytes and the check byte, keeping head and tail."""
        self._buffer[1:-1] = bytes(self.capacity - 2)

    def set_check_byte(self, check_byte: int) -> None:
        """Store the check byte just before the tail."""
        self._buffer[-2] = check_byte

    def copy_from(self, data: bytes | bytearray | memoryview) -> None:
        """Replace the whole frame with ``data``, which must be ``capacity`` bytes."""
        data = bytes(data)
        if len(data) != self.capacity:
            raise ValueError(f"expected {self.capacity} bytes, got {len(data)}")
        self._buffer[:] = data

    def _check_range(self, index: int, size: int) -> None:
        if not (index > 0 and index + size < self.capacity):
            raise IndexError(
                f"{size} bytes at index {index} do not fit in the data area of a "
                f"{self.capacity}-byte packet"
            )

    def load_data(self, fmt: str, value, index: int) -> None:
        """Pack ``value`` with struct format ``fmt`` at byte ``index``."""
        packer = _struct_for(fmt)
        self._check_range(index, packer.size)
        packer.pack_into(self._buffer, index, value)

    def unload_data(self, fmt: str, index: int):
        """Unpack a value with struct format ``fmt`` from byte ``index``."""
        unpacker = _struct_for(fmt)
        self._check_range(index, unpacker.size)
        return unpacker.unpack_from(self._buffer, index)[0]