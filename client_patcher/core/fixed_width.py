"""
Fixed-Width Patcher - overwrite an equal-length byte range in place.

Used for raw numeric fields (e.g. a 2-byte big-endian port) where no length
prefix is involved, so the buffer size never changes.
"""

from __future__ import annotations
import struct

from .byte_search import NOT_FOUND, index_of
from .errors import InvalidArgument, NotFound


def port_bytes(port: int) -> bytes:
    """Encode a port as its 2-byte big-endian form."""
    if not 0 <= port <= 0xFFFF:
        raise InvalidArgument(f"Port out of range: {port}")
    return struct.pack(">H", port)


def overwrite_at(buffer: bytearray, index: int, replacement: bytes) -> None:
    if index < 0 or index + len(replacement) > len(buffer):
        raise InvalidArgument(
            f"Cannot write {len(replacement)} bytes at offset {index} "
            f"into a buffer of {len(buffer)} bytes"
        )
    buffer[index : index + len(replacement)] = replacement


def overwrite_bytes(buffer: bytearray, original: bytes, replacement: bytes, start: int = 0) -> int:
    """Replace the first occurrence of ``original`` with ``replacement`` in place.

    Both sequences must have the same length. Returns the patched offset.
    """
    if len(original) != len(replacement):
        raise InvalidArgument(
            f"Fixed-width replacement must keep the length "
            f"({len(original)} != {len(replacement)})"
        )
    index = index_of(buffer, original, start)
    if index == NOT_FOUND:
        raise NotFound(f"Unable to find byte sequence: {list(original)}")
    overwrite_at(buffer, index, replacement)
    return index
