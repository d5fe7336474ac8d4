"""
Length-Prefixed String Splicer.

Strings in a class container are stored as a 2-byte big-endian length followed by
that many UTF-8 bytes. The prefix is the only thing tracking the length, so a
splice must rewrite it and shift every trailing byte by the size delta.
"""

from __future__ import annotations
import struct
from typing import Union

from .errors import InvalidArgument, InvariantViolation

PREFIX_SIZE = 2
MAX_PREFIXED_LENGTH = 0xFFFF

_PREFIX = struct.Struct(">H")


def read_prefixed_length(buffer: Union[bytes, bytearray], content_start: int) -> int:
    """Read the 2-byte length stored immediately before ``content_start``."""
    if content_start < PREFIX_SIZE:
        raise InvariantViolation(
            f"No room for a length prefix before offset {content_start}"
        )
    if content_start > len(buffer):
        raise InvalidArgument(
            f"Content offset {content_start} is past the end of the buffer ({len(buffer)})"
        )
    (length,) = _PREFIX.unpack_from(buffer, content_start - PREFIX_SIZE)
    return length


def read_prefixed_string(buffer: Union[bytes, bytearray], content_start: int) -> bytes:
    length = read_prefixed_length(buffer, content_start)
    end = content_start + length
    if end > len(buffer):
        raise InvariantViolation(
            f"Length prefix {length} at offset {content_start - PREFIX_SIZE} "
            f"runs past the end of the buffer ({len(buffer)})"
        )
    return bytes(buffer[content_start:end])


def splice_string(buffer: Union[bytes, bytearray], content_start: int, replacement: str) -> bytes:
    """Return a new buffer with the prefixed string at ``content_start`` replaced.

    Bytes before the prefix are copied verbatim, the prefix is rewritten to the
    UTF-8 length of ``replacement`` and everything after the old content follows
    the new content directly. The input buffer is never modified.
    """
    old_length = read_prefixed_length(buffer, content_start)
    old_end = content_start + old_length
    if old_end > len(buffer):
        raise InvariantViolation(
            f"Length prefix {old_length} at offset {content_start - PREFIX_SIZE} "
            f"runs past the end of the buffer ({len(buffer)})"
        )

    encoded = replacement.encode("utf-8")
    if len(encoded) > MAX_PREFIXED_LENGTH:
        raise InvariantViolation(
            f"Replacement of {len(encoded)} bytes does not fit a 16-bit length prefix"
        )

    output = bytearray(len(buffer) + len(encoded) - old_length)
    prefix_start = content_start - PREFIX_SIZE
    output[:prefix_start] = buffer[:prefix_start]
    _PREFIX.pack_into(output, prefix_start, len(encoded))
    new_end = content_start + len(encoded)
    output[content_start:new_end] = encoded
    output[new_end:] = buffer[old_end:]
    return bytes(output)
