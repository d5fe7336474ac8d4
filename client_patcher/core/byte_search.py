"""
Byte Search - exact pattern matching and run scanning over raw entry bytes.

These helpers never interpret the container format; they only look at bytes.
"""

from __future__ import annotations
from typing import Callable, Optional, Tuple, Union

from .errors import InvalidArgument, NotFound

Buffer = Union[bytes, bytearray]
BytePredicate = Callable[[int], bool]

NOT_FOUND = -1

HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def is_hex_byte(value: int) -> bool:
    return value in HEX_DIGITS


def index_of(buffer: Buffer, pattern: bytes, start: int = 0) -> int:
    """Return the index of the first occurrence of ``pattern`` at or after ``start``.

    Returns ``NOT_FOUND`` (-1) when the pattern does not occur.
    """
    if not pattern:
        raise InvalidArgument("Bytes to search are empty")
    if start < 0:
        raise InvalidArgument(f"Start index is negative: {start}")
    return buffer.find(pattern, start)


def contains(buffer: Buffer, pattern: bytes) -> bool:
    return index_of(buffer, pattern) != NOT_FOUND


def first_run(
    buffer: Buffer,
    start: int = 0,
    min_length: Optional[int] = None,
    accept: BytePredicate = is_hex_byte,
) -> Tuple[int, int]:
    """Find the first maximal run of accepted bytes, as a half-open ``(start, end)``.

    Runs shorter than ``min_length`` are skipped and the scan resumes after them.
    Raises :class:`NotFound` once the buffer is exhausted.
    """
    if start < 0:
        raise InvalidArgument(f"Start index is negative: {start}")
    if min_length is not None and min_length < 1:
        raise InvalidArgument(f"Minimum run length must be positive: {min_length}")

    size = len(buffer)
    pos = start
    while pos < size:
        # Skip rejected bytes up to the next run
        while pos < size and not accept(buffer[pos]):
            pos += 1
        if pos >= size:
            break
        end = pos + 1
        while end < size and accept(buffer[end]):
            end += 1
        if min_length is None or end - pos >= min_length:
            return pos, end
        pos = end

    if min_length is None:
        raise NotFound(f"No accepted run found after offset {start}")
    raise NotFound(f"No run of at least {min_length} accepted bytes after offset {start}")


def is_bounded_run(
    buffer: Buffer,
    run: Tuple[int, int],
    accept: BytePredicate = is_hex_byte,
) -> bool:
    """True when the bytes on either side of ``run`` are rejected (or absent)."""
    run_start, run_end = run
    before_ok = run_start == 0 or not accept(buffer[run_start - 1])
    after_ok = run_end >= len(buffer) or not accept(buffer[run_end])
    return before_ok and after_ok
