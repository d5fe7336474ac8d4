"""
Error taxonomy for the patch engine.

Every failure raised by the engine is a :class:`PatchError`. The ``pass_name``
attribute records which stage failed (``modulus``, ``endpoint``, ``port``,
``extract``, ``assemble`` or ``validate``) so callers can report it.
"""

from __future__ import annotations
from typing import Optional


class PatchError(Exception):
    kind = "PatchError"

    def __init__(self, message: str, *, pass_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.pass_name = pass_name

    def with_pass(self, pass_name: str) -> "PatchError":
        if self.pass_name is None:
            self.pass_name = pass_name
        return self

    def __str__(self) -> str:
        if self.pass_name:
            return f"[{self.pass_name}] {self.message}"
        return self.message


class InvalidArgument(PatchError, ValueError):
    """Caller-supplied input failed a precondition."""

    kind = "InvalidArgument"


class NotFound(PatchError, LookupError):
    """An expected byte pattern is absent from the scanned data."""

    kind = "NotFound"


class InvariantViolation(PatchError, RuntimeError):
    """A structural assumption about the binary layout did not hold."""

    kind = "InvariantViolation"


class PatchIOError(PatchError):
    """Filesystem or archive failure during extraction, read, write or assembly."""

    kind = "IO"
