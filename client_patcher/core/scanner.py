"""
Entry Scanner - the three patch passes run over an extracted archive.

Each pass walks the entries in lexicographic name order and stops at the first
entry it can patch, so the result does not depend on filesystem traversal.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .byte_search import NOT_FOUND, first_run, index_of, is_bounded_run, is_hex_byte
from .entries import Entry, EntrySet
from .errors import InvariantViolation, NotFound, PatchError
from .events import EventSink, PassEvent, PassStage, log_event
from .fixed_width import overwrite_bytes, port_bytes
from .logger import get_logger
from .settings import PatcherSettings
from .splicer import PREFIX_SIZE, read_prefixed_length, splice_string

log = get_logger(__name__)

MODULUS_PASS = "modulus"
ENDPOINT_PASS = "endpoint"
PORT_PASS = "port"


@dataclass
class PassOutcome:
    pass_name: str
    entry: str
    offset: int
    old_value: Optional[str] = None
    new_value: Optional[str] = None


def locate_modulus(
    data: bytes, settings: PatcherSettings, start: int = 0
) -> Optional[Tuple[int, int]]:
    """Return the ``(start, end)`` of the hex modulus run at or after ``start``, if any.

    Raises :class:`InvariantViolation` when the run found is not bounded by
    non-hex bytes on both sides, or is not the whole of a length-prefixed string.
    """
    try:
        run = first_run(data, start, settings.modulus_min_length, is_hex_byte)
    except NotFound:
        return None
    if not is_bounded_run(data, run, is_hex_byte):
        raise InvariantViolation(
            f"Hex run at {run[0]}..{run[1]} is adjacent to another hex digit",
            pass_name=MODULUS_PASS,
        )
    run_start, run_end = run
    if run_start < PREFIX_SIZE or read_prefixed_length(data, run_start) != run_end - run_start:
        raise InvariantViolation(
            f"Hex run at {run_start}..{run_end} does not match the length prefix before it",
            pass_name=MODULUS_PASS,
        )
    return run


def iter_prefixed_matches(data: bytes, literal: bytes) -> Iterator[int]:
    """Yield offsets where ``literal`` is the whole content of a prefixed string."""
    index = index_of(data, literal)
    while index != NOT_FOUND:
        if index >= PREFIX_SIZE and read_prefixed_length(data, index) == len(literal):
            yield index
        index = index_of(data, literal, index + 1)


def patch_modulus(
    entries: EntrySet,
    replacement: str,
    settings: PatcherSettings,
    sink: EventSink = log_event,
) -> PassOutcome:
    marker = settings.modulus_marker.encode("utf-8")
    sink(PassEvent(MODULUS_PASS, PassStage.STARTED, detail={"marker": settings.modulus_marker}))
    for entry in entries:
        marker_index = index_of(entry.data, marker)
        if marker_index == NOT_FOUND:
            continue
        sink(PassEvent(MODULUS_PASS, PassStage.PATTERN_FOUND, entry.name, marker_index))
        run = locate_modulus(entry.data, settings)
        if run is None:
            log.debug(f"{entry.name} contains the marker but no modulus-sized hex run")
            continue
        start, end = run
        old_modulus = entry.data[start:end].decode("ascii")
        entry.replace(splice_string(entry.data, start, replacement))
        log.debug(f"Old modulus: {old_modulus}")
        log.debug(f"New modulus: {replacement}")
        sink(
            PassEvent(
                MODULUS_PASS,
                PassStage.APPLIED,
                entry.name,
                start,
                {"old_length": end - start, "new_length": len(replacement)},
            )
        )
        return PassOutcome(MODULUS_PASS, entry.name, start, old_modulus, replacement)
    raise NotFound("Unable to find modulus.", pass_name=MODULUS_PASS)


def patch_endpoint(
    entries: EntrySet,
    settings: PatcherSettings,
    sink: EventSink = log_event,
) -> PassOutcome:
    literal = settings.default_endpoint.encode("utf-8")
    replacement = settings.endpoint_replacement
    sink(PassEvent(ENDPOINT_PASS, PassStage.STARTED, detail={"literal": settings.default_endpoint}))
    for entry in entries:
        for index in iter_prefixed_matches(entry.data, literal):
            sink(PassEvent(ENDPOINT_PASS, PassStage.PATTERN_FOUND, entry.name, index))
            entry.replace(splice_string(entry.data, index, replacement))
            sink(
                PassEvent(
                    ENDPOINT_PASS,
                    PassStage.APPLIED,
                    entry.name,
                    index,
                    {"replacement": repr(replacement)},
                )
            )
            return PassOutcome(
                ENDPOINT_PASS, entry.name, index, settings.default_endpoint, replacement
            )
    raise NotFound(
        f"Unable to locate endpoint {settings.default_endpoint}", pass_name=ENDPOINT_PASS
    )


def patch_port(
    entries: EntrySet,
    port: int,
    settings: PatcherSettings,
    sink: EventSink = log_event,
) -> PassOutcome:
    sink(PassEvent(PORT_PASS, PassStage.STARTED, settings.port_entry, detail={"port": port}))
    entry: Optional[Entry] = entries.get(settings.port_entry)
    if entry is None:
        raise NotFound(f"Entry {settings.port_entry} is not in the archive", pass_name=PORT_PASS)
    buffer = bytearray(entry.data)
    index = overwrite_bytes(buffer, port_bytes(settings.default_port), port_bytes(port))
    sink(PassEvent(PORT_PASS, PassStage.PATTERN_FOUND, entry.name, index))
    entry.replace(bytes(buffer))
    sink(
        PassEvent(
            PORT_PASS,
            PassStage.APPLIED,
            entry.name,
            index,
            {"from": settings.default_port, "to": port},
        )
    )
    return PassOutcome(PORT_PASS, entry.name, index, str(settings.default_port), str(port))


class EntryScanner:
    """Runs the modulus, endpoint and port passes over one entry set.

    All three passes must succeed; the first failure propagates with the name
    of the pass that raised it.
    """

    def __init__(
        self,
        entries: EntrySet,
        settings: Optional[PatcherSettings] = None,
        *,
        sink: EventSink = log_event,
    ) -> None:
        self.entries = entries
        self.settings = settings or PatcherSettings()
        self.sink = sink

    def run_all(self, modulus: str, port: int) -> Dict[str, PassOutcome]:
        outcomes: Dict[str, PassOutcome] = {}
        outcomes[MODULUS_PASS] = self._run(
            MODULUS_PASS, patch_modulus, self.entries, modulus, self.settings, self.sink
        )
        outcomes[ENDPOINT_PASS] = self._run(
            ENDPOINT_PASS, patch_endpoint, self.entries, self.settings, self.sink
        )
        outcomes[PORT_PASS] = self._run(
            PORT_PASS, patch_port, self.entries, port, self.settings, self.sink
        )
        return outcomes

    def locate_all(self) -> Dict[str, Optional[PassOutcome]]:
        """Report where each target lives without modifying any entry."""
        found: Dict[str, Optional[PassOutcome]] = {
            MODULUS_PASS: None,
            ENDPOINT_PASS: None,
            PORT_PASS: None,
        }
        marker = self.settings.modulus_marker.encode("utf-8")
        literal = self.settings.default_endpoint.encode("utf-8")
        for entry in self.entries:
            if found[MODULUS_PASS] is None and index_of(entry.data, marker) != NOT_FOUND:
                run = locate_modulus(entry.data, self.settings)
                if run is not None:
                    found[MODULUS_PASS] = PassOutcome(
                        MODULUS_PASS, entry.name, run[0], entry.data[run[0] : run[1]].decode("ascii")
                    )
            if found[ENDPOINT_PASS] is None:
                index = next(iter_prefixed_matches(entry.data, literal), None)
                if index is not None:
                    found[ENDPOINT_PASS] = PassOutcome(
                        ENDPOINT_PASS, entry.name, index, self.settings.default_endpoint
                    )
        port_entry = self.entries.get(self.settings.port_entry)
        if port_entry is not None:
            index = index_of(port_entry.data, port_bytes(self.settings.default_port))
            if index != NOT_FOUND:
                found[PORT_PASS] = PassOutcome(
                    PORT_PASS, port_entry.name, index, str(self.settings.default_port)
                )
        return found

    def _run(self, pass_name: str, func, *args) -> PassOutcome:
        try:
            return func(*args)
        except PatchError as exc:
            exc.with_pass(pass_name)
            self.sink(PassEvent(pass_name, PassStage.FAILED, detail={"error": exc.kind}))
            raise
