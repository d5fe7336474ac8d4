from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import PatchIOError
from .logger import get_logger

log = get_logger(__name__)


@dataclass
class Entry:
    """One named binary blob from the archive, owned by the patch pass using it."""

    name: str
    data: bytes
    original_size: int = field(init=False)
    modified: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.original_size = len(self.data)

    def replace(self, data: bytes) -> None:
        self.data = bytes(data)
        self.modified = True


class EntrySet:
    """Entries of an extracted archive, enumerated in lexicographic name order.

    Names are POSIX-style paths relative to the extraction root, so the order
    (and with it which entry a pass hits first) does not depend on the filesystem.
    """

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._entries: Dict[str, Entry] = {}
        for entry in entries:
            self.add(entry)

    @classmethod
    def from_directory(cls, root: Path) -> "EntrySet":
        entries: List[Entry] = []
        try:
            for path in root.rglob("*"):
                if path.is_file() and not path.is_symlink():
                    name = path.relative_to(root).as_posix()
                    entries.append(Entry(name, path.read_bytes()))
        except OSError as exc:
            raise PatchIOError(f"Failed to read extracted entries from {root}: {exc}") from exc
        log.debug(f"Loaded {len(entries)} entries from {root}")
        return cls(entries)

    def add(self, entry: Entry) -> None:
        self._entries[entry.name] = entry

    def get(self, name: str) -> Optional[Entry]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        for name in self.names():
            yield self._entries[name]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    @property
    def modified(self) -> List[Entry]:
        return [e for e in self if e.modified]

    def write_changes(self, root: Path) -> List[Path]:
        """Write modified entries back under ``root``; untouched files are left alone."""
        written: List[Path] = []
        for entry in self.modified:
            target = root.joinpath(*entry.name.split("/"))
            try:
                target.write_bytes(entry.data)
            except OSError as exc:
                raise PatchIOError(f"Failed to write entry {entry.name}: {exc}") from exc
            log.debug(f"Wrote {entry.name} ({entry.original_size} -> {len(entry.data)} bytes)")
            written.append(target)
        return written
