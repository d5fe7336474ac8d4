from __future__ import annotations
import shutil
import time
from pathlib import Path
from typing import Callable, Optional

from .errors import PatchIOError
from .logger import get_logger

log = get_logger(__name__)


class ExtractionWorkspace:
    """Owns the scratch directory an archive is extracted into.

    The directory is named ``<archive stem>-<epoch millis>`` and is removed on
    every exit path of the ``with`` block.
    """

    def __init__(
        self,
        archive_path: Path,
        *,
        parent: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.archive_path = archive_path
        self.parent = parent or archive_path.parent
        millis = int(clock() * 1000)
        self.path = self.parent / f"{archive_path.stem}-{millis}"

    def __enter__(self) -> "ExtractionWorkspace":
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def create(self) -> Path:
        try:
            self.path.mkdir(parents=True, exist_ok=False)
        except OSError as exc:
            raise PatchIOError(
                f"Failed to create working directory {self.path}: {exc}", pass_name="extract"
            ) from exc
        log.debug(f"Created working directory {self.path}")
        return self.path

    def cleanup(self) -> None:
        if not self.path.exists():
            return
        log.debug("Deleting temporary extracted class files.")
        try:
            shutil.rmtree(self.path)
        except OSError as exc:
            log.warning(f"Failed to delete working directory {self.path}: {exc}")
