from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional

from .archive import assemble_archive, extract_archive, patched_archive_path
from .context import ExtractionWorkspace
from .entries import EntrySet
from .errors import InvalidArgument, PatchIOError
from .events import EventSink, log_event
from .logger import get_logger
from .models import PatchRequest, PatchResult
from .scanner import ENDPOINT_PASS, MODULUS_PASS, PORT_PASS, EntryScanner, PassOutcome
from .settings import PatcherSettings

log = get_logger(__name__)


def _require_regular_file(path: Path) -> None:
    if path.is_symlink() or not path.is_file():
        raise InvalidArgument(f"Path {path} does not point to a file.", pass_name="validate")


class ClientPatcher:
    """Patches a client archive to trust another RSA key and use another port."""

    def __init__(
        self,
        settings: Optional[PatcherSettings] = None,
        *,
        sink: EventSink = log_event,
    ) -> None:
        self.settings = settings or PatcherSettings()
        self.sink = sink

    def patch(
        self,
        path: Path,
        rsa: str,
        javconfig_url: Optional[str],
        world_list_url: Optional[str],
        port: int,
        *,
        dry_run: bool = False,
    ) -> PatchResult:
        request = PatchRequest.build(
            archive=path,
            modulus=rsa,
            javconfig_url=javconfig_url,
            world_list_url=world_list_url,
            port=port,
        )
        _require_regular_file(request.archive)
        log.debug(f"Attempting to patch {request.archive}")

        patched_path = patched_archive_path(request.archive, self.settings.output_suffix)
        with ExtractionWorkspace(request.archive, parent=self.settings.work_dir) as workspace:
            log.debug("Extracting existing classes from a zip file.")
            extract_archive(request.archive, workspace.path)
            entries = EntrySet.from_directory(workspace.path)

            log.debug("Patching class files.")
            outcomes = EntryScanner(entries, self.settings, sink=self.sink).run_all(
                request.modulus, request.port
            )

            if not dry_run:
                entries.write_changes(workspace.path)
                log.debug("Building a patched jar.")
                assemble_archive(request.archive, workspace.path, patched_path)

        result = self._build_result(request, patched_path, outcomes, dry_run)
        log.debug("Jar patching complete.")
        return result

    def inspect(self, path: Path) -> Dict[str, Optional[PassOutcome]]:
        """Locate every patch target in ``path`` without writing anything."""
        _require_regular_file(path)
        with ExtractionWorkspace(path, parent=self.settings.work_dir) as workspace:
            extract_archive(path, workspace.path)
            entries = EntrySet.from_directory(workspace.path)
            return EntryScanner(entries, self.settings, sink=self.sink).locate_all()

    def _build_result(
        self,
        request: PatchRequest,
        patched_path: Path,
        outcomes: Dict[str, PassOutcome],
        dry_run: bool,
    ) -> PatchResult:
        modulus = outcomes[MODULUS_PASS]
        endpoint = outcomes[ENDPOINT_PASS]
        port = outcomes[PORT_PASS]
        prefix = "[DRY-RUN] Would patch" if dry_run else "Patched"
        summary = [
            f"{prefix} RSA modulus in {modulus.entry} at offset {modulus.offset}",
            f"{prefix} endpoint {endpoint.old_value!r} in {endpoint.entry}",
            f"{prefix} port {port.old_value} -> {port.new_value} in {port.entry}",
        ]
        if not dry_run and not patched_path.is_file():
            raise PatchIOError(f"Patched archive {patched_path} was not written", pass_name="assemble")
        return PatchResult(
            old_modulus=modulus.old_value or "",
            patched_path=patched_path,
            modulus_entry=modulus.entry,
            endpoint_entry=endpoint.entry,
            port_entry=port.entry,
            javconfig_url=request.javconfig_url,
            world_list_url=request.world_list_url,
            dry_run=dry_run,
            summary_lines=summary,
        )


def patch(
    path: Path,
    rsa: str,
    javconfig_url: Optional[str],
    world_list_url: Optional[str],
    port: int,
    *,
    settings: Optional[PatcherSettings] = None,
    dry_run: bool = False,
) -> PatchResult:
    return ClientPatcher(settings).patch(
        path, rsa, javconfig_url, world_list_url, port, dry_run=dry_run
    )
