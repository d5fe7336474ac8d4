from __future__ import annotations
from pathlib import Path

from ...core.errors import InvalidArgument, PatchIOError
from ...core.logger import get_logger
from ...core.patcher import ClientPatcher
from ...core.settings import load_settings

log = get_logger(__name__)


def read_modulus(value: str) -> str:
    """Return the modulus text, reading it from a file for ``@path`` values."""
    if not value.startswith("@"):
        return value
    path = Path(value[1:])
    if not path.is_file():
        raise InvalidArgument(f"Modulus file not found: {path}", pass_name="validate")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise PatchIOError(f"Failed to read modulus file {path}: {exc}") from exc


def run(args) -> None:
    settings = load_settings(Path(args.config) if args.config else None)
    patcher = ClientPatcher(settings)
    result = patcher.patch(
        Path(args.archive),
        read_modulus(args.rsa),
        args.javconfig,
        args.world_list,
        args.port,
        dry_run=args.dry_run,
    )

    for line in result.summary_lines:
        log.info(line)

    log.info("\n=== Patch Summary ===")
    log.info(f"Old modulus: {result.old_modulus}")
    if result.dry_run:
        log.info(f"[DRY-RUN] Would write {result.patched_path}")
    else:
        log.info(f"Patched archive: {result.patched_path}")
