from __future__ import annotations
from pathlib import Path

from ...core.logger import get_logger
from ...core.patcher import ClientPatcher
from ...core.settings import load_settings

log = get_logger(__name__)


def run(args) -> None:
    settings = load_settings(Path(args.config) if args.config else None)
    found = ClientPatcher(settings).inspect(Path(args.archive))

    for pass_name, outcome in found.items():
        if outcome is None:
            log.warning(f"{pass_name}: not found")
            continue
        log.info(f"{pass_name}: {outcome.entry} @ {outcome.offset}")
        if outcome.old_value:
            log.info(f"  value: {outcome.old_value}")
