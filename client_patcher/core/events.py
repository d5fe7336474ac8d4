"""Structured diagnostics emitted at patch pass boundaries."""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .logger import get_logger

log = get_logger(__name__)


class PassStage(str, Enum):
    STARTED = "started"
    PATTERN_FOUND = "pattern_found"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class PassEvent:
    pass_name: str
    stage: PassStage
    entry: Optional[str] = None
    offset: Optional[int] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        parts = [f"{self.pass_name}: {self.stage.value}"]
        if self.entry is not None:
            parts.append(f"entry={self.entry}")
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        parts.extend(f"{k}={v}" for k, v in self.detail.items())
        return " ".join(parts)


EventSink = Callable[[PassEvent], None]

_LEVELS = {
    PassStage.STARTED: logging.DEBUG,
    PassStage.PATTERN_FOUND: logging.DEBUG,
    PassStage.APPLIED: logging.INFO,
    PassStage.FAILED: logging.WARNING,
}


def log_event(event: PassEvent) -> None:
    log.log(_LEVELS[event.stage], event.describe())


class EventRecorder:
    """Sink that keeps every event; handy for reports and tests."""

    def __init__(self, forward: Optional[EventSink] = None) -> None:
        self.events: List[PassEvent] = []
        self._forward = forward

    def __call__(self, event: PassEvent) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward(event)

    def stages(self, pass_name: str) -> List[PassStage]:
        return [e.stage for e in self.events if e.pass_name == pass_name]
