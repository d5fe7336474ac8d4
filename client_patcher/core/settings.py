from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import InvalidArgument, PatchIOError
from .logger import get_logger

log = get_logger(__name__)

ENV_WORK_DIR = "CLIENT_PATCHER_WORK_DIR"
ENV_PORT_ENTRY = "CLIENT_PATCHER_PORT_ENTRY"


class PatcherSettings(BaseModel):
    # Values shipped in the unpatched client
    default_port: int = Field(43594, ge=0, le=0xFFFF)
    default_endpoint: str = Field("127.0.0.1", min_length=1)
    modulus_marker: str = Field("10001", min_length=1)
    modulus_min_length: int = Field(256, ge=1)

    port_entry: str = "client.class"
    # The client only suffix-matches this field, so an empty value accepts any host
    endpoint_replacement: str = ""

    work_dir: Optional[Path] = None
    output_suffix: str = Field("-patched", min_length=1)

    @model_validator(mode="after")
    def _check_endpoint_replacement(self) -> "PatcherSettings":
        if len(self.endpoint_replacement.encode("utf-8")) > len(
            self.default_endpoint.encode("utf-8")
        ):
            raise ValueError("endpoint_replacement cannot be longer than default_endpoint")
        return self


def load_settings(path: Optional[Path] = None) -> PatcherSettings:
    """Load settings from an optional JSON file, then apply environment overrides."""
    data: dict = {}
    if path is not None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PatchIOError(f"Failed to read settings file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise InvalidArgument(f"Settings file {path} is not valid JSON: {exc}") from exc
        log.debug(f"Loaded settings from {path}")

    env_work_dir = os.environ.get(ENV_WORK_DIR)
    if env_work_dir:
        log.debug(f"Using work directory from {ENV_WORK_DIR}: {env_work_dir}")
        data["work_dir"] = env_work_dir
    env_port_entry = os.environ.get(ENV_PORT_ENTRY)
    if env_port_entry:
        data["port_entry"] = env_port_entry

    try:
        return PatcherSettings.model_validate(data)
    except ValidationError as exc:
        raise InvalidArgument(f"Invalid settings: {exc}", pass_name="validate") from exc
