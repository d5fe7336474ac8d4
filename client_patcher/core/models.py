"""
Request and result models for a client patch run.
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .byte_search import is_hex_byte
from .errors import InvalidArgument


class PatchRequest(BaseModel):
    """Inputs of a single patch run."""

    archive: Path
    modulus: str = Field(..., min_length=1, description="Replacement RSA modulus as hex text")
    javconfig_url: Optional[str] = Field(None, description="Endpoint config URL handed to the client")
    world_list_url: Optional[str] = Field(None, description="World list URL handed to the client")
    port: int = Field(..., ge=0, le=0xFFFF)

    @field_validator("modulus")
    @classmethod
    def _modulus_is_hex(cls, value: str) -> str:
        value = value.strip()
        if not value or not all(is_hex_byte(b) for b in value.encode("utf-8")):
            raise ValueError("modulus must be a non-empty string of hex digits")
        return value

    @classmethod
    def build(cls, **kwargs) -> "PatchRequest":
        """Validate keyword arguments, reporting failures as :class:`InvalidArgument`."""
        try:
            return cls.model_validate(kwargs)
        except ValidationError as exc:
            raise InvalidArgument(f"Invalid patch request: {exc}", pass_name="validate") from exc


class PatchResult(BaseModel):
    """Outcome of a successful patch run."""

    old_modulus: str
    patched_path: Path
    modulus_entry: str
    endpoint_entry: str
    port_entry: str
    javconfig_url: Optional[str] = None
    world_list_url: Optional[str] = None
    dry_run: bool = False
    summary_lines: List[str] = Field(default_factory=list)

    @property
    def written(self) -> bool:
        return not self.dry_run

    @property
    def changed_entries(self) -> List[str]:
        return sorted({self.modulus_entry, self.endpoint_entry, self.port_entry})
