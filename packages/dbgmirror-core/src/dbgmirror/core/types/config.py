from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProtocolConfig(BaseModel):
    """JSON protocol configuration."""

    max_string_length: int = Field(default=80, ge=1)
    """Strings longer than this are truncated in protocol messages and text."""

    include_details: bool = True
    """Default for serializers made without an explicit ``details`` flag."""


class FrameConfig(BaseModel):
    """Stack frame rendering configuration."""

    include_locals: bool = False
    index_width: int = Field(default=2, ge=1)


class DisplayConfig(BaseModel):
    """Console display configuration."""

    max_properties: int = Field(default=50, ge=0)
    show_handles: bool = True


class MirrorConfig(BaseModel):
    """Top-level dbgmirror configuration."""

    protocol: ProtocolConfig = ProtocolConfig()
    frame: FrameConfig = FrameConfig()
    display: DisplayConfig = DisplayConfig()
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return level


def load_config(path: Optional[str] = None) -> MirrorConfig:
    """Load configuration from a dbgmirror.toml file, falling back to defaults.

    Uses ``tomllib`` on Python 3.11+ and ``tomli`` on older versions.
    """

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib  # type: ignore[no-redef]

    config_path = Path(path) if path else Path("dbgmirror.toml")

    if not config_path.exists():
        return MirrorConfig()

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    return MirrorConfig(**raw)


def configure_logging(config: MirrorConfig) -> None:
    """Apply ``config.log_level`` to the ``dbgmirror`` loggers."""
    logging.basicConfig()
    logging.getLogger("dbgmirror").setLevel(config.log_level)
