"""Pydantic models for mirror layer configuration."""

from __future__ import annotations

from dbgmirror.core.types.config import (
    DisplayConfig,
    FrameConfig,
    MirrorConfig,
    ProtocolConfig,
    configure_logging,
    load_config,
)

__all__ = [
    "DisplayConfig",
    "FrameConfig",
    "MirrorConfig",
    "ProtocolConfig",
    "configure_logging",
    "load_config",
]
