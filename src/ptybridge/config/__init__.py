"""Configuration — Pydantic model for ptybridge settings."""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(*names: str) -> bool | None:
    """Return the first set env var among ``names`` as a bool, else None."""
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip():
            return value.strip().lower() in _TRUTHY
    return None


class PtyBridgeConfig(BaseModel):
    """Top-level ptybridge configuration."""

    debug: bool = Field(
        default=False,
        description="Emit debug diagnostics for provider loading and fallback",
    )
    force_fallback: bool = Field(
        default=False,
        description="Skip every native provider and always use the fallback adapter",
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> PtyBridgeConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            PTYBRIDGE_DEBUG           - Enable debug diagnostics (PTY_DEBUG also accepted)
            PTYBRIDGE_FORCE_FALLBACK  - Never load a native provider
        """
        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        debug = _env_flag("PTYBRIDGE_DEBUG", "PTY_DEBUG")
        if debug is not None:
            config_data["debug"] = debug

        force_fallback = _env_flag("PTYBRIDGE_FORCE_FALLBACK")
        if force_fallback is not None:
            config_data["force_fallback"] = force_fallback

        return cls.model_validate(config_data)
