"""
zkrun configuration.

Data directory:   $ZKRUN_HOME, else ~/.zkrun/
Client defaults:  ClientDefaults, overridable through ZKRUN_* environment
                  variables (see ClientDefaults.from_env).

Nothing here affects the guest; its policy lives in zkrun.policy.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_HOME = "ZKRUN_HOME"
ENV_MAX_ELAPSED_MIN = "ZKRUN_MAX_ELAPSED_MIN"
ENV_MAX_SPEED_MPS = "ZKRUN_MAX_SPEED_MPS"
ENV_PRIVATE_KEY = "ZKRUN_PRIVATE_KEY"

_DEFAULT_HOME = ".zkrun"


def zkrun_home() -> Path:
    """Return the zkrun data directory."""
    override = os.environ.get(ENV_HOME)
    if override:
        return Path(override).expanduser()
    return Path.home() / _DEFAULT_HOME


class ClientDefaults(BaseModel):
    """Defaults for building a simulated submission."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_speed_mps: int = Field(default=12, ge=0, le=(1 << 32) - 1)
    max_elapsed_min: int = Field(default=120, ge=0)
    start_lat: float = Field(default=37.7749, ge=-90.0, le=90.0)
    start_lon: float = Field(default=-122.4194, ge=-180.0, le=180.0)
    duration_sec: int = Field(default=2400, gt=0)
    interval_sec: int = Field(default=300, gt=0)
    pace_mps: float = Field(default=3.0, gt=0.0)

    @property
    def max_elapsed_sec(self) -> int:
        return self.max_elapsed_min * 60

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientDefaults":
        """Apply ZKRUN_* overrides; pydantic coerces and validates the raw strings."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, str] = {}
        if env.get(ENV_MAX_ELAPSED_MIN):
            overrides["max_elapsed_min"] = env[ENV_MAX_ELAPSED_MIN]
        if env.get(ENV_MAX_SPEED_MPS):
            overrides["max_speed_mps"] = env[ENV_MAX_SPEED_MPS]
        return cls(**overrides)


__all__ = [
    "ENV_HOME",
    "ENV_MAX_ELAPSED_MIN",
    "ENV_MAX_SPEED_MPS",
    "ENV_PRIVATE_KEY",
    "ClientDefaults",
    "zkrun_home",
]
