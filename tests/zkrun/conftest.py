"""Shared fixtures: a fixed secp256k1 signer and signed run builders."""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable, Sequence

import pytest
from coincurve import PrivateKey

from zkrun.client import build_run_input
from zkrun.model import RunInput, Sample

TEST_SECRET = hashlib.sha256(b"zkrun-test-signer").digest()

# Two fixes 0.045 degrees apart on the meridian, ten minutes apart.
SCENARIO_GPS = (
    Sample(t=0, lat_microdeg=0, lon_microdeg=0),
    Sample(t=600, lat_microdeg=45_000, lon_microdeg=0),
)
SCENARIO_BLOB = b"zkrun scenario blob"


@pytest.fixture
def signer_key() -> PrivateKey:
    return PrivateKey(TEST_SECRET)


@pytest.fixture
def make_run(signer_key: PrivateKey) -> Callable[..., RunInput]:
    """Build a signed RunInput; keyword arguments override the scenario."""

    def _make(
        gps: Sequence[Sample] = SCENARIO_GPS,
        *,
        blob: bytes = SCENARIO_BLOB,
        start: int = 0,
        end: int = 600,
        max_elapsed_sec: int = 3600,
        max_speed_mps: int = 12,
    ) -> RunInput:
        return build_run_input(
            gps,
            start=start,
            end=end,
            blob=blob,
            private_key=signer_key,
            max_elapsed_sec=max_elapsed_sec,
            max_speed_mps=max_speed_mps,
        )

    return _make


@pytest.fixture
def zkrun_home_tmp(tmp_path: Path, monkeypatch) -> Path:
    """Route the zkrun data directory to a temp dir."""
    home = tmp_path / ".zkrun"
    monkeypatch.setenv("ZKRUN_HOME", str(home))
    monkeypatch.delenv("ZKRUN_PRIVATE_KEY", raising=False)
    monkeypatch.delenv("ZKRUN_MAX_ELAPSED_MIN", raising=False)
    monkeypatch.delenv("ZKRUN_MAX_SPEED_MPS", raising=False)
    return home
