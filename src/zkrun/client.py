"""
Client-side submission builder.

Produces the input record the guest consumes:

1. simulate a GPS run (or bring your own samples)
2. build the private blob binding the run
3. sign SHA-256(blob) with a secp256k1 key (r || s || v, v in {27, 28})
4. encode everything as the integer-keyed CBOR record

Floats are fine here; only the guest has to be deterministic.
"""
from __future__ import annotations

import math
import secrets
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from coincurve import PrivateKey

from zkrun.codec import encode_run_input, encode_value
from zkrun.config import ClientDefaults
from zkrun.crypto import address_from_pubkey, sha256
from zkrun.model import RunInput, Sample
from zkrun.policy import MICRO_DEGREES

METERS_PER_DEG_LAT = 111_320
ETHEREUM_V_OFFSET = 27
BLOB_NOTE = "ZKRun private run blob"


@dataclass(frozen=True)
class SimulatedRun:
    gps: Tuple[Sample, ...]
    start: int
    end: int
    total_meters: float


@dataclass(frozen=True)
class Submission:
    """Everything a prover needs, plus what a verifier will expect back."""

    input_bytes: bytes
    run: RunInput
    blob_hash: bytes
    elapsed_sec: int
    signer_address: bytes


def _to_micro(degrees: float) -> int:
    return int(round(degrees * MICRO_DEGREES))


def simulate_run(
    *,
    start_time: Optional[int] = None,
    duration_sec: int = 2400,
    interval_sec: int = 300,
    pace_mps: float = 3.0,
    start_lat: float = 37.7749,
    start_lon: float = -122.4194,
) -> SimulatedRun:
    """Straight line due east at a constant pace, one fix every interval_sec."""
    if duration_sec <= 0 or interval_sec <= 0:
        raise ValueError("duration_sec and interval_sec must be positive")
    if start_time is None:
        start_time = int(time.time())

    meters_per_deg_lon = math.cos(math.radians(start_lat)) * METERS_PER_DEG_LAT
    deg_lon_per_sec = pace_mps / meters_per_deg_lon
    lat_micro = _to_micro(start_lat)

    offsets: List[int] = list(range(0, duration_sec, interval_sec)) + [duration_sec]
    samples = tuple(
        Sample(
            t=start_time + offset,
            lat_microdeg=lat_micro,
            lon_microdeg=_to_micro(start_lon + deg_lon_per_sec * offset),
        )
        for offset in offsets
    )
    return SimulatedRun(
        gps=samples,
        start=start_time,
        end=start_time + duration_sec,
        total_meters=pace_mps * duration_sec,
    )


def build_blob(
    start: int,
    end: int,
    *,
    note: str = BLOB_NOTE,
    created_at: Optional[int] = None,
    nonce: Optional[str] = None,
) -> bytes:
    """CBOR metadata binding the run. Kept private; only its hash is public."""
    payload = {
        "note": note,
        "created_at": int(time.time()) if created_at is None else created_at,
        "start": start,
        "end": end,
        "nonce": nonce if nonce is not None else "0x" + secrets.token_hex(16),
    }
    return encode_value(payload)


def public_key_bytes(private_key: PrivateKey) -> bytes:
    return private_key.public_key.format(compressed=False)


def sign_sha256_blob(private_key: PrivateKey, blob: bytes) -> bytes:
    """ECDSA over SHA-256(blob); returns r || s || v (Ethereum-style v)."""
    recoverable = private_key.sign_recoverable(sha256(blob), hasher=None)
    return recoverable[:64] + bytes([recoverable[64] + ETHEREUM_V_OFFSET])


def build_run_input(
    gps: Sequence[Sample],
    *,
    start: int,
    end: int,
    blob: bytes,
    private_key: PrivateKey,
    max_elapsed_sec: int,
    max_speed_mps: int,
) -> RunInput:
    return RunInput(
        gps=tuple(gps),
        start_time=start,
        end_time=end,
        max_elapsed_sec=max_elapsed_sec,
        max_speed_mps=max_speed_mps,
        blob=blob,
        sig=sign_sha256_blob(private_key, blob),
        pubkey=public_key_bytes(private_key),
    )


def build_submission(
    private_key: PrivateKey,
    *,
    defaults: Optional[ClientDefaults] = None,
    start_time: Optional[int] = None,
    created_at: Optional[int] = None,
    nonce: Optional[str] = None,
) -> Submission:
    """Simulate, build the blob, sign and encode one submission."""
    defaults = defaults or ClientDefaults.from_env()
    sim = simulate_run(
        start_time=start_time,
        duration_sec=defaults.duration_sec,
        interval_sec=defaults.interval_sec,
        pace_mps=defaults.pace_mps,
        start_lat=defaults.start_lat,
        start_lon=defaults.start_lon,
    )
    blob = build_blob(sim.start, sim.end, created_at=created_at, nonce=nonce)
    run = build_run_input(
        sim.gps,
        start=sim.start,
        end=sim.end,
        blob=blob,
        private_key=private_key,
        max_elapsed_sec=defaults.max_elapsed_sec,
        max_speed_mps=defaults.max_speed_mps,
    )
    return Submission(
        input_bytes=encode_run_input(run),
        run=run,
        blob_hash=sha256(blob),
        elapsed_sec=sim.end - sim.start,
        signer_address=address_from_pubkey(run.pubkey),
    )


__all__ = [
    "SimulatedRun",
    "Submission",
    "simulate_run",
    "build_blob",
    "public_key_bytes",
    "sign_sha256_blob",
    "build_run_input",
    "build_submission",
]
