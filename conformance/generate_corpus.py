#!/usr/bin/env python3
"""
Generate the zkrun Conformance Corpus.

Creates canonical guest input records with known verification outcomes:
  - 3 accepted records (exit 0, expected journal bytes pinned)
  - 5 rejected records (exit 2, journal 0x00)

Run from the repo root:
    python conformance/generate_corpus.py

Output: conformance/corpus_v1/inputs/<name>.cbor
        conformance/corpus_v1/expected_outcomes.json
"""
from __future__ import annotations

import dataclasses
import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List

from coincurve import PrivateKey

from zkrun import __version__
from zkrun.client import build_blob, build_run_input, simulate_run
from zkrun.codec import encode_run_input
from zkrun.crypto import address_from_pubkey
from zkrun.model import RunInput, Sample

CORPUS_DIR = Path(__file__).parent / "corpus_v1"
INPUTS_DIR = CORPUS_DIR / "inputs"

# Fixed timestamp for deterministic corpus generation (2026-01-15T12:00:00Z)
_CORPUS_TS = 1_768_478_400
# Fixed 32-byte secp256k1 secret derived from SHA-256("zkrun-corpus-v1-signer-key-seed")
# so any fresh environment produces the exact same signer and signatures.
#
# WARNING: This key is TEST-ONLY. The seed is public.
_CORPUS_KEY_SEED = hashlib.sha256(b"zkrun-corpus-v1-signer-key-seed").digest()


def _blob(name: str, start: int, end: int) -> bytes:
    return build_blob(start, end, created_at=_CORPUS_TS, nonce=f"corpus:{name}")


def _signed(name: str, gps, sk: PrivateKey, **policy: int) -> RunInput:
    start, end = gps[0].t, gps[-1].t
    return build_run_input(
        gps,
        start=start,
        end=end,
        blob=_blob(name, start, end),
        private_key=sk,
        max_elapsed_sec=policy.get("max_elapsed_sec", 7200),
        max_speed_mps=policy.get("max_speed_mps", 12),
    )


def _expected_journal(run: RunInput) -> str:
    return (
        b"\x01"
        + (run.gps[-1].t - run.gps[0].t).to_bytes(4, "big")
        + hashlib.sha256(run.blob).digest()
        + address_from_pubkey(run.pubkey)
    ).hex()


def _write(name: str, data: bytes) -> Path:
    path = INPUTS_DIR / f"{name}.cbor"
    path.write_bytes(data)
    return path


def generate() -> Dict[str, Any]:
    """Generate all corpus inputs. Returns expected_outcomes."""
    INPUTS_DIR.mkdir(parents=True, exist_ok=True)
    sk = PrivateKey(_CORPUS_KEY_SEED)
    entries: List[Dict[str, Any]] = []

    def _accept(name: str, description: str, run: RunInput) -> None:
        _write(name, encode_run_input(run))
        entries.append({
            "name": name,
            "description": description,
            "expect_exit": 0,
            "expect_journal": _expected_journal(run),
        })

    def _reject(name: str, description: str, data: bytes) -> None:
        _write(name, data)
        entries.append({
            "name": name,
            "description": description,
            "expect_exit": 2,
            "expect_journal": "00",
        })

    sim = simulate_run(start_time=_CORPUS_TS)

    # --- accept_01: default simulated run ---
    print("Generating accept_01: simulated run...")
    good = _signed("accept_01", sim.gps, sk)
    _accept("accept_01", "Simulated 40 minute run due east, default policy", good)

    # --- accept_02: two fixes on the meridian ---
    print("Generating accept_02: meridian segment...")
    gps = [Sample(_CORPUS_TS, 0, 0), Sample(_CORPUS_TS + 600, 45_000, 0)]
    _accept("accept_02", "Two fixes 5003 m apart in 600 s", _signed("accept_02", gps, sk))

    # --- accept_03: speed exactly at the limit ---
    print("Generating accept_03: speed at limit...")
    _accept(
        "accept_03",
        "Meridian segment at floor(5003/600) == max_speed_mps",
        _signed("accept_03", gps, sk, max_speed_mps=8),
    )

    # --- reject_01: one bit flipped in the signature ---
    print("Generating reject_01: tampered signature...")
    sig = bytearray(good.sig)
    sig[10] ^= 0x01
    _reject(
        "reject_01",
        "Signature bit flip",
        encode_run_input(dataclasses.replace(good, sig=bytes(sig))),
    )

    # --- reject_02: blob swapped after signing ---
    print("Generating reject_02: swapped blob...")
    _reject(
        "reject_02",
        "Blob replaced after signing",
        encode_run_input(dataclasses.replace(good, blob=_blob("other", good.start_time, good.end_time))),
    )

    # --- reject_03: speed one over the limit ---
    print("Generating reject_03: speed over limit...")
    _reject(
        "reject_03",
        "Meridian segment with max_speed_mps one below floor(5003/600)",
        encode_run_input(_signed("reject_03", gps, sk, max_speed_mps=7)),
    )

    # --- reject_04: too short ---
    print("Generating reject_04: under minimum distance...")
    short = [Sample(_CORPUS_TS, 0, 0), Sample(_CORPUS_TS + 600, 40_000, 0)]
    _reject("reject_04", "Total distance below 5000 m", encode_run_input(_signed("reject_04", short, sk)))

    # --- reject_05: truncated record ---
    print("Generating reject_05: truncated record...")
    data = encode_run_input(good)
    _reject("reject_05", "Record truncated by one byte", data[:-1])

    outcomes = {
        "corpus_version": "1.0",
        "zkrun_version": __version__,
        "generated_at": _CORPUS_TS,
        "signer_address": "0x" + address_from_pubkey(good.pubkey).hex(),
        "entries": entries,
    }
    outcomes_path = CORPUS_DIR / "expected_outcomes.json"
    outcomes_path.write_text(json.dumps(outcomes, indent=2) + "\n")
    print(f"\nWrote {len(entries)} entries to {outcomes_path}")

    return outcomes


if __name__ == "__main__":
    generate()
