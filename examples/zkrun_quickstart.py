#!/usr/bin/env python3
"""
zkrun Quickstart Example

Demonstrates the complete flow:
1. Simulate a GPS run and sign its private blob
2. Run the guest over the encoded input record
3. Decode the journal a verifier would see
4. Break a rule or tamper with the record and watch it collapse to 0x00

Run:
    pip install -e .
    python examples/zkrun_quickstart.py

Or with the CLI:
    zkrun simulate --out input.cbor
    zkrun verify input.cbor --out journal.bin
    zkrun journal journal.bin
"""
from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def run_demo(verbose: bool = False) -> None:
    from coincurve import PrivateKey

    from zkrun.client import build_submission
    from zkrun.codec import encode_run_input
    from zkrun.config import ClientDefaults
    from zkrun.guest import verify_run
    from zkrun.journal import decode_journal

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("ZKRUN QUICKSTART DEMO")
    print("=" * 60)

    sk = PrivateKey()
    submission = build_submission(sk, defaults=ClientDefaults())
    print(f"\n1. Simulated run: {len(submission.run.gps)} fixes over {submission.elapsed_sec}s")
    print(f"   Input record: {len(submission.input_bytes)} bytes")
    print(f"   Signer: 0x{submission.signer_address.hex()}")

    journal = verify_run(submission.input_bytes)
    print(f"\n2. Guest journal ({len(journal)} bytes): {journal.hex()}")

    outcome = decode_journal(journal)
    print("\n3. Decoded journal:")
    print(f"   Elapsed:   {outcome.elapsed_seconds}s")
    print(f"   Blob hash: {outcome.blob_hash.hex()}")
    print(f"   Signer:    0x{outcome.signer_address.hex()}")

    strict = dataclasses.replace(submission.run, max_speed_mps=1)
    print(f"\n4. Same run under a 1 m/s limit: journal = {verify_run(encode_run_input(strict)).hex()}")

    forged = dataclasses.replace(submission.run, blob=submission.run.blob + b"!")
    print(f"   Blob altered after signing: journal = {verify_run(encode_run_input(forged)).hex()}")
    print("   The journal never says why.")


if __name__ == "__main__":
    run_demo(verbose="--verbose" in sys.argv)
