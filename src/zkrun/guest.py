"""
The zkrun guest: one input buffer in, one journal out.

Pipeline:
  decode -> shape checks -> signature/identity -> trace walk -> journal

Every stage is an early-return guard. Whatever fails, the journal is the
single byte 0x00; the stage that fired is only ever visible in DEBUG logs.
Given the same input bytes the guest always writes the same output bytes.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from zkrun.codec import DecodeError, decode_run_input
from zkrun.crypto import Keccak256, SignatureVerifier, keccak256, sha256, verify_signature
from zkrun.journal import REJECTED_JOURNAL, encode_journal, saturate_u32
from zkrun.model import REJECTED, Accepted, RunInput, VerificationOutcome
from zkrun.trace import validate_trace

logger = logging.getLogger(__name__)


def _reject(stage: str) -> VerificationOutcome:
    logger.debug("run rejected at stage=%s", stage)
    return REJECTED


def evaluate(
    run: RunInput,
    *,
    verifier: Optional[SignatureVerifier] = None,
    hasher: Keccak256 = keccak256,
) -> VerificationOutcome:
    """Apply every acceptance rule to a decoded run."""
    if len(run.gps) < 2:
        return _reject("sample_count")
    if not run.start_time <= run.end_time:
        return _reject("time_window")

    signer = verify_signature(run.blob, run.sig, run.pubkey, verifier=verifier, hasher=hasher)
    if signer is None:
        return _reject("signature")
    blob_hash = sha256(run.blob)

    summary = validate_trace(
        run.gps,
        max_speed_mps=run.max_speed_mps,
        max_elapsed_sec=run.max_elapsed_sec,
    )
    if summary is None:
        return _reject("trace")

    logger.info(
        "run accepted: samples=%d elapsed=%ds distance=%dm signer=0x%s",
        len(run.gps),
        summary.elapsed_seconds,
        summary.total_distance_m,
        signer.hex(),
    )
    return Accepted(
        elapsed_seconds=saturate_u32(summary.elapsed_seconds),
        blob_hash=blob_hash,
        signer_address=signer,
    )


def verify_run(
    input_bytes: bytes,
    *,
    verifier: Optional[SignatureVerifier] = None,
    hasher: Keccak256 = keccak256,
) -> bytes:
    """Decode, evaluate and encode. Always returns a journal."""
    try:
        run = decode_run_input(input_bytes)
    except DecodeError as exc:
        logger.debug("run rejected at stage=decode (%s)", exc)
        return REJECTED_JOURNAL
    return encode_journal(evaluate(run, verifier=verifier, hasher=hasher))


def run_guest(read_input: Callable[[], bytes], write_output: Callable[[bytes], None]) -> bytes:
    """Host boundary: exactly one read and one write per invocation."""
    journal = verify_run(read_input())
    write_output(journal)
    return journal


__all__ = [
    "evaluate",
    "verify_run",
    "run_guest",
]
