"""
Journal encoding.

Accepted journal (57 bytes):

    offset  len  field
    0       1    0x01
    1       4    elapsed seconds, big-endian u32 (saturated)
    5       32   SHA-256(blob)
    37      20   signer address

Rejected journal: the single byte 0x00, nothing after it.
"""
from __future__ import annotations

from zkrun.model import REJECTED, Accepted, VerificationOutcome
from zkrun.policy import (
    ADDRESS_LEN,
    DIGEST_LEN,
    JOURNAL_ACCEPTED,
    JOURNAL_ACCEPTED_LEN,
    JOURNAL_REJECTED,
    U32_MAX,
)

REJECTED_JOURNAL = bytes([JOURNAL_REJECTED])


class JournalError(ValueError):
    """Raised when a byte string is not a journal."""


def saturate_u32(value: int) -> int:
    return min(max(value, 0), U32_MAX)


def encode_journal(outcome: VerificationOutcome) -> bytes:
    if not isinstance(outcome, Accepted):
        return REJECTED_JOURNAL
    if len(outcome.blob_hash) != DIGEST_LEN or len(outcome.signer_address) != ADDRESS_LEN:
        raise ValueError("accepted outcome has malformed hash or address")
    return (
        bytes([JOURNAL_ACCEPTED])
        + saturate_u32(outcome.elapsed_seconds).to_bytes(4, "big")
        + bytes(outcome.blob_hash)
        + bytes(outcome.signer_address)
    )


def decode_journal(journal: bytes) -> VerificationOutcome:
    """Read a journal back into an outcome. Check the length before the fields."""
    if journal == REJECTED_JOURNAL:
        return REJECTED
    if len(journal) != JOURNAL_ACCEPTED_LEN or journal[0] != JOURNAL_ACCEPTED:
        raise JournalError(f"not a journal ({len(journal)} bytes)")
    return Accepted(
        elapsed_seconds=int.from_bytes(journal[1:5], "big"),
        blob_hash=bytes(journal[5:5 + DIGEST_LEN]),
        signer_address=bytes(journal[5 + DIGEST_LEN:]),
    )


__all__ = [
    "JournalError",
    "REJECTED_JOURNAL",
    "saturate_u32",
    "encode_journal",
    "decode_journal",
]
