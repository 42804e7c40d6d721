"""
zkrun: deterministic verification of signed GPS runs.

- Decode a compact CBOR input record (samples, policy, blob, signature, key)
- Verify secp256k1 ECDSA over SHA-256(blob) and derive the Keccak signer address
- Walk the trace with Q32.32 fixed-point geodesy (bit-exact, no floats)
- Emit a 57-byte journal on acceptance, a single 0x00 byte otherwise
"""

__version__ = "0.1.0"

from .guest import evaluate, run_guest, verify_run
from .journal import decode_journal, encode_journal
from .model import Accepted, Rejected, RunInput, Sample

__all__ = [
    "__version__",
    "Accepted",
    "Rejected",
    "RunInput",
    "Sample",
    "evaluate",
    "run_guest",
    "verify_run",
    "encode_journal",
    "decode_journal",
]
