"""
Signature and signer-identity verification.

The verifier is written against two narrow capabilities:

  SignatureVerifier.verify(digest, signature, public_key) -> bool
  keccak256(data) -> 32 bytes

The default capabilities are backed by coincurve (libsecp256k1) and
eth_utils. Verification is by public key, never by recovery: the 65th
signature byte is carried on the wire and ignored here.
"""
from __future__ import annotations

import hashlib
from typing import Callable, Optional, Protocol

from coincurve import PublicKey
from coincurve.ecdsa import cdata_to_der, deserialize_compact
from eth_utils import keccak

from zkrun.policy import (
    ADDRESS_LEN,
    COMPACT_SIG_LEN,
    DIGEST_LEN,
    PUBKEY_LEN,
    SEC1_UNCOMPRESSED_TAG,
    SIG_LEN,
)

Keccak256 = Callable[[bytes], bytes]


class SignatureVerifier(Protocol):
    """ECDSA verification capability over a pre-hashed 32-byte digest."""

    def verify(self, digest: bytes, signature: bytes, public_key: bytes) -> bool:
        ...


class Secp256k1Verifier:
    """secp256k1 ECDSA via coincurve.

    Takes a 64-byte compact r || s signature and a SEC1 public key. libsecp256k1
    only accepts low-s signatures.
    """

    def verify(self, digest: bytes, signature: bytes, public_key: bytes) -> bool:
        if len(digest) != DIGEST_LEN:
            return False
        try:
            key = PublicKey(public_key)
            der = cdata_to_der(deserialize_compact(signature))
            return bool(key.verify(der, digest, hasher=None))
        except Exception:  # coincurve raises ValueError (or asserts) on unparsable input
            return False


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (the pre-standard SHA-3 padding used by Ethereum)."""
    return keccak(primitive=bytes(data))


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


DEFAULT_VERIFIER: SignatureVerifier = Secp256k1Verifier()


def address_from_pubkey(pubkey: bytes, hasher: Keccak256 = keccak256) -> bytes:
    """Last 20 bytes of Keccak-256 over the X || Y coordinates of the key."""
    if len(pubkey) != PUBKEY_LEN or pubkey[0] != SEC1_UNCOMPRESSED_TAG:
        raise ValueError("expected a 65-byte uncompressed SEC1 public key")
    return hasher(bytes(pubkey[1:]))[-ADDRESS_LEN:]


def verify_signature(
    blob: bytes,
    sig: bytes,
    pubkey: bytes,
    *,
    verifier: Optional[SignatureVerifier] = None,
    hasher: Keccak256 = keccak256,
) -> Optional[bytes]:
    """Verify sig over SHA-256(blob) under pubkey and return the signer address.

    Returns None on any length, parse or verification failure. Callers get
    no indication of which.
    """
    if len(sig) != SIG_LEN or len(pubkey) != PUBKEY_LEN:
        return None
    if pubkey[0] != SEC1_UNCOMPRESSED_TAG:
        return None
    verifier = verifier or DEFAULT_VERIFIER

    digest = sha256(blob)
    if not verifier.verify(digest, bytes(sig[:COMPACT_SIG_LEN]), bytes(pubkey)):
        return None
    return address_from_pubkey(pubkey, hasher)


__all__ = [
    "Keccak256",
    "SignatureVerifier",
    "Secp256k1Verifier",
    "DEFAULT_VERIFIER",
    "keccak256",
    "sha256",
    "address_from_pubkey",
    "verify_signature",
]
