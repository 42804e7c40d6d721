"""
Local secp256k1 key management for zkrun submissions.

Keys are stored at $ZKRUN_HOME/keys/{signer_id}.key (32 raw secret bytes)
with the uncompressed public point beside it in {signer_id}.pub.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from coincurve import PrivateKey, PublicKey
from eth_utils import to_checksum_address

from zkrun.crypto import address_from_pubkey


DEFAULT_SIGNER_ID = "zkrun-local"
ACTIVE_SIGNER_FILE = ".active_signer"


class ZkrunKeyStore:
    """File-based secp256k1 key store for signing run blobs."""

    def __init__(self, keys_dir: Optional[Path] = None):
        if keys_dir is None:
            from zkrun.config import zkrun_home
            keys_dir = zkrun_home() / "keys"
        self.keys_dir = Path(keys_dir)

    def _key_path(self, signer_id: str) -> Path:
        return self.keys_dir / f"{signer_id}.key"

    def _pub_path(self, signer_id: str) -> Path:
        return self.keys_dir / f"{signer_id}.pub"

    def _active_signer_path(self) -> Path:
        return self.keys_dir / ACTIVE_SIGNER_FILE

    def has_key(self, signer_id: str) -> bool:
        return self._key_path(signer_id).exists() and self._pub_path(signer_id).exists()

    def _write_key(self, signer_id: str, sk: PrivateKey) -> PrivateKey:
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        key_path = self._key_path(signer_id)
        key_path.write_bytes(sk.secret)
        key_path.chmod(0o600)
        self._pub_path(signer_id).write_bytes(sk.public_key.format(compressed=False))
        return sk

    def generate_key(self, signer_id: str = DEFAULT_SIGNER_ID) -> PrivateKey:
        """Generate and persist a new secp256k1 signing key."""
        return self._write_key(signer_id, PrivateKey())

    def import_key(self, signer_id: str, secret_hex: str) -> PrivateKey:
        """Persist an existing secret (hex, optional 0x prefix)."""
        if self.has_key(signer_id):
            raise ValueError(f"Signer already exists: {signer_id}")
        clean = secret_hex[2:] if secret_hex.startswith("0x") else secret_hex
        return self._write_key(signer_id, PrivateKey(bytes.fromhex(clean)))

    def ensure_key(self, signer_id: str = DEFAULT_SIGNER_ID) -> PrivateKey:
        """Return existing key or generate a new one."""
        if self.has_key(signer_id):
            return self.get_private_key(signer_id)
        return self.generate_key(signer_id)

    def get_private_key(self, signer_id: str = DEFAULT_SIGNER_ID) -> PrivateKey:
        return PrivateKey(self._key_path(signer_id).read_bytes())

    def get_public_key(self, signer_id: str = DEFAULT_SIGNER_ID) -> bytes:
        """Return the 65-byte uncompressed public key."""
        pub_bytes = self._pub_path(signer_id).read_bytes()
        return PublicKey(pub_bytes).format(compressed=False)

    def delete_key(self, signer_id: str) -> bool:
        """Delete a signer's key and pubkey files. Returns True if deleted."""
        deleted = False
        for path in (self._key_path(signer_id), self._pub_path(signer_id)):
            if path.exists():
                path.unlink()
                deleted = True
        marker = self._active_signer_path()
        if marker.exists() and marker.read_text().strip() == signer_id:
            marker.unlink()
        return deleted

    def list_signers(self) -> List[str]:
        """List known signer IDs (sorted) that have both key and pubkey files."""
        if not self.keys_dir.exists():
            return []
        return [
            key_path.stem
            for key_path in sorted(self.keys_dir.glob("*.key"))
            if self.has_key(key_path.stem)
        ]

    def signer_address(self, signer_id: str = DEFAULT_SIGNER_ID) -> str:
        """Return the checksummed Keccak identity the guest will report."""
        return to_checksum_address(address_from_pubkey(self.get_public_key(signer_id)))

    def get_active_signer(self) -> str:
        """Active signer: marker file, then the default ID, then the first key."""
        marker = self._active_signer_path()
        if marker.exists():
            signer_id = marker.read_text().strip()
            if signer_id and self.has_key(signer_id):
                return signer_id

        if self.has_key(DEFAULT_SIGNER_ID):
            return DEFAULT_SIGNER_ID

        signers = self.list_signers()
        if signers:
            return signers[0]
        return DEFAULT_SIGNER_ID

    def set_active_signer(self, signer_id: str) -> None:
        """Set active signer ID. Signer must already exist."""
        if not self.has_key(signer_id):
            raise ValueError(f"Signer not found: {signer_id}")
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        self._active_signer_path().write_text(f"{signer_id}\n")

    def signer_info(self) -> List[Dict[str, Any]]:
        active = self.get_active_signer()
        return [
            {
                "signer_id": signer_id,
                "active": signer_id == active,
                "address": self.signer_address(signer_id),
                "key_path": str(self._key_path(signer_id)),
            }
            for signer_id in self.list_signers()
        ]


def get_default_keystore() -> ZkrunKeyStore:
    """Return the keystore under the configured data directory."""
    return ZkrunKeyStore()


__all__ = [
    "ZkrunKeyStore",
    "get_default_keystore",
    "DEFAULT_SIGNER_ID",
    "ACTIVE_SIGNER_FILE",
]
