"""
models.py - Shared Data Models
Common: Shared utilities and models
"""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class ZKProof:
    """The only artifact that leaves the commitment engine."""
    proof: str          # base64(iv || AES-256-GCM ciphertext+tag)
    public_hash: str    # 64 hex chars
    commitment: str     # 64 hex chars

    def to_dict(self) -> dict:
        return {
            "proof": self.proof,
            "publicHash": self.public_hash,
            "commitment": self.commitment,
        }

    @staticmethod
    def from_dict(d: dict) -> "ZKProof":
        return ZKProof(
            proof=d["proof"],
            public_hash=d["publicHash"],
            commitment=d["commitment"],
        )


@dataclass
class ProofPayload:
    """Plaintext sealed inside ZKProof.proof."""
    commitment: str
    public_hash: str
    timestamp: int       # milliseconds since epoch
    obscured_nonce: str  # SHA-256 of the nonce, never the nonce itself

    def to_dict(self) -> dict:
        return {
            "commitment": self.commitment,
            "publicHash": self.public_hash,
            "timestamp": self.timestamp,
            "obscuredNonce": self.obscured_nonce,
        }

    @staticmethod
    def from_dict(d: dict) -> "ProofPayload":
        return ProofPayload(
            commitment=d["commitment"],
            public_hash=d["publicHash"],
            timestamp=int(d["timestamp"]),
            obscured_nonce=d["obscuredNonce"],
        )


@dataclass
class User:
    id: str
    email: str
    public_hash: str

    def to_dict(self):
        return asdict(self)

    @staticmethod
    def from_dict(d: dict) -> "User":
        return User(id=d["id"], email=d["email"], public_hash=d["public_hash"])


@dataclass
class StoredCredential:
    """Locally cached credential material, lets logins reuse the same salt."""
    email: str
    public_hash: str
    password_hash: str
    user_id: Optional[str] = None

    def to_dict(self):
        return asdict(self)

    @staticmethod
    def from_dict(d: dict) -> "StoredCredential":
        return StoredCredential(**d)
