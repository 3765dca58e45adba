"""
zkp_engine.py - Credential Commitment Engine

Provides:
  - Salted password hashing (PBKDF2-HMAC-SHA256)
  - Public hash derivation (SHA-256 of email || password hash)
  - Hiding commitments over the password hash with a fresh nonce
  - Proof packaging: canonical JSON payload sealed with AES-256-GCM
  - Structural proof verification

NOTE: despite the name this is NOT a zero-knowledge proof system. The "proof"
is a hiding commitment plus an encrypted payload, and verify_proof() is a
structural sanity check only. Nothing here lets a verifier tie the commitment
back to a password.
"""

import base64
import hashlib
import json
import logging
import re
from collections.abc import Mapping
from typing import Callable, Optional, Union

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from common.errors import CryptoOperationError, InvalidInputError
from common.models import ProofPayload, ZKProof
from common.utils import canonical_json, current_timestamp_ms, random_bytes

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────
SALT_LEN     = 16          # 128-bit salt, hex encoded -> 32 chars
KEY_LEN      = 32          # 256-bit derived key
PBKDF2_ITER  = 10_000      # iterations
NONCE_LEN    = 16          # 128-bit commitment nonce
IV_LEN       = 12          # 96-bit GCM IV
DIGEST_HEX_LEN = 64        # SHA-256 hex

PROOF_KEY_INFO = b"zkp-auth/proof-key/v1"

_SALT_RE = re.compile(r"[0-9a-fA-F]{%d}" % (SALT_LEN * 2))
_DIGEST_RE = re.compile(r"[0-9a-fA-F]{%d}" % DIGEST_HEX_LEN)

RandomSource = Callable[[int], bytes]
Clock = Callable[[], int]


def _draw(rng: Optional[RandomSource], n: int) -> bytes:
    source = rng or random_bytes
    try:
        data = source(n)
    except (OSError, NotImplementedError) as exc:
        raise CryptoOperationError(f"Entropy source unavailable: {exc}") from exc
    if not isinstance(data, (bytes, bytearray)) or len(data) != n:
        raise CryptoOperationError(f"Entropy source returned malformed output (wanted {n} bytes)")
    return bytes(data)


def sha256_hex(text: str) -> str:
    """Return the hex-encoded SHA-256 digest of *text* (UTF-8)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def is_digest_hex(value) -> bool:
    return isinstance(value, str) and bool(_DIGEST_RE.fullmatch(value))


# ─────────────────────────────────────────────
# PASSWORD HASH
# ─────────────────────────────────────────────
def split_password_hash(password_hash: str):
    """
    Split ``salt:derivedKey`` into its parts.
    Raises InvalidInputError when the value is not a well-formed password hash.
    """
    if not isinstance(password_hash, str) or password_hash.count(":") != 1:
        raise InvalidInputError("Password hash must have the form 'salt:derivedKey'")
    salt, derived = password_hash.split(":")
    if not _SALT_RE.fullmatch(salt):
        raise InvalidInputError(f"Password hash salt must be {SALT_LEN * 2} hex characters")
    if not _DIGEST_RE.fullmatch(derived):
        raise InvalidInputError(f"Password hash key must be {DIGEST_HEX_LEN} hex characters")
    return salt, derived


def derive_password_hash(password: str, salt: Optional[str] = None, *,
                         rng: Optional[RandomSource] = None) -> str:
    """
    Derive ``salt:derivedKeyHex`` with PBKDF2-HMAC-SHA256.

    If *salt* is None a fresh 128-bit salt is drawn (registration). Pass the
    salt of an existing hash to reproduce it (login). The hex salt string
    itself is the KDF salt.
    """
    if not isinstance(password, str) or not password:
        raise InvalidInputError("Password must be a non-empty string")
    if salt is None:
        salt = _draw(rng, SALT_LEN).hex()
    elif not isinstance(salt, str) or not _SALT_RE.fullmatch(salt):
        raise InvalidInputError(f"Salt must be {SALT_LEN * 2} hex characters")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=salt.encode("utf-8"),
        iterations=PBKDF2_ITER,
    )
    try:
        key = kdf.derive(password.encode("utf-8"))
    except (UnsupportedAlgorithm, ValueError) as exc:
        raise CryptoOperationError(f"Key derivation failed: {exc}") from exc
    return f"{salt}:{key.hex()}"


def derive_public_hash(email: str, password_hash: str) -> str:
    """SHA-256 over ``email + password_hash``. No email normalisation happens here."""
    if not isinstance(email, str) or not email:
        raise InvalidInputError("Email must be a non-empty string")
    split_password_hash(password_hash)
    return sha256_hex(email + password_hash)


# ─────────────────────────────────────────────
# PROOF CIPHER (AES-256-GCM)
# ─────────────────────────────────────────────
def _proof_key(password_hash: str) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=None,
        info=PROOF_KEY_INFO,
    )
    return hkdf.derive(password_hash.encode("utf-8"))


def _seal(plaintext: str, password_hash: str, rng: Optional[RandomSource]) -> str:
    iv = _draw(rng, IV_LEN)
    try:
        ciphertext = AESGCM(_proof_key(password_hash)).encrypt(iv, plaintext.encode("utf-8"), None)
    except (UnsupportedAlgorithm, ValueError, OverflowError) as exc:
        raise CryptoOperationError(f"Proof encryption failed: {exc}") from exc
    return base64.b64encode(iv + ciphertext).decode("ascii")


def open_proof(proof: str, password_hash: str) -> ProofPayload:
    """
    Decrypt a proof string back into its payload.
    Only a holder of the password hash can do this; a wrong hash or a
    tampered proof raises CryptoOperationError (GCM tag check).
    """
    split_password_hash(password_hash)
    if not isinstance(proof, str) or not proof:
        raise InvalidInputError("Proof must be a non-empty string")
    try:
        raw = base64.b64decode(proof, validate=True)
    except ValueError as exc:
        raise InvalidInputError("Proof is not valid base64") from exc
    if len(raw) <= IV_LEN:
        raise InvalidInputError("Proof is too short")

    try:
        plaintext = AESGCM(_proof_key(password_hash)).decrypt(raw[:IV_LEN], raw[IV_LEN:], None)
    except InvalidTag as exc:
        raise CryptoOperationError("Proof authentication failed (wrong key or tampered data)") from exc
    return ProofPayload.from_dict(json.loads(plaintext.decode("utf-8")))


# ─────────────────────────────────────────────
# PROOF GENERATION
# ─────────────────────────────────────────────
def generate_proof(email: str, password: str, existing_password_hash: Optional[str] = None, *,
                   rng: Optional[RandomSource] = None,
                   clock: Optional[Clock] = None) -> ZKProof:
    """
    Build a ZKProof for (email, password).

    Blocking: the PBKDF2 step is deliberately slow, do not call this from a
    context that must stay responsive.

    *existing_password_hash* is reused as-is (no new salt), which keeps
    ``public_hash`` stable across logins. *rng* and *clock* replace the OS
    entropy source and the wall clock, for reproducible tests.
    """
    if not isinstance(email, str) or not email:
        raise InvalidInputError("Email must be a non-empty string")
    if not isinstance(password, str) or not password:
        raise InvalidInputError("Password must be a non-empty string")

    logger.info("Generating proof for authentication ...")

    if existing_password_hash is not None:
        split_password_hash(existing_password_hash)
        password_hash = existing_password_hash
    else:
        password_hash = derive_password_hash(password, rng=rng)

    public_hash = derive_public_hash(email, password_hash)

    nonce = _draw(rng, NONCE_LEN).hex()
    commitment = sha256_hex(password_hash + nonce)

    payload = ProofPayload(
        commitment=commitment,
        public_hash=public_hash,
        timestamp=int((clock or current_timestamp_ms)()),
        obscured_nonce=sha256_hex(nonce),
    )
    proof = _seal(canonical_json(payload.to_dict()), password_hash, rng)

    logger.info(f"Proof generated (commitment {commitment[:16]}…)")
    return ZKProof(proof=proof, public_hash=public_hash, commitment=commitment)


# ─────────────────────────────────────────────
# VERIFICATION
# ─────────────────────────────────────────────
def verify_proof(proof: Union[ZKProof, Mapping], email: str) -> bool:
    """
    Structural check only: non-empty proof string, 64-hex public hash and
    commitment. The proof is not decrypted and the commitment is not checked
    against any secret. *email* is accepted for interface stability and is
    currently unused. The wire form (a mapping with proof / publicHash /
    commitment keys) is accepted as well.

    Never raises; malformed input yields False and a warning.
    """
    if isinstance(proof, Mapping):
        proof_text = proof.get("proof")
        public_hash = proof.get("publicHash")
        commitment = proof.get("commitment")
    else:
        proof_text = getattr(proof, "proof", None)
        public_hash = getattr(proof, "public_hash", None)
        commitment = getattr(proof, "commitment", None)

    if not isinstance(proof_text, str) or not proof_text:
        logger.warning("Proof verification failed: empty or missing proof string")
        return False
    if not is_digest_hex(public_hash):
        logger.warning("Proof verification failed: public hash is not 64 hex characters")
        return False
    if not is_digest_hex(commitment):
        logger.warning("Proof verification failed: commitment is not 64 hex characters")
        return False

    logger.info("Proof verification result: True")
    return True


__all__ = [
    "derive_password_hash",
    "derive_public_hash",
    "generate_proof",
    "verify_proof",
    "open_proof",
    "split_password_hash",
    "sha256_hex",
]
