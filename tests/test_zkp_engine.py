"""
test_zkp_engine.py - Unit Tests
Tests for: password hashing, public hash, proof generation, proof verification
"""

import sys
import os
import base64
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from common.errors import CryptoOperationError, InvalidInputError
from common.models import ZKProof
from engine.zkp_engine import (
    derive_password_hash,
    derive_public_hash,
    generate_proof,
    open_proof,
    split_password_hash,
    verify_proof,
)

SALT = "00112233445566778899aabbccddeeff"
PASSWORD_HASH = (
    "00112233445566778899aabbccddeeff:"
    "9edd80940c1c30d1d59db1f72e92d0bb467456020a572b76413d4c8a7bf216f3"
)
PUBLIC_HASH = "55f3ac4cb538bb8d6d02a0b30d377d6775819c58f89d36460c593b5cfd9a44bc"
COMMITMENT = "551adfe103ab29f4e6ce1f6f700748228acd9d989cdcd9c46995ac9b4ca6d668"
OBSCURED_NONCE = "d65df89f702eec58ca3c7bf2001c9ffc7cd80553ae01d42a799ba26756142d96"
FIXED_TIME_MS = 1_700_000_000_000


def counting_rng(n: int) -> bytes:
    return bytes(range(n))


def fixed_clock() -> int:
    return FIXED_TIME_MS


# ─────────────────────────────────────────────
class TestPasswordHash(unittest.TestCase):

    def test_golden_vector(self):
        self.assertEqual(derive_password_hash("hunter2", SALT), PASSWORD_HASH)

    def test_deterministic_for_same_salt(self):
        h1 = derive_password_hash("correct horse", SALT)
        h2 = derive_password_hash("correct horse", SALT)
        self.assertEqual(h1, h2)

    def test_different_salts_differ(self):
        h1 = derive_password_hash("correct horse", SALT)
        h2 = derive_password_hash("correct horse", "ffeeddccbbaa99887766554433221100")
        self.assertNotEqual(h1.split(":")[1], h2.split(":")[1])

    def test_fresh_salt_generated(self):
        h1 = derive_password_hash("correct horse")
        h2 = derive_password_hash("correct horse")
        self.assertNotEqual(h1, h2)
        salt, key = split_password_hash(h1)
        self.assertEqual(len(salt), 32)
        self.assertEqual(len(key), 64)

    def test_injected_rng_supplies_salt(self):
        h = derive_password_hash("hunter2", rng=lambda n: bytes.fromhex(SALT))
        self.assertEqual(h, PASSWORD_HASH)

    def test_single_character_password_accepted(self):
        salt, key = split_password_hash(derive_password_hash("x", SALT))
        self.assertEqual(salt, SALT)
        self.assertEqual(len(key), 64)

    def test_empty_password_rejected(self):
        with self.assertRaises(InvalidInputError):
            derive_password_hash("")

    def test_trailing_newline_salt_rejected(self):
        with self.assertRaises(InvalidInputError):
            derive_password_hash("pw", SALT + "\n")
        with self.assertRaises(InvalidInputError):
            split_password_hash(SALT + "\n:" + PASSWORD_HASH.split(":")[1])
        with self.assertRaises(InvalidInputError):
            split_password_hash(PASSWORD_HASH + "\n")

    def test_malformed_salt_rejected(self):
        for bad in ("abc", "zz" * 16, SALT + "00"):
            with self.assertRaises(InvalidInputError):
                derive_password_hash("pw", bad)

    def test_entropy_failure_is_crypto_error(self):
        def broken(n):
            raise OSError("no entropy")
        with self.assertRaises(CryptoOperationError):
            derive_password_hash("pw", rng=broken)


# ─────────────────────────────────────────────
class TestPublicHash(unittest.TestCase):

    def test_golden_vector(self):
        self.assertEqual(derive_public_hash("a@b.com", PASSWORD_HASH), PUBLIC_HASH)

    def test_deterministic_and_64_hex(self):
        h1 = derive_public_hash("alice@example.com", PASSWORD_HASH)
        h2 = derive_public_hash("alice@example.com", PASSWORD_HASH)
        self.assertEqual(h1, h2)
        self.assertEqual(len(h1), 64)
        int(h1, 16)

    def test_email_is_not_normalised(self):
        self.assertNotEqual(
            derive_public_hash("A@B.com", PASSWORD_HASH),
            derive_public_hash("a@b.com", PASSWORD_HASH),
        )

    def test_malformed_password_hash_rejected(self):
        for bad in ("", "nocolon", "a:b:c", SALT + ":short", "xyz:" + "0" * 64):
            with self.assertRaises(InvalidInputError):
                derive_public_hash("a@b.com", bad)

    def test_empty_email_rejected(self):
        with self.assertRaises(InvalidInputError):
            derive_public_hash("", PASSWORD_HASH)


# ─────────────────────────────────────────────
class TestProofGeneration(unittest.TestCase):

    def test_reproducible_with_injected_sources(self):
        p1 = generate_proof("a@b.com", "hunter2", PASSWORD_HASH, rng=counting_rng, clock=fixed_clock)
        p2 = generate_proof("a@b.com", "hunter2", PASSWORD_HASH, rng=counting_rng, clock=fixed_clock)
        self.assertEqual(p1, p2)
        self.assertEqual(p1.public_hash, PUBLIC_HASH)
        self.assertEqual(p1.commitment, COMMITMENT)

    def test_payload_contents(self):
        proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH, rng=counting_rng, clock=fixed_clock)
        payload = open_proof(proof.proof, PASSWORD_HASH)
        self.assertEqual(payload.commitment, COMMITMENT)
        self.assertEqual(payload.public_hash, PUBLIC_HASH)
        self.assertEqual(payload.timestamp, FIXED_TIME_MS)
        self.assertEqual(payload.obscured_nonce, OBSCURED_NONCE)

    def test_raw_nonce_not_in_payload(self):
        proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH, rng=counting_rng, clock=fixed_clock)
        payload = open_proof(proof.proof, PASSWORD_HASH).to_dict()
        self.assertNotIn(bytes(range(16)).hex(), payload.values())

    def test_fresh_nonce_each_call(self):
        p1 = generate_proof("alice@example.com", "s3cret", PASSWORD_HASH)
        p2 = generate_proof("alice@example.com", "s3cret", PASSWORD_HASH)
        self.assertEqual(p1.public_hash, p2.public_hash)
        self.assertNotEqual(p1.proof, p2.proof)
        self.assertNotEqual(p1.commitment, p2.commitment)

    def test_without_existing_hash_salts_differ(self):
        p1 = generate_proof("alice@example.com", "s3cret")
        p2 = generate_proof("alice@example.com", "s3cret")
        self.assertNotEqual(p1.public_hash, p2.public_hash)
        self.assertNotEqual(p1.commitment, p2.commitment)

    def test_reused_hash_keeps_public_hash(self):
        password_hash = derive_password_hash("s3cret")
        first = generate_proof("alice@example.com", "s3cret", password_hash)
        second = generate_proof("alice@example.com", "s3cret", password_hash)
        self.assertEqual(first.public_hash, second.public_hash)
        self.assertEqual(first.public_hash, derive_public_hash("alice@example.com", password_hash))

    def test_empty_inputs_rejected(self):
        with self.assertRaises(InvalidInputError):
            generate_proof("", "pw")
        with self.assertRaises(InvalidInputError):
            generate_proof("a@b.com", "")

    def test_malformed_existing_hash_rejected(self):
        with self.assertRaises(InvalidInputError):
            generate_proof("a@b.com", "pw", "not-a-hash")

    def test_entropy_failure_is_crypto_error(self):
        def short(n):
            return b"\x00"
        with self.assertRaises(CryptoOperationError):
            generate_proof("a@b.com", "pw", PASSWORD_HASH, rng=short)

    def test_wrong_key_cannot_open(self):
        proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH)
        other = derive_password_hash("other", SALT)
        with self.assertRaises(CryptoOperationError):
            open_proof(proof.proof, other)

    def test_tampered_proof_cannot_open(self):
        proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH)
        raw = base64.b64decode(proof.proof)
        corrupted = raw[:-1] + bytes([raw[-1] ^ 0xFF])
        with self.assertRaises(CryptoOperationError):
            open_proof(base64.b64encode(corrupted).decode(), PASSWORD_HASH)

    def test_dict_shape(self):
        proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH)
        d = proof.to_dict()
        self.assertEqual(set(d), {"proof", "publicHash", "commitment"})
        self.assertEqual(ZKProof.from_dict(d), proof)


# ─────────────────────────────────────────────
class TestVerification(unittest.TestCase):

    def setUp(self):
        self.proof = generate_proof("a@b.com", "hunter2", PASSWORD_HASH)

    def test_generated_proof_verifies(self):
        self.assertTrue(verify_proof(self.proof, "a@b.com"))

    def test_fresh_salt_proof_verifies(self):
        self.assertTrue(verify_proof(generate_proof("a@b.com", "x"), "a@b.com"))

    def test_empty_proof_string_fails(self):
        bad = ZKProof(proof="", public_hash=self.proof.public_hash, commitment=self.proof.commitment)
        with self.assertLogs("engine.zkp_engine", level="WARNING"):
            self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_short_public_hash_fails(self):
        bad = ZKProof(proof=self.proof.proof, public_hash=self.proof.public_hash[:63],
                      commitment=self.proof.commitment)
        self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_long_commitment_fails(self):
        bad = ZKProof(proof=self.proof.proof, public_hash=self.proof.public_hash,
                      commitment=self.proof.commitment + "0")
        self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_non_hex_commitment_fails(self):
        bad = ZKProof(proof=self.proof.proof, public_hash=self.proof.public_hash, commitment="g" * 64)
        self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_trailing_newline_commitment_fails(self):
        bad = ZKProof(proof=self.proof.proof, public_hash=self.proof.public_hash,
                      commitment=self.proof.commitment + "\n")
        self.assertEqual(len(bad.commitment), 65)
        self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_trailing_newline_public_hash_fails(self):
        bad = ZKProof(proof=self.proof.proof, public_hash=self.proof.public_hash + "\n",
                      commitment=self.proof.commitment)
        self.assertFalse(verify_proof(bad, "a@b.com"))

    def test_wire_form_mapping_verifies(self):
        self.assertTrue(verify_proof(self.proof.to_dict(), "a@b.com"))
        wire = dict(self.proof.to_dict(), publicHash="abc")
        self.assertFalse(verify_proof(wire, "a@b.com"))

    def test_garbage_input_never_raises(self):
        for junk in (None, 42, "proof", {"proof": "x"}):
            self.assertFalse(verify_proof(junk, "a@b.com"))


# ─────────────────────────────────────────────
if __name__ == "__main__":
    unittest.main(verbosity=2)
