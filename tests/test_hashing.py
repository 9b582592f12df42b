"""Hashing and address derivation tests."""

import hashlib
import unittest

from verity_verifier import (
    attestation_digest,
    encode_attestation,
    keccak256,
    public_key_to_address,
    to_checksum_address,
)

from attestation_factory import VERIFIER_ADDRESS, VERIFIER_PUBLIC_KEY, make_attestation


KECCAK_EMPTY = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


class TestKeccak(unittest.TestCase):

    def test_empty_input_known_answer(self):
        self.assertEqual(keccak256(b"").hex(), KECCAK_EMPTY)

    def test_not_nist_sha3(self):
        self.assertNotEqual(keccak256(b""), hashlib.sha3_256(b"").digest())

    def test_str_input_is_utf8(self):
        self.assertEqual(keccak256("abc"), keccak256(b"abc"))

    def test_digest_is_32_bytes(self):
        self.assertEqual(len(keccak256(b"x" * 1000)), 32)


class TestAttestationDigest(unittest.TestCase):

    def test_digest_over_full_encoding(self):
        attestation = make_attestation()
        self.assertEqual(
            attestation_digest(attestation),
            keccak256(encode_attestation(attestation)),
        )

    def test_any_field_change_changes_digest(self):
        base = attestation_digest(make_attestation())
        variants = [
            make_attestation(name="VerificationRegistrY"),
            make_attestation(version="1.1"),
            make_attestation(cluster="devnet"),
            make_attestation(subject=b"\x00" * 32),
            make_attestation(expiration=2644257402),
            make_attestation(schema="centre.io/credentials/kyb"),
        ]
        for variant in variants:
            with self.subTest(variant=variant):
                self.assertNotEqual(attestation_digest(variant), base)


class TestAddresses(unittest.TestCase):

    def test_public_key_to_address(self):
        self.assertEqual(
            public_key_to_address(VERIFIER_PUBLIC_KEY),
            VERIFIER_ADDRESS.lower(),
        )

    def test_checksum_address(self):
        self.assertEqual(to_checksum_address(VERIFIER_ADDRESS.lower()), VERIFIER_ADDRESS)
        self.assertEqual(to_checksum_address(VERIFIER_ADDRESS.upper().replace("0X", "0x")), VERIFIER_ADDRESS)

    def test_public_key_length_checked(self):
        with self.assertRaises(ValueError):
            public_key_to_address(b"\x04" + VERIFIER_PUBLIC_KEY)

    def test_address_length_checked(self):
        with self.assertRaises(ValueError):
            to_checksum_address("0x1234")


if __name__ == "__main__":
    unittest.main()
