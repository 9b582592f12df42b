"""
Verity Hashing

Attestations are hashed with keccak-256 (the original Keccak padding, not
NIST SHA3-256) over the full canonical encoding, with no truncation or salt.
"""

from typing import Union

from Crypto.Hash import keccak

from .attestation import Attestation
from .encoding import encode_attestation


DIGEST_LENGTH = 32
ADDRESS_LENGTH = 20


def keccak256(data: Union[bytes, str]) -> bytes:
    """Compute the 32-byte keccak-256 digest of data."""
    if isinstance(data, str):
        data = data.encode('utf-8')

    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def attestation_digest(attestation: Attestation) -> bytes:
    """
    Compute the digest the issuer signed.

    digest = keccak256(borsh(attestation))
    """
    return keccak256(encode_attestation(attestation))


def public_key_to_address(public_key: bytes) -> str:
    """
    Derive the Ethereum-style address of a 64-byte secp256k1 public key.

    The address is the last 20 bytes of keccak256(public_key), returned
    as lowercase 0x-prefixed hex.
    """
    if len(public_key) != 64:
        raise ValueError(f"Public key must be 64 bytes, got {len(public_key)}")
    return "0x" + keccak256(public_key)[-ADDRESS_LENGTH:].hex()


def to_checksum_address(address: str) -> str:
    """Apply EIP-55 mixed-case checksum encoding to an address."""
    hex_address = address.lower()
    if hex_address.startswith("0x"):
        hex_address = hex_address[2:]
    if len(hex_address) != ADDRESS_LENGTH * 2:
        raise ValueError(f"Invalid address length: {address!r}")

    address_hash = keccak256(hex_address).hex()
    return "0x" + "".join(
        c.upper() if int(address_hash[i], 16) >= 8 else c
        for i, c in enumerate(hex_address)
    )
