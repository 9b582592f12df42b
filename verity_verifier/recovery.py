"""
Verity Signature Recovery

Recovers the secp256k1 public key that produced a compact ECDSA signature
over a digest. The recovery id selects which of up to four candidate points
is the signer.
"""

import logging

from coincurve import PublicKey

from .attestation import SIGNATURE_LENGTH
from .hashing import DIGEST_LENGTH


logger = logging.getLogger(__name__)

RECOVERY_IDS = (0, 1, 2, 3)


class SignatureRecoveryError(ValueError):
    """Raised when no public key can be recovered from a signature."""


def recover_public_key(digest: bytes, signature: bytes, recovery_id: int) -> bytes:
    """
    Recover the signer's public key.

    Args:
        digest: 32-byte message digest that was signed
        signature: 64-byte r || s
        recovery_id: Candidate selector, 0 to 3

    Returns:
        64-byte uncompressed public key without the 0x04 prefix

    Raises:
        SignatureRecoveryError: If the inputs are malformed or do not
            correspond to a point on the curve
    """
    if recovery_id not in RECOVERY_IDS:
        raise SignatureRecoveryError(f"Recovery id out of range: {recovery_id}")
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureRecoveryError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    if len(digest) != DIGEST_LENGTH:
        raise SignatureRecoveryError(
            f"Digest must be {DIGEST_LENGTH} bytes, got {len(digest)}"
        )

    recoverable = bytes(signature) + bytes([recovery_id])
    try:
        recovered = PublicKey.from_signature_and_message(recoverable, bytes(digest), hasher=None)
    except ValueError as e:
        logger.debug("secp256k1 recovery failed: %s", e)
        raise SignatureRecoveryError(f"Unable to recover public key: {e}") from e

    # Drop the 0x04 uncompressed-point prefix
    return recovered.format(compressed=False)[1:]
