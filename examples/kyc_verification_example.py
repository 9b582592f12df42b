#!/usr/bin/env python3
"""
Verity Example - KYC Attestation Check

Plays both sides on a local cluster: a development verifier signs a KYC
attestation for a subject, then the subject presents it and it is checked
against the trust anchor from config/deployments.example.json.

Run with: python examples/kyc_verification_example.py
"""

import time
from pathlib import Path

from coincurve import PrivateKey

from verity_verifier import (
    Attestation,
    AttestationVerifier,
    CallerContext,
    Signature,
    attestation_digest,
    configure_logging,
    set_verification_id,
)


DEPLOYMENTS = Path(__file__).resolve().parent.parent / "config" / "deployments.example.json"

# Local development key; never use on a real cluster
DEV_VERIFIER_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

SUBJECT = bytes.fromhex("d03ce2f627ea0eba6a3aad31fac4349a9f34d829b4560d775263ad5c1cdb6d0f")


def issue(attestation: Attestation) -> str:
    """Sign the way the off-chain issuer does, returning r || s || 27 + recid."""
    signed = PrivateKey(bytes.fromhex(DEV_VERIFIER_KEY)).sign_recoverable(
        attestation_digest(attestation), hasher=None
    )
    return "0x" + signed[:64].hex() + format(27 + signed[64], "02x")


def main():
    configure_logging(level="INFO", json_format=False)
    set_verification_id()

    print("=" * 70)
    print("Verity KYC Attestation Example")
    print("=" * 70)

    now = int(time.time())
    record = {
        "name": "VerificationRegistry",
        "version": "1.0",
        "cluster": "localnet",
        "subject": "0x" + SUBJECT.hex(),
        "expiration": now + 7 * 24 * 3600,
        "schema": "centre.io/credentials/kyc",
    }
    attestation = Attestation.from_dict(record)
    signature = Signature.from_hex(issue(attestation))

    verifier = AttestationVerifier.from_deployment(cluster="localnet", path=DEPLOYMENTS)
    print(f"\nTrust anchor: {verifier.trust_anchor.address}")

    scenarios = [
        ("Subject presents its own attestation",
         CallerContext(identity=SUBJECT, is_signer=True, current_time=now)),
        ("Someone else replays it",
         CallerContext(identity=bytes(32), is_signer=True, current_time=now)),
        ("Subject did not sign the call",
         CallerContext(identity=SUBJECT, is_signer=False, current_time=now)),
        ("Presented after expiration",
         CallerContext(identity=SUBJECT, is_signer=True, current_time=attestation.expiration)),
    ]

    for title, caller in scenarios:
        result = verifier.verify_signature(signature, attestation, caller)
        if result.accepted():
            print(f"\n  ✓ {title}: ACCEPT")
        else:
            print(f"\n  ✗ {title}: REJECT ({result.error.value})")

    print("\n" + "=" * 70)
    print("Example Complete")
    print("=" * 70)


if __name__ == "__main__":
    main()
