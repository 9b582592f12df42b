"""
Verity Attestation Verifier

Version: 0.1.0
License: Apache 2.0

Checks a signed verification result ("attestation") before acting on it:

    ACCEPT(signature, attestation, caller) iff
        domain separator matches this deployment
        AND caller is the subject and signed the call
        AND the attestation has not expired
        AND the credential type is the expected one
        AND secp256k1 recovery over keccak256(borsh(attestation))
            yields the deployment's trust anchor

The first violated rule is reported; nothing else is evaluated after it.

Usage:
    from verity_verifier import (
        AttestationVerifier,
        Attestation,
        CallerContext,
        Signature,
    )

    # Trust anchor and domain come from the deployments file
    verifier = AttestationVerifier.from_deployment(cluster="devnet")

    attestation = Attestation.from_dict(record)
    signature = Signature.from_hex(record_signature)
    caller = CallerContext(identity=signer, is_signer=True, current_time=now)

    result = verifier.verify_signature(signature, attestation, caller)
    if not result.accepted():
        reject(result.error)
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Records
from .attestation import (
    Attestation,
    CallerContext,
    Signature,
    parse_hex,
)

# Encoding and hashing
from .encoding import (
    EncodingError,
    encode_attestation,
    decode_attestation,
    encoded_length,
)
from .hashing import (
    keccak256,
    attestation_digest,
    public_key_to_address,
    to_checksum_address,
)

# Recovery
from .recovery import (
    SignatureRecoveryError,
    recover_public_key,
)

# Configuration
from .clusters import (
    SolanaNetwork,
    convert_chain_id_to_cluster,
    convert_cluster_to_chain_id,
)
from .config import (
    ConfigurationError,
    Deployment,
    DomainConfig,
    TrustAnchor,
    load_deployment,
)

# Rules
from .rules import (
    ErrorKind,
    Rule,
    RuleEvaluation,
    RuleResult,
    DOMAIN_RULES,
    POLICY_RULES,
    DEFAULT_RULES,
)

# Verifier
from .verifier import (
    AttestationVerifier,
    VerificationOutcome,
    VerificationResult,
    VerificationStage,
    verify,
)

# Logging
from .logging_config import configure_logging, set_verification_id

__all__ = [
    # Records
    "Attestation",
    "CallerContext",
    "Signature",
    "parse_hex",
    # Encoding and hashing
    "EncodingError",
    "encode_attestation",
    "decode_attestation",
    "encoded_length",
    "keccak256",
    "attestation_digest",
    "public_key_to_address",
    "to_checksum_address",
    # Recovery
    "SignatureRecoveryError",
    "recover_public_key",
    # Configuration
    "SolanaNetwork",
    "convert_chain_id_to_cluster",
    "convert_cluster_to_chain_id",
    "ConfigurationError",
    "Deployment",
    "DomainConfig",
    "TrustAnchor",
    "load_deployment",
    # Rules
    "ErrorKind",
    "Rule",
    "RuleEvaluation",
    "RuleResult",
    "DOMAIN_RULES",
    "POLICY_RULES",
    "DEFAULT_RULES",
    # Verifier
    "AttestationVerifier",
    "VerificationOutcome",
    "VerificationResult",
    "VerificationStage",
    "verify",
    # Logging
    "configure_logging",
    "set_verification_id",
]
