"""
Verity Verification Entry Point

Confirms that an attestation was issued by the deployment's trust anchor,
is addressed to this deployment, has not expired, and is being presented
by its subject.

Verification is a single linear path with no retries:

    START -> DOMAIN_CHECKED -> POLICY_CHECKED -> ENCODED -> HASHED
          -> RECOVERED -> TRUST_MATCHED -> ACCEPT

Any failing step ends in REJECT with the ErrorKind of that step. Every
failure is returned as a result, never raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .attestation import Attestation, CallerContext, Signature
from .config import DomainConfig, TrustAnchor, load_deployment
from .encoding import encode_attestation
from .hashing import keccak256, public_key_to_address, to_checksum_address
from .logging_config import audit_log
from .recovery import SignatureRecoveryError, recover_public_key
from .rules import (
    DEFAULT_RULES,
    ErrorKind,
    Rule,
    RuleCategory,
    RuleEvaluation,
    evaluate_rules,
)


logger = logging.getLogger(__name__)


class VerificationStage(str, Enum):
    """Stages of the verification state machine, in order."""
    START = "START"
    DOMAIN_CHECKED = "DOMAIN_CHECKED"
    POLICY_CHECKED = "POLICY_CHECKED"
    ENCODED = "ENCODED"
    HASHED = "HASHED"
    RECOVERED = "RECOVERED"
    TRUST_MATCHED = "TRUST_MATCHED"


class VerificationOutcome(str, Enum):
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


@dataclass
class VerificationResult:
    """
    Result of verifying an attestation.

    stage is the last stage that completed; for a rejection, the step
    after it is the one that failed.
    """
    outcome: VerificationOutcome
    stage: VerificationStage
    error: Optional[ErrorKind] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def accepted(self) -> bool:
        return self.outcome == VerificationOutcome.ACCEPT

    @classmethod
    def accept(cls, details: Dict[str, Any] = None) -> 'VerificationResult':
        return cls(
            outcome=VerificationOutcome.ACCEPT,
            stage=VerificationStage.TRUST_MATCHED,
            details=details or {}
        )

    @classmethod
    def reject(
        cls,
        error: ErrorKind,
        stage: VerificationStage,
        reason: str = None,
        details: Dict[str, Any] = None
    ) -> 'VerificationResult':
        return cls(
            outcome=VerificationOutcome.REJECT,
            stage=stage,
            error=error,
            reason=reason or error.value,
            details=details or {}
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {"outcome": self.outcome.value, "stage": self.stage.value}
        if self.error:
            d["error"] = self.error.value
        if self.reason:
            d["reason"] = self.reason
        if self.details:
            d["details"] = self.details
        return d


class AttestationVerifier:
    """
    Verifies attestations for one deployment.

    Holds only configuration: the expected domain, the trust anchor and
    the ordered rules. Safe to share between threads.
    """

    def __init__(
        self,
        domain: DomainConfig,
        trust_anchor: TrustAnchor,
        rules: Optional[Sequence[Rule]] = None
    ):
        self.domain = domain
        self.trust_anchor = trust_anchor
        rules = list(DEFAULT_RULES if rules is None else rules)
        self.domain_rules: List[Rule] = [r for r in rules if r.category == RuleCategory.DOMAIN]
        self.policy_rules: List[Rule] = [r for r in rules if r.category == RuleCategory.POLICY]

    @classmethod
    def from_deployment(
        cls,
        cluster: Optional[Union[str, int]] = None,
        path: Optional[Union[str, Path]] = None
    ) -> 'AttestationVerifier':
        """Build a verifier from the deployments file."""
        deployment = load_deployment(cluster=cluster, path=path)
        return cls(deployment.domain, deployment.trust_anchor)

    def verify(
        self,
        signature: bytes,
        recovery_id: int,
        attestation: Attestation,
        caller: CallerContext
    ) -> VerificationResult:
        """
        Verify an attestation presented by a caller.

        Steps:
        1. Domain separator: name, version, cluster
        2. Policy: subject is caller, caller signed, not expired, schema
        3. Encode the attestation
        4. Hash the encoding
        5. Recover the signer's public key
        6. Compare the signer with the trust anchor

        Args:
            signature: 64-byte r || s
            recovery_id: Recovery id, 0 to 3
            attestation: The attestation being presented
            caller: Identity, signer claim and time of the presenting party

        Returns:
            VerificationResult; ACCEPT only if every step passed
        """
        subject = "0x" + attestation.subject.hex()
        audit_log.verification_request(
            subject=subject,
            cluster=attestation.cluster,
            schema=attestation.schema,
            expiration=attestation.expiration,
        )

        result = self._verify(signature, recovery_id, attestation, caller)

        audit_log.verification_decision(
            subject=subject,
            outcome=result.outcome.value,
            stage=result.stage.value,
            error=result.error.value if result.error else None,
            recovered_address=result.details.get("recovered_address"),
        )
        return result

    def verify_signature(
        self,
        signature: Signature,
        attestation: Attestation,
        caller: CallerContext
    ) -> VerificationResult:
        """Verify using a parsed Signature."""
        return self.verify(signature.signature, signature.recovery_id, attestation, caller)

    def _verify(
        self,
        signature: bytes,
        recovery_id: int,
        attestation: Attestation,
        caller: CallerContext
    ) -> VerificationResult:
        # Step 1: Domain separator
        failed = self._first_failure(self.domain_rules, attestation, caller)
        if failed:
            return self._rule_rejection(failed, VerificationStage.START)
        logger.debug("Domain separator accepted for cluster %s", attestation.cluster)

        # Step 2: Policy
        failed = self._first_failure(self.policy_rules, attestation, caller)
        if failed:
            return self._rule_rejection(failed, VerificationStage.DOMAIN_CHECKED)

        # Step 3: Encode
        message = encode_attestation(attestation)

        # Step 4: Hash
        digest = keccak256(message)
        logger.debug("Attestation digest %s (%d bytes encoded)", digest.hex(), len(message))

        # Step 5: Recover
        try:
            recovered = recover_public_key(digest, signature, recovery_id)
        except SignatureRecoveryError as e:
            return VerificationResult.reject(
                ErrorKind.SIGNATURE_RECOVERY_FAILED,
                VerificationStage.HASHED,
                reason=str(e),
                details={"digest": "0x" + digest.hex(), "recovery_id": recovery_id}
            )

        recovered_address = to_checksum_address(public_key_to_address(recovered))

        # Step 6: Trust anchor
        if not self.trust_anchor.matches(recovered):
            audit_log.security_event(
                "untrusted_signer",
                severity="high",
                recovered_address=recovered_address,
                trust_anchor_address=self.trust_anchor.address,
            )
            return VerificationResult.reject(
                ErrorKind.UNTRUSTED_SIGNER,
                VerificationStage.RECOVERED,
                reason="Recovered signer is not the trust anchor",
                details={
                    "recovered_address": recovered_address,
                    "trust_anchor_address": self.trust_anchor.address,
                }
            )

        return VerificationResult.accept({
            "digest": "0x" + digest.hex(),
            "recovered_address": recovered_address,
        })

    def _first_failure(
        self,
        rules: List[Rule],
        attestation: Attestation,
        caller: CallerContext
    ) -> Optional[RuleEvaluation]:
        evaluations = evaluate_rules(rules, attestation, caller, self.domain)
        if evaluations and not evaluations[-1].passed():
            return evaluations[-1]
        return None

    @staticmethod
    def _rule_rejection(evaluation: RuleEvaluation, stage: VerificationStage) -> VerificationResult:
        return VerificationResult.reject(
            evaluation.error,
            stage,
            details={"rule": evaluation.to_dict()}
        )


def verify(
    signature: bytes,
    recovery_id: int,
    attestation: Attestation,
    caller: CallerContext,
    trust_anchor: TrustAnchor,
    domain_config: DomainConfig
) -> VerificationResult:
    """
    Convenience function to verify an attestation.

    Returns ACCEPT, or REJECT with the first violated rule.
    """
    verifier = AttestationVerifier(domain_config, trust_anchor)
    return verifier.verify(signature, recovery_id, attestation, caller)
