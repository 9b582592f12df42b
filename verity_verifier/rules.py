"""
Verity Verification Rules

Each rule is a single named predicate over an attestation, the presenting
caller, and the deployment's expected domain. Rules map to exactly one
ErrorKind and are evaluated in a fixed order; the first failure decides the
outcome.

Rules are deterministic and never raise: a rule either passes or fails
with its error kind.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .attestation import Attestation, CallerContext
from .config import DomainConfig


class ErrorKind(str, Enum):
    """Reasons an attestation is rejected, one per verification step."""
    INVALID_NAME = "InvalidName"
    INVALID_VERSION = "InvalidVersion"
    INVALID_CLUSTER = "InvalidCluster"
    SUBJECT_MISMATCH = "SubjectMismatch"
    SUBJECT_IS_NOT_SIGNER = "SubjectIsNotSigner"
    EXPIRED = "Expired"
    INVALID_SCHEMA = "InvalidSchema"
    SIGNATURE_RECOVERY_FAILED = "SignatureRecoveryFailed"
    UNTRUSTED_SIGNER = "UntrustedSigner"


class RuleResult(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class RuleCategory(str, Enum):
    """Domain rules bind the attestation to a deployment; policy rules to a caller."""
    DOMAIN = "DOMAIN"
    POLICY = "POLICY"


@dataclass(frozen=True)
class RuleEvaluation:
    """Result of evaluating a single rule."""
    rule_id: str
    result: RuleResult
    error: Optional[ErrorKind] = None
    required: Optional[str] = None
    observed: Optional[str] = None

    def passed(self) -> bool:
        return self.result == RuleResult.PASS

    def to_dict(self) -> Dict[str, Any]:
        d = {"rule_id": self.rule_id, "result": self.result.value}
        if self.error:
            d["error"] = self.error.value
        if self.required is not None:
            d["required"] = self.required
        if self.observed is not None:
            d["observed"] = self.observed
        return d


class Rule(ABC):
    """Abstract base class for verification rules."""

    rule_id: str = ""
    category: RuleCategory = RuleCategory.POLICY
    error: ErrorKind

    @abstractmethod
    def evaluate(
        self,
        attestation: Attestation,
        caller: CallerContext,
        domain: DomainConfig
    ) -> RuleEvaluation:
        """Evaluate the rule. Must return PASS or FAIL, never raise."""

    def _pass(self) -> RuleEvaluation:
        return RuleEvaluation(rule_id=self.rule_id, result=RuleResult.PASS)

    def _fail(self, required: str = None, observed: str = None) -> RuleEvaluation:
        return RuleEvaluation(
            rule_id=self.rule_id,
            result=RuleResult.FAIL,
            error=self.error,
            required=required,
            observed=observed
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule_id} -> {self.error.value}>"


class _FieldEqualsRule(Rule):
    """Exact, case-sensitive match of an attestation field against the domain."""

    field_name: str = ""
    category = RuleCategory.DOMAIN

    def evaluate(self, attestation, caller, domain) -> RuleEvaluation:
        expected = getattr(domain, self.field_name)
        observed = getattr(attestation, self.field_name)
        if observed == expected:
            return self._pass()
        return self._fail(expected, observed)


class NameRule(_FieldEqualsRule):
    rule_id = "domain_name"
    field_name = "name"
    error = ErrorKind.INVALID_NAME


class VersionRule(_FieldEqualsRule):
    rule_id = "domain_version"
    field_name = "version"
    error = ErrorKind.INVALID_VERSION


class ClusterRule(_FieldEqualsRule):
    """
    Binds the attestation to one deployment context, so an attestation
    issued for a test cluster cannot be replayed in production.
    """
    rule_id = "domain_cluster"
    field_name = "cluster"
    error = ErrorKind.INVALID_CLUSTER


class SubjectMatchesCallerRule(Rule):
    rule_id = "subject_matches_caller"
    error = ErrorKind.SUBJECT_MISMATCH

    def evaluate(self, attestation, caller, domain) -> RuleEvaluation:
        if caller.identity == attestation.subject:
            return self._pass()
        return self._fail("0x" + attestation.subject.hex(), "0x" + caller.identity.hex())


class SubjectIsSignerRule(Rule):
    """
    The caller must have authenticated the call. This is a claim made by
    the calling infrastructure, not something checked here.
    """
    rule_id = "subject_is_signer"
    error = ErrorKind.SUBJECT_IS_NOT_SIGNER

    def evaluate(self, attestation, caller, domain) -> RuleEvaluation:
        if caller.is_signer:
            return self._pass()
        return self._fail("signer", "not signer")


class NotExpiredRule(Rule):
    rule_id = "not_expired"
    error = ErrorKind.EXPIRED

    def evaluate(self, attestation, caller, domain) -> RuleEvaluation:
        # Strict: an attestation is already void at its expiration second
        if caller.current_time < attestation.expiration:
            return self._pass()
        return self._fail(
            f"current_time < {attestation.expiration}",
            str(caller.current_time)
        )


class SchemaRule(Rule):
    rule_id = "credential_schema"
    error = ErrorKind.INVALID_SCHEMA

    def evaluate(self, attestation, caller, domain) -> RuleEvaluation:
        if attestation.schema == domain.schema:
            return self._pass()
        return self._fail(domain.schema, attestation.schema)


DOMAIN_RULES: List[Rule] = [
    NameRule(),
    VersionRule(),
    ClusterRule(),
]

POLICY_RULES: List[Rule] = [
    SubjectMatchesCallerRule(),
    SubjectIsSignerRule(),
    NotExpiredRule(),
    SchemaRule(),
]

DEFAULT_RULES: List[Rule] = DOMAIN_RULES + POLICY_RULES


def evaluate_rules(
    rules: List[Rule],
    attestation: Attestation,
    caller: CallerContext,
    domain: DomainConfig
) -> List[RuleEvaluation]:
    """
    Evaluate rules in order, stopping at the first failure.

    Returns the evaluations performed; if the last one failed, it is the
    deciding rule.
    """
    evaluations = []
    for rule in rules:
        evaluation = rule.evaluate(attestation, caller, domain)
        evaluations.append(evaluation)
        if not evaluation.passed():
            break
    return evaluations
