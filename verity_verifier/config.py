"""
Configuration module for the Verity verifier.

The trust anchor and the expected domain separator are deployment
configuration, keyed by cluster. The cluster itself has no default: a
deployment that forgets to set it fails to load instead of silently
accepting attestations issued for another environment.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from coincurve import PublicKey
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .attestation import parse_hex
from .clusters import resolve_cluster
from .hashing import public_key_to_address, to_checksum_address
from .logging_config import audit_log


logger = logging.getLogger(__name__)

# ============================================================
# Environment Configuration
# ============================================================

DEPLOYMENTS_PATH_ENV = "VERITY_DEPLOYMENTS_PATH"
DEFAULT_DEPLOYMENTS_PATH = "config/deployments.json"

# No default cluster, see load_deployment
CLUSTER_ENV = "VERITY_CLUSTER"

DEFAULT_NAME = "VerificationRegistry"
DEFAULT_VERSION = "1.0"
DEFAULT_SCHEMA = "centre.io/credentials/kyc"


class ConfigurationError(ValueError):
    """Raised when deployment configuration is missing or invalid."""


# ============================================================
# Runtime Types
# ============================================================

@dataclass(frozen=True)
class DomainConfig:
    """Expected domain separator and credential type for a deployment."""
    cluster: str
    name: str = DEFAULT_NAME
    version: str = DEFAULT_VERSION
    schema: str = DEFAULT_SCHEMA

    def __post_init__(self):
        for field_name in ("cluster", "name", "version", "schema"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"DomainConfig.{field_name} must be a non-empty string")


@dataclass(frozen=True)
class TrustAnchor:
    """The single secp256k1 public key trusted to sign attestations."""
    public_key: bytes

    def __post_init__(self):
        if not isinstance(self.public_key, bytes) or len(self.public_key) != 64:
            raise ValueError("TrustAnchor.public_key must be 64 bytes")

    @classmethod
    def from_bytes(cls, data: bytes) -> 'TrustAnchor':
        """
        Accept a raw 64-byte key, a 65-byte 0x04-prefixed key, or a
        33-byte compressed key.
        """
        if len(data) == 64:
            data = b"\x04" + bytes(data)
        try:
            point = PublicKey(bytes(data))
        except ValueError as e:
            raise ValueError(f"Invalid secp256k1 public key: {e}") from e
        return cls(public_key=point.format(compressed=False)[1:])

    @classmethod
    def from_hex(cls, value: str) -> 'TrustAnchor':
        return cls.from_bytes(parse_hex(value))

    @property
    def address(self) -> str:
        """EIP-55 address of the anchor, for display."""
        return to_checksum_address(public_key_to_address(self.public_key))

    def matches(self, public_key: bytes) -> bool:
        return bytes(public_key) == self.public_key


@dataclass(frozen=True)
class Deployment:
    domain: DomainConfig
    trust_anchor: TrustAnchor


# ============================================================
# File Schema
# ============================================================

class DeploymentEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    trust_anchor: str = Field(min_length=1)
    name: str = Field(default=DEFAULT_NAME, min_length=1)
    version: str = Field(default=DEFAULT_VERSION, min_length=1)
    credential_schema: str = Field(default=DEFAULT_SCHEMA, alias="schema", min_length=1)


class DeploymentsFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    deployments: Dict[str, DeploymentEntry]


# ============================================================
# Loaders
# ============================================================

def load_deployments_file(path: Optional[Union[str, Path]] = None) -> DeploymentsFile:
    """Read and validate the deployments file."""
    path = Path(path or os.getenv(DEPLOYMENTS_PATH_ENV, DEFAULT_DEPLOYMENTS_PATH))
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Deployments file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Deployments file is not valid JSON: {path}: {e}")

    try:
        deployments = DeploymentsFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid deployments file {path}: {e}") from e

    logger.debug("Loaded %d deployments from %s", len(deployments.deployments), path)
    return deployments


def build_deployment(cluster: str, entry: DeploymentEntry) -> Deployment:
    """Turn a validated file entry into runtime types."""
    try:
        trust_anchor = TrustAnchor.from_hex(entry.trust_anchor)
    except ValueError as e:
        raise ConfigurationError(f"Invalid trust anchor for cluster {cluster!r}: {e}") from e

    domain = DomainConfig(
        cluster=cluster,
        name=entry.name,
        version=entry.version,
        schema=entry.credential_schema,
    )
    return Deployment(domain=domain, trust_anchor=trust_anchor)


def load_deployment(
    cluster: Optional[Union[str, int]] = None,
    path: Optional[Union[str, Path]] = None
) -> Deployment:
    """
    Load the deployment for a cluster.

    Args:
        cluster: Cluster name or chain id (default: VERITY_CLUSTER)
        path: Deployments file (default: VERITY_DEPLOYMENTS_PATH)

    Raises:
        ConfigurationError: If no cluster is configured, the cluster is not
            in the file, or the file is invalid
    """
    cluster = cluster if cluster is not None else os.getenv(CLUSTER_ENV)
    if cluster is None or (isinstance(cluster, str) and not cluster.strip()):
        raise ConfigurationError(
            "No deployment cluster configured; set VERITY_CLUSTER or pass cluster"
        )

    try:
        cluster = resolve_cluster(cluster)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    deployments = load_deployments_file(path)
    entry = deployments.deployments.get(cluster)
    if entry is None:
        known = sorted(deployments.deployments)
        raise ConfigurationError(f"Unknown cluster {cluster!r}; configured: {known}")

    deployment = build_deployment(cluster, entry)
    audit_log.deployment_loaded(
        cluster=cluster,
        trust_anchor_address=deployment.trust_anchor.address,
        schema=deployment.domain.schema,
    )
    return deployment
