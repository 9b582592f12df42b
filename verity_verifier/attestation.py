"""
Verity Attestation Records

The verification result an off-chain verifier signs, the signature that comes
with it, and the context describing who is presenting it and when.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union


SUBJECT_LENGTH = 32
SIGNATURE_LENGTH = 64

# Ethereum-style signers add 27 to the recovery id
RECOVERY_ID_OFFSET = 27

I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1


def parse_hex(value: str) -> bytes:
    """Decode a hex string, with or without a 0x prefix."""
    if not isinstance(value, str):
        raise ValueError(f"Expected hex string, got {type(value).__name__}")
    if value.startswith(("0x", "0X")):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise ValueError(f"Invalid hex string: {value!r}")


def _as_bytes(value: Union[bytes, bytearray, str], field_name: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return parse_hex(value)
    raise ValueError(f"{field_name} must be bytes or hex string")


def _check_identity(value: bytes, field_name: str) -> None:
    if not isinstance(value, bytes):
        raise ValueError(f"{field_name} must be bytes")
    if len(value) != SUBJECT_LENGTH:
        raise ValueError(
            f"{field_name} must be {SUBJECT_LENGTH} bytes, got {len(value)}"
        )


def _check_timestamp(value: int, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer unix timestamp")
    if not I64_MIN <= value <= I64_MAX:
        raise ValueError(f"{field_name} out of signed 64-bit range: {value}")


@dataclass(frozen=True)
class Attestation:
    """
    A signed verification result.

    Fields, in the order they are serialized for signing:
    - name: Domain separator name
    - version: Domain separator version
    - cluster: Deployment context the attestation was issued for
    - subject: 32-byte identity the attestation is about
    - expiration: Unix seconds after which the attestation is void
    - schema: Credential type (e.g. centre.io/credentials/kyc)
    """
    name: str
    version: str
    cluster: str
    subject: bytes
    expiration: int
    schema: str

    def __post_init__(self):
        self._validate()

    def _validate(self):
        for field_name in ("name", "version", "cluster", "schema"):
            if not isinstance(getattr(self, field_name), str):
                raise ValueError(f"{field_name} must be a string")
        _check_identity(self.subject, "subject")
        _check_timestamp(self.expiration, "expiration")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape handed out by the issuer."""
        return {
            "name": self.name,
            "version": self.version,
            "cluster": self.cluster,
            "subject": "0x" + self.subject.hex(),
            "expiration": self.expiration,
            "schema": self.schema,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attestation':
        """Create an Attestation from its JSON shape."""
        required = ["name", "version", "cluster", "subject", "expiration", "schema"]
        missing = [f for f in required if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")

        return cls(
            name=data["name"],
            version=data["version"],
            cluster=data["cluster"],
            subject=_as_bytes(data["subject"], "subject"),
            expiration=data["expiration"],
            schema=data["schema"],
        )


@dataclass(frozen=True)
class Signature:
    """
    Compact secp256k1 signature: 64 bytes of r || s plus a recovery id.

    The recovery id is kept as given. Whether it is in range is decided
    during recovery, so an out-of-range id surfaces as a verification
    outcome rather than a parse error.
    """
    signature: bytes
    recovery_id: int

    def __post_init__(self):
        if not isinstance(self.signature, bytes) or len(self.signature) != SIGNATURE_LENGTH:
            raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes")
        if isinstance(self.recovery_id, bool) or not isinstance(self.recovery_id, int):
            raise ValueError("recovery_id must be an integer")
        if not 0 <= self.recovery_id <= 255:
            raise ValueError("recovery_id must fit in a single byte")

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Signature':
        """
        Parse the 65-byte r || s || v form.

        v may be the raw recovery id or carry the Ethereum offset of 27.
        """
        if len(data) != SIGNATURE_LENGTH + 1:
            raise ValueError(
                f"Expected {SIGNATURE_LENGTH + 1} signature bytes, got {len(data)}"
            )
        v = data[SIGNATURE_LENGTH]
        if v >= RECOVERY_ID_OFFSET:
            v -= RECOVERY_ID_OFFSET
        return cls(signature=bytes(data[:SIGNATURE_LENGTH]), recovery_id=v)

    @classmethod
    def from_hex(cls, value: str) -> 'Signature':
        return cls.from_bytes(parse_hex(value))

    def to_hex(self) -> str:
        return "0x" + self.signature.hex() + format(self.recovery_id, "02x")


@dataclass(frozen=True)
class CallerContext:
    """
    Who is presenting the attestation, and when.

    All three values come from the calling infrastructure:
    - identity: 32-byte identity of the presenting party
    - is_signer: Whether that identity authenticated the current call
    - current_time: Unix seconds at which the call is evaluated
    """
    identity: bytes
    is_signer: bool
    current_time: int

    def __post_init__(self):
        _check_identity(self.identity, "identity")
        if not isinstance(self.is_signer, bool):
            raise ValueError("is_signer must be a bool")
        _check_timestamp(self.current_time, "current_time")
