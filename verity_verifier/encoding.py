"""
Verity Canonical Encoding

Borsh serialization of an Attestation. The issuer signs exactly these bytes,
so any change in field order or width yields a different digest.

Layout (field order is fixed):
- name, version, cluster: u32 little-endian length, then UTF-8 bytes
- subject: 32 raw bytes
- expiration: i64 little-endian
- schema: u32 little-endian length, then UTF-8 bytes
"""

import struct

from .attestation import Attestation, SUBJECT_LENGTH


class EncodingError(ValueError):
    """Raised when bytes cannot be decoded as an Attestation."""


_U32 = struct.Struct("<I")
_I64 = struct.Struct("<q")


def encode_string(value: str) -> bytes:
    data = value.encode("utf-8")
    return _U32.pack(len(data)) + data


def encode_i64(value: int) -> bytes:
    return _I64.pack(value)


def encode_public_key(value: bytes) -> bytes:
    if len(value) != SUBJECT_LENGTH:
        raise EncodingError(f"Public key must be {SUBJECT_LENGTH} bytes")
    return bytes(value)


def encode_attestation(attestation: Attestation) -> bytes:
    """Serialize an Attestation into the bytes the issuer signed."""
    return b"".join([
        encode_string(attestation.name),
        encode_string(attestation.version),
        encode_string(attestation.cluster),
        encode_public_key(attestation.subject),
        encode_i64(attestation.expiration),
        encode_string(attestation.schema),
    ])


class _Reader:
    """Cursor over a byte buffer that refuses to read past the end."""

    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise EncodingError(
                f"Unexpected end of data at offset {self._offset}: "
                f"need {size} bytes, have {len(self._data) - self._offset}"
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def string(self) -> str:
        (length,) = _U32.unpack(self.take(_U32.size))
        raw = self.take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 string: {e}")

    def i64(self) -> int:
        return _I64.unpack(self.take(_I64.size))[0]

    def remaining(self) -> int:
        return len(self._data) - self._offset


def decode_attestation(data: bytes) -> Attestation:
    """
    Parse bytes produced by encode_attestation.

    Raises:
        EncodingError: If the data is truncated, malformed, or has
            trailing bytes
    """
    reader = _Reader(bytes(data))
    name = reader.string()
    version = reader.string()
    cluster = reader.string()
    subject = reader.take(SUBJECT_LENGTH)
    expiration = reader.i64()
    schema = reader.string()

    if reader.remaining():
        raise EncodingError(f"{reader.remaining()} trailing bytes after attestation")

    return Attestation(
        name=name,
        version=version,
        cluster=cluster,
        subject=subject,
        expiration=expiration,
        schema=schema,
    )


def encoded_length(attestation: Attestation) -> int:
    """Size in bytes of the encoded attestation."""
    strings = (attestation.name, attestation.version, attestation.cluster, attestation.schema)
    return sum(_U32.size + len(s.encode("utf-8")) for s in strings) + SUBJECT_LENGTH + _I64.size
