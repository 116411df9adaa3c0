"""Decoding of TPM 2.0 attestation structures (TPMS_ATTEST)."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable

TPM12_PREFIX_SIZE = 4
TPM20_PREFIX_SIZE = 2


class TPMDecodeError(ValueError):
    """Raised when TPM data cannot be decoded."""


class Algorithm(IntEnum):
    """TPM_ALG_ID values; unlisted identifiers decode to unnamed members."""

    UNKNOWN = 0x0000
    RSA = 0x0001
    SHA1 = 0x0004
    AES = 0x0006
    KEYED_HASH = 0x0008
    SHA256 = 0x000B
    SHA384 = 0x000C
    SHA512 = 0x000D
    NULL = 0x0010
    RSASSA = 0x0014
    RSAES = 0x0015
    RSAPSS = 0x0016
    OAEP = 0x0017
    ECDSA = 0x0018
    ECDH = 0x0019
    ECDAA = 0x001A
    KDF2 = 0x0021
    ECC = 0x0023
    CTR = 0x0040
    OFB = 0x0041
    CBC = 0x0042
    CFB = 0x0043
    ECB = 0x0044

    @classmethod
    def _missing_(cls, value: object) -> "Algorithm | None":
        if isinstance(value, int) and 0 <= value <= 0xFFFF:
            member = int.__new__(cls, value)
            member._name_ = f"UNASSIGNED_0x{value:04x}"
            member._value_ = value
            return member
        return None

    def hash_constructor(self) -> Callable:
        """Return the hashlib constructor for this hash algorithm."""
        try:
            return _HASH_CONSTRUCTORS[self]
        except KeyError:
            raise TPMDecodeError(f"algorithm not supported: 0x{int(self):x}") from None

    def uses_count(self) -> bool:
        """Return True if this signature algorithm carries a count value."""
        return self is Algorithm.ECDAA


_HASH_CONSTRUCTORS: dict[Algorithm, Callable] = {
    Algorithm.SHA1: hashlib.sha1,
    Algorithm.SHA256: hashlib.sha256,
    Algorithm.SHA384: hashlib.sha384,
    Algorithm.SHA512: hashlib.sha512,
}


class Tag(IntEnum):
    """TPM structure tags."""

    NULL = 0x8000
    NO_SESSIONS = 0x8001
    SESSIONS = 0x8002
    ATTEST_CERTIFY = 0x8017
    ATTEST_QUOTE = 0x8018
    ATTEST_CREATION = 0x801A
    HASH_CHECK = 0x8024


class Unpacker:
    """Big-endian reader over a byte string with length-prefixed byte arrays."""

    def __init__(self, data: bytes, prefix_size: int = TPM20_PREFIX_SIZE) -> None:
        self._data = bytes(data)
        self._offset = 0
        self.prefix_size = prefix_size

    @property
    def remaining(self) -> int:
        """Number of bytes not yet read."""
        return len(self._data) - self._offset

    def _take(self, count: int) -> bytes:
        if self.remaining == 0 and count > 0:
            raise TPMDecodeError("EOF")
        if count > self.remaining:
            raise TPMDecodeError("unexpected EOF")
        chunk = self._data[self._offset:self._offset + count]
        self._offset += count
        return chunk

    def read_uint(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes."""
        return int.from_bytes(self._take(size), "big")

    def read_sized(self) -> bytes:
        """Read a byte array preceded by its length."""
        if self.prefix_size not in (TPM20_PREFIX_SIZE, TPM12_PREFIX_SIZE):
            raise TPMDecodeError(
                f"length prefix size is {self.prefix_size}, must be either 2 or 4"
            )
        size = self.read_uint(self.prefix_size)
        if size == 0:
            return b""
        return self._take(size)

    def read_raw(self, count: int) -> bytes:
        """Read up to ``count`` bytes, zero-filled to ``count`` on a short read.

        Raises TPMDecodeError only when bytes are wanted and none remain.
        """
        if count == 0:
            return b""
        if self.remaining == 0:
            raise TPMDecodeError("EOF")
        chunk = self._data[self._offset:self._offset + count]
        self._offset += len(chunk)
        return chunk + bytes(count - len(chunk))


@dataclass
class HashValue:
    """A digest together with the algorithm that produced it."""

    alg: Algorithm = Algorithm.UNKNOWN
    value: bytes = b""


@dataclass
class Name:
    """A TPM name: absent, a handle, or a digest."""

    handle: int | None = None
    digest: HashValue | None = None


@dataclass
class ClockInfo:
    """TPM clock state included in attestation data."""

    clock: int = 0
    reset_count: int = 0
    restart_count: int = 0
    safe: int = 0


@dataclass
class CertifyInfo:
    """Certify-specific attestation data."""

    name: Name = field(default_factory=Name)
    qualified_name: Name = field(default_factory=Name)


@dataclass
class PCRSelection:
    """PCR indexes together with the hash algorithm used in them."""

    hash: Algorithm = Algorithm.UNKNOWN
    pcrs: list[int] = field(default_factory=list)


@dataclass
class QuoteInfo:
    """Quote-specific attestation data."""

    pcr_selection: PCRSelection = field(default_factory=PCRSelection)
    pcr_digest: bytes = b""


@dataclass
class CreationInfo:
    """Creation-specific attestation data."""

    name: Name = field(default_factory=Name)
    opaque_digest: bytes = b""


@dataclass
class AttestationData:
    """Data attested by a TPM command."""

    magic: int = 0
    type: Tag = Tag.NULL
    qualified_signer: Name = field(default_factory=Name)
    extra_data: bytes = b""
    clock_info: ClockInfo = field(default_factory=ClockInfo)
    firmware_version: int = 0
    attested_certify_info: CertifyInfo | None = None
    attested_quote_info: QuoteInfo | None = None
    attested_creation_info: CreationInfo | None = None


def _decode_hash_value(reader: Unpacker) -> HashValue:
    try:
        alg = Algorithm(reader.read_uint(2))
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding Alg: {exc}") from exc
    constructor = _HASH_CONSTRUCTORS.get(alg)
    if constructor is None:
        raise TPMDecodeError(f"unsupported hash algorithm type 0x{int(alg):x}")
    try:
        value = reader.read_raw(constructor().digest_size)
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding Value: {exc}") from exc
    return HashValue(alg=alg, value=value)


def _decode_name(reader: Unpacker) -> Name:
    name_bytes = reader.read_sized()
    if not name_bytes:
        return Name()
    inner = Unpacker(name_bytes, reader.prefix_size)
    if len(name_bytes) == 4:
        return Name(handle=inner.read_uint(4))
    try:
        return Name(digest=_decode_hash_value(inner))
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding Digest: {exc}") from exc


def _decode_named(reader: Unpacker, label: str) -> Name:
    try:
        return _decode_name(reader)
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding {label}: {exc}") from exc


def _decode_certify_info(reader: Unpacker) -> CertifyInfo:
    name = _decode_named(reader, "Name")
    qualified = _decode_named(reader, "QualifiedName")
    return CertifyInfo(name=name, qualified_name=qualified)


def _decode_creation_info(reader: Unpacker) -> CreationInfo:
    name = _decode_named(reader, "Name")
    try:
        digest = reader.read_sized()
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding Digest: {exc}") from exc
    return CreationInfo(name=name, opaque_digest=digest)


def _decode_pcr_selection(reader: Unpacker) -> PCRSelection:
    count = reader.read_uint(4)
    if count == 0:
        return PCRSelection(hash=Algorithm.UNKNOWN)
    if count != 1:
        raise TPMDecodeError(
            "decoding TPML_PCR_SELECTION list longer than 1 is not supported "
            f"(got length {count})"
        )
    hash_alg = Algorithm(reader.read_uint(2))
    size = reader.read_uint(1)
    bitmap = reader.read_raw(size)
    pcrs = [
        8 * index + bit
        for index, octet in enumerate(bitmap)
        for bit in range(8)
        if octet & (1 << bit)
    ]
    return PCRSelection(hash=hash_alg, pcrs=pcrs)


def _decode_quote_info(reader: Unpacker) -> QuoteInfo:
    try:
        selection = _decode_pcr_selection(reader)
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding PCRSelection: {exc}") from exc
    try:
        digest = reader.read_sized()
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding PCRDigest: {exc}") from exc
    return QuoteInfo(pcr_selection=selection, pcr_digest=digest)


_BODY_DECODERS = {
    Tag.ATTEST_CERTIFY: ("attested_certify_info", _decode_certify_info, "AttestedCertifyInfo"),
    Tag.ATTEST_CREATION: ("attested_creation_info", _decode_creation_info, "AttestedCreationInfo"),
    Tag.ATTEST_QUOTE: ("attested_quote_info", _decode_quote_info, "AttestedQuoteInfo"),
}


def decode_attestation_data(data: bytes) -> AttestationData:
    """Decode a TPMS_ATTEST message; trailing data is ignored."""
    reader = Unpacker(data)
    try:
        magic = reader.read_uint(4)
        type_value = reader.read_uint(2)
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding Magic/Type: {exc}") from exc
    signer = _decode_named(reader, "QualifiedSigner")
    try:
        extra_data = reader.read_sized()
        clock_info = ClockInfo(
            clock=reader.read_uint(8),
            reset_count=reader.read_uint(4),
            restart_count=reader.read_uint(4),
            safe=reader.read_uint(1),
        )
        firmware_version = reader.read_uint(8)
    except TPMDecodeError as exc:
        raise TPMDecodeError(
            f"decoding ExtraData/ClockInfo/FirmwareVersion: {exc}"
        ) from exc

    decoder = _BODY_DECODERS.get(type_value)
    if decoder is None:
        raise TPMDecodeError(
            f"unsupported attestation structure type 0x{type_value:x}"
        )
    attribute, decode_body, label = decoder

    result = AttestationData(
        magic=magic,
        type=Tag(type_value),
        qualified_signer=signer,
        extra_data=extra_data,
        clock_info=clock_info,
        firmware_version=firmware_version,
    )
    try:
        setattr(result, attribute, decode_body(reader))
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"decoding {label}: {exc}") from exc
    return result