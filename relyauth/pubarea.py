"""Decoding of TPM 2.0 public areas (TPMT_PUBLIC)."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Iterator

from .tpm import Algorithm, TPMDecodeError, Unpacker

DEFAULT_RSA_EXPONENT = (1 << 16) + 1


class KeyProp(IntFlag):
    """Key attribute bits of a TPM key template."""

    FIXED_TPM = 0x00000002
    FIXED_PARENT = 0x00000010
    SENSITIVE_DATA_ORIGIN = 0x00000020
    USER_WITH_AUTH = 0x00000040
    ADMIN_WITH_POLICY = 0x00000080
    NO_DA = 0x00000400
    RESTRICTED = 0x00010000
    DECRYPT = 0x00020000
    SIGN = 0x00040000

    SEAL_DEFAULT = FIXED_TPM | FIXED_PARENT
    SIGNER_DEFAULT = (
        SIGN | RESTRICTED | FIXED_TPM | FIXED_PARENT | SENSITIVE_DATA_ORIGIN | USER_WITH_AUTH
    )
    STORAGE_DEFAULT = (
        DECRYPT | RESTRICTED | FIXED_TPM | FIXED_PARENT | SENSITIVE_DATA_ORIGIN | USER_WITH_AUTH
    )


class EllipticCurve(IntEnum):
    """ECC curves of the TPM 2.0 specification."""

    NIST_P192 = 1
    NIST_P224 = 2
    NIST_P256 = 3
    NIST_P384 = 4
    NIST_P521 = 5
    BN_P256 = 15
    BN_P638 = 16
    SM2_P256 = 0x0020


@dataclass
class SymScheme:
    """A symmetric encryption scheme."""

    alg: Algorithm = Algorithm.NULL
    key_bits: int = 0
    mode: Algorithm = Algorithm.NULL


@dataclass
class SigScheme:
    """A signing scheme."""

    alg: Algorithm = Algorithm.NULL
    hash: Algorithm = Algorithm.NULL
    count: int = 0


@dataclass
class KDFScheme:
    """A key derivation function scheme."""

    alg: Algorithm = Algorithm.NULL
    hash: Algorithm = Algorithm.NULL


@dataclass
class ECPoint:
    """Coordinates of an elliptic-curve point."""

    x: int = 0
    y: int = 0


@dataclass
class RSAParams:
    """Parameters of an RSA key pair.

    An exponent encoded as zero stands for the default exponent; that fact is
    kept in ``encode_default_exponent_as_zero`` so the encoding can be rebuilt.
    """

    symmetric: SymScheme | None = None
    sign: SigScheme | None = None
    key_bits: int = 0
    exponent: int = DEFAULT_RSA_EXPONENT
    modulus: int = 0
    modulus_raw: bytes = b""
    encode_default_exponent_as_zero: bool = False


@dataclass
class ECCParams:
    """Parameters of an ECC key pair."""

    symmetric: SymScheme | None = None
    sign: SigScheme | None = None
    curve_id: EllipticCurve | int = 0
    kdf: KDFScheme | None = None
    point: ECPoint = field(default_factory=ECPoint)


@dataclass
class Public:
    """The public area of a TPM object."""

    type: Algorithm = Algorithm.UNKNOWN
    name_alg: Algorithm = Algorithm.UNKNOWN
    attributes: KeyProp = KeyProp(0)
    auth_policy: bytes = b""
    rsa_parameters: RSAParams | None = None
    ecc_parameters: ECCParams | None = None


@contextmanager
def _context(label: str) -> Iterator[None]:
    try:
        yield
    except TPMDecodeError as exc:
        raise TPMDecodeError(f"{label}: {exc}") from exc


def _algorithm(reader: Unpacker) -> Algorithm:
    return Algorithm(reader.read_uint(2))


def _decode_sym_scheme(reader: Unpacker) -> SymScheme | None:
    with _context("decoding Alg"):
        alg = _algorithm(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding KeyBits, Mode"):
        key_bits = reader.read_uint(2)
        mode = _algorithm(reader)
    return SymScheme(alg=alg, key_bits=key_bits, mode=mode)


def _decode_sig_scheme(reader: Unpacker) -> SigScheme | None:
    with _context("decoding Alg"):
        alg = _algorithm(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding Hash"):
        hash_alg = _algorithm(reader)
    count = 0
    if alg.uses_count():
        with _context("decoding Count"):
            count = reader.read_uint(4)
    return SigScheme(alg=alg, hash=hash_alg, count=count)


def _decode_kdf_scheme(reader: Unpacker) -> KDFScheme | None:
    with _context("decoding Alg"):
        alg = _algorithm(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding Hash"):
        hash_alg = _algorithm(reader)
    return KDFScheme(alg=alg, hash=hash_alg)


def _decode_rsa_params(reader: Unpacker) -> RSAParams:
    with _context("decoding Symmetric"):
        symmetric = _decode_sym_scheme(reader)
    with _context("decoding Sign"):
        sign = _decode_sig_scheme(reader)
    with _context("decoding KeyBits, Exponent, Modulus"):
        key_bits = reader.read_uint(2)
        exponent = reader.read_uint(4)
        modulus = reader.read_sized()
    params = RSAParams(
        symmetric=symmetric,
        sign=sign,
        key_bits=key_bits,
        exponent=exponent,
        modulus=int.from_bytes(modulus, "big"),
    )
    if exponent == 0:
        params.encode_default_exponent_as_zero = True
        params.exponent = DEFAULT_RSA_EXPONENT
    return params


def _curve(value: int) -> EllipticCurve | int:
    try:
        return EllipticCurve(value)
    except ValueError:
        return value


def _decode_ecc_params(reader: Unpacker) -> ECCParams:
    with _context("decoding Symmetric"):
        symmetric = _decode_sym_scheme(reader)
    with _context("decoding Sign"):
        sign = _decode_sig_scheme(reader)
    with _context("decoding CurveID"):
        curve_id = _curve(reader.read_uint(2))
    with _context("decoding KDF"):
        kdf = _decode_kdf_scheme(reader)
    with _context("decoding Point"):
        x = reader.read_sized()
        y = reader.read_sized()
    return ECCParams(
        symmetric=symmetric,
        sign=sign,
        curve_id=curve_id,
        kdf=kdf,
        point=ECPoint(x=int.from_bytes(x, "big"), y=int.from_bytes(y, "big")),
    )


def decode_public(data: bytes) -> Public:
    """Decode a TPMT_PUBLIC message; trailing data is ignored."""
    reader = Unpacker(data)
    with _context("decoding TPMT_PUBLIC"):
        pub = Public(
            type=_algorithm(reader),
            name_alg=_algorithm(reader),
            attributes=KeyProp(reader.read_uint(4)),
            auth_policy=reader.read_sized(),
        )
    if pub.type == Algorithm.RSA:
        pub.rsa_parameters = _decode_rsa_params(reader)
    elif pub.type == Algorithm.ECC:
        pub.ecc_parameters = _decode_ecc_params(reader)
    else:
        raise TPMDecodeError(f"unsupported type in TPMT_PUBLIC: {int(pub.type)}")
    return pub