import struct

import pytest

from relyauth.pubarea import (
    DEFAULT_RSA_EXPONENT,
    EllipticCurve,
    KeyProp,
    SigScheme,
    SymScheme,
    decode_public,
)
from relyauth.tpm import Algorithm, TPMDecodeError

MODULUS = bytes(range(1, 33))


def _sized(data: bytes) -> bytes:
    return struct.pack(">H", len(data)) + data


def _header(alg: int, attrs: int = int(KeyProp.SIGNER_DEFAULT), policy: bytes = b"") -> bytes:
    return struct.pack(">HHI", alg, Algorithm.SHA256, attrs) + _sized(policy)


def _rsa_body(exponent: int) -> bytes:
    return (
        struct.pack(">H", Algorithm.NULL)
        + struct.pack(">HH", Algorithm.RSASSA, Algorithm.SHA256)
        + struct.pack(">HI", 2048, exponent)
        + _sized(MODULUS)
    )


def _ecc_body(curve: int) -> bytes:
    return (
        struct.pack(">H", Algorithm.NULL)
        + struct.pack(">H", Algorithm.NULL)
        + struct.pack(">H", curve)
        + struct.pack(">H", Algorithm.NULL)
        + _sized(b"\x01")
        + _sized(b"\x02")
    )


def test_rsa_default_exponent_encoded_as_zero():
    pub = decode_public(_header(Algorithm.RSA, policy=b"\xaa\xbb") + _rsa_body(0))
    assert pub.type == Algorithm.RSA
    assert pub.name_alg == Algorithm.SHA256
    assert pub.attributes == KeyProp.SIGNER_DEFAULT
    assert pub.auth_policy == b"\xaa\xbb"
    params = pub.rsa_parameters
    assert params.symmetric is None
    assert params.sign == SigScheme(alg=Algorithm.RSASSA, hash=Algorithm.SHA256, count=0)
    assert params.key_bits == 2048
    assert params.exponent == DEFAULT_RSA_EXPONENT == 65537
    assert params.encode_default_exponent_as_zero is True
    assert params.modulus == int.from_bytes(MODULUS, "big")
    assert pub.ecc_parameters is None


def test_rsa_explicit_exponent():
    pub = decode_public(_header(Algorithm.RSA) + _rsa_body(3) + b"trailing")
    assert pub.rsa_parameters.exponent == 3
    assert pub.rsa_parameters.encode_default_exponent_as_zero is False


def test_ecc_public_area():
    x = b"\x01" * 32
    y = b"\x02" * 32
    body = (
        struct.pack(">HHH", Algorithm.AES, 128, Algorithm.CFB)
        + struct.pack(">HHI", Algorithm.ECDAA, Algorithm.SHA256, 7)
        + struct.pack(">H", EllipticCurve.NIST_P256)
        + struct.pack(">H", Algorithm.NULL)
        + _sized(x)
        + _sized(y)
    )
    pub = decode_public(_header(Algorithm.ECC) + body)
    params = pub.ecc_parameters
    assert params.symmetric == SymScheme(alg=Algorithm.AES, key_bits=128, mode=Algorithm.CFB)
    assert params.sign == SigScheme(alg=Algorithm.ECDAA, hash=Algorithm.SHA256, count=7)
    assert params.curve_id == EllipticCurve.NIST_P256
    assert params.kdf is None
    assert params.point.x == int.from_bytes(x, "big")
    assert params.point.y == int.from_bytes(y, "big")
    assert pub.rsa_parameters is None


def test_ecc_with_kdf_and_unlisted_curve():
    body = (
        struct.pack(">H", Algorithm.NULL)
        + struct.pack(">H", Algorithm.NULL)
        + struct.pack(">H", 0x0099)
        + struct.pack(">HH", Algorithm.KDF2, Algorithm.SHA384)
        + _sized(b"\x05")
        + _sized(b"\x06")
    )
    params = decode_public(_header(Algorithm.ECC) + body).ecc_parameters
    assert params.curve_id == 0x0099
    assert params.kdf.alg == Algorithm.KDF2
    assert params.kdf.hash == Algorithm.SHA384
    assert (params.point.x, params.point.y) == (5, 6)


def test_unsupported_type():
    with pytest.raises(TPMDecodeError, match="unsupported type in TPMT_PUBLIC: 8"):
        decode_public(_header(Algorithm.KEYED_HASH))


def test_truncated_header():
    with pytest.raises(TPMDecodeError, match="^decoding TPMT_PUBLIC"):
        decode_public(struct.pack(">H", Algorithm.RSA))


def test_truncated_sign_scheme():
    data = _header(Algorithm.RSA) + struct.pack(">HH", Algorithm.NULL, Algorithm.RSASSA)
    with pytest.raises(TPMDecodeError, match="^decoding Sign: decoding Hash"):
        decode_public(data)


def test_key_prop_defaults_are_combinations():
    seal = decode_public(_header(Algorithm.RSA, attrs=int(KeyProp.SEAL_DEFAULT)) + _rsa_body(0))
    assert seal.attributes == KeyProp.FIXED_TPM | KeyProp.FIXED_PARENT
    assert seal.attributes == 0x12
    storage = decode_public(
        _header(Algorithm.RSA, attrs=int(KeyProp.STORAGE_DEFAULT)) + _rsa_body(0)
    )
    assert KeyProp.DECRYPT in KeyProp(storage.attributes)
    assert KeyProp.SIGN not in KeyProp(storage.attributes)
    signer = decode_public(_header(Algorithm.RSA) + _rsa_body(0))
    assert KeyProp.SIGN in KeyProp(signer.attributes)


@pytest.mark.parametrize(
    "raw, curve",
    [
        (5, EllipticCurve.NIST_P521),
        (15, EllipticCurve.BN_P256),
        (0x20, EllipticCurve.SM2_P256),
    ],
)
def test_curve_identifiers(raw, curve):
    params = decode_public(_header(Algorithm.ECC) + _ecc_body(raw)).ecc_parameters
    assert params.curve_id == curve
    assert params.curve_id == raw