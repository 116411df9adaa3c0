"""COSE credential public keys: decoding, signature checks and PEM display."""

from __future__ import annotations

import base64
import hashlib
import io
import textwrap
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Union

import cbor2
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from .errors import WebAuthnError

ED25519_PUBLIC_KEY_SIZE = 32
_CANNOT_DISPLAY = "Cannot display key"


class CoseError(WebAuthnError):
    """Error raised while handling COSE key material."""

    def with_details(self, details: str) -> "CoseError":
        """Return a copy of this error with different details."""
        return type(self)(self.type, details, self.dev_info)


ERR_UNSUPPORTED_KEY = CoseError("invalid_key_type", "Unsupported Public Key Type")
ERR_UNSUPPORTED_ALGORITHM = CoseError(
    "unsupported_key_algorithm", "Unsupported public key algorithm"
)
ERR_SIG_NOT_PROVIDED_OR_INVALID = CoseError(
    "signature_not_provided_or_invalid", "Signature invalid or not provided"
)


class COSEAlgorithmIdentifier(IntEnum):
    """IANA COSE algorithm identifiers."""

    ES256 = -7
    ES384 = -35
    ES512 = -36
    RS1 = -65535
    RS256 = -257
    RS384 = -258
    RS512 = -259
    PS256 = -37
    PS384 = -38
    PS512 = -39
    EDDSA = -8


class COSEKeyType(IntEnum):
    """IANA COSE key types."""

    OCTET_KEY = 1
    ELLIPTIC_KEY = 2
    RSA_KEY = 3


class SignatureAlgorithm(IntEnum):
    """Signature algorithms a COSE algorithm maps onto."""

    UNKNOWN = 0
    MD2_WITH_RSA = 1
    MD5_WITH_RSA = 2
    SHA1_WITH_RSA = 3
    SHA256_WITH_RSA = 4
    SHA384_WITH_RSA = 5
    SHA512_WITH_RSA = 6
    DSA_WITH_SHA1 = 7
    DSA_WITH_SHA256 = 8
    ECDSA_WITH_SHA1 = 9
    ECDSA_WITH_SHA256 = 10
    ECDSA_WITH_SHA384 = 11
    ECDSA_WITH_SHA512 = 12
    SHA256_WITH_RSAPSS = 13
    SHA384_WITH_RSAPSS = 14
    SHA512_WITH_RSAPSS = 15


_A = COSEAlgorithmIdentifier
_S = SignatureAlgorithm

SIGNATURE_ALGORITHM_DETAILS: tuple[tuple[SignatureAlgorithm, COSEAlgorithmIdentifier, str, Callable], ...] = (
    (_S.SHA1_WITH_RSA, _A.RS1, "SHA1-RSA", hashlib.sha1),
    (_S.SHA256_WITH_RSA, _A.RS256, "SHA256-RSA", hashlib.sha256),
    (_S.SHA384_WITH_RSA, _A.RS384, "SHA384-RSA", hashlib.sha384),
    (_S.SHA512_WITH_RSA, _A.RS512, "SHA512-RSA", hashlib.sha512),
    (_S.SHA256_WITH_RSAPSS, _A.PS256, "SHA256-RSAPSS", hashlib.sha256),
    (_S.SHA384_WITH_RSAPSS, _A.PS384, "SHA384-RSAPSS", hashlib.sha384),
    (_S.SHA512_WITH_RSAPSS, _A.PS512, "SHA512-RSAPSS", hashlib.sha512),
    (_S.ECDSA_WITH_SHA256, _A.ES256, "ECDSA-SHA256", hashlib.sha256),
    (_S.ECDSA_WITH_SHA384, _A.ES384, "ECDSA-SHA384", hashlib.sha384),
    (_S.ECDSA_WITH_SHA512, _A.ES512, "ECDSA-SHA512", hashlib.sha512),
    (_S.UNKNOWN, _A.EDDSA, "EdDSA", hashlib.sha512),
)

_CRYPTO_HASHES = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

_EC_CURVES = {
    _A.ES256: ec.SECP256R1,
    _A.ES384: ec.SECP384R1,
    _A.ES512: ec.SECP521R1,
}

_RSA_HASHES = {
    _A.RS1: hashes.SHA1,
    _A.RS256: hashes.SHA256,
    _A.PS256: hashes.SHA256,
    _A.RS384: hashes.SHA384,
    _A.PS384: hashes.SHA384,
    _A.RS512: hashes.SHA512,
    _A.PS512: hashes.SHA512,
}

_PSS_ALGORITHMS = {_A.PS256, _A.PS384, _A.PS512}


def sig_alg_from_cose_alg(cose_alg: int) -> SignatureAlgorithm:
    """Return the signature algorithm for a COSE algorithm identifier."""
    return next(
        (algo for algo, alg, _, _ in SIGNATURE_ALGORITHM_DETAILS if alg == cose_alg),
        SignatureAlgorithm.UNKNOWN,
    )


def hasher_from_cose_alg(cose_alg: int) -> Callable:
    """Return the hashlib constructor for a COSE algorithm, SHA-256 by default."""
    return next(
        (hasher for _, alg, _, hasher in SIGNATURE_ALGORITHM_DETAILS if alg == cose_alg),
        hashlib.sha256,
    )


def _digest(algorithm: int, data: bytes) -> tuple[bytes, hashes.HashAlgorithm]:
    hasher = hasher_from_cose_alg(algorithm)(bytes(data))
    return hasher.digest(), _CRYPTO_HASHES[hasher.name]()


def _rsa_exponent(exponent: bytes) -> int:
    if len(exponent) < 3:
        raise ERR_UNSUPPORTED_KEY.with_details("Invalid RSA exponent")
    return int.from_bytes(bytes(exponent[:3]), "big")


@dataclass
class PublicKeyData:
    """Fields common to every COSE public key."""

    key_type: int = 0
    algorithm: int = 0


@dataclass
class EC2PublicKeyData(PublicKeyData):
    """An elliptic-curve public key given by its coordinates."""

    curve: int = 0
    x_coord: bytes = b""
    y_coord: bytes = b""

    def _curve(self) -> ec.EllipticCurve:
        try:
            return _EC_CURVES[COSEAlgorithmIdentifier(self.algorithm)]()
        except (ValueError, KeyError):
            raise ERR_UNSUPPORTED_ALGORITHM from None

    def _public_key(self, curve: ec.EllipticCurve) -> ec.EllipticCurvePublicKey:
        return ec.EllipticCurvePublicNumbers(
            int.from_bytes(bytes(self.x_coord), "big"),
            int.from_bytes(bytes(self.y_coord), "big"),
            curve,
        ).public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check an ASN.1 DER ECDSA signature over ``data``."""
        curve = self._curve()
        digest, hash_alg = _digest(self.algorithm, data)
        try:
            r, s = decode_dss_signature(bytes(sig))
        except (ValueError, TypeError):
            raise ERR_SIG_NOT_PROVIDED_OR_INVALID from None
        try:
            key = self._public_key(curve)
            key.verify(encode_dss_signature(r, s), digest, ec.ECDSA(Prehashed(hash_alg)))
        except (InvalidSignature, ValueError):
            return False
        return True


@dataclass
class RSAPublicKeyData(PublicKeyData):
    """An RSA public key given by modulus and exponent."""

    modulus: bytes = b""
    exponent: bytes = b""

    def _public_key(self) -> rsa.RSAPublicKey:
        return rsa.RSAPublicNumbers(
            _rsa_exponent(self.exponent), int.from_bytes(bytes(self.modulus), "big")
        ).public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check a PKCS#1 v1.5 or PSS signature over ``data``."""
        exponent = _rsa_exponent(self.exponent)
        try:
            alg = COSEAlgorithmIdentifier(self.algorithm)
            hash_alg = _RSA_HASHES[alg]()
        except (ValueError, KeyError):
            raise ERR_UNSUPPORTED_ALGORITHM from None
        digest, _ = _digest(self.algorithm, data)
        if alg in _PSS_ALGORITHMS:
            pad: padding.AsymmetricPadding = padding.PSS(
                mgf=padding.MGF1(hash_alg), salt_length=padding.PSS.AUTO
            )
        else:
            pad = padding.PKCS1v15()
        try:
            key = rsa.RSAPublicNumbers(
                exponent, int.from_bytes(bytes(self.modulus), "big")
            ).public_key()
            key.verify(bytes(sig), digest, pad, Prehashed(hash_alg))
        except (InvalidSignature, ValueError):
            return False
        return True


@dataclass
class OKPPublicKeyData(PublicKeyData):
    """An octet key pair public key (Ed25519)."""

    curve: int = 0
    x_coord: bytes = b""

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check an Ed25519 signature over ``data``."""
        key_bytes = (bytes(self.x_coord) + bytes(ED25519_PUBLIC_KEY_SIZE))[
            :ED25519_PUBLIC_KEY_SIZE
        ]
        try:
            Ed25519PublicKey.from_public_bytes(key_bytes).verify(bytes(sig), bytes(data))
        except (InvalidSignature, ValueError):
            return False
        return True


AnyPublicKey = Union[OKPPublicKeyData, EC2PublicKeyData, RSAPublicKeyData]


def _int_field(mapping: dict, key: int) -> int:
    value = mapping.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _bytes_field(mapping: dict, key: int) -> bytes:
    value = mapping.get(key)
    return bytes(value) if isinstance(value, (bytes, bytearray)) else b""


def parse_public_key(key_bytes: bytes) -> AnyPublicKey:
    """Decode CBOR COSE key material into the matching key class."""
    try:
        mapping = cbor2.CBORDecoder(io.BytesIO(bytes(key_bytes))).decode()
    except (cbor2.CBORDecodeError, ValueError, EOFError):
        raise ERR_UNSUPPORTED_KEY from None
    if not isinstance(mapping, dict):
        raise ERR_UNSUPPORTED_KEY

    key_type = _int_field(mapping, 1)
    algorithm = _int_field(mapping, 3)
    if key_type == COSEKeyType.OCTET_KEY:
        return OKPPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(mapping, -1),
            x_coord=_bytes_field(mapping, -2),
        )
    if key_type == COSEKeyType.ELLIPTIC_KEY:
        return EC2PublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(mapping, -1),
            x_coord=_bytes_field(mapping, -2),
            y_coord=_bytes_field(mapping, -3),
        )
    if key_type == COSEKeyType.RSA_KEY:
        return RSAPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            modulus=_bytes_field(mapping, -1),
            exponent=_bytes_field(mapping, -2),
        )
    raise ERR_UNSUPPORTED_KEY


def verify_signature(key: PublicKeyData, data: bytes, sig: bytes) -> bool:
    """Verify ``sig`` over ``data`` with a parsed COSE key."""
    if isinstance(key, (OKPPublicKeyData, EC2PublicKeyData, RSAPublicKeyData)):
        return key.verify(data, sig)
    raise ERR_UNSUPPORTED_KEY


def _pem(block_type: str, der: bytes) -> str:
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), 64))
    return f"-----BEGIN {block_type}-----\n{body}\n-----END {block_type}-----\n"


def _spki(key) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


def display_public_key(cpk: bytes) -> str:
    """Render CBOR COSE key material as a PEM block, or a short notice."""
    try:
        parsed = parse_public_key(cpk)
    except CoseError:
        return _CANNOT_DISPLAY

    if isinstance(parsed, RSAPublicKeyData):
        try:
            return _pem("RSA PUBLIC KEY", _spki(parsed._public_key()))
        except (CoseError, ValueError):
            return _CANNOT_DISPLAY
    if isinstance(parsed, EC2PublicKeyData):
        try:
            curve = _EC_CURVES[COSEAlgorithmIdentifier(parsed.algorithm)]()
            return _pem("PUBLIC KEY", _spki(parsed._public_key(curve)))
        except (KeyError, ValueError):
            return _CANNOT_DISPLAY
    if isinstance(parsed, OKPPublicKeyData):
        if len(parsed.x_coord) != ED25519_PUBLIC_KEY_SIZE:
            return _CANNOT_DISPLAY
        try:
            return _pem("PUBLIC KEY", _spki(Ed25519PublicKey.from_public_bytes(parsed.x_coord)))
        except ValueError:
            return _CANNOT_DISPLAY
    return "Cannot display key of this type"