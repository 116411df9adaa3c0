"""Authenticator data: flags, parsing and relying-party checks."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum, IntFlag

import cbor2

from .errors import ERR_BAD_REQUEST, ERR_VERIFICATION

MIN_AUTH_DATA_LENGTH = 37
_AAGUID_END = 53
_CRED_ID_START = 55


class AuthenticatorAttachment(str, Enum):
    """How an authenticator is attached to the client."""

    PLATFORM = "platform"
    CROSS_PLATFORM = "cross-platform"


class AuthenticatorTransport(str, Enum):
    """Transport hints for reaching an authenticator."""

    USB = "usb"
    NFC = "nfc"
    BLE = "ble"
    INTERNAL = "internal"


class UserVerificationRequirement(str, Enum):
    """Relying party requirement for user verification."""

    REQUIRED = "required"
    PREFERRED = "preferred"
    DISCOURAGED = "discouraged"


class AuthenticatorFlags(IntFlag):
    """Flag byte of the authenticator data; unnamed bits are reserved."""

    USER_PRESENT = 0x01
    USER_VERIFIED = 0x04
    ATTESTED_CREDENTIAL_DATA = 0x40
    HAS_EXTENSIONS = 0x80

    def user_present(self) -> bool:
        return bool(self & AuthenticatorFlags.USER_PRESENT)

    def user_verified(self) -> bool:
        return bool(self & AuthenticatorFlags.USER_VERIFIED)

    def has_attested_credential_data(self) -> bool:
        return bool(self & AuthenticatorFlags.ATTESTED_CREDENTIAL_DATA)

    def has_extensions(self) -> bool:
        return bool(self & AuthenticatorFlags.HAS_EXTENSIONS)


@dataclass
class AuthenticatorResponse:
    """The client data JSON returned by an authenticator."""

    client_data_json: bytes = b""


@dataclass
class AttestedCredentialData:
    """AAGUID, credential ID and CBOR-encoded credential public key."""

    aaguid: bytes = b""
    credential_id: bytes = b""
    credential_public_key: bytes = b""


def _reencode_public_key(key_bytes: bytes) -> bytes:
    """Decode the first CBOR item of ``key_bytes`` and encode it again."""
    try:
        value = cbor2.CBORDecoder(io.BytesIO(key_bytes)).decode()
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise ERR_BAD_REQUEST.with_details(
            "Unable to decode credential public key"
        ).with_info(str(exc)) from exc
    return cbor2.dumps(value)


@dataclass
class AuthenticatorData:
    """Decoded authenticator data structure."""

    rp_id_hash: bytes = b""
    flags: AuthenticatorFlags = AuthenticatorFlags(0)
    counter: int = 0
    att_data: AttestedCredentialData = field(default_factory=AttestedCredentialData)
    ext_data: bytes | None = None

    @classmethod
    def parse(cls, raw_auth_data: bytes) -> "AuthenticatorData":
        """Decode raw authenticator data, raising WebAuthnError when malformed."""
        raw = bytes(raw_auth_data)
        if len(raw) < MIN_AUTH_DATA_LENGTH:
            raise ERR_BAD_REQUEST.with_details(
                "Authenticator data length too short"
            ).with_info(
                f"Expected data greater than {MIN_AUTH_DATA_LENGTH} bytes. "
                f"Got {len(raw)} bytes\n"
            )

        data = cls(
            rp_id_hash=raw[:32],
            flags=AuthenticatorFlags(raw[32]),
            counter=int.from_bytes(raw[33:37], "big"),
        )
        remaining = len(raw) - MIN_AUTH_DATA_LENGTH

        if data.flags.has_attested_credential_data():
            if len(raw) == MIN_AUTH_DATA_LENGTH:
                raise ERR_BAD_REQUEST.with_details(
                    "Attested credential flag set but data is missing"
                )
            data.att_data = _parse_attested_data(raw)
            att = data.att_data
            remaining -= (
                len(att.aaguid) + 2 + len(att.credential_id) + len(att.credential_public_key)
            )
        elif not data.flags.has_extensions() and len(raw) != MIN_AUTH_DATA_LENGTH:
            raise ERR_BAD_REQUEST.with_details("Attested credential flag not set")

        if data.flags.has_extensions():
            if remaining == 0:
                raise ERR_BAD_REQUEST.with_details(
                    "Extensions flag set but extensions data is missing"
                )
            if remaining > 0:
                data.ext_data = raw[len(raw) - remaining:]
                remaining = 0

        if remaining != 0:
            raise ERR_BAD_REQUEST.with_details("Leftover bytes decoding AuthenticatorData")
        return data

    def verify(self, rp_id_hash: bytes, user_verification_required: bool) -> None:
        """Check the RP ID hash and the user presence and verification flags."""
        if bytes(self.rp_id_hash) != bytes(rp_id_hash):
            raise ERR_VERIFICATION.with_info(
                f"RP Hash mismatch. Expected {bytes(self.rp_id_hash).hex()} "
                f"and Received {bytes(rp_id_hash).hex()}\n"
            )
        if not self.flags.user_present():
            raise ERR_VERIFICATION.with_info("User presence flag not set by authenticator\n")
        if user_verification_required and not self.flags.user_verified():
            raise ERR_VERIFICATION.with_info(
                "User verification required but flag not set by authenticator\n"
            )


def _parse_attested_data(raw: bytes) -> AttestedCredentialData:
    if len(raw) < _CRED_ID_START:
        raise ERR_BAD_REQUEST.with_details("Attested credential data too short")
    id_length = int.from_bytes(raw[_AAGUID_END:_CRED_ID_START], "big")
    id_end = _CRED_ID_START + id_length
    if id_end > len(raw):
        raise ERR_BAD_REQUEST.with_details("Attested credential data too short")
    return AttestedCredentialData(
        aaguid=raw[MIN_AUTH_DATA_LENGTH:_AAGUID_END],
        credential_id=raw[_CRED_ID_START:id_end],
        credential_public_key=_reencode_public_key(raw[id_end:]),
    )


def resident_key_required() -> bool:
    """Require the private key to be resident on the client device."""
    return True


def resident_key_unrequired() -> bool:
    """Do not require the private key to be resident on the client device."""
    return False