"""Credential creation and request options sent to the client."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from .authdata import AuthenticatorTransport, UserVerificationRequirement
from .cose import COSEAlgorithmIdentifier
from .encoding import Challenge
from .entities import RelyingPartyEntity, UserEntity

AuthenticationExtensions = Dict[str, Any]
AuthenticationExtensionsClientOutputs = Dict[Any, Any]


class CredentialType(str, Enum):
    """Valid credential types."""

    PUBLIC_KEY = "public-key"


class ConveyancePreference(str, Enum):
    """Relying party preference for attestation conveyance."""

    NONE = "none"
    INDIRECT = "indirect"
    DIRECT = "direct"


class ServerResponseStatus(str, Enum):
    """Status reported in a server response."""

    OK = "ok"
    FAILED = "failed"


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _std_b64(data: bytes | None) -> str | None:
    return None if data is None else base64.b64encode(bytes(data)).decode("ascii")


@dataclass
class CredentialDescriptor:
    """A public key credential referred to by the create() or get() call."""

    type: CredentialType | str = CredentialType.PUBLIC_KEY
    credential_id: bytes | None = b""
    transport: list[AuthenticatorTransport | str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this descriptor."""
        result: dict[str, Any] = {
            "type": _plain(self.type),
            "id": _std_b64(self.credential_id),
        }
        if self.transport:
            result["transports"] = [_plain(item) for item in self.transport]
        return result


@dataclass
class CredentialParameter:
    """A credential type and algorithm the relying party accepts."""

    type: CredentialType | str = CredentialType.PUBLIC_KEY
    algorithm: COSEAlgorithmIdentifier | int = COSEAlgorithmIdentifier.ES256

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this parameter."""
        return {"type": _plain(self.type), "alg": int(self.algorithm)}


@dataclass
class AuthenticatorSelection:
    """Relying party requirements on authenticator attributes."""

    authenticator_attachment: str = ""
    require_resident_key: bool | None = None
    user_verification: UserVerificationRequirement | str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping, leaving out unset members."""
        result: dict[str, Any] = {}
        if _plain(self.authenticator_attachment):
            result["authenticatorAttachment"] = _plain(self.authenticator_attachment)
        if self.require_resident_key is not None:
            result["requireResidentKey"] = self.require_resident_key
        if _plain(self.user_verification):
            result["userVerification"] = _plain(self.user_verification)
        return result


@dataclass
class PublicKeyCredentialCreationOptions:
    """Parameters for creating a credential."""

    challenge: Challenge | bytes | None = None
    relying_party: RelyingPartyEntity = field(default_factory=RelyingPartyEntity)
    user: UserEntity = field(default_factory=UserEntity)
    parameters: list[CredentialParameter] = field(default_factory=list)
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    timeout: int = 0
    credential_exclude_list: list[CredentialDescriptor] = field(default_factory=list)
    extensions: AuthenticationExtensions = field(default_factory=dict)
    attestation: ConveyancePreference | str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of these options."""
        result: dict[str, Any] = {
            "challenge": _std_b64(self.challenge),
            "rp": self.relying_party.to_dict(),
            "user": self.user.to_dict(),
        }
        if self.parameters:
            result["pubKeyCredParams"] = [param.to_dict() for param in self.parameters]
        result["authenticatorSelection"] = self.authenticator_selection.to_dict()
        if self.timeout:
            result["timeout"] = self.timeout
        if self.credential_exclude_list:
            result["excludeCredentials"] = [
                descriptor.to_dict() for descriptor in self.credential_exclude_list
            ]
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        if _plain(self.attestation):
            result["attestation"] = _plain(self.attestation)
        return result


@dataclass
class PublicKeyCredentialRequestOptions:
    """Parameters for generating an assertion."""

    challenge: Challenge | bytes | None = None
    timeout: int = 0
    relying_party_id: str = ""
    allowed_credentials: list[CredentialDescriptor] = field(default_factory=list)
    user_verification: UserVerificationRequirement | str = ""
    extensions: AuthenticationExtensions = field(default_factory=dict)

    def allowed_credential_ids(self) -> list[bytes | None]:
        """Return the IDs of the allowed credentials, in order."""
        return [credential.credential_id for credential in self.allowed_credentials]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of these options."""
        result: dict[str, Any] = {"challenge": _std_b64(self.challenge)}
        if self.timeout:
            result["timeout"] = self.timeout
        if self.relying_party_id:
            result["rpId"] = self.relying_party_id
        if self.allowed_credentials:
            result["allowCredentials"] = [
                descriptor.to_dict() for descriptor in self.allowed_credentials
            ]
        if _plain(self.user_verification):
            result["userVerification"] = _plain(self.user_verification)
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result


@dataclass
class CredentialCreation:
    """Creation options wrapped as the client expects them."""

    response: PublicKeyCredentialCreationOptions = field(
        default_factory=PublicKeyCredentialCreationOptions
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping under ``publicKey``."""
        return {"publicKey": self.response.to_dict()}


@dataclass
class CredentialAssertion:
    """Request options wrapped as the client expects them."""

    response: PublicKeyCredentialRequestOptions = field(
        default_factory=PublicKeyCredentialRequestOptions
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping under ``publicKey``."""
        return {"publicKey": self.response.to_dict()}


@dataclass
class ServerResponse:
    """Status and message returned by the server."""

    status: ServerResponseStatus | str = ServerResponseStatus.OK
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this response."""
        return {"status": _plain(self.status), "errorMessage": self.message}