"""Relying-party configuration and the beginning of registration and login ceremonies."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlsplit

from .authdata import UserVerificationRequirement
from .client import fully_qualified_origin
from .cose import COSEAlgorithmIdentifier
from .encoding import b64url_encode, create_challenge
from .entities import RelyingPartyEntity, UserEntity
from .errors import ERR_BAD_REQUEST
from .options import (
    AuthenticationExtensions,
    AuthenticatorSelection,
    ConveyancePreference,
    CredentialAssertion,
    CredentialCreation,
    CredentialDescriptor,
    CredentialParameter,
    CredentialType,
    PublicKeyCredentialCreationOptions,
    PublicKeyCredentialRequestOptions,
)
from .session import SessionData, User

DEFAULT_TIMEOUT = 60000

RegistrationOption = Callable[[PublicKeyCredentialCreationOptions], None]
LoginOption = Callable[[PublicKeyCredentialRequestOptions], None]


@dataclass
class Config:
    """Relying party settings and defaults used when generating options."""

    rp_display_name: str = ""
    rp_id: str = ""
    rp_origin: str = ""
    rp_icon: str = ""
    attestation_preference: ConveyancePreference | str = ""
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    timeout: int = 0
    debug: bool = False

    def validate(self) -> None:
        """Check required settings and fill in defaults; raise ValueError when invalid."""
        if not self.rp_display_name:
            raise ValueError("Missing RPDisplayName")
        if not self.rp_id:
            raise ValueError("Missing RPID")
        try:
            urlsplit(self.rp_id)
        except ValueError as exc:
            raise ValueError(f"RPID not valid URI: {exc}") from exc

        if self.timeout == 0:
            self.timeout = DEFAULT_TIMEOUT

        if not self.rp_origin:
            self.rp_origin = self.rp_id
        else:
            try:
                parts = urlsplit(self.rp_origin)
            except ValueError as exc:
                raise ValueError(f"RPOrigin not valid URL: {exc}") from exc
            self.rp_origin = fully_qualified_origin(parts)


class WebAuthn:
    """Entry point that produces the options sent to the client."""

    def __init__(self, config: Config) -> None:
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"Configuration error: {exc}") from exc
        self.config = config

    def begin_registration(
        self, user: User, *args: RegistrationOption
    ) -> tuple[CredentialCreation, SessionData]:
        """Generate creation options for the client and the session data to store."""
        challenge = create_challenge()
        config = self.config

        user_entity = UserEntity(
            name=user.webauthn_name(),
            icon=user.webauthn_icon(),
            display_name=user.webauthn_display_name(),
            id=user.webauthn_id(),
        )
        relying_party = RelyingPartyEntity(
            name=config.rp_display_name,
            icon=config.rp_icon,
            id=config.rp_id,
        )
        options = PublicKeyCredentialCreationOptions(
            challenge=challenge,
            relying_party=relying_party,
            user=user_entity,
            parameters=default_registration_credential_parameters(),
            authenticator_selection=dataclasses.replace(config.authenticator_selection),
            timeout=config.timeout,
            attestation=config.attestation_preference,
        )
        for setter in args:
            setter(options)

        session = SessionData(
            challenge=b64url_encode(challenge),
            user_id=user.webauthn_id(),
            user_verification=options.authenticator_selection.user_verification,
        )
        return CredentialCreation(response=options), session

    def begin_login(
        self, user: User, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Generate assertion options for the client and the session data to store."""
        challenge = create_challenge()
        credentials = user.webauthn_credentials()
        if not credentials:
            raise ERR_BAD_REQUEST.with_details("Found no credentials for user")

        allowed = [
            CredentialDescriptor(
                type=CredentialType.PUBLIC_KEY, credential_id=credential.id
            )
            for credential in credentials
        ]
        config = self.config
        options = PublicKeyCredentialRequestOptions(
            challenge=challenge,
            timeout=config.timeout,
            relying_party_id=config.rp_id,
            user_verification=config.authenticator_selection.user_verification,
            allowed_credentials=allowed,
        )
        for setter in args:
            setter(options)

        session = SessionData(
            challenge=b64url_encode(challenge),
            user_id=user.webauthn_id(),
            allowed_credential_ids=options.allowed_credential_ids(),
            user_verification=options.user_verification,
        )
        return CredentialAssertion(response=options), session


def with_authenticator_selection(selection: AuthenticatorSelection) -> RegistrationOption:
    """Use non-default authenticator selection criteria."""

    def setter(options: PublicKeyCredentialCreationOptions) -> None:
        options.authenticator_selection = selection

    return setter


def with_exclusions(exclude_list: list[CredentialDescriptor]) -> RegistrationOption:
    """Exclude the given credentials from registration."""

    def setter(options: PublicKeyCredentialCreationOptions) -> None:
        options.credential_exclude_list = exclude_list

    return setter


def with_conveyance_preference(
    preference: ConveyancePreference | str,
) -> RegistrationOption:
    """Set the attestation conveyance preference."""

    def setter(options: PublicKeyCredentialCreationOptions) -> None:
        options.attestation = preference

    return setter


def with_extensions(extensions: AuthenticationExtensions) -> RegistrationOption:
    """Request extensions during registration."""

    def setter(options: PublicKeyCredentialCreationOptions) -> None:
        options.extensions = extensions

    return setter


def with_allowed_credentials(allow_list: list[CredentialDescriptor]) -> LoginOption:
    """Replace the list of credentials allowed for login."""

    def setter(options: PublicKeyCredentialRequestOptions) -> None:
        options.allowed_credentials = allow_list

    return setter


def with_user_verification(
    user_verification: UserVerificationRequirement | str,
) -> LoginOption:
    """Request a user verification preference for login."""

    def setter(options: PublicKeyCredentialRequestOptions) -> None:
        options.user_verification = user_verification

    return setter


def with_assertion_extensions(extensions: AuthenticationExtensions) -> LoginOption:
    """Request extensions during login."""

    def setter(options: PublicKeyCredentialRequestOptions) -> None:
        options.extensions = extensions

    return setter


def default_registration_credential_parameters() -> list[CredentialParameter]:
    """Return the credential parameters offered by default, in preference order."""
    algorithms = (
        COSEAlgorithmIdentifier.ES256,
        COSEAlgorithmIdentifier.ES384,
        COSEAlgorithmIdentifier.ES512,
        COSEAlgorithmIdentifier.RS256,
        COSEAlgorithmIdentifier.RS384,
        COSEAlgorithmIdentifier.RS512,
        COSEAlgorithmIdentifier.PS256,
        COSEAlgorithmIdentifier.PS384,
        COSEAlgorithmIdentifier.PS512,
        COSEAlgorithmIdentifier.EDDSA,
    )
    return [
        CredentialParameter(type=CredentialType.PUBLIC_KEY, algorithm=alg)
        for alg in algorithms
    ]