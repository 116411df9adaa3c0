"""Stored credentials and authenticator signature-counter tracking."""

from __future__ import annotations

from dataclasses import dataclass, field

from .authdata import AuthenticatorAttachment, UserVerificationRequirement
from .options import AuthenticatorSelection


@dataclass
class Authenticator:
    """Authenticator model identifier and signature-counter state."""

    aaguid: bytes = b""
    sign_count: int = 0
    clone_warning: bool = False

    def update_counter(self, auth_data_count: int) -> None:
        """Record a new signature counter, flagging a possible clone.

        A counter that does not increase (unless both are zero) sets
        ``clone_warning`` and leaves the stored count unchanged.
        """
        if auth_data_count <= self.sign_count and (
            auth_data_count != 0 or self.sign_count != 0
        ):
            self.clone_warning = True
            return
        self.sign_count = auth_data_count


@dataclass
class Credential:
    """Everything a relying party stores about a WebAuthn credential."""

    id: bytes = b""
    public_key: bytes = b""
    attestation_type: str = ""
    authenticator: Authenticator = field(default_factory=Authenticator)


def select_authenticator(
    att: AuthenticatorAttachment | str,
    rrk: bool | None,
    uv: UserVerificationRequirement | str,
) -> AuthenticatorSelection:
    """Build authenticator selection criteria from plain values."""
    return AuthenticatorSelection(
        authenticator_attachment=att,
        require_resident_key=rrk,
        user_verification=uv,
    )