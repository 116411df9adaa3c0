"""Session state kept during a ceremony, and the user interface a relying party provides."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .authdata import UserVerificationRequirement
from .credential import Credential


def _encode(data: bytes | None) -> str | None:
    return None if data is None else base64.b64encode(bytes(data)).decode("ascii")


def _decode(text: str | None) -> bytes | None:
    return None if text is None else base64.b64decode(text, validate=True)


def _verification(value: Any) -> UserVerificationRequirement | str:
    if value is None:
        return ""
    try:
        return UserVerificationRequirement(value)
    except ValueError:
        return value


@dataclass
class SessionData:
    """Data the relying party stores for the duration of a ceremony."""

    challenge: str = ""
    user_id: bytes | None = b""
    allowed_credential_ids: list[bytes | None] = field(default_factory=list)
    user_verification: UserVerificationRequirement | str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping; byte strings are standard base64."""
        result: dict[str, Any] = {
            "challenge": self.challenge,
            "user_id": _encode(self.user_id),
        }
        if self.allowed_credential_ids:
            result["allowed_credentials"] = [_encode(item) for item in self.allowed_credential_ids]
        uv = self.user_verification
        result["userVerification"] = uv.value if isinstance(uv, Enum) else uv
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionData":
        """Rebuild session data from the mapping written by ``to_dict``."""
        return cls(
            challenge=data.get("challenge") or "",
            user_id=_decode(data.get("user_id")),
            allowed_credential_ids=[
                _decode(item) for item in data.get("allowed_credentials") or []
            ],
            user_verification=_verification(data.get("userVerification")),
        )


class User(ABC):
    """A relying party's user account as WebAuthn needs it."""

    @abstractmethod
    def webauthn_id(self) -> bytes:
        """User ID according to the relying party."""

    @abstractmethod
    def webauthn_name(self) -> str:
        """User name according to the relying party."""

    @abstractmethod
    def webauthn_display_name(self) -> str:
        """Display name of the user."""

    @abstractmethod
    def webauthn_icon(self) -> str:
        """URL of the user's icon."""

    @abstractmethod
    def webauthn_credentials(self) -> list[Credential]:
        """Credentials owned by the user."""


class DefaultUser(User):
    """A placeholder user identified only by its ID."""

    def __init__(self, user_id: bytes) -> None:
        self._id = bytes(user_id)

    def webauthn_id(self) -> bytes:
        return self._id

    def webauthn_name(self) -> str:
        return "newUser"

    def webauthn_display_name(self) -> str:
        return "New User"

    def webauthn_icon(self) -> str:
        return "https://example.com/avatar.png"

    def webauthn_credentials(self) -> list[Credential]:
        return []