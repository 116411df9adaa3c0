"""Relying party and user entities sent with creation options."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any


def _std_b64(data: bytes | None) -> str | None:
    return None if data is None else base64.b64encode(bytes(data)).decode("ascii")


@dataclass
class CredentialEntity:
    """A user account or relying party a credential is associated with."""

    name: str = ""
    icon: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this entity."""
        result: dict[str, Any] = {"name": self.name}
        if self.icon:
            result["icon"] = self.icon
        return result


@dataclass
class RelyingPartyEntity(CredentialEntity):
    """The relying party, whose ``id`` sets the RP ID."""

    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this entity."""
        result = super().to_dict()
        result["id"] = self.id
        return result


@dataclass
class UserEntity(CredentialEntity):
    """A user account; ``id`` is the user handle."""

    display_name: str = ""
    id: bytes | None = b""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this entity; ``id`` is base64 encoded."""
        result = super().to_dict()
        if self.display_name:
            result["displayName"] = self.display_name
        result["id"] = _std_b64(self.id)
        return result