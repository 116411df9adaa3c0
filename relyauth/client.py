"""Collected client data and its checks against the relying party's state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping
from urllib.parse import SplitResult, urlsplit

from .errors import ERR_PARSING_DATA, ERR_VERIFICATION


class CeremonyType(str, Enum):
    """The operation the client data was produced for."""

    CREATE = "webauthn.create"
    ASSERT = "webauthn.get"


class TokenBindingStatus(str, Enum):
    """State of Token Binding on the connection to the relying party."""

    PRESENT = "present"
    SUPPORTED = "supported"
    NOT_SUPPORTED = "not-supported"


_VALID_TOKEN_BINDING_STATUSES = frozenset(status.value for status in TokenBindingStatus)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _text_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ERR_PARSING_DATA.with_details("Error decoding clientData").with_info(
            f"Field {key} is not a string\n"
        )
    return value


@dataclass
class TokenBinding:
    """Token Binding information reported by the client."""

    status: str = ""
    id: str = ""


def fully_qualified_origin(url: str | SplitResult) -> str:
    """Return the origin of a URL as ``scheme://host[:port]``."""
    parts = urlsplit(url) if isinstance(url, str) else url
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}"


@dataclass
class CollectedClientData:
    """Contextual bindings of the relying party and the client."""

    type: str = ""
    challenge: str = ""
    origin: str = ""
    token_binding: TokenBinding | None = None
    hint: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CollectedClientData":
        """Build client data from the decoded clientDataJSON object."""
        if not isinstance(data, Mapping):
            raise ERR_PARSING_DATA.with_details("Error decoding clientData")
        raw_binding = data.get("tokenBinding")
        binding = None
        if raw_binding is not None:
            if not isinstance(raw_binding, Mapping):
                raise ERR_PARSING_DATA.with_details("Error decoding clientData token binding")
            binding = TokenBinding(
                status=_text_field(raw_binding, "status"),
                id=_text_field(raw_binding, "id"),
            )
        return cls(
            type=_text_field(data, "type"),
            challenge=_text_field(data, "challenge"),
            origin=_text_field(data, "origin"),
            token_binding=binding,
            hint=_text_field(data, "new_keys_may_be_added_here"),
        )

    def verify(
        self,
        stored_challenge: str,
        ceremony: CeremonyType | str,
        relying_party_origin: str,
    ) -> None:
        """Check type, challenge, origin and token binding; raise WebAuthnError on failure."""
        if _plain(self.type) != _plain(ceremony):
            raise ERR_VERIFICATION.with_details("Error validating ceremony type")

        if stored_challenge != self.challenge:
            raise ERR_VERIFICATION.with_details("Error validating challenge").with_info(
                f"Expected b Value: {stored_challenge!r}\nReceived b: {self.challenge!r}\n"
            )

        try:
            client_origin = fully_qualified_origin(urlsplit(self.origin))
        except ValueError:
            raise ERR_PARSING_DATA.with_details(
                "Error decoding clientData origin as URL"
            ) from None

        if client_origin.casefold() != relying_party_origin.casefold():
            raise ERR_VERIFICATION.with_details("Error validating origin").with_info(
                f"Expected Value: {relying_party_origin}\n Received: {client_origin}\n"
            )

        if self.token_binding is not None:
            status = _plain(self.token_binding.status)
            if status == "":
                raise ERR_PARSING_DATA.with_details(
                    "Error decoding clientData, token binding present without status"
                )
            if status not in _VALID_TOKEN_BINDING_STATUSES:
                raise ERR_PARSING_DATA.with_details(
                    "Error decoding clientData, token binding present with invalid status"
                ).with_info(f"Got: {status}\n")