"""Unpadded URL-safe base64 helpers and challenge generation."""

from __future__ import annotations

import base64
import re
import secrets

CHALLENGE_LENGTH = 32

_URL_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(bytes(data)).rstrip(b"=").decode("ascii")


def b64url_decode(text: str | bytes | None) -> bytes | None:
    """Decode unpadded URL-safe base64; ``None`` (JSON null) passes through.

    Raises ValueError on padding, characters outside the alphabet or an
    impossible length.
    """
    if text is None:
        return None
    if isinstance(text, (bytes, bytearray, memoryview)):
        text = bytes(text).decode("ascii", errors="replace")
    if not _URL_ALPHABET.fullmatch(text):
        raise ValueError("illegal base64 data: unexpected character")
    if len(text) % 4 == 1:
        raise ValueError("illegal base64 data: bad length")
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded)


class Challenge(bytes):
    """Random bytes that the authenticator must sign and return."""

    def __str__(self) -> str:
        return b64url_encode(self)


def create_challenge() -> Challenge:
    """Create a new random challenge of CHALLENGE_LENGTH bytes."""
    return Challenge(secrets.token_bytes(CHALLENGE_LENGTH))