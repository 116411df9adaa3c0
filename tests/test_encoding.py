import base64
import json

import pytest

from relyauth.encoding import (
    CHALLENGE_LENGTH,
    Challenge,
    b64url_decode,
    b64url_encode,
    create_challenge,
)


@pytest.mark.parametrize(
    "encoded_message, expected",
    [
        ('"' + base64.urlsafe_b64encode(b"test base64 data").rstrip(b"=").decode() + '"',
         b"test base64 data"),
        ("null", None),
    ],
)
def test_base64_unmarshal_json(encoded_message, expected):
    raw = '{"string_data": "test string", "encoded_data": %s}' % encoded_message
    doc = json.loads(raw)
    assert b64url_decode(doc["encoded_data"]) == expected
    assert doc["string_data"] == "test string"


def test_encode_has_no_padding():
    encoded = b64url_encode(b"test base64 data")
    assert not encoded.endswith("=")
    assert b64url_decode(encoded) == b"test base64 data"


@pytest.mark.parametrize("payload", [b"", b"\x00", b"\xff\xfe", b"abc", bytes(range(64))])
def test_round_trip(payload):
    assert b64url_decode(b64url_encode(payload)) == payload


def test_decode_accepts_bytes():
    assert b64url_decode(b"dGVzdA") == b"test"


@pytest.mark.parametrize("bad", ["a", "ab==", "a+b/", "ab cd"])
def test_decode_rejects_invalid(bad):
    with pytest.raises(ValueError):
        b64url_decode(bad)


def test_create_challenge():
    got = create_challenge()
    assert isinstance(got, Challenge)
    assert len(got) == CHALLENGE_LENGTH == 32


def test_challenges_are_random():
    challenges = [bytes(create_challenge()) for _ in range(16)]
    assert all(len(c) == 32 for c in challenges)
    assert len(set(challenges)) == 16


def test_challenge_string():
    challenge = create_challenge()
    want = base64.urlsafe_b64encode(challenge).rstrip(b"=").decode()
    assert str(challenge) == want
    assert b64url_decode(str(challenge)) == bytes(challenge)