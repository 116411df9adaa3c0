import hashlib
import struct

import pytest

from relyauth.tpm import (
    Algorithm,
    AttestationData,
    Name,
    Tag,
    TPMDecodeError,
    Unpacker,
    decode_attestation_data,
)

MAGIC = 0xFF544347


def _sized(data: bytes) -> bytes:
    return struct.pack(">H", len(data)) + data


def _handle_name(handle: int) -> bytes:
    return _sized(struct.pack(">I", handle))


def _digest_name(alg: int, digest: bytes) -> bytes:
    return _sized(struct.pack(">H", alg) + digest)


def _header(tag: int, signer: bytes = b"\x00\x00", extra: bytes = b"nonce") -> bytes:
    return (
        struct.pack(">IH", MAGIC, tag)
        + signer
        + _sized(extra)
        + struct.pack(">QIIB", 1000, 2, 3, 1)
        + struct.pack(">Q", 42)
    )


def test_read_uint_big_endian():
    reader = Unpacker(b"\x01\x02\x03")
    assert reader.read_uint(2) == 0x0102
    assert reader.remaining == 1


def test_read_uint_short_data_raises():
    with pytest.raises(TPMDecodeError):
        Unpacker(b"\x01").read_uint(4)


def test_read_sized_two_byte_prefix():
    reader = Unpacker(_sized(b"abc") + b"rest")
    assert reader.read_sized() == b"abc"
    assert reader.remaining == 4


def test_read_sized_four_byte_prefix():
    reader = Unpacker(struct.pack(">I", 2) + b"xy", prefix_size=4)
    assert reader.read_sized() == b"xy"


def test_read_sized_zero_length_is_empty():
    assert Unpacker(b"\x00\x00").read_sized() == b""


def test_read_sized_bad_prefix_size():
    with pytest.raises(TPMDecodeError, match="must be either 2 or 4"):
        Unpacker(b"\x00\x01a", prefix_size=3).read_sized()


def test_read_sized_truncated_payload():
    with pytest.raises(TPMDecodeError):
        Unpacker(b"\x00\x05ab").read_sized()


def test_read_raw_short_read_is_zero_filled():
    assert Unpacker(b"ab").read_raw(4) == b"ab\x00\x00"


def test_read_raw_empty_raises():
    with pytest.raises(TPMDecodeError):
        Unpacker(b"").read_raw(1)


def test_hash_constructor():
    assert Algorithm.SHA256.hash_constructor() is hashlib.sha256
    assert Algorithm.SHA1.hash_constructor() is hashlib.sha1


def test_hash_constructor_unsupported():
    with pytest.raises(TPMDecodeError, match="algorithm not supported"):
        Algorithm.RSA.hash_constructor()


def test_uses_count():
    assert Algorithm.ECDAA.uses_count() is True
    assert Algorithm.ECDSA.uses_count() is False


def test_unassigned_algorithm_value():
    alg = Algorithm(0x1234)
    assert int(alg) == 0x1234
    assert alg.uses_count() is False


@pytest.mark.parametrize(
    "raw, tag",
    [
        (b"\x80\x17", Tag.ATTEST_CERTIFY),
        (b"\x80\x18", Tag.ATTEST_QUOTE),
        (b"\x80\x1a", Tag.ATTEST_CREATION),
    ],
)
def test_tag_values_decode(raw, tag):
    assert Tag(Unpacker(raw).read_uint(2)) is tag


def test_decode_certify():
    digest = bytes(range(32))
    body = _handle_name(0x81000001) + _digest_name(Algorithm.SHA256, digest)
    signer = _digest_name(Algorithm.SHA1, bytes(20))
    data = decode_attestation_data(_header(Tag.ATTEST_CERTIFY, signer=signer) + body)
    assert isinstance(data, AttestationData)
    assert data.magic == MAGIC
    assert data.type is Tag.ATTEST_CERTIFY
    assert data.qualified_signer.digest.alg is Algorithm.SHA1
    assert data.qualified_signer.digest.value == bytes(20)
    assert data.extra_data == b"nonce"
    assert data.clock_info.clock == 1000
    assert data.clock_info.reset_count == 2
    assert data.clock_info.restart_count == 3
    assert data.clock_info.safe == 1
    assert data.firmware_version == 42
    certify = data.attested_certify_info
    assert certify.name == Name(handle=0x81000001)
    assert certify.qualified_name.digest.value == digest
    assert data.attested_quote_info is None
    assert data.attested_creation_info is None


def test_decode_empty_signer_name():
    body = _handle_name(1) + _handle_name(2)
    data = decode_attestation_data(_header(Tag.ATTEST_CERTIFY) + body)
    assert data.qualified_signer == Name()


def test_decode_creation():
    body = _handle_name(7) + _sized(b"opaque")
    data = decode_attestation_data(_header(Tag.ATTEST_CREATION) + body)
    assert data.attested_creation_info.name.handle == 7
    assert data.attested_creation_info.opaque_digest == b"opaque"


def test_decode_quote_with_selection():
    selection = struct.pack(">IHB", 1, Algorithm.SHA256, 3) + b"\x03\x00\x80"
    body = selection + _sized(b"pcrdigest")
    data = decode_attestation_data(_header(Tag.ATTEST_QUOTE) + body)
    quote = data.attested_quote_info
    assert quote.pcr_selection.hash is Algorithm.SHA256
    assert quote.pcr_selection.pcrs == [0, 1, 23]
    assert quote.pcr_digest == b"pcrdigest"


def test_decode_quote_empty_selection():
    body = struct.pack(">I", 0) + _sized(b"d")
    data = decode_attestation_data(_header(Tag.ATTEST_QUOTE) + body)
    assert data.attested_quote_info.pcr_selection.hash is Algorithm.UNKNOWN
    assert data.attested_quote_info.pcr_selection.pcrs == []


def test_decode_quote_multiple_selections_rejected():
    body = struct.pack(">I", 2)
    with pytest.raises(TPMDecodeError, match="longer than 1 is not supported"):
        decode_attestation_data(_header(Tag.ATTEST_QUOTE) + body)


def test_unsupported_attestation_type():
    with pytest.raises(TPMDecodeError, match="0x8000"):
        decode_attestation_data(_header(Tag.NULL))


def test_trailing_data_is_ignored():
    body = _handle_name(1) + _handle_name(2)
    plain = decode_attestation_data(_header(Tag.ATTEST_CERTIFY) + body)
    padded = decode_attestation_data(_header(Tag.ATTEST_CERTIFY) + body + b"extra")
    assert plain == padded


def test_unsupported_hash_in_name():
    signer = _digest_name(Algorithm.RSA, bytes(8))
    with pytest.raises(TPMDecodeError, match="unsupported hash algorithm"):
        decode_attestation_data(_header(Tag.ATTEST_CERTIFY, signer=signer))


def test_truncated_header():
    with pytest.raises(TPMDecodeError, match="Magic/Type"):
        decode_attestation_data(b"\xff\x54")


def test_truncated_body():
    with pytest.raises(TPMDecodeError, match="AttestedCertifyInfo"):
        decode_attestation_data(_header(Tag.ATTEST_CERTIFY))