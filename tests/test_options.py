import base64

from relyauth.authdata import UserVerificationRequirement
from relyauth.cose import COSEAlgorithmIdentifier
from relyauth.encoding import Challenge
from relyauth.entities import RelyingPartyEntity, UserEntity
from relyauth.options import (
    AuthenticatorSelection,
    ConveyancePreference,
    CredentialAssertion,
    CredentialCreation,
    CredentialDescriptor,
    CredentialParameter,
    CredentialType,
    PublicKeyCredentialCreationOptions,
    PublicKeyCredentialRequestOptions,
    ServerResponse,
    ServerResponseStatus,
)


def _request_options() -> PublicKeyCredentialRequestOptions:
    return PublicKeyCredentialRequestOptions(
        challenge=Challenge(bytes(12)),
        timeout=60,
        allowed_credentials=[CredentialDescriptor("public-key", b"1234", ["usb"])],
        relying_party_id="test.org",
        user_verification=UserVerificationRequirement.PREFERRED,
        extensions={},
    )


def test_get_allowed_credential_ids():
    assert _request_options().allowed_credential_ids() == [b"1234"]


def test_allowed_credential_ids_empty():
    assert PublicKeyCredentialRequestOptions().allowed_credential_ids() == []


def test_request_options_to_dict():
    result = _request_options().to_dict()
    assert base64.b64decode(result["challenge"]) == bytes(12)
    assert result["timeout"] == 60
    assert result["rpId"] == "test.org"
    assert result["userVerification"] == "preferred"
    assert result["allowCredentials"][0]["type"] == "public-key"
    assert base64.b64decode(result["allowCredentials"][0]["id"]) == b"1234"
    assert result["allowCredentials"][0]["transports"] == ["usb"]
    assert "extensions" not in result


def test_request_options_omit_empty_members():
    result = PublicKeyCredentialRequestOptions(challenge=b"abc").to_dict()
    assert list(result) == ["challenge"]


def test_descriptor_omits_empty_transports():
    result = CredentialDescriptor(CredentialType.PUBLIC_KEY, b"id").to_dict()
    assert list(result) == ["type", "id"]
    assert result["type"] == "public-key"


def test_credential_parameter_to_dict():
    param = CredentialParameter(CredentialType.PUBLIC_KEY, COSEAlgorithmIdentifier.ES256)
    assert param.to_dict() == {"type": "public-key", "alg": -7}


def test_authenticator_selection_to_dict():
    assert AuthenticatorSelection().to_dict() == {}
    selection = AuthenticatorSelection(
        authenticator_attachment="platform",
        require_resident_key=False,
        user_verification=UserVerificationRequirement.REQUIRED,
    )
    assert selection.to_dict() == {
        "authenticatorAttachment": "platform",
        "requireResidentKey": False,
        "userVerification": "required",
    }


def test_creation_options_to_dict():
    options = PublicKeyCredentialCreationOptions(
        challenge=Challenge(b"\x01\x02\x03"),
        relying_party=RelyingPartyEntity(name="Example", id="example.com"),
        user=UserEntity(name="alexm", id=b"1234"),
        parameters=[CredentialParameter("public-key", COSEAlgorithmIdentifier.RS256)],
        timeout=60000,
        attestation=ConveyancePreference.DIRECT,
        extensions={"exts": True},
    )
    result = options.to_dict()
    assert base64.b64decode(result["challenge"]) == b"\x01\x02\x03"
    assert result["rp"] == {"name": "Example", "id": "example.com"}
    assert result["pubKeyCredParams"] == [{"type": "public-key", "alg": -257}]
    assert result["authenticatorSelection"] == {}
    assert result["timeout"] == 60000
    assert result["attestation"] == "direct"
    assert result["extensions"] == {"exts": True}
    assert "excludeCredentials" not in result


def test_creation_wrapper():
    options = PublicKeyCredentialCreationOptions(challenge=b"c")
    assert CredentialCreation(options).to_dict() == {"publicKey": options.to_dict()}


def test_assertion_wrapper():
    options = _request_options()
    assert CredentialAssertion(options).to_dict() == {"publicKey": options.to_dict()}


def test_server_response_to_dict():
    response = ServerResponse(ServerResponseStatus.FAILED, "boom")
    assert response.to_dict() == {"status": "failed", "errorMessage": "boom"}
    assert ServerResponse().to_dict()["status"] == "ok"