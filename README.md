# relyauth

Server-side building blocks for WebAuthn relying parties: creating
challenges, building registration and login options, parsing and
checking authenticator data, checking collected client data, reading
COSE public keys, verifying signatures and decoding TPM 2.0 structures.

## Installation

```
pip install relyauth
```

## Starting a ceremony

```python
from relyauth.relying_party import Config, WebAuthn
from relyauth.session import DefaultUser

config = Config(
    rp_display_name="Example Corp",
    rp_id="example.com",
    rp_origin="https://example.com",
)
webauthn = WebAuthn(config)   # raises ValueError("Configuration error: ...") if invalid

user = DefaultUser(b"user-1")
creation, session = webauthn.begin_registration(user)
payload = creation.to_dict()        # {"publicKey": {...}} for the browser
stored = session.to_dict()          # keep on the server until the reply arrives
```

`Config.validate` fills in defaults: a timeout of 60000 ms when none is
set, and an `rp_origin` reduced to `scheme://host[:port]` (or taken from
`rp_id` when empty).

`begin_registration` offers the algorithms returned by
`default_registration_credential_parameters()` (ES256, ES384, ES512,
RS256, RS384, RS512, PS256, PS384, PS512, EdDSA). `begin_login(user, ...)`
builds assertion options listing the credentials returned by
`user.webauthn_credentials()`, and raises `WebAuthnError` when the user
has none.

Both methods accept option functions that adjust the defaults:

- registration: `with_authenticator_selection`, `with_exclusions`,
  `with_conveyance_preference`, `with_extensions`;
- login: `with_allowed_credentials`, `with_user_verification`,
  `with_assertion_extensions`.

Your own user type subclasses `relyauth.session.User` and implements
`webauthn_id`, `webauthn_name`, `webauthn_display_name`, `webauthn_icon`
and `webauthn_credentials`. `SessionData.from_dict` rebuilds the stored
session from the output of `SessionData.to_dict`.

## Lower-level pieces

- `relyauth.encoding`: `create_challenge`, `Challenge` (its `str()` is
  unpadded URL-safe base64), `b64url_encode`, `b64url_decode`.
- `relyauth.authdata`: `AuthenticatorData.parse` decodes raw
  authenticator data; `AuthenticatorData.verify(rp_id_hash,
  user_verification_required)` checks the RP ID hash and the user
  presence and verification flags.
- `relyauth.client`: `CollectedClientData.from_dict` and
  `CollectedClientData.verify(stored_challenge, ceremony, origin)` check
  ceremony type, challenge, origin and token binding status;
  `fully_qualified_origin` reduces a URL to its origin.
- `relyauth.cose`: `parse_public_key`, `verify_signature`,
  `display_public_key` (PEM output), `sig_alg_from_cose_alg`,
  `hasher_from_cose_alg`.
- `relyauth.credential`: `Credential`, `select_authenticator`, and
  `Authenticator.update_counter`, which sets `clone_warning` when the
  signature counter fails to increase.
- `relyauth.options` and `relyauth.entities`: the option and entity
  dataclasses, each with a `to_dict` for JSON output.
- `relyauth.tpm`: `decode_attestation_data` for TPMS_ATTEST (certify,
  creation and quote); `relyauth.pubarea`: `decode_public` for
  TPMT_PUBLIC (RSA and ECC). Both raise `TPMDecodeError`.

Protocol failures raise `relyauth.errors.WebAuthnError` (or its subclass
`relyauth.cose.CoseError` for key handling); each carries a short `type`,
a `details` message and optional `dev_info`.

## What it does not do

relyauth begins ceremonies but does not finish them. It does not parse a
browser's credential creation or assertion response, does not decode or
verify attestation statements, does not check assertion signatures
against stored credentials on its own, and does not check trust anchors.
It holds no storage and serves no HTTP: keeping users, credentials and
session data, and wiring the pieces above into request handlers, is left
to the application.

## Running the tests

```
pip install -e ".[test]"
pytest
```