"""WebAuthn relying-party toolkit: options, authenticator data, client data, COSE keys and TPM decoding."""

__version__ = "0.1.0"