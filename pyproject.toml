[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "relyauth"
version = "0.1.0"
description = "WebAuthn relying-party toolkit: challenges, ceremony options, authenticator data, client data checks, COSE keys and TPM structures"
requires-python = ">=3.10"
keywords = ["webauthn", "fido2", "passkeys", "authentication", "cose", "tpm"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "cbor2",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "cbor2",
    "cryptography",
]

[tool.hatch.build.targets.wheel]
packages = ["relyauth"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
