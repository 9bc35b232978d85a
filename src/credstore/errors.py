from __future__ import annotations


class CredentialStoreError(Exception):
    """Base error for credential store failures."""


class ConfigurationError(CredentialStoreError):
    pass


class InvalidArgumentError(CredentialStoreError):
    """A required input to encode/decode was missing."""


class DecodeError(CredentialStoreError):
    """Stored bytes do not describe a credential (bad shape, version or encoding)."""
