"""
PSVault exceptions.

Every failure of the lookup-and-decrypt sequence is raised as a distinct
subclass of ``PSVaultError``. Each one also derives from the closest builtin
exception so callers that only know ``FileNotFoundError`` or ``ValueError``
keep working.
"""


class PSVaultError(Exception):
    """Base class for all psvault errors."""


class StoreNotFound(PSVaultError, FileNotFoundError):
    """The credential store path does not resolve to a readable file."""


class KeyFileNotFound(PSVaultError, FileNotFoundError):
    """The master key path does not resolve to a readable file."""


class XmlParseError(PSVaultError, ValueError):
    """The credential store is not well-formed XML."""


class CredentialNotFound(PSVaultError, LookupError):
    """No usable entry matched the requested credential name."""

    def __init__(self, name: str, source: str | None = None):
        self.name = name
        self.source = source
        message = f"Credential '{name}' not found in store"
        if source:
            message = f"{message} {source}"
        super().__init__(message)


class EmptyInput(PSVaultError, ValueError):
    """Decrypt was called without an encrypted string."""


class EnvelopeFormatError(PSVaultError, ValueError):
    """The decoded envelope is not ``header|cipher|iv``."""


class Base64DecodeError(PSVaultError, ValueError):
    """A base64 layer (envelope, segment or key file) failed to decode."""


class CryptoError(PSVaultError, ValueError):
    """AES-CBC decryption or PKCS7 unpadding failed."""
