"""PSVault.

Recover secrets exported with PowerShell ``ConvertFrom-SecureString -Key``
from a CLIXML credential store.
"""
from .version import __version__
from .exceptions import (
    PSVaultError,
    StoreNotFound,
    KeyFileNotFound,
    XmlParseError,
    CredentialNotFound,
    EmptyInput,
    EnvelopeFormatError,
    Base64DecodeError,
    CryptoError,
)
from .models import CredentialRecord
from .vault import (
    CredentialStore,
    ClientConfig,
    decrypt,
    find,
    get_credential,
    load_master_key,
    load_store,
    master_key,
)

__all__ = (
    "__version__",
    "PSVaultError",
    "StoreNotFound",
    "KeyFileNotFound",
    "XmlParseError",
    "CredentialNotFound",
    "EmptyInput",
    "EnvelopeFormatError",
    "Base64DecodeError",
    "CryptoError",
    "CredentialRecord",
    "CredentialStore",
    "ClientConfig",
    "decrypt",
    "find",
    "get_credential",
    "load_master_key",
    "load_store",
    "master_key",
)
