"""Credential Vault - Read-only access to PowerShell secure-string credentials.

Security Note (Threat Model):
    The master key and the decrypted secret live in process memory during a
    lookup. ``master_key()`` zeroes its key buffer on exit, but Python strings
    (the plaintext, the envelope) cannot be wiped and stay in memory until
    garbage collected. This is an accepted limitation.
"""

from .clixml import CredentialDocument, parse_store
from .config import ClientConfig, find_project_root, load_master_key, master_key
from .crypto import EncryptedEnvelope, decrypt, parse_envelope
from .store import CredentialStore, find, get_credential, load_store

__all__ = [
    "CredentialDocument",
    "CredentialStore",
    "ClientConfig",
    "EncryptedEnvelope",
    "decrypt",
    "find",
    "find_project_root",
    "get_credential",
    "load_master_key",
    "load_store",
    "master_key",
    "parse_envelope",
    "parse_store",
]
