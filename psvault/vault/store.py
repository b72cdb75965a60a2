"""
CredentialStore - Read-only lookup of credentials in a CLIXML hashtable.

Provides the public API for the credential store:
- ``load_store(path)`` - parse a store file into a CredentialDocument
- ``find(document, name)`` - first usable record for ``name`` or None
- ``get_credential(document, name)`` - same, raising CredentialNotFound
- ``CredentialStore`` - facade with ``get``/``require``/``keys``/``exists``
  and ``reveal`` (lookup + decrypt)

Security Note:
    Never log plaintext or envelope values. Only log record names and paths.
"""
import logging
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import CredentialNotFound, StoreNotFound
from ..models import CredentialRecord
from .clixml import CredentialDocument, HashtableEntry, ObjectNode, parse_store
from .crypto import decrypt

logger = logging.getLogger("psvault.vault")

USER_NAME_PROPERTIES = ("Identity", "UserName")
SECRET_PROPERTY = "Value"
ENCRYPTION_TYPE_PROPERTY = "EncryptionType"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_store(path: Union[str, Path]) -> CredentialDocument:
    """Read and parse a credential store file.

    The file is read as bytes so the XML declaration (and BOM) decide the
    encoding; ``Export-Clixml`` writes UTF-16 on older hosts.

    Args:
        path: Path to the CLIXML file.

    Returns:
        Parsed CredentialDocument.

    Raises:
        StoreNotFound: If the path is not a readable file.
        XmlParseError: If the file is not well-formed XML.
    """
    store_path = Path(path)
    if not store_path.is_file():
        raise StoreNotFound(
            f"Credential store file not found at: {store_path}"
        )
    try:
        data = store_path.read_bytes()
    except OSError as err:
        raise StoreNotFound(
            f"Credential store file is not readable: {store_path}"
        ) from err
    return parse_store(data, source=str(store_path))


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def _to_record(node: ObjectNode) -> CredentialRecord:
    fields = {}
    for prop in node.members.properties:
        if prop.name in USER_NAME_PROPERTIES:
            fields["user_name"] = prop.text
        elif prop.name == SECRET_PROPERTY:
            fields["encrypted_value"] = prop.text
        elif prop.name == ENCRYPTION_TYPE_PROPERTY:
            fields["encryption_type"] = prop.text
    return CredentialRecord(**fields)


def _matches(entry: HashtableEntry, name: str) -> bool:
    return entry.key is not None and entry.key.text == name


def _usable(entry: HashtableEntry) -> bool:
    return isinstance(entry.value, ObjectNode) and entry.value.members is not None


def find(document: CredentialDocument, name: str) -> Optional[CredentialRecord]:
    """Return the first usable record whose key equals ``name``.

    Keys are compared exactly. A matching entry without a value object or
    member-set is skipped and the scan continues, so a later entry with the
    same key can still match.

    Args:
        document: Parsed credential store.
        name: Hashtable key of the credential.

    Returns:
        CredentialRecord, or None if no usable entry matched.
    """
    for entry in document.entries:
        if _matches(entry, name) and _usable(entry):
            return _to_record(entry.value)
    return None


def get_credential(document: CredentialDocument, name: str) -> CredentialRecord:
    """Like ``find`` but raise CredentialNotFound when nothing matched."""
    record = find(document, name)
    if record is None:
        raise CredentialNotFound(name, document.source)
    return record


class CredentialStore:
    """Read-only view over a parsed credential store.

    Lookups never mutate the document; every call builds a fresh
    CredentialRecord.
    """

    def __init__(self, document: CredentialDocument):
        self._document = document

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CredentialStore":
        """Load a store file.

        Raises:
            StoreNotFound, XmlParseError.
        """
        document = load_store(path)
        logger.info(
            "Credential store loaded from %s: %d entr(ies)",
            document.source, len(document),
        )
        return cls(document)

    @property
    def document(self) -> CredentialDocument:
        return self._document

    @property
    def source(self) -> Optional[str]:
        return self._document.source

    def get(self, name: str, default: Any = None) -> Any:
        """Return the record for ``name``, or ``default`` if not found."""
        record = find(self._document, name)
        return default if record is None else record

    def require(self, name: str) -> CredentialRecord:
        """Return the record for ``name``.

        Raises:
            CredentialNotFound: If no usable entry matched.
        """
        return get_credential(self._document, name)

    def keys(self) -> list[str]:
        """Distinct entry key names in document order."""
        names: list[str] = []
        for entry in self._document.entries:
            if entry.key is not None and entry.key.text not in names:
                names.append(entry.key.text)
        return names

    def exists(self, name: str) -> bool:
        """True if a usable entry for ``name`` exists."""
        return find(self._document, name) is not None

    def reveal(self, name: str, key: bytes) -> str:
        """Look up ``name`` and decrypt its secret with ``key``.

        Raises:
            CredentialNotFound, EmptyInput, Base64DecodeError,
            EnvelopeFormatError, CryptoError.
        """
        record = self.require(name)
        logger.debug("Decrypting credential %s", name)
        return decrypt(record.encrypted_value, key)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.exists(name)

    def __len__(self) -> int:
        return len(self.keys())
