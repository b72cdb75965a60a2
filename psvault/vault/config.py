"""
Vault Configuration - Master key loading and validated client settings.

The master key file holds a single line of base64 text:
    <base64-encoded 16, 24 or 32-byte AES key>

Paths are resolved in this order: explicit argument, environment variable
(``PSVAULT_STORE``, ``PSVAULT_MASTER_KEY``, ``PSVAULT_CREDENTIAL``), then the
default files found next to the project root.

Security Note:
    Never log key material. Only log key sizes and paths.
"""
import os
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from pydantic import BaseModel, field_validator

from ..conf import (
    CREDENTIAL_ENV,
    DEFAULT_CREDENTIAL,
    DEFAULT_KEY_FILENAME,
    DEFAULT_STORE_FILENAME,
    MASTER_KEY_ENV,
    PROJECT_ROOT_DEPTH,
    STORE_ENV,
)
from ..exceptions import Base64DecodeError, KeyFileNotFound
from .crypto import b64decode

logger = logging.getLogger("psvault.vault")

AES_KEY_SIZES = (16, 24, 32)
UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def load_master_key(path: Union[str, Path]) -> bytes:
    """Load the raw master key from a base64 key file.

    Args:
        path: Path to the key file.

    Returns:
        Raw key bytes.

    Raises:
        KeyFileNotFound: If the path is not a readable file.
        Base64DecodeError: If the file is empty, not text or not valid base64.
    """
    key_path = Path(path)
    if not key_path.is_file():
        raise KeyFileNotFound(f"Master key file not found at: {key_path}")
    try:
        raw = key_path.read_bytes()
    except OSError as err:
        raise KeyFileNotFound(
            f"Master key file is not readable: {key_path}"
        ) from err
    # Out-File on Windows PowerShell writes UTF-16 with a BOM
    encoding = "utf-16" if raw.startswith(UTF16_BOMS) else "utf-8-sig"
    try:
        text = raw.decode(encoding).strip()
    except UnicodeDecodeError as err:
        raise Base64DecodeError(
            f"Master key file {key_path} is not {encoding} text"
        ) from err
    if not text:
        raise Base64DecodeError(f"Master key file {key_path} is empty")
    key_bytes = b64decode(text, f"master key file {key_path}")
    if len(key_bytes) not in AES_KEY_SIZES:
        # not rejected here: decryption reports the bad size
        logger.warning(
            "Master key from %s is %d bytes; AES needs one of %s",
            key_path, len(key_bytes), AES_KEY_SIZES,
        )
    logger.debug("Loaded %d-byte master key from %s", len(key_bytes), key_path)
    return key_bytes


@contextmanager
def master_key(path: Union[str, Path]) -> Iterator[bytearray]:
    """Load the master key into a buffer that is zeroed on exit.

    Usage::

        with master_key("master.key") as key:
            secret = decrypt(record.encrypted_value, key)

    Only the yielded ``bytearray`` is wiped. The intermediate ``bytes`` and
    ``str`` objects produced while reading and base64-decoding the file are
    immutable and stay in memory until garbage collected.

    Yields:
        Mutable key buffer, overwritten with zeros when the block exits,
        also when it raises.
    """
    buffer = bytearray(load_master_key(path))
    try:
        yield buffer
    finally:
        for i in range(len(buffer)):
            buffer[i] = 0


def find_project_root(
    start: Optional[Union[str, Path]] = None,
    depth: int = PROJECT_ROOT_DEPTH,
) -> Path:
    """Walk up from ``start`` looking for the default credential store.

    Args:
        start: Directory to start from (default: current directory).
        depth: Maximum number of directories inspected.

    Returns:
        The first directory holding ``MySecrets.xml``, or ``start/../..``
        when none does.
    """
    origin = Path(start) if start is not None else Path.cwd()
    current = origin
    for _ in range(depth):
        if (current / DEFAULT_STORE_FILENAME).is_file():
            return current
        if current.parent == current:
            break
        current = current.parent
    return (origin / ".." / "..").resolve()


class ClientConfig(BaseModel):
    """Validated credential client settings."""

    store_path: Path
    key_path: Path
    credential_name: str = DEFAULT_CREDENTIAL

    @field_validator("credential_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Credential names cannot be empty."""
        if not v:
            raise ValueError("Credential name cannot be empty")
        return v

    @classmethod
    def resolve(
        cls,
        store: Optional[Union[str, Path]] = None,
        key: Optional[Union[str, Path]] = None,
        name: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
    ) -> "ClientConfig":
        """Build a config from explicit values, environment and defaults.

        When a store is given (argument or environment) but no key, a
        ``master.key`` next to the store is preferred if it exists.

        Args:
            store: Credential store path.
            key: Master key file path.
            name: Credential name to look up.
            cwd: Directory used for default discovery.

        Returns:
            Populated ClientConfig instance.
        """
        store = store or os.environ.get(STORE_ENV) or None
        key = key or os.environ.get(MASTER_KEY_ENV) or None
        name = name or os.environ.get(CREDENTIAL_ENV) or DEFAULT_CREDENTIAL

        root = None
        if store is None:
            root = find_project_root(cwd)
            store_path = root / DEFAULT_STORE_FILENAME
        else:
            store_path = Path(store)

        if key is not None:
            key_path = Path(key)
        elif root is None:
            sibling = store_path.parent / DEFAULT_KEY_FILENAME
            if sibling.is_file():
                key_path = sibling
            else:
                key_path = find_project_root(cwd) / DEFAULT_KEY_FILENAME
        else:
            key_path = root / DEFAULT_KEY_FILENAME

        return cls(
            store_path=store_path,
            key_path=key_path,
            credential_name=name,
        )
