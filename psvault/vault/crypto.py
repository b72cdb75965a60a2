"""
Vault Crypto Core - Secure-string envelope parsing and AES-CBC decryption.

Reverses the output of ``ConvertFrom-SecureString -Key``:

    base64( utf16le( "<header>|<base64 cipher>|<base64 iv>" ) )

The cipher text is AES-CBC with PKCS7 padding under the master key, and the
plaintext is UTF-16LE text.

Security Note:
    Never log plaintext, envelopes or key material.
"""
import base64
import binascii
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..exceptions import (
    Base64DecodeError,
    CryptoError,
    EmptyInput,
    EnvelopeFormatError,
)

TEXT_ENCODING = "utf-16-le"
SEPARATOR = "|"
SEGMENT_COUNT = 3
BLOCK_SIZE = algorithms.AES.block_size  # bits


@dataclass(frozen=True)
class EncryptedEnvelope:
    """Decoded ``header|cipher|iv`` envelope."""

    header: str
    cipher_text: bytes
    iv: bytes


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def b64decode(value: str, what: str = "value") -> bytes:
    """Strict base64 decode that ignores embedded whitespace.

    Args:
        value: Base64 text.
        what: Label used in the error message.

    Raises:
        Base64DecodeError: If ``value`` is not valid base64.
    """
    compact = "".join(value.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as err:
        raise Base64DecodeError(f"Invalid base64 in {what}: {err}") from err


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

def parse_envelope(encrypted_value: str) -> EncryptedEnvelope:
    """Unwrap the base64 / UTF-16LE layers of a secure-string envelope.

    Args:
        encrypted_value: The ``Value`` property of a credential record.

    Returns:
        EncryptedEnvelope with decoded cipher text and IV.

    Raises:
        EmptyInput: If ``encrypted_value`` is empty or None.
        Base64DecodeError: If any base64 layer is invalid.
        EnvelopeFormatError: If the text is not exactly three segments.
    """
    if not encrypted_value:
        raise EmptyInput("Encrypted string is empty")
    raw = b64decode(encrypted_value, "encrypted string")
    try:
        # lone surrogates may appear in the uninterpreted header
        combined = raw.decode(TEXT_ENCODING, errors="surrogatepass")
    except UnicodeDecodeError as err:
        raise EnvelopeFormatError(
            f"Encrypted string is not UTF-16LE text: {err}"
        ) from err
    parts = combined.split(SEPARATOR)
    if len(parts) != SEGMENT_COUNT:
        raise EnvelopeFormatError(
            "Invalid encrypted string format. Expected "
            f"{SEGMENT_COUNT} parts separated by '{SEPARATOR}', got {len(parts)}"
        )
    header, cipher_b64, iv_b64 = parts
    return EncryptedEnvelope(
        header=header,
        cipher_text=b64decode(cipher_b64, "cipher text segment"),
        iv=b64decode(iv_b64, "IV segment"),
    )


# ---------------------------------------------------------------------------
# Decryption
# ---------------------------------------------------------------------------

def decrypt_cbc(cipher_text: bytes, key: bytes, iv: bytes) -> bytes:
    """AES-CBC decrypt and strip PKCS7 padding.

    Raises:
        CryptoError: On bad key or IV size, partial blocks or bad padding.
    """
    try:
        cipher = Cipher(algorithms.AES(key), modes.CBC(iv))
        decryptor = cipher.decryptor()
        padded = decryptor.update(cipher_text) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except (ValueError, TypeError) as err:
        raise CryptoError(f"Decryption failed: {err}") from err


def decrypt(encrypted_value: str, key: bytes) -> str:
    """Decrypt a secure-string envelope with the master key.

    Args:
        encrypted_value: Base64 envelope from the credential store.
        key: Raw AES key (16, 24 or 32 bytes). ``bytearray`` is accepted.

    Returns:
        The plaintext secret.

    Raises:
        EmptyInput, Base64DecodeError, EnvelopeFormatError, CryptoError.
    """
    envelope = parse_envelope(encrypted_value)
    data = decrypt_cbc(envelope.cipher_text, key, envelope.iv)
    try:
        return data.decode(TEXT_ENCODING)
    except UnicodeDecodeError as err:
        raise CryptoError(
            "Decrypted data is not UTF-16LE text (wrong key?)"
        ) from err
