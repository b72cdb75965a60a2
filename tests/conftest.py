"""Shared fixtures: CLIXML stores and secure-string envelopes."""
import base64
import os
from typing import Optional

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from psvault.vault.clixml import CLIXML_NAMESPACE

HEADER = "76492d1116743f0423413b16050a5345"
MASTER_KEY = bytes(range(32))
FIXED_IV = bytes(range(100, 116))


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def aes_cbc_encrypt(data: bytes, key: bytes, iv: bytes, pad: bool = True) -> bytes:
    if pad:
        padder = padding.PKCS7(128).padder()
        data = padder.update(data) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def wrap_envelope(*segments: str) -> str:
    """base64(utf16le("a|b|c")) for arbitrary segments."""
    return b64("|".join(segments).encode("utf-16-le"))


def make_envelope(
    plaintext: str,
    key: bytes = MASTER_KEY,
    iv: Optional[bytes] = None,
    header: str = HEADER,
) -> str:
    """Build a secure-string envelope the way ConvertFrom-SecureString does."""
    iv = iv if iv is not None else os.urandom(16)
    cipher_text = aes_cbc_encrypt(plaintext.encode("utf-16-le"), key, iv)
    return wrap_envelope(header, b64(cipher_text), b64(iv))


def property_xml(name: str, value: str, tag: str = "S") -> str:
    return f'<{tag} N="{name}">{value}</{tag}>'


def entry_xml(key: Optional[str], props: Optional[dict] = None, value_xml: Optional[str] = None) -> str:
    """One hashtable ``<En>``; ``value_xml`` overrides the generated value object."""
    key_part = f'<S N="Key">{key}</S>' if key is not None else ""
    if value_xml is None and props is not None:
        members = "".join(property_xml(n, v) for n, v in props.items())
        value_xml = (
            '<Obj N="Value" RefId="1">'
            '<TN RefId="1"><T>System.Management.Automation.PSCustomObject</T>'
            '<T>System.Object</T></TN>'
            f'<MS>{members}</MS>'
            '</Obj>'
        )
    return f"<En>{key_part}{value_xml or ''}</En>"


def store_xml(*entries: str, namespaced: bool = True) -> str:
    ns = f' xmlns="{CLIXML_NAMESPACE}"' if namespaced else ""
    return (
        f'<Objs Version="1.1.0.1"{ns}>'
        '<Obj RefId="0">'
        '<TN RefId="0"><T>System.Collections.Hashtable</T><T>System.Object</T></TN>'
        f'<DCT>{"".join(entries)}</DCT>'
        '</Obj>'
        '</Objs>'
    )


@pytest.fixture
def master_key_bytes():
    return MASTER_KEY


@pytest.fixture
def envelope():
    """Envelope for 'hunter2' under MASTER_KEY."""
    return make_envelope("hunter2", iv=FIXED_IV)


@pytest.fixture
def service_props(envelope):
    return {
        "Identity": "svc_user",
        "Value": envelope,
        "EncryptionType": "AES",
    }


@pytest.fixture
def store_file(tmp_path, service_props):
    """MySecrets.xml with a single MyService entry."""
    path = tmp_path / "MySecrets.xml"
    path.write_text(store_xml(entry_xml("MyService", service_props)), encoding="utf-8")
    return path


@pytest.fixture
def key_file(tmp_path):
    """master.key holding MASTER_KEY as base64."""
    path = tmp_path / "master.key"
    path.write_text(b64(MASTER_KEY) + "\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep PSVAULT_* variables from the outer environment out of tests."""
    for name in ("PSVAULT_STORE", "PSVAULT_MASTER_KEY", "PSVAULT_CREDENTIAL", "PSVAULT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
