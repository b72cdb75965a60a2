"""
CLIXML reader - typed deserialization of ``Export-Clixml`` hashtables.

A hashtable is serialized as::

    <Objs xmlns="http://schemas.microsoft.com/powershell/2004/04">
      <Obj RefId="0">
        <DCT>
          <En>
            <S N="Key">MyService</S>
            <Obj N="Value" RefId="1">
              <MS>
                <S N="Identity">svc_user</S>
                <S N="Value">...</S>
                <S N="EncryptionType">AES</S>
              </MS>
            </Obj>
          </En>
        </DCT>
      </Obj>
    </Objs>

Only the two node kinds the credential lookup consumes are modelled: string
nodes (``S``) and object nodes (``Obj``) carrying a member-set (``MS``).
Element names are matched on their local name, so the default namespace is
optional.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..exceptions import XmlParseError

logger = logging.getLogger("psvault.vault")

CLIXML_NAMESPACE = "http://schemas.microsoft.com/powershell/2004/04"

ENTRY_TAG = "En"
STRING_TAG = "S"
OBJECT_TAG = "Obj"
MEMBER_SET_TAG = "MS"
NAME_ATTR = "N"
KEY_NAME = "Key"
VALUE_NAME = "Value"


# ---------------------------------------------------------------------------
# Node model
# ---------------------------------------------------------------------------

class Property(BaseModel):
    """A named scalar inside a member-set (``<S N="Identity">...``)."""

    tag: str
    name: str = ""
    text: str = ""

    model_config = {"frozen": True}


class MemberSet(BaseModel):
    """Ordered properties of a ``PSCustomObject``."""

    properties: list[Property] = Field(default_factory=list)

    model_config = {"frozen": True}


class StringNode(BaseModel):
    kind: Literal["S"] = "S"
    name: str = ""
    text: str = ""

    model_config = {"frozen": True}


class ObjectNode(BaseModel):
    kind: Literal["Obj"] = "Obj"
    name: str = ""
    members: Optional[MemberSet] = None

    model_config = {"frozen": True}


Node = Annotated[Union[StringNode, ObjectNode], Field(discriminator="kind")]


class HashtableEntry(BaseModel):
    """One ``<En>`` element: a key node and a value node, either may be absent."""

    key: Optional[StringNode] = None
    value: Optional[Node] = None

    model_config = {"frozen": True}


class CredentialDocument(BaseModel):
    """All hashtable entries of a CLIXML document, in document order."""

    entries: list[HashtableEntry] = Field(default_factory=list)
    source: Optional[str] = None

    model_config = {"frozen": True}

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------

def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def element_text(element: ET.Element) -> str:
    """Full text content of an element, descendants included."""
    return "".join(element.itertext())


def _named_child(element: ET.Element, tag: str, name: str) -> Optional[ET.Element]:
    for child in element:
        if local_name(child.tag) == tag and child.get(NAME_ATTR) == name:
            return child
    return None


def _first_descendant(element: ET.Element, tag: str) -> Optional[ET.Element]:
    for node in element.iter():
        if node is not element and local_name(node.tag) == tag:
            return node
    return None


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------

def to_member_set(element: ET.Element) -> MemberSet:
    return MemberSet(
        properties=[
            Property(
                tag=local_name(child.tag),
                name=child.get(NAME_ATTR, ""),
                text=element_text(child),
            )
            for child in element
        ]
    )


def to_object_node(element: ET.Element) -> ObjectNode:
    ms = _first_descendant(element, MEMBER_SET_TAG)
    return ObjectNode(
        name=element.get(NAME_ATTR, ""),
        members=to_member_set(ms) if ms is not None else None,
    )


def to_node(element: ET.Element) -> Optional[Node]:
    tag = local_name(element.tag)
    if tag == OBJECT_TAG:
        return to_object_node(element)
    if tag == STRING_TAG:
        return StringNode(
            name=element.get(NAME_ATTR, ""), text=element_text(element)
        )
    return None


def to_entry(element: ET.Element) -> HashtableEntry:
    """Build a typed entry from an ``<En>`` element.

    The value node is the first ``Obj`` named ``Value``; a plain string value
    is kept as a StringNode so the lookup can tell it apart.
    """
    key_el = _named_child(element, STRING_TAG, KEY_NAME)
    value_el = _named_child(element, OBJECT_TAG, VALUE_NAME)
    if value_el is None:
        value_el = _named_child(element, STRING_TAG, VALUE_NAME)
    return HashtableEntry(
        key=StringNode(
            name=KEY_NAME, text=element_text(key_el)
        ) if key_el is not None else None,
        value=to_node(value_el) if value_el is not None else None,
    )


def from_element(root: ET.Element, source: Optional[str] = None) -> CredentialDocument:
    """Collect every ``<En>`` under ``root`` (nested hashtables included)."""
    entries = [
        to_entry(node) for node in root.iter()
        if local_name(node.tag) == ENTRY_TAG
    ]
    return CredentialDocument(entries=entries, source=source)


def parse_store(data: Union[str, bytes], source: Optional[str] = None) -> CredentialDocument:
    """Parse CLIXML text into a CredentialDocument.

    Args:
        data: XML document as text or bytes.
        source: Optional label (usually the file path) kept on the document.

    Raises:
        XmlParseError: If ``data`` is not well-formed XML.
    """
    try:
        root = ET.fromstring(data)
    except (ET.ParseError, ValueError) as err:
        label = source or "<string>"
        raise XmlParseError(
            f"Credential store {label} is not well-formed XML: {err}"
        ) from err
    document = from_element(root, source=source)
    logger.debug(
        "Parsed credential store %s: %d entr(ies)",
        source or "<string>", len(document),
    )
    return document
