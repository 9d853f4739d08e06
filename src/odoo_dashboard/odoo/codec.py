"""
XML-RPC Value Codec

Converts Python values to and from the tagged `<value>` fragments of the
XML-RPC wire format.

Supported values (RpcValue):
- int      <-> <int>     (<i4> and <i8> are accepted when decoding)
- float    <-> <double>
- str      <-> <string>
- bool     <-> <boolean>
- None      -> <string></string>  (decodes back as "", there is no nil)
- list     <-> <array><data>...</data></array>
- dict     <-> <struct><member>...</member></struct>

Known lossy cases: None comes back as "", and struct members with an empty
name are dropped on decode, so {"": 1} decodes to {}.
"""

import datetime
import logging
import re
from typing import Any, Union
from xml.etree.ElementTree import Element  # nosec B405 - elements come from parse_response

from .exceptions import OdooInvalidResponseError

logger = logging.getLogger(__name__)

RpcValue = Union[int, float, str, bool, None, list["RpcValue"], dict[str, "RpcValue"]]

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
    ("\r", "&#13;"),
)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+\Z", re.ASCII)
_DOUBLE_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?\Z", re.ASCII)


def escape(text: str) -> str:
    """Escape the five XML metacharacters and carriage returns."""
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def encode_value(value: Any) -> str:
    """
    Encode a Python value as the XML fragment placed inside `<value>`.

    Raises:
        TypeError: value is not representable as an RpcValue
    """
    if value is None:
        return "<string></string>"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return f"<boolean>{'1' if value else '0'}</boolean>"
    if isinstance(value, int):
        return f"<int>{value}</int>"
    if isinstance(value, float):
        return f"<double>{value!r}</double>"
    if isinstance(value, str):
        return f"<string>{escape(value)}</string>"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return f"<string>{value.isoformat()}</string>"
    if isinstance(value, (list, tuple)):
        items = "".join(f"<value>{encode_value(item)}</value>" for item in value)
        return f"<array><data>{items}</data></array>"
    if isinstance(value, dict):
        members = []
        for name, item in value.items():
            if not isinstance(name, str):
                raise TypeError(f"Struct member names must be strings, got {type(name).__name__}")
            members.append(
                f"<member><name>{escape(name)}</name><value>{encode_value(item)}</value></member>"
            )
        return f"<struct>{''.join(members)}</struct>"

    raise TypeError(f"Cannot encode {type(value).__name__} as an XML-RPC value")


def decode_value(element: Element, strict_numbers: bool = False) -> RpcValue:
    """
    Decode a `<value>` element into a Python value.

    Unexpected shapes never raise: unknown tags decode to their text.
    Malformed numbers decode to 0 unless strict_numbers is set, in which
    case OdooInvalidResponseError is raised.
    """
    child = _first_child(element)
    if child is None:
        # XML-RPC default type is string
        return element.text or ""

    tag = child.tag
    text = child.text or ""

    if tag == "string":
        return text
    if tag in ("int", "i4", "i8"):
        return _parse_number(int, text, tag, strict_numbers)
    if tag == "double":
        return _parse_number(float, text, tag, strict_numbers)
    if tag == "boolean":
        return text == "1"
    if tag == "array":
        data = child.find("data")
        if data is None:
            return []
        return [decode_value(item, strict_numbers) for item in data]
    if tag == "struct":
        result = {}
        for member in child.findall("member"):
            name = member.find("name")
            value = member.find("value")
            if name is None or value is None or not name.text:
                continue
            result[name.text] = decode_value(value, strict_numbers)
        return result

    logger.debug(f"Unknown XML-RPC type <{tag}>, decoding as text")
    return text


def _first_child(element: Element) -> Element | None:
    for child in element:
        return child
    return None


def _parse_number(kind, text: str, tag: str, strict: bool):
    stripped = text.strip()
    pattern = _INT_PATTERN if kind is int else _DOUBLE_PATTERN
    if pattern.match(stripped):
        return kind(stripped)

    if strict:
        raise OdooInvalidResponseError(
            f"Malformed <{tag}> value: {text!r}", tag=tag, raw_value=text
        )
    logger.debug(f"Malformed <{tag}> value {text!r}, decoding as 0")
    return kind(0)
