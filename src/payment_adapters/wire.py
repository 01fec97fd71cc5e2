"""
Wire-level value objects and body codecs.

Adapters own their field mapping; this module owns the mechanics shared by
all of them: the request/response envelopes, the per-call transcript and
the encoders/parsers for the three wire formats processors speak
(form-encoded, JSON, XML/SOAP).
"""

import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, urlencode

from payment_adapters.models.exceptions import MalformedBody


class WireFormat(str, Enum):
    """Body encoding a processor speaks."""

    FORM = "application/x-www-form-urlencoded"
    JSON = "application/json"
    XML = "text/xml"


@dataclass(frozen=True)
class WireRequest:
    """
    A fully built processor request.

    Attributes:
        url: Endpoint to POST to
        headers: Request headers (credentials included)
        body: Encoded request body
        sensitive: Literals in this request that must be scrubbed from
            transcripts (card number, CVV, secrets, signatures)
        method: HTTP method
    """

    url: str
    headers: Mapping[str, str]
    body: str
    sensitive: tuple[str, ...] = ()
    method: str = "POST"


@dataclass(frozen=True)
class RawResponse:
    """Processor response as returned by the transport."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TranscriptEntry:
    direction: str  # "<-" sent, "->" received, "" connection note
    text: str


class WireTranscript:
    """
    Ordered record of what went over the wire during one call.

    Created per call by the adapter, filled by the transport, scrubbed and
    then discarded. Never shared between calls.
    """

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []

    def note(self, text: str) -> None:
        self._entries.append(TranscriptEntry("", text))

    def sent(self, text: str) -> None:
        self._entries.append(TranscriptEntry("<-", text))

    def received(self, text: str) -> None:
        self._entries.append(TranscriptEntry("->", text))

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def render(self) -> str:
        """Render as text: notes verbatim, traffic as quoted, escaped lines."""
        lines = []
        for entry in self._entries:
            if entry.direction:
                lines.append(f"{entry.direction} {json.dumps(entry.text, ensure_ascii=False)}")
            else:
                lines.append(entry.text)
        return "\n".join(lines) + ("\n" if lines else "")


def compact(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively drop None values (and mappings left empty by that)."""
    result: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            value = compact(value)
            if not value:
                continue
        result[key] = value
    return result


def encode_json(fields: Mapping[str, Any]) -> str:
    return json.dumps(compact(fields), separators=(",", ":"))


def encode_form(fields: Mapping[str, Any]) -> str:
    return urlencode([(key, str(value)) for key, value in fields.items() if value is not None])


def encode_xml(root_tag: str, fields: Mapping[str, Any], *, declaration: bool = True) -> str:
    """
    Render a mapping as an XML document.

    Nested mappings become nested elements; None values are skipped.
    """
    root = ET.Element(root_tag)
    _append_elements(root, fields)
    document = ET.tostring(root, encoding="unicode")
    if declaration:
        return '<?xml version="1.0" encoding="utf-8"?>' + document
    return document


def _append_elements(parent: ET.Element, fields: Mapping[str, Any]) -> None:
    for name, value in fields.items():
        if value is None:
            continue
        child = ET.SubElement(parent, name)
        if isinstance(value, Mapping):
            _append_elements(child, value)
        else:
            child.text = str(value)


def parse_json(text: str) -> dict[str, Any]:
    """
    Parse a JSON object body.

    Raises:
        MalformedBody: If the body is not a JSON object
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedBody(f"Invalid JSON body: {e}") from e
    if not isinstance(parsed, dict):
        raise MalformedBody(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def parse_form(text: str) -> dict[str, str]:
    """
    Parse a form-encoded body.

    Raises:
        MalformedBody: If the body is empty or not form-encoded
    """
    if not text or not text.strip():
        raise MalformedBody("Empty form body")
    try:
        return dict(parse_qsl(text.strip(), keep_blank_values=True, strict_parsing=True))
    except ValueError as e:
        raise MalformedBody(f"Invalid form body: {e}") from e


_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def parse_xml_element(text: str) -> ET.Element:
    """
    Parse an XML document into its root element.

    Raises:
        MalformedBody: If the text is not well-formed XML
    """
    try:
        return ET.fromstring(_DECLARATION.sub("", text or "", count=1))
    except ET.ParseError as e:
        raise MalformedBody(f"Invalid XML body: {e}") from e


def parse_xml(text: str) -> dict[str, str]:
    return flatten_xml(parse_xml_element(text))


def local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1]


def flatten_xml(element: ET.Element) -> dict[str, str]:
    """
    Flatten the children of an element into a parameter map.

    Leaf children map ``tag.lower() -> text``; one level of nesting maps
    ``parent_child -> text``.
    """
    result: dict[str, str] = {}
    for node in element:
        name = local_name(node.tag).lower()
        children = list(node)
        if not children:
            result[name] = node.text or ""
            continue
        for child in children:
            result[f"{name}_{local_name(child.tag).lower()}"] = child.text or ""
    return result
