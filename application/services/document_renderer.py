# application/services/document_renderer.py
from __future__ import annotations

import json
from typing import Any

from lxml import etree

from domain.exceptions import ValidationError
from domain.response_document import ResponseDocument

OUTPUT_FORMATS = ("xml", "json")

# dict key -> XML element name, in document order
_XML_FIELDS = [
    ("characterSet", "CharacterSet"),
    ("contentEncoding", "ContentEncoding"),
    ("contentLength", "ContentLength"),
    ("contentType", "ContentType"),
    ("cookiesCount", "CookiesCount"),
    ("headerCount", "HeadersCount"),
    ("headers", "Headers"),
    ("isFromCache", "IsFromCache"),
    ("isMutuallyAuthenticated", "IsMutuallyAuthenticated"),
    ("lastModified", "LastModified"),
    ("method", "Method"),
    ("protocolVersion", "ProtocolVersion"),
    ("responseUri", "ResponseUri"),
    ("server", "Server"),
    ("statusCode", "StatusCode"),
    ("statusNumber", "StatusNumber"),
    ("statusDescription", "StatusDescription"),
    ("supportsHeaders", "SupportsHeaders"),
    ("body", "Body"),
]


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_xml_element(doc: ResponseDocument) -> etree._Element:
    data = doc.to_dict()
    root = etree.Element("Response")
    for key, tag in _XML_FIELDS:
        if key == "headers":
            headers_el = etree.SubElement(root, tag)
            for header in data["headers"]:
                header_el = etree.SubElement(headers_el, "Header")
                etree.SubElement(header_el, "Name").text = header["name"]
                values_el = etree.SubElement(header_el, "Values")
                for value in header["values"]:
                    etree.SubElement(values_el, "Value").text = value
            continue
        etree.SubElement(root, tag).text = _text(data[key])
    return root


def render_xml(doc: ResponseDocument, pretty: bool = False) -> str:
    return etree.tostring(to_xml_element(doc), encoding="unicode", pretty_print=pretty)


def render_json(doc: ResponseDocument, pretty: bool = False) -> str:
    return json.dumps(doc.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def render(doc: ResponseDocument, fmt: str, pretty: bool = False) -> str:
    fmt = (fmt or "").lower()
    if fmt == "xml":
        return render_xml(doc, pretty)
    if fmt == "json":
        return render_json(doc, pretty)
    raise ValidationError(f"Unknown output format: {fmt!r} (expected one of {', '.join(OUTPUT_FORMATS)})")
