# application/services/header_list_parser.py
from __future__ import annotations

from typing import List, Optional

from lxml import etree

from domain.exceptions import HeaderListFormatError
from domain.request_spec import HeaderEntry

NAME_ATTRIBUTE = "Name"


def _parser() -> etree.XMLParser:
    # header lists come from callers; never expand entities or fetch DTDs
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def parse_header_list(text: Optional[str]) -> List[HeaderEntry]:
    """
    Parse a header list document:

        <Headers>
          <Header Name="Accept">application/json</Header>
          <Header Name="X-Trace">abc</Header>
        </Headers>

    Each child of the root element is one header. The element tag is not
    significant; the Name attribute is required and the element text is the value.
    Blank input means no headers.
    """
    if text is None or not text.strip():
        return []

    try:
        root = etree.fromstring(text.strip().encode("utf-8"), _parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise HeaderListFormatError(f"Headers must be a well-formed XML document: {e}") from e

    entries: List[HeaderEntry] = []
    for position, element in enumerate(root.iterchildren(tag=etree.Element), start=1):
        name = element.get(NAME_ATTRIBUTE)
        if name is None or not name.strip():
            raise HeaderListFormatError(
                f"Header element #{position} <{element.tag}> is missing the required {NAME_ATTRIBUTE} attribute"
            )
        entries.append(HeaderEntry(name=name.strip(), value="".join(element.itertext())))
    return entries
