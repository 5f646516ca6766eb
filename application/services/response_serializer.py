# application/services/response_serializer.py
from __future__ import annotations

import base64
import re
from email.utils import parsedate_to_datetime
from http import HTTPStatus
from typing import List, Optional

from application.ports.http_transport import TransportResponse
from domain.response_document import ResponseDocument, ResponseHeader

DEFAULT_CHARACTER_SET = "ISO-8859-1"

_CHARSET_RE = re.compile(r"charset\s*=\s*([^\s;]+)", re.I)


def status_name(status: int) -> str:
    """200 -> "OK", 404 -> "NotFound"; unknown codes fall back to the number."""
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return str(status)
    words = re.split(r"[\s\-]+", phrase)
    return "".join(w[:1].upper() + w[1:] for w in words if w)


def character_set(content_type: str) -> Optional[str]:
    if not content_type:
        return None
    m = _CHARSET_RE.search(content_type)
    if m:
        return m.group(1).strip().strip('"').strip("'")
    return DEFAULT_CHARACTER_SET


def _last_modified(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    try:
        return parsedate_to_datetime(raw).isoformat()
    except (TypeError, ValueError, IndexError):
        return raw


def _content_length(raw: Optional[str]) -> int:
    try:
        return int(raw) if raw is not None else -1
    except ValueError:
        return -1


class ResponseSerializer:
    def serialize(self, response: TransportResponse, method: str, as_base64: bool) -> ResponseDocument:
        """
        Drain the body once and build the document.

        The caller owns the response and closes it; this only reads.
        """
        head = response.head
        headers: List[ResponseHeader] = [
            ResponseHeader(name=name, values=list(values)) for name, values in head.headers
        ]

        def first(name: str) -> Optional[str]:
            for h in headers:
                if h.name.lower() == name.lower() and h.values:
                    return h.values[0]
            return None

        buffer = bytearray()
        for chunk in response.iter_body():
            buffer.extend(chunk)

        if as_base64:
            body = base64.b64encode(bytes(buffer)).decode("ascii")
        else:
            body = bytes(buffer).decode("utf-8", errors="replace")

        content_type = first("Content-Type") or ""
        return ResponseDocument(
            character_set=character_set(content_type),
            content_encoding=first("Content-Encoding") or "",
            content_length=_content_length(first("Content-Length")),
            content_type=content_type,
            cookies_count=head.cookies_count,
            header_count=len(headers),
            headers=headers,
            is_from_cache=False,
            is_mutually_authenticated=False,
            last_modified=_last_modified(first("Last-Modified")),
            method=method,
            protocol_version=head.http_version,
            response_uri=head.url,
            server=first("Server") or "",
            status_code=status_name(head.status),
            status_number=head.status,
            status_description=head.reason,
            supports_headers=True,
            body=body,
        )
