# application/services/header_dispatch.py
from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Callable, Dict, List, Optional, Tuple

from domain.exceptions import HeaderListFormatError, HeaderValueFormatError
from domain.request_spec import HeaderEntry, NetworkCredential, ProxySpec


@dataclass
class RequestDraft:
    """Mutable per-call accumulator filled by the header handlers."""

    headers: List[Tuple[str, str]] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    credentials: Optional[NetworkCredential] = None
    proxy: Optional[ProxySpec] = None

    def add_header(self, name: str, value: str) -> None:
        # repeated names are folded into one comma-separated header, first spelling wins
        for i, (existing, current) in enumerate(self.headers):
            if existing.lower() == name.lower():
                self.headers[i] = (existing, f"{current}, {value}")
                return
        self.headers.append((name, value))


HeaderHandler = Callable[[RequestDraft, HeaderEntry], None]


def _set_content_length(draft: RequestDraft, entry: HeaderEntry) -> None:
    try:
        length = int(entry.value.strip())
    except ValueError:
        raise HeaderValueFormatError(entry.name, entry.value, "a non-negative integer") from None
    if length < 0:
        raise HeaderValueFormatError(entry.name, entry.value, "a non-negative integer")
    draft.content_length = length


def _set_content_type(draft: RequestDraft, entry: HeaderEntry) -> None:
    draft.content_type = entry.value


def _set_basic_credentials(draft: RequestDraft, entry: HeaderEntry) -> None:
    token = base64.b64encode(entry.value.encode("utf-8")).decode("ascii")
    draft.add_header("Authorization", f"Basic {token}")


def _set_network_credentials(draft: RequestDraft, entry: HeaderEntry) -> None:
    if ":" not in entry.value:
        raise HeaderValueFormatError(entry.name, entry.value, "username:password")
    username, password = entry.value.split(":", 1)
    draft.credentials = NetworkCredential(username=username, password=password)


def parse_proxy(header_name: str, value: str) -> ProxySpec:
    expected = "host,port[,username:password]"
    parts = value.split(",")
    if len(parts) < 2:
        raise HeaderValueFormatError(header_name, value, expected)

    host = parts[0].strip()
    try:
        port = int(parts[1].strip())
    except ValueError:
        raise HeaderValueFormatError(header_name, value, expected) from None
    if not host:
        raise HeaderValueFormatError(header_name, value, expected)

    credentials: Optional[NetworkCredential] = None
    if len(parts) > 2:
        # commas after the port belong to the credentials segment
        user_pass = ",".join(parts[2:])
        segments = user_pass.split(":")
        if len(segments) < 2:
            raise HeaderValueFormatError(header_name, value, expected)
        credentials = NetworkCredential(username=segments[0], password=":".join(segments[1:]))

    return ProxySpec(host=host, port=port, credentials=credentials)


def _set_proxy(draft: RequestDraft, entry: HeaderEntry) -> None:
    draft.proxy = parse_proxy(entry.name, entry.value)


def _http_date(entry: HeaderEntry) -> str:
    raw = entry.value.strip()
    parsed: Optional[datetime] = None
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            pass
    if parsed is None:
        raise HeaderValueFormatError(entry.name, entry.value, "an RFC 1123 or ISO 8601 date")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)


def _byte_range(entry: HeaderEntry) -> str:
    parts = entry.value.split("-")
    if len(parts) < 2:
        raise HeaderValueFormatError(entry.name, entry.value, "start-end")
    try:
        start, end = int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        raise HeaderValueFormatError(entry.name, entry.value, "start-end") from None
    return f"bytes={start}-{end}"


def _property(canonical: str, convert: Optional[Callable[[HeaderEntry], str]] = None) -> HeaderHandler:
    def handler(draft: RequestDraft, entry: HeaderEntry) -> None:
        draft.properties[canonical] = convert(entry) if convert else entry.value

    return handler


def _pass_through(draft: RequestDraft, entry: HeaderEntry) -> None:
    draft.add_header(entry.name, entry.value)


SPECIAL_HEADERS: Dict[str, HeaderHandler] = {
    "CONTENT-LENGTH": _set_content_length,
    "CONTENT-TYPE": _set_content_type,
    "AUTHORIZATION-BASIC-CREDENTIALS": _set_basic_credentials,
    "AUTHORIZATION-NETWORK-CREDENTIALS": _set_network_credentials,
    "PROXY": _set_proxy,
    "ACCEPT": _property("Accept"),
    "CONNECTION": _property("Connection"),
    "DATE": _property("Date", _http_date),
    "EXPECT": _property("Expect"),
    "HOST": _property("Host"),
    "IF-MODIFIED-SINCE": _property("If-Modified-Since", _http_date),
    "RANGE": _property("Range", _byte_range),
    "REFERER": _property("Referer"),
    "TRANSFER-ENCODING": _property("Transfer-Encoding"),
    "USER-AGENT": _property("User-Agent"),
}


# RFC 9110 token characters
_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_LINE_BREAKS = ("\r", "\n", "\x00")


def clean_entry(entry: HeaderEntry) -> HeaderEntry:
    """Trim surrounding whitespace and reject anything that cannot go on the wire."""
    name = entry.name.strip()
    if not _NAME_RE.fullmatch(name):
        raise HeaderListFormatError(
            f"Invalid header name {entry.name!r}: a header name must be a non-empty HTTP token"
        )
    value = entry.value.strip()
    if any(ch in value for ch in _LINE_BREAKS):
        raise HeaderValueFormatError(name, entry.value, "a single line of text")
    return HeaderEntry(name=name, value=value)


def handler_for(name: str) -> HeaderHandler:
    return SPECIAL_HEADERS.get(name.strip().upper(), _pass_through)


def dispatch_headers(entries: List[HeaderEntry], draft: Optional[RequestDraft] = None) -> RequestDraft:
    draft = draft if draft is not None else RequestDraft()
    for entry in entries:
        entry = clean_entry(entry)
        handler_for(entry.name)(draft, entry)
    return draft
